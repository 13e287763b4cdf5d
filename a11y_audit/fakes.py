# a11y_audit/fakes.py
"""
In-memory host for tests and offline use.

FakeDocument builds ElementDescriptor trees with per-element styles and backs
all four capability interfaces. Computed styles follow CSS inheritance for
the inherited properties the engine reads, and the focused element's style is
overlaid with its ``focus_style``.
"""

from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from a11y_core.config import ViewportProfile
from a11y_exceptions import StyleUnavailableError

from .core import Rect
from .services import (
    FocusController,
    MutationEvent,
    MutationWatcher,
    StyleResolver,
    ViewportController,
)
from .tree import ElementDescriptor


DEFAULT_STYLE = {
    "color": "rgb(0, 0, 0)",
    "background-color": "rgba(0, 0, 0, 0)",
    "font-size": "16px",
    "font-weight": "400",
    "outline-style": "none",
    "outline-width": "0px",
    "outline-color": "rgb(0, 0, 0)",
    "border-style": "none",
    "border-width": "0px",
    "border-color": "rgb(0, 0, 0)",
    "box-shadow": "none",
    "animation-name": "none",
    "animation-duration": "0s",
    "animation-iteration-count": "1",
    "transition-property": "all",
    "transition-duration": "0s",
    "display": "block",
    "visibility": "visible",
}

INHERITED_PROPERTIES = ("color", "font-size", "font-weight", "visibility")


def _attribute_name(key: str) -> str:
    return key.rstrip("_").replace("_", "-")


class FakeDocument:
    """
    Builder and shared state for an in-memory rendered tree.

    Example:
        doc = FakeDocument()
        root = doc.element("body",
            doc.element("button", text="Save", style={"color": "#777"}),
        )
        engine.run(root, resolver=doc.resolver, focus=doc.focus)
    """

    def __init__(self):
        self.styles: Dict[str, Dict[str, str]] = {}
        self.focus_styles: Dict[str, Dict[str, str]] = {}
        self.unreadable: Set[str] = set()
        self.detached: Set[str] = set()
        self.media: List[str] = []
        self.active: Optional[ElementDescriptor] = None
        self.focus_log: List[Tuple[str, str]] = []
        self.fail_focus_on: Set[str] = set()

        self.resolver = InMemoryStyleResolver(self)
        self.focus = InMemoryFocusController(self)
        self.watcher = InMemoryMutationWatcher(self)

    def element(
        self,
        tag: str,
        *children: ElementDescriptor,
        text: str = "",
        style: Optional[Mapping[str, str]] = None,
        focus_style: Optional[Mapping[str, str]] = None,
        rect: Union[Rect, Tuple[float, float, float, float], None] = None,
        listeners: Iterable[str] = (),
        unreadable: bool = False,
        **attrs: str
    ) -> ElementDescriptor:
        """Create an element; keyword attributes map ``aria_label`` to ``aria-label`` and ``class_`` to ``class``."""
        if rect is None:
            rect = Rect()
        elif not isinstance(rect, Rect):
            rect = Rect(*rect)
        element = ElementDescriptor(
            tag=tag,
            attributes={_attribute_name(k): str(v) for k, v in attrs.items()},
            text=text,
            rect=rect,
            children=list(children),
            listeners=frozenset(listeners),
        )
        if style:
            self.styles[element.node_id] = dict(style)
        if focus_style:
            self.focus_styles[element.node_id] = dict(focus_style)
        if unreadable:
            self.unreadable.add(element.node_id)
        return element

    def set_style(self, element: ElementDescriptor, **properties: str):
        self.styles.setdefault(element.node_id, {}).update(
            {_attribute_name(k): v for k, v in properties.items()}
        )

    def set_text(self, element: ElementDescriptor, text: str):
        element.text = text
        self.watcher.notify(MutationEvent(target=element, kind="characterData"))

    def append_child(self, parent: ElementDescriptor, child: ElementDescriptor):
        parent.append(child)
        self.watcher.notify(MutationEvent(target=parent, kind="childList"))

    def detach(self, element: ElementDescriptor):
        for node in element.iter_subtree():
            self.detached.add(node.node_id)

    def add_media_rule(self, condition: str):
        self.media.append(condition)

    def computed(self, element: ElementDescriptor) -> Dict[str, str]:
        if element.node_id in self.unreadable:
            raise StyleUnavailableError(f"stylesheet for <{element.tag}> is not readable")

        style = dict(DEFAULT_STYLE)
        parent = element.parent
        if parent is not None and parent.node_id not in self.unreadable:
            inherited = self.computed(parent)
            style.update({name: inherited[name] for name in INHERITED_PROPERTIES})
        style.update(self.styles.get(element.node_id, {}))
        if self.active is element:
            style.update(self.focus_styles.get(element.node_id, {}))
        return style


class InMemoryStyleResolver(StyleResolver):

    def __init__(self, document: FakeDocument):
        self.document = document

    def computed_style(self, element: ElementDescriptor) -> Mapping[str, str]:
        return self.document.computed(element)

    def media_conditions(self) -> List[str]:
        return list(self.document.media)

    def is_attached(self, element: ElementDescriptor) -> bool:
        return element.node_id not in self.document.detached


class InMemoryFocusController(FocusController):

    def __init__(self, document: FakeDocument):
        super().__init__()
        self.document = document

    def active_element(self) -> Optional[ElementDescriptor]:
        return self.document.active

    def focus(self, element: ElementDescriptor) -> None:
        self.document.focus_log.append(("focus", element.node_id))
        if element.node_id in self.document.fail_focus_on:
            raise RuntimeError(f"focus() rejected by <{element.tag}>")
        self.document.active = element

    def blur(self, element: ElementDescriptor) -> None:
        self.document.focus_log.append(("blur", element.node_id))
        if self.document.active is element:
            self.document.active = None


class InMemoryMutationWatcher(MutationWatcher):

    def __init__(self, document: FakeDocument):
        self.document = document
        self.root: Optional[ElementDescriptor] = None
        self.callback: Optional[Callable[[MutationEvent], None]] = None

    def observe(self, root: ElementDescriptor, callback: Callable[[MutationEvent], None]) -> None:
        self.root = root
        self.callback = callback

    def disconnect(self) -> None:
        self.root = None
        self.callback = None

    def notify(self, event: MutationEvent):
        if self.callback is None or self.root is None:
            return
        if event.target is self.root or any(a is self.root for a in event.target.ancestors()):
            self.callback(event)


class InMemoryViewport(ViewportController):
    """Builds a fresh tree per profile from a factory."""

    def __init__(self, factory: Callable[[ViewportProfile], ElementDescriptor]):
        self.factory = factory
        self.applied: List[str] = []

    def apply(self, profile: ViewportProfile) -> ElementDescriptor:
        self.applied.append(profile.name)
        return self.factory(profile)
