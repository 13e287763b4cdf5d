# a11y_audit/tree.py
"""
Tree and style accessor.

ElementDescriptor is the engine's handle to a rendered node. TreeAccessor
flattens a root into selector families, builds unique selectors for report
keys and resolves the style facts the analyzers need (effective foreground
and background, font metrics, focus related properties), caching each lookup
for the duration of one run.
"""

import logging
import re
import uuid
import weakref
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterator, List, Mapping, Optional

from a11y_exceptions import StyleUnavailableError

from .colors import extract_colors, parse_color
from .core import Rect
from .selectors import matches


DEFAULT_BACKGROUND = "#ffffff"
DEFAULT_FONT_SIZE = 16.0

# Computed style properties a host adapter must supply
STYLE_PROPERTIES = (
    "color",
    "background-color",
    "font-size",
    "font-weight",
    "outline-style",
    "outline-width",
    "outline-color",
    "border-style",
    "border-width",
    "border-color",
    "box-shadow",
    "animation-name",
    "animation-duration",
    "animation-iteration-count",
    "transition-property",
    "transition-duration",
    "display",
    "visibility",
)

# Selector families
INTERACTIVE_SELECTOR = (
    'a[href], area[href], button, input:not([type="hidden"]), select, textarea, summary, '
    '[tabindex]:not([tabindex="-1"]), [contenteditable="true"], '
    '[role="button"], [role="link"], [role="checkbox"], [role="radio"], [role="switch"], '
    '[role="tab"], [role="menuitem"], [role="menuitemcheckbox"], [role="menuitemradio"], '
    '[role="option"], [role="slider"], [role="spinbutton"], [role="combobox"], [role="textbox"], '
    '[role="searchbox"], [role="treeitem"], [role="gridcell"]'
)
TEXT_SELECTOR = (
    "p, span, a, button, label, legend, caption, figcaption, blockquote, summary, "
    "h1, h2, h3, h4, h5, h6, li, dt, dd, td, th, "
    '[role="button"], [role="link"], [role="tab"], [role="menuitem"]'
)
HEADING_SELECTOR = 'h1, h2, h3, h4, h5, h6, [role="heading"]'
IMAGE_SELECTOR = 'img, svg, [role="img"], input[type="image"]'
FORM_CONTROL_SELECTOR = 'input:not([type="hidden"]), select, textarea'
LINK_SELECTOR = 'a[href], [role="link"]'
BUTTON_SELECTOR = 'button, [role="button"], input[type="button"], input[type="submit"], input[type="reset"]'
NAVIGATION_SELECTOR = 'nav, [role="navigation"]'
MAIN_SELECTOR = 'main, [role="main"]'
MODAL_SELECTOR = '[role="dialog"], [role="alertdialog"], [aria-modal="true"], .modal'
DROPDOWN_SELECTOR = '[role="menu"], [role="listbox"], .dropdown-menu'
TABPANEL_SELECTOR = '[role="tabpanel"]'
LIVE_REGION_SELECTOR = '[aria-live], [role="status"], [role="alert"], [role="log"]'
ARIA_SELECTOR_PREFIX = "aria-"

_LENGTH_PATTERN = re.compile(r"^\s*(-?\d*\.?\d+)\s*(px|pt|em|rem|%)?\s*$")
_NUMBER_PATTERN = re.compile(r"-?\d*\.?\d+")
_WEIGHT_KEYWORDS = {"normal": 400, "bold": 700, "bolder": 700, "lighter": 300}


def _new_node_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(eq=False)
class ElementDescriptor:
    """
    Handle to one rendered node plus its structural facts.

    Attributes:
        tag: Lowercase tag name
        attributes: Attribute map (names lowercase)
        text: Text directly owned by this node (its text-node children)
        rect: Bounding box in CSS pixels
        children: Child elements in document order
        listeners: Event types the host reports as having handlers attached
        node_id: Stable handle used by host adapters
    """
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    rect: Rect = field(default_factory=Rect)
    children: List["ElementDescriptor"] = field(default_factory=list)
    listeners: FrozenSet[str] = frozenset()
    node_id: str = field(default_factory=_new_node_id)
    _parent_ref: Optional[Callable[[], Optional["ElementDescriptor"]]] = field(
        default=None, repr=False
    )

    def __post_init__(self):
        self.tag = self.tag.lower()
        self.attributes = {name.lower(): value for name, value in self.attributes.items()}
        for child in self.children:
            child._parent_ref = weakref.ref(self)

    def append(self, child: "ElementDescriptor") -> "ElementDescriptor":
        child._parent_ref = weakref.ref(self)
        self.children.append(child)
        return child

    @property
    def parent(self) -> Optional["ElementDescriptor"]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def role(self) -> Optional[str]:
        """Explicit role (first token of the role attribute), lowercase."""
        value = self.attributes.get("role", "").strip().lower()
        return value.split()[0] if value else None

    @property
    def element_id(self) -> Optional[str]:
        value = self.attributes.get("id")
        return value if value else None

    @property
    def classes(self) -> List[str]:
        return self.attributes.get("class", "").split()

    @property
    def text_content(self) -> str:
        parts = [self.text]
        parts.extend(child.text_content for child in self.children)
        return " ".join(part for part in (p.strip() for p in parts) if part)

    @property
    def is_disabled(self) -> bool:
        return "disabled" in self.attributes or self.attributes.get("aria-disabled") == "true"

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    def has(self, name: str) -> bool:
        return name in self.attributes

    def matches(self, selector: str) -> bool:
        return matches(self, selector)

    def iter_descendants(self) -> Iterator["ElementDescriptor"]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def iter_subtree(self) -> Iterator["ElementDescriptor"]:
        yield self
        yield from self.iter_descendants()

    def ancestors(self) -> Iterator["ElementDescriptor"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def closest(self, selector: str) -> Optional["ElementDescriptor"]:
        """Nearest ancestor (not self) matching the selector."""
        for ancestor in self.ancestors():
            if ancestor.matches(selector):
                return ancestor
        return None

    def find_all(self, selector: str) -> List["ElementDescriptor"]:
        return [node for node in self.iter_descendants() if node.matches(selector)]


@dataclass(frozen=True)
class ResolvedStyle:
    """Normalized style facts for one element; colors are ``#rrggbb`` or None."""
    foreground: Optional[str]
    background: str
    own_background: Optional[str]
    font_size: float
    font_weight: str
    bold: bool
    outline_style: str = "none"
    outline_width: float = 0.0
    outline_color: Optional[str] = None
    border_style: str = "none"
    border_width: float = 0.0
    border_color: Optional[str] = None
    box_shadow: str = "none"
    animation_name: str = "none"
    animation_duration: str = "0s"
    animation_iteration_count: str = "1"
    transition_property: str = "none"
    transition_duration: str = "0s"
    display: str = "inline"
    visibility: str = "visible"

    @property
    def has_outline(self) -> bool:
        return self.outline_style not in ("none", "") and self.outline_width > 0

    @property
    def has_border(self) -> bool:
        return (
            self.border_style not in ("none", "hidden", "")
            and self.border_width > 0
            and self.border_color is not None
        )

    @property
    def has_box_shadow(self) -> bool:
        return self.box_shadow.strip() not in ("none", "")

    @property
    def is_hidden(self) -> bool:
        return self.display == "none" or self.visibility in ("hidden", "collapse")


def parse_length(value: Optional[str], base: float = DEFAULT_FONT_SIZE) -> Optional[float]:
    """Length in px; relative units resolve against ``base``."""
    if not value:
        return None
    match = _LENGTH_PATTERN.match(value)
    if not match:
        return None
    number, unit = float(match.group(1)), match.group(2) or "px"
    if unit == "pt":
        return number * 4 / 3
    if unit in ("em", "rem"):
        return number * base
    if unit == "%":
        return number * base / 100
    return number


def parse_time(value: Optional[str]) -> float:
    """Largest duration in a comma list, in seconds."""
    if not value:
        return 0.0
    longest = 0.0
    for chunk in value.split(","):
        chunk = chunk.strip()
        number = _NUMBER_PATTERN.match(chunk)
        if not number:
            continue
        seconds = float(number.group(0))
        if chunk.endswith("ms"):
            seconds /= 1000
        longest = max(longest, seconds)
    return longest


def font_weight_value(value: Optional[str]) -> int:
    if not value:
        return 400
    value = value.strip().lower()
    if value in _WEIGHT_KEYWORDS:
        return _WEIGHT_KEYWORDS[value]
    try:
        return int(float(value))
    except ValueError:
        return 400


def _border_width(raw: Mapping[str, str]) -> float:
    widths = [parse_length(part) for part in raw.get("border-width", "").split()]
    widths = [w for w in widths if w is not None]
    return max(widths) if widths else 0.0


def _first_token(value: Optional[str], default: str) -> str:
    if not value or not value.strip():
        return default
    return value.split()[0].strip().lower()


class TreeAccessor:
    """
    Read-only view over one root for the duration of an audit run.

    Args:
        root: Root element of the rendered tree
        resolver: StyleResolver supplying computed style maps
        scope: Optional selector; when given only subtrees rooted at matching
            elements are audited (structural lookups still see the whole tree)
    """

    def __init__(self, root: ElementDescriptor, resolver, scope: Optional[str] = None):
        self.root = root
        self.resolver = resolver
        self.scope = scope
        self.logger = logging.getLogger(__name__)

        self._document: List[ElementDescriptor] = list(root.iter_subtree())
        self._order: Dict[str, int] = {el.node_id: i for i, el in enumerate(self._document)}
        self._by_id: Dict[str, ElementDescriptor] = {}
        self._id_counts: Dict[str, int] = {}
        for element in self._document:
            if element.element_id:
                self._by_id.setdefault(element.element_id, element)
                self._id_counts[element.element_id] = self._id_counts.get(element.element_id, 0) + 1

        self.elements = self._scoped_elements()
        self._raw_styles: Dict[str, Optional[Mapping[str, str]]] = {}
        self._styles: Dict[str, Optional[ResolvedStyle]] = {}
        self._backgrounds: Dict[str, str] = {}
        self._selectors: Dict[str, str] = {}
        self._media: Optional[List[str]] = None

    def _scoped_elements(self) -> List[ElementDescriptor]:
        if not self.scope:
            return list(self._document)
        seen = set()
        for element in self._document:
            if element.node_id in seen or not element.matches(self.scope):
                continue
            for node in element.iter_subtree():
                seen.add(node.node_id)
        return [el for el in self._document if el.node_id in seen]

    # Structural queries

    def select(self, selector: str) -> List[ElementDescriptor]:
        """Elements inside the audit scope matching the selector, in document order."""
        return [el for el in self.elements if el.matches(selector)]

    def select_document(self, selector: str) -> List[ElementDescriptor]:
        """Elements anywhere under the root matching the selector."""
        return [el for el in self._document if el.matches(selector)]

    def by_id(self, element_id: str) -> Optional[ElementDescriptor]:
        return self._by_id.get(element_id)

    def document_index(self, element: ElementDescriptor) -> int:
        return self._order.get(element.node_id, -1)

    def contains(self, element: ElementDescriptor) -> bool:
        return element.node_id in self._order

    def aria_elements(self) -> List[ElementDescriptor]:
        return [
            el for el in self.elements
            if "role" in el.attributes or any(name.startswith(ARIA_SELECTOR_PREFIX) for name in el.attributes)
        ]

    def selector_for(self, element: ElementDescriptor) -> str:
        """Unique selector for an element: ``tag#id`` when the id is unique, else an nth-of-type path."""
        cached = self._selectors.get(element.node_id)
        if cached is not None:
            return cached

        element_id = element.element_id
        if element_id and self._id_counts.get(element_id) == 1 and re.fullmatch(r"[A-Za-z][\w-]*", element_id):
            selector = f"{element.tag}#{element_id}"
        else:
            parent = element.parent
            if parent is None or not self.contains(parent):
                selector = element.tag
            else:
                same_tag = [child for child in parent.children if child.tag == element.tag]
                step = element.tag
                if len(same_tag) > 1:
                    step = f"{element.tag}:nth-of-type({same_tag.index(element) + 1})"
                selector = f"{self.selector_for(parent)} > {step}"

        self._selectors[element.node_id] = selector
        return selector

    # Style resolution

    def raw_style(self, element: ElementDescriptor) -> Optional[Mapping[str, str]]:
        """Computed style map, or None when the host cannot read it."""
        if element.node_id in self._raw_styles:
            return self._raw_styles[element.node_id]
        try:
            raw = self.resolver.computed_style(element)
        except StyleUnavailableError as e:
            self.logger.debug(f"Style unknown for {self.selector_for(element)}: {e.message}")
            raw = None
        self._raw_styles[element.node_id] = raw
        return raw

    def effective_background(self, element: ElementDescriptor) -> str:
        """Background the element's content is painted on, walking ancestors to an opaque color."""
        cached = self._backgrounds.get(element.node_id)
        if cached is not None:
            return cached

        parent = element.parent
        underneath = self.effective_background(parent) if parent is not None else DEFAULT_BACKGROUND

        raw = self.raw_style(element)
        color = parse_color(raw.get("background-color")) if raw else None
        if color is None or color.is_transparent:
            background = underneath
        else:
            background = color.over(underneath)

        self._backgrounds[element.node_id] = background
        return background

    def style(self, element: ElementDescriptor) -> Optional[ResolvedStyle]:
        if element.node_id in self._styles:
            return self._styles[element.node_id]
        raw = self.raw_style(element)
        resolved = self.resolve(element, raw) if raw is not None else None
        self._styles[element.node_id] = resolved
        return resolved

    def resolve(self, element: ElementDescriptor, raw: Mapping[str, str]) -> ResolvedStyle:
        """Normalize a raw computed style map; used for cached and probed (focused) styles alike."""
        background = self.effective_background(element)

        foreground_color = parse_color(raw.get("color"))
        if foreground_color is None or foreground_color.is_transparent:
            foreground = None
        else:
            foreground = foreground_color.over(background)

        own = parse_color(raw.get("background-color"))
        own_background = None if own is None or own.is_transparent else own.over(background)

        font_size = parse_length(raw.get("font-size")) or DEFAULT_FONT_SIZE
        weight = (raw.get("font-weight") or "400").strip().lower()

        outline_color = parse_color(raw.get("outline-color"))
        border_colors = extract_colors(raw.get("border-color"))
        border_color = border_colors[0] if border_colors else None

        return ResolvedStyle(
            foreground=foreground,
            background=background,
            own_background=own_background,
            font_size=font_size,
            font_weight=weight,
            bold=font_weight_value(weight) >= 700,
            outline_style=_first_token(raw.get("outline-style"), "none"),
            outline_width=parse_length(raw.get("outline-width")) or 0.0,
            outline_color=outline_color.over(background) if outline_color and not outline_color.is_transparent else None,
            border_style=_first_token(raw.get("border-style"), "none"),
            border_width=_border_width(raw),
            border_color=border_color.over(background) if border_color and not border_color.is_transparent else None,
            box_shadow=(raw.get("box-shadow") or "none").strip(),
            animation_name=(raw.get("animation-name") or "none").strip(),
            animation_duration=(raw.get("animation-duration") or "0s").strip(),
            animation_iteration_count=(raw.get("animation-iteration-count") or "1").strip().lower(),
            transition_property=(raw.get("transition-property") or "none").strip(),
            transition_duration=(raw.get("transition-duration") or "0s").strip(),
            display=(raw.get("display") or "inline").strip().lower(),
            visibility=(raw.get("visibility") or "visible").strip().lower(),
        )

    def media_conditions(self) -> List[str]:
        """Media query conditions from every readable stylesheet (unreadable sheets are skipped)."""
        if self._media is None:
            self._media = list(self.resolver.media_conditions())
        return self._media

    def is_rendered(self, element: ElementDescriptor) -> bool:
        """False when the element or an ancestor is display:none / visibility:hidden; unknown counts as rendered."""
        for node in [element, *element.ancestors()]:
            style = self.style(node)
            if style is None:
                continue
            if style.display == "none" or (node is element and style.is_hidden):
                return False
        return True
