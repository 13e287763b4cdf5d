# a11y_audit/playwright_host.py
"""
Playwright host adapter.

Implements the capability interfaces over a synchronous Playwright page. The
DOM is read in one ``page.evaluate`` call that tags every element with a
stable ``data-a11y-audit-id`` and returns tags, attributes, own text, bounding
boxes and computed styles, plus the media conditions of every readable
stylesheet. Focus, blur and mutation observation address elements through
that id.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from a11y_core.config import ViewportProfile
from a11y_exceptions import DetachedRootError, StyleUnavailableError, create_error_context

from .core import Rect
from .services import (
    FocusController,
    MutationEvent,
    MutationWatcher,
    StyleResolver,
    ViewportController,
)
from .tree import STYLE_PROPERTIES, ElementDescriptor


logger = logging.getLogger(__name__)

ID_ATTRIBUTE = "data-a11y-audit-id"
MUTATION_BINDING = "__a11yAuditMutation"

# Serializes the subtree under a selector; shared by snapshots and mutation refreshes
_SERIALIZER = """
(() => {
  const ID = '%(id)s';
  const PROPS = %(props)s;
  let counter = window.__a11yAuditCounter || 0;
  const tag = (el) => {
    if (!el.hasAttribute(ID)) { counter += 1; el.setAttribute(ID, 'n' + counter); }
    return el.getAttribute(ID);
  };
  const serialize = (el) => {
    const id = tag(el);
    const attrs = {};
    for (const attr of el.attributes) {
      if (attr.name !== ID) attrs[attr.name] = attr.value;
    }
    let text = '';
    for (const child of el.childNodes) {
      if (child.nodeType === Node.TEXT_NODE) text += child.textContent;
    }
    const box = el.getBoundingClientRect();
    let style = null;
    try {
      const computed = window.getComputedStyle(el);
      style = {};
      for (const prop of PROPS) style[prop] = computed.getPropertyValue(prop);
    } catch (e) {
      style = null;
    }
    const listeners = [];
    for (const name of el.getAttributeNames()) {
      if (name.startsWith('on')) listeners.push(name.slice(2));
    }
    const children = [];
    for (const child of el.children) children.push(serialize(child));
    return {
      id, tag: el.tagName.toLowerCase(), attrs, text: text.trim(), style, listeners, children,
      rect: [box.x, box.y, box.width, box.height],
    };
  };
  window.__a11yAuditSerialize = serialize;
  window.__a11yAuditCounterSync = () => { window.__a11yAuditCounter = counter; };
  return true;
})()
""" % {"id": ID_ATTRIBUTE, "props": "[" + ", ".join(f"'{p}'" for p in STYLE_PROPERTIES) + "]"}

_SNAPSHOT = """
(selector) => {
  const root = document.querySelector(selector);
  if (!root) return null;
  const tree = window.__a11yAuditSerialize(root);
  window.__a11yAuditCounterSync();
  const media = [];
  for (const sheet of document.styleSheets) {
    let rules;
    try { rules = sheet.cssRules; } catch (e) { continue; }
    const walk = (list) => {
      for (const rule of list) {
        if (rule.media && rule.cssRules) {
          media.push(rule.conditionText || rule.media.mediaText);
          walk(rule.cssRules);
        }
      }
    };
    walk(rules);
  }
  return { tree, media };
}
"""

_LIVE_STYLE = """
([id, props]) => {
  const el = document.querySelector(`[%(id)s="${id}"]`);
  if (!el) return null;
  const computed = window.getComputedStyle(el);
  const style = {};
  for (const prop of props) style[prop] = computed.getPropertyValue(prop);
  return style;
}
""" % {"id": ID_ATTRIBUTE}

_IS_ATTACHED = """
(id) => {
  const el = document.querySelector(`[%(id)s="${id}"]`);
  return !!el && el.isConnected;
}
""" % {"id": ID_ATTRIBUTE}

_ACTIVE_ELEMENT = """
() => {
  const el = document.activeElement;
  return el && el !== document.body ? el.getAttribute('%(id)s') : null;
}
""" % {"id": ID_ATTRIBUTE}

_FOCUS = """
([id, action]) => {
  const el = document.querySelector(`[%(id)s="${id}"]`);
  if (!el) throw new Error(`node ${id} is detached`);
  if (action === 'focus') el.focus({ preventScroll: true }); else el.blur();
}
""" % {"id": ID_ATTRIBUTE}

_OBSERVE = """
(id) => {
  const root = document.querySelector(`[%(id)s="${id}"]`);
  if (!root) throw new Error(`node ${id} is detached`);
  if (window.__a11yAuditObserver) window.__a11yAuditObserver.disconnect();
  window.__a11yAuditObserver = new MutationObserver((mutations) => {
    for (const mutation of mutations) {
      let target = mutation.target;
      if (target.nodeType !== Node.ELEMENT_NODE) target = target.parentElement;
      if (!target || !target.hasAttribute('%(id)s')) continue;
      const node = window.__a11yAuditSerialize(target);
      window.__a11yAuditCounterSync();
      window.%(binding)s({ kind: mutation.type, node });
    }
  });
  window.__a11yAuditObserver.observe(root, { childList: true, subtree: true, characterData: true });
}
""" % {"id": ID_ATTRIBUTE, "binding": MUTATION_BINDING}

_DISCONNECT = """
() => {
  if (window.__a11yAuditObserver) window.__a11yAuditObserver.disconnect();
  window.__a11yAuditObserver = null;
}
"""


class PlaywrightHost:
    """
    Capability bundle for one Playwright page.

    Example:
        host = PlaywrightHost(page)
        report = AuditEngine(config).run(host.snapshot(), host.resolver, focus=host.focus)

    Args:
        page: Synchronous Playwright page
        root_selector: Selector of the element snapshots start from
        discover_listeners: Query Chromium's DevTools protocol for event
            listeners; inline ``on*`` attributes are always reported
    """

    def __init__(self, page: Page, root_selector: str = "body", discover_listeners: bool = True):
        self.page = page
        self.root_selector = root_selector
        self.discover_listeners = discover_listeners

        self.nodes: Dict[str, ElementDescriptor] = {}
        self.styles: Dict[str, Optional[Dict[str, str]]] = {}
        self.media: List[str] = []
        self.focused_id: Optional[str] = None

        self.resolver = PlaywrightStyleResolver(self)
        self.focus = PlaywrightFocusController(self)
        self.watcher = PlaywrightMutationWatcher(self)
        self.viewport = PlaywrightViewportController(self)

    def snapshot(self) -> ElementDescriptor:
        """
        Read the current rendering into an ElementDescriptor tree.

        Raises:
            DetachedRootError: If ``root_selector`` matches nothing
        """
        self.page.evaluate(_SERIALIZER)
        data = self.page.evaluate(_SNAPSHOT, self.root_selector)
        if data is None:
            raise DetachedRootError(
                selector=self.root_selector,
                error_context=create_error_context(component="Playwright Host", operation="snapshot"),
            )

        self.nodes.clear()
        self.styles.clear()
        self.media = list(data["media"])
        root = self._build(data["tree"])
        if self.discover_listeners:
            self._discover_listeners()
        logger.debug(f"Snapshot of {self.root_selector}: {len(self.nodes)} elements, {len(self.media)} media rules")
        return root

    def _build(self, node: Mapping[str, Any]) -> ElementDescriptor:
        element = ElementDescriptor(
            tag=node["tag"],
            attributes=dict(node["attrs"]),
            text=node["text"],
            rect=Rect(*node["rect"]),
            listeners=frozenset(node["listeners"]),
            node_id=node["id"],
        )
        self.nodes[element.node_id] = element
        self.styles[element.node_id] = node["style"]
        for child in node["children"]:
            element.append(self._build(child))
        return element

    def refresh(self, node: Mapping[str, Any]) -> Optional[ElementDescriptor]:
        """Replace a mirrored subtree with a fresh serialization of it."""
        element = self.nodes.get(node["id"])
        if element is None:
            return None
        element.text = node["text"]
        element.attributes = dict(node["attrs"])
        element.children = []
        self.styles[element.node_id] = node["style"]
        for child in node["children"]:
            element.append(self._build(child))
        return element

    def _discover_listeners(self):
        try:
            session = self.page.context.new_cdp_session(self.page)
        except PlaywrightError as e:
            logger.debug(f"Listener discovery unavailable: {e}")
            return
        try:
            for node_id, element in self.nodes.items():
                handle = session.send("Runtime.evaluate", {
                    "expression": f'document.querySelector(\'[{ID_ATTRIBUTE}="{node_id}"]\')',
                })
                object_id = handle.get("result", {}).get("objectId")
                if not object_id:
                    continue
                found = session.send("DOMDebugger.getEventListeners", {"objectId": object_id})
                types = {listener["type"] for listener in found.get("listeners", [])}
                if types:
                    element.listeners = element.listeners | frozenset(types)
        except PlaywrightError as e:
            logger.warning(f"Listener discovery aborted: {e}")
        finally:
            session.detach()


class PlaywrightStyleResolver(StyleResolver):
    """Snapshot styles, read live for the element that currently holds probe focus."""

    def __init__(self, host: PlaywrightHost):
        self.host = host

    def computed_style(self, element: ElementDescriptor) -> Mapping[str, str]:
        if element.node_id == self.host.focused_id:
            try:
                style = self.host.page.evaluate(_LIVE_STYLE, [element.node_id, list(STYLE_PROPERTIES)])
            except PlaywrightError as e:
                raise StyleUnavailableError(f"Live style read failed: {e}", selector=element.tag)
        else:
            style = self.host.styles.get(element.node_id)
        if style is None:
            raise StyleUnavailableError(f"No computed style for <{element.tag}>", selector=element.tag)
        return style

    def media_conditions(self) -> List[str]:
        return list(self.host.media)

    def is_attached(self, element: ElementDescriptor) -> bool:
        try:
            return bool(self.host.page.evaluate(_IS_ATTACHED, element.node_id))
        except PlaywrightError:
            return False


class PlaywrightFocusController(FocusController):

    def __init__(self, host: PlaywrightHost):
        super().__init__()
        self.host = host

    def active_element(self) -> Optional[ElementDescriptor]:
        node_id = self.host.page.evaluate(_ACTIVE_ELEMENT)
        return self.host.nodes.get(node_id) if node_id else None

    def focus(self, element: ElementDescriptor) -> None:
        self.host.page.evaluate(_FOCUS, [element.node_id, "focus"])
        self.host.focused_id = element.node_id

    def blur(self, element: ElementDescriptor) -> None:
        self.host.page.evaluate(_FOCUS, [element.node_id, "blur"])
        if self.host.focused_id == element.node_id:
            self.host.focused_id = None


class PlaywrightMutationWatcher(MutationWatcher):
    """MutationObserver in the page, bridged to Python through an exposed binding."""

    def __init__(self, host: PlaywrightHost):
        self.host = host
        self.callback: Optional[Callable[[MutationEvent], None]] = None
        self._exposed = False

    def observe(self, root: ElementDescriptor, callback: Callable[[MutationEvent], None]) -> None:
        if not self._exposed:
            self.host.page.expose_function(MUTATION_BINDING, self._deliver)
            self._exposed = True
        self.host.page.evaluate(_SERIALIZER)
        self.callback = callback
        self.host.page.evaluate(_OBSERVE, root.node_id)

    def _deliver(self, payload: Mapping[str, Any]) -> None:
        if self.callback is None:
            return
        target = self.host.refresh(payload["node"])
        if target is not None:
            self.callback(MutationEvent(target=target, kind=payload["kind"]))

    def disconnect(self) -> None:
        self.callback = None
        try:
            self.host.page.evaluate(_DISCONNECT)
        except PlaywrightError as e:
            logger.debug(f"Observer disconnect skipped: {e}")


class PlaywrightViewportController(ViewportController):

    def __init__(self, host: PlaywrightHost):
        self.host = host

    def apply(self, profile: ViewportProfile) -> ElementDescriptor:
        self.host.page.set_viewport_size({"width": profile.width, "height": profile.height})
        return self.host.snapshot()
