# a11y_audit/keyboard.py
"""
Focus and keyboard operability analysis.

Covers effective tab index, focus-indicator probing (WCAG 2.4.7 / 1.4.11),
key support per semantic role (2.1.1), document tab order (2.4.3), focus
management for modals, dropdowns and tab panels, and declared keyboard
shortcuts (accesskey / aria-keyshortcuts).
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Set

from a11y_exceptions import FocusProbeError

from .colors import extract_colors
from .contrast import contrast_ratio, display_ratio
from .core import AccessibilityCategory, AuditContext, Impact, Issue
from .results import (
    FocusIndicatorResult,
    FocusManagementResult,
    KeyboardResult,
    ShortcutResult,
    TabOrderEntry,
    TabOrderResult,
)
from .services import focus_probe
from .tree import (
    DEFAULT_BACKGROUND,
    DROPDOWN_SELECTOR,
    INTERACTIVE_SELECTOR,
    MODAL_SELECTOR,
    TABPANEL_SELECTOR,
    ElementDescriptor,
)


logger = logging.getLogger(__name__)

FOCUS_INDICATOR_MIN_CONTRAST = 3.0

KEY_HANDLER_EVENTS = ("keydown", "keyup", "keypress")
CLICK_EVENTS = ("click", "mousedown", "mouseup")

ENTER, SPACE, ARROWS, HOME_END, PAGE, ESCAPE = "enter", "space", "arrows", "home_end", "page", "escape"

KEY_LABELS = {
    ENTER: "Enter",
    SPACE: "Space",
    ARROWS: "Arrow keys",
    HOME_END: "Home/End",
    PAGE: "Page Up/Down",
    ESCAPE: "Escape",
}

# Keys each widget role is expected to respond to
ROLE_EXPECTED_KEYS = {
    "button": (ENTER, SPACE),
    "link": (ENTER,),
    "tab": (ENTER, SPACE, ARROWS),
    "menuitem": (ENTER, SPACE, ARROWS),
    "menuitemcheckbox": (ENTER, SPACE, ARROWS),
    "menuitemradio": (ENTER, SPACE, ARROWS),
    "option": (ENTER, ARROWS),
    "checkbox": (SPACE,),
    "radio": (SPACE, ARROWS),
    "switch": (SPACE,),
    "slider": (ARROWS, HOME_END, PAGE),
    "spinbutton": (ARROWS, HOME_END, PAGE),
    "listbox": (ARROWS, HOME_END, PAGE),
    "grid": (ARROWS, HOME_END, PAGE),
    "tree": (ARROWS, HOME_END, PAGE),
    "dialog": (ESCAPE,),
    "alertdialog": (ESCAPE,),
}

BUTTON_INPUT_TYPES = ("button", "submit", "reset", "image")
TOGGLE_INPUT_TYPES = ("checkbox", "radio")

# Shortcut combinations the browser already owns
RESERVED_SHORTCUTS = {
    "control+w", "control+t", "control+n", "control+q", "control+l", "control+r",
    "control+tab", "control+shift+tab", "alt+f4", "f5", "meta+w", "meta+t", "meta+q",
}
KNOWN_MODIFIERS = ("alt", "altgraph", "control", "meta", "shift")
_MODIFIER_ALIASES = {"ctrl": "control", "cmd": "meta", "option": "alt"}


# Tab index

def explicit_tab_index(element: ElementDescriptor) -> Optional[int]:
    raw = element.attributes.get("tabindex")
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def is_natively_interactive(element: ElementDescriptor) -> bool:
    tag = element.tag
    if tag in ("button", "select", "textarea", "summary"):
        return True
    if tag in ("a", "area"):
        return "href" in element.attributes
    if tag == "input":
        return element.attributes.get("type", "text").lower() != "hidden"
    return element.attributes.get("contenteditable", "").lower() == "true"


def effective_tab_index(element: ElementDescriptor) -> Optional[int]:
    """
    Sequential focus index, or None when the element is unreachable by Tab.

    An explicit non-negative tabindex wins; an explicit negative one removes
    the element from the sequence; otherwise enabled natively interactive
    elements default to 0.
    """
    explicit = explicit_tab_index(element)
    if explicit is not None:
        return explicit if explicit >= 0 else None
    if is_natively_interactive(element) and "disabled" not in element.attributes:
        return 0
    return None


def is_focusable(element: ElementDescriptor, ctx: AuditContext) -> bool:
    if effective_tab_index(element) is None:
        return False
    if "disabled" in element.attributes and element.tag in ("button", "input", "select", "textarea"):
        return False
    return ctx.accessor.is_rendered(element)


def has_key_handler(element: ElementDescriptor) -> bool:
    if any(event in element.listeners for event in KEY_HANDLER_EVENTS):
        return True
    return any(f"on{event}" in element.attributes for event in KEY_HANDLER_EVENTS)


def has_click_handler(element: ElementDescriptor) -> bool:
    if any(event in element.listeners for event in CLICK_EVENTS):
        return True
    return "onclick" in element.attributes


# Focus indicator

def _indicator_surroundings(element: ElementDescriptor, ctx: AuditContext) -> str:
    parent = element.parent
    return ctx.accessor.effective_background(parent) if parent is not None else DEFAULT_BACKGROUND


def probe_focus_indicator(element: ElementDescriptor, ctx: AuditContext) -> Optional[FocusIndicatorResult]:
    """
    Focus the element, diff its focused style against the resting style and
    grade the indicator.

    Outline, border, box-shadow and background changes count as indicators.
    The indicator is sufficient when it is outline based or its color has at
    least 3:1 contrast against what surrounds it.

    Returns:
        FocusIndicatorResult, or None (abstention) when either style cannot be read
    """
    cached = ctx.focus_cache.get(element.node_id)
    if cached is not None:
        return cached

    selector = ctx.accessor.selector_for(element)
    base = ctx.accessor.style(element)
    if base is None:
        ctx.abstentions.record(selector, "focus-indicator", "Resting style is not readable")
        return None

    def read_focused_style():
        with focus_probe(ctx.focus, element, timeout=ctx.config.focus_probe_timeout, selector=selector):
            return ctx.accessor.resolver.computed_style(element)

    try:
        focused_raw = ctx.abstentions.guard(selector, "focus-indicator", read_focused_style)
    except FocusProbeError:
        raise
    except Exception as e:
        logger.warning(f"Focus probe failed for {selector}: {e}")
        ctx.abstentions.record(selector, "focus-indicator", f"Host could not focus element: {e}")
        return None
    if focused_raw is None:
        return None

    focused = ctx.accessor.resolve(element, focused_raw)
    surroundings = _indicator_surroundings(element, ctx)

    methods: List[str] = []
    if focused.has_outline and (
        not base.has_outline
        or (focused.outline_style, focused.outline_width, focused.outline_color)
        != (base.outline_style, base.outline_width, base.outline_color)
    ):
        methods.append("outline")
    if focused.has_border and (
        not base.has_border
        or (focused.border_width, focused.border_color) != (base.border_width, base.border_color)
    ):
        methods.append("border")
    if focused.has_box_shadow and focused.box_shadow != base.box_shadow:
        methods.append("box-shadow")
    if focused.own_background is not None and focused.own_background != base.own_background:
        methods.append("background-color")

    indicator_color: Optional[str] = None
    against = surroundings
    if "outline" in methods:
        indicator_color = focused.outline_color
    elif "border" in methods:
        indicator_color = focused.border_color
    elif "box-shadow" in methods:
        shadow_colors = [c for c in extract_colors(focused.box_shadow) if not c.is_transparent]
        indicator_color = shadow_colors[0].over(surroundings) if shadow_colors else None
    elif "background-color" in methods:
        indicator_color = focused.own_background
        against = base.background

    ratio = contrast_ratio(indicator_color, against) if indicator_color else None
    has_indicator = bool(methods)
    visible = has_indicator and (ratio is None or ratio > 1.0)
    sufficient = has_indicator and (
        "outline" in methods or (ratio is not None and ratio >= FOCUS_INDICATOR_MIN_CONTRAST)
    )

    issues: List[Issue] = []
    if not has_indicator:
        issues.append(Issue(
            rule="focus-visible",
            message="Element has no visible focus indicator",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.FOCUS,
        ))
    elif not sufficient:
        shown = f"{display_ratio(ratio):.2f}" if ratio is not None else "unknown"
        issues.append(Issue(
            rule="focus-indicator-contrast",
            message=f"Focus indicator contrast ratio {shown}:1 is below 3:1 requirement",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.FOCUS,
        ))

    result = FocusIndicatorResult(
        selector=selector,
        has_indicator=has_indicator,
        visible=visible,
        sufficient=sufficient,
        contrast_ratio=ratio,
        indicator_color=indicator_color,
        methods=methods,
        issues=issues,
    )
    ctx.focus_cache[element.node_id] = result
    return result


# Key support

def native_keys(element: ElementDescriptor) -> Set[str]:
    """Keys the platform handles for a native element without script."""
    tag = element.tag
    input_type = element.attributes.get("type", "text").lower()
    if tag == "button" or (tag == "input" and input_type in BUTTON_INPUT_TYPES):
        return {ENTER, SPACE}
    if tag in ("a", "area") and "href" in element.attributes:
        return {ENTER}
    if tag == "select":
        return {ENTER, SPACE, ARROWS}
    if tag == "input" and input_type in TOGGLE_INPUT_TYPES:
        return {ENTER, SPACE} | ({ARROWS} if input_type == "radio" else set())
    if tag == "input" and input_type == "range":
        return {ENTER, ARROWS, HOME_END, PAGE}
    if tag in ("input", "textarea"):
        return {ENTER}
    if tag == "summary":
        return {ENTER, SPACE}
    return set()


def expected_keys(element: ElementDescriptor) -> List[str]:
    role = element.role
    if role in ROLE_EXPECTED_KEYS:
        return list(ROLE_EXPECTED_KEYS[role])
    return sorted(native_keys(element), key=list(KEY_LABELS).index)


def _parse_shortcut_list(element: ElementDescriptor) -> List[str]:
    shortcuts = []
    if element.attributes.get("accesskey", "").strip():
        shortcuts.extend(f"accesskey:{k}" for k in element.attributes["accesskey"].split())
    if element.attributes.get("aria-keyshortcuts", "").strip():
        shortcuts.extend(element.attributes["aria-keyshortcuts"].split())
    return shortcuts


def analyze_keyboard(element: ElementDescriptor, ctx: AuditContext) -> KeyboardResult:
    """Reachability and key support for one interactive element."""
    selector = ctx.accessor.selector_for(element)
    explicit = explicit_tab_index(element)
    tab_index = effective_tab_index(element)
    focusable = is_focusable(element, ctx)
    handler = has_key_handler(element)
    native = native_keys(element)
    expected = expected_keys(element)
    support = {key: key in native or handler for key in expected}

    issues: List[Issue] = []
    recommendations: List[str] = []

    if explicit is not None and explicit > 0:
        issues.append(Issue(
            rule="tabindex",
            message="Positive tabindex disrupts natural tab order",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.KEYBOARD_NAVIGATION,
        ))
        recommendations.append("Use tabindex=\"0\" and arrange elements in DOM order")

    # an explicit negative tabindex is a deliberate removal (roving tabindex, programmatic focus)
    removed = explicit is not None and explicit < 0
    disabled = "disabled" in element.attributes
    wants_interaction = element.matches(INTERACTIVE_SELECTOR) or has_click_handler(element)
    if not focusable and wants_interaction and not (disabled or removed) and ctx.accessor.is_rendered(element):
        issues.append(Issue(
            rule="keyboard-focusable",
            message="Interactive element is not reachable with the keyboard",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.KEYBOARD_NAVIGATION,
        ))
        recommendations.append("Add tabindex=\"0\" or use a native interactive element")

    missing = [key for key, ok in support.items() if not ok]
    if missing:
        role = element.role or element.tag
        labels = "/".join(KEY_LABELS[key] for key in missing)
        prefix = "Custom " if not is_natively_interactive(element) else ""
        issues.append(Issue(
            rule="keyboard-support",
            message=f"{prefix}{role} missing {labels} key support",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.KEYBOARD_NAVIGATION,
        ))
        recommendations.append(f"Handle {labels} in a keydown listener")

    if has_click_handler(element) and not handler and not native and not element.role:
        issues.append(Issue(
            rule="click-events-have-key-events",
            message="Click handler has no keyboard equivalent",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.KEYBOARD_NAVIGATION,
        ))
        recommendations.append("Use a <button> or add a role, tabindex and key handler")

    return KeyboardResult(
        selector=selector,
        focusable=focusable,
        tab_index=tab_index,
        expected_keys=expected,
        key_support=support,
        has_key_handler=handler,
        shortcuts=_parse_shortcut_list(element),
        accessible=focusable and not missing,
        issues=issues,
        recommendations=recommendations,
    )


def keyboard_candidates(ctx: AuditContext) -> List[ElementDescriptor]:
    return [
        el for el in ctx.accessor.elements
        if (el.matches(INTERACTIVE_SELECTOR) or has_click_handler(el) or el.role in ROLE_EXPECTED_KEYS)
        and ctx.accessor.is_rendered(el)
    ]


# Tab order

def validate_tab_order(ctx: AuditContext) -> TabOrderResult:
    """
    Walk the sequential focus navigation order.

    Flags every positive tabindex and every point where the order decreases
    after a positive index was seen; focusable-by-index elements that are not
    rendered are listed as unreachable. A positive explicit tabindex is flagged
    whether or not the element is rendered or enabled.
    """
    sequence = []
    unreachable = []
    positive = []
    for element in ctx.accessor.elements:
        explicit = explicit_tab_index(element)
        if explicit is not None and explicit > 0:
            positive.append(ctx.accessor.selector_for(element))
        index = effective_tab_index(element)
        if index is None:
            continue
        if "disabled" in element.attributes and element.tag in ("button", "input", "select", "textarea"):
            continue
        if not ctx.accessor.is_rendered(element):
            unreachable.append(ctx.accessor.selector_for(element))
            continue
        sequence.append((element, index))

    issues: List[Issue] = []
    previous: Optional[int] = None
    seen_positive = False
    for element, index in sequence:
        if seen_positive and previous is not None and index < previous:
            issues.append(Issue(
                rule="tab-order",
                message=(
                    f"Tab order disrupted at {ctx.accessor.selector_for(element)}: "
                    f"tabindex {index} follows {previous}"
                ),
                impact=Impact.MODERATE,
                category=AccessibilityCategory.KEYBOARD_NAVIGATION,
            ))
        if index > 0:
            seen_positive = True
        previous = index

    if positive:
        issues.append(Issue(
            rule="tab-order",
            message="Positive tabindex values found - use natural document order instead",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.KEYBOARD_NAVIGATION,
        ))

    document_positions = {el.node_id: pos for pos, (el, _) in enumerate(sequence)}
    navigation = sorted(
        sequence,
        key=lambda pair: (0 if pair[1] > 0 else 1, pair[1], document_positions[pair[0].node_id]),
    )
    navigation_positions = {el.node_id: pos for pos, (el, _) in enumerate(navigation)}

    entries = [
        TabOrderEntry(
            selector=ctx.accessor.selector_for(element),
            tab_index=index,
            document_order=document_positions[element.node_id],
            navigation_order=navigation_positions[element.node_id],
        )
        for element, index in sequence
    ]
    return TabOrderResult(valid=not issues, sequence=entries, issues=issues, unreachable=unreachable)


# Focus management scenarios

def _focusable_descendants(element: ElementDescriptor, ctx: AuditContext) -> List[ElementDescriptor]:
    return [node for node in element.iter_descendants() if is_focusable(node, ctx)]


def _has_positive_tabindex(elements: List[ElementDescriptor]) -> bool:
    return any((explicit_tab_index(el) or 0) > 0 for el in elements)


def _indicators_ok(elements: List[ElementDescriptor], ctx: AuditContext) -> bool:
    if ctx.focus is None:
        return True
    for element in elements:
        result = probe_focus_indicator(element, ctx)
        if result is not None and not result.has_indicator:
            return False
    return True


def _has_invoker(component: ElementDescriptor, ctx: AuditContext) -> bool:
    component_id = component.element_id
    if not component_id:
        return False
    return any(
        component_id in node.attributes.get("aria-controls", "").split()
        for node in ctx.accessor.select_document("[aria-controls]")
    )


def analyze_modal(modal: ElementDescriptor, ctx: AuditContext) -> FocusManagementResult:
    focusables = _focusable_descendants(modal, ctx)
    root_tabbable = "tabindex" in modal.attributes
    has_autofocus = any("autofocus" in node.attributes for node in modal.iter_descendants())

    issues: List[Issue] = []
    recommendations: List[str] = []

    initial_focus = bool(focusables or root_tabbable) and (has_autofocus or root_tabbable)
    if not focusables and not root_tabbable:
        issues.append(Issue(
            rule="modal-initial-focus",
            message="Modal contains no focusable elements",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.FOCUS,
        ))
        recommendations.append("Add a focusable close button or make the dialog container focusable with tabindex=\"-1\"")
    elif not initial_focus:
        issues.append(Issue(
            rule="modal-initial-focus",
            message="Modal does not specify initial focus",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.FOCUS,
        ))
        recommendations.append("Set autofocus on the first meaningful control or tabindex=\"-1\" on the dialog")

    focus_trap = True
    if len(focusables) > 1:
        focus_trap = (
            modal.attributes.get("aria-modal") == "true"
            or modal.role in ("dialog", "alertdialog")
            or "focus-trap" in modal.classes
            or "data-focus-trap" in modal.attributes
        )
        if not focus_trap:
            issues.append(Issue(
                rule="modal-focus-trap",
                message="Modal may not trap focus properly",
                impact=Impact.SERIOUS,
                category=AccessibilityCategory.FOCUS,
            ))
            recommendations.append("Declare aria-modal=\"true\" and keep Tab cycling inside the dialog")

    trigger_id = modal.attributes.get("data-trigger-id")
    focus_return = (
        (bool(trigger_id) and ctx.accessor.by_id(trigger_id) is not None)
        or "data-return-focus" in modal.attributes
        or _has_invoker(modal, ctx)
    )
    if not focus_return:
        issues.append(Issue(
            rule="modal-focus-return",
            message="Modal does not declare where focus returns on close",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.FOCUS,
        ))
        recommendations.append("Link the dialog to its trigger with data-trigger-id or aria-controls")

    tab_order = not _has_positive_tabindex(focusables)
    if not tab_order:
        issues.append(Issue(
            rule="modal-tab-order",
            message="Modal contains positive tabindex values",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.FOCUS,
        ))

    visual = _indicators_ok(focusables, ctx)
    if not visual:
        issues.append(Issue(
            rule="modal-focus-visible",
            message="Some controls inside the modal have no visible focus indicator",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.FOCUS,
        ))

    return FocusManagementResult(
        component=ctx.accessor.selector_for(modal),
        scenario="modal",
        initial_focus=initial_focus,
        focus_trap=focus_trap,
        focus_return=focus_return,
        tab_order=tab_order,
        visual_focus_indicator=visual,
        issues=issues,
        recommendations=recommendations,
    )


def analyze_dropdown(dropdown: ElementDescriptor, ctx: AuditContext) -> FocusManagementResult:
    items = dropdown.find_all('[role="menuitem"], [role="menuitemcheckbox"], [role="menuitemradio"], [role="option"], li')
    issues: List[Issue] = []
    recommendations: List[str] = []

    initial_focus = bool(items)
    if not initial_focus:
        issues.append(Issue(
            rule="dropdown-options",
            message="Dropdown has no menu items or options",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.FOCUS,
        ))

    handlers = has_key_handler(dropdown) or any(has_key_handler(item) for item in items)
    trigger = dropdown.closest("[aria-haspopup]")
    if trigger is None and dropdown.element_id:
        trigger = next(
            (n for n in ctx.accessor.select_document("[aria-controls]")
             if dropdown.element_id in n.attributes.get("aria-controls", "").split()),
            None,
        )

    focus_trap = len(items) <= 1 or handlers
    if not focus_trap:
        issues.append(Issue(
            rule="dropdown-arrow-keys",
            message="Dropdown items are not reachable with arrow keys",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.KEYBOARD_NAVIGATION,
        ))
        recommendations.append("Move focus between items with ArrowUp/ArrowDown")

    focus_return = handlers or (trigger is not None and has_key_handler(trigger))
    if not focus_return:
        issues.append(Issue(
            rule="dropdown-escape",
            message="Dropdown cannot be closed with Escape",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.KEYBOARD_NAVIGATION,
        ))
        recommendations.append("Close on Escape and return focus to the trigger")

    # roving tabindex allows one item in the sequence
    in_sequence = [item for item in items if effective_tab_index(item) is not None]
    tab_order = len(in_sequence) <= 1
    if not tab_order:
        issues.append(Issue(
            rule="dropdown-tab-order",
            message="Menu items should have tabindex=\"-1\" for proper keyboard navigation",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.KEYBOARD_NAVIGATION,
        ))

    visual = _indicators_ok([item for item in items if is_focusable(item, ctx)], ctx)

    return FocusManagementResult(
        component=ctx.accessor.selector_for(dropdown),
        scenario="dropdown",
        initial_focus=initial_focus,
        focus_trap=focus_trap,
        focus_return=focus_return,
        tab_order=tab_order,
        visual_focus_indicator=visual,
        issues=issues,
        recommendations=recommendations,
    )


def analyze_tabpanel(panel: ElementDescriptor, ctx: AuditContext) -> FocusManagementResult:
    focusables = _focusable_descendants(panel, ctx)
    own_index = explicit_tab_index(panel)
    issues: List[Issue] = []
    recommendations: List[str] = []

    initial_focus = bool(focusables) or (own_index is not None and own_index >= 0)
    if not initial_focus:
        issues.append(Issue(
            rule="tabpanel-focusable",
            message="Tab panel should be focusable or contain focusable elements",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.FOCUS,
        ))
        recommendations.append("Add tabindex=\"0\" to the tab panel")

    labelled_by = panel.attributes.get("aria-labelledby", "").split()
    tabs = [ctx.accessor.by_id(ref) for ref in labelled_by]
    focus_return = any(tab is not None and tab.role == "tab" for tab in tabs)
    if not focus_return:
        issues.append(Issue(
            rule="tabpanel-labelled",
            message="Tab panel is not linked to its tab with aria-labelledby",
            impact=Impact.MINOR,
            category=AccessibilityCategory.FOCUS,
        ))

    tab_order = not _has_positive_tabindex(focusables)
    visual = _indicators_ok(focusables, ctx)

    return FocusManagementResult(
        component=ctx.accessor.selector_for(panel),
        scenario="tabpanel",
        initial_focus=initial_focus,
        focus_trap=True,
        focus_return=focus_return,
        tab_order=tab_order,
        visual_focus_indicator=visual,
        issues=issues,
        recommendations=recommendations,
    )


def audit_focus_management(ctx: AuditContext) -> List[FocusManagementResult]:
    results = []
    for modal in ctx.accessor.select(MODAL_SELECTOR):
        if ctx.accessor.is_rendered(modal):
            results.append(analyze_modal(modal, ctx))
    for dropdown in ctx.accessor.select(DROPDOWN_SELECTOR):
        if ctx.accessor.is_rendered(dropdown):
            results.append(analyze_dropdown(dropdown, ctx))
    for panel in ctx.accessor.select(TABPANEL_SELECTOR):
        if ctx.accessor.is_rendered(panel):
            results.append(analyze_tabpanel(panel, ctx))
    return results


# Keyboard shortcuts

def _normalize_combo(modifiers: List[str], key: str) -> str:
    ordered = sorted(set(modifiers), key=lambda m: KNOWN_MODIFIERS.index(m) if m in KNOWN_MODIFIERS else 99)
    return "+".join([*ordered, key.lower()])


def _parse_keyshortcut(text: str):
    parts = [part.strip().lower() for part in text.split("+")]
    *modifiers, key = parts
    modifiers = [_MODIFIER_ALIASES.get(m, m) for m in modifiers]
    return modifiers, key


def audit_shortcuts(ctx: AuditContext) -> List[ShortcutResult]:
    """
    Collect accesskey and aria-keyshortcuts declarations and check them for
    validity, documentation and conflicts.
    """
    declared = []
    for element in ctx.accessor.select("[accesskey], [aria-keyshortcuts]"):
        selector = ctx.accessor.selector_for(element)
        action = element.attributes.get("aria-label") or element.text_content or element.attributes.get("title", "")
        documented = "title" in element.attributes or "aria-describedby" in element.attributes

        for key in element.attributes.get("accesskey", "").split():
            valid = len(key) == 1 and key.isprintable()
            declared.append((element, selector, key, ["alt"], "accesskey", action, documented, valid))

        for combo in element.attributes.get("aria-keyshortcuts", "").split():
            modifiers, key = _parse_keyshortcut(combo)
            valid = bool(key) and all(m in KNOWN_MODIFIERS for m in modifiers)
            declared.append((element, selector, key, modifiers, "aria-keyshortcuts", action, True, valid))

    by_combo: Dict[str, List[str]] = defaultdict(list)
    for _, selector, key, modifiers, *_ in declared:
        by_combo[_normalize_combo(modifiers, key)].append(selector)

    results = []
    for element, selector, key, modifiers, source, action, documented, valid in declared:
        combo = _normalize_combo(modifiers, key)
        conflicts = [other for other in by_combo[combo] if other != selector]
        issues: List[Issue] = []
        if not valid:
            issues.append(Issue(
                rule="shortcut-valid",
                message=f"Keyboard shortcut '{combo}' is not a valid key combination",
                impact=Impact.MODERATE,
                category=AccessibilityCategory.KEYBOARD_NAVIGATION,
            ))
        if conflicts:
            issues.append(Issue(
                rule="shortcut-conflict",
                message=f"Keyboard shortcut {combo} conflicts with {len(conflicts)} other element(s)",
                impact=Impact.SERIOUS,
                category=AccessibilityCategory.KEYBOARD_NAVIGATION,
            ))
        if combo in RESERVED_SHORTCUTS:
            conflicts.append("browser")
            issues.append(Issue(
                rule="shortcut-conflict",
                message=f"Keyboard shortcut {combo} overrides a browser shortcut",
                impact=Impact.MODERATE,
                category=AccessibilityCategory.KEYBOARD_NAVIGATION,
            ))
        if not documented:
            issues.append(Issue(
                rule="shortcut-documented",
                message=f"Keyboard shortcut {combo} is not documented",
                impact=Impact.MINOR,
                category=AccessibilityCategory.KEYBOARD_NAVIGATION,
            ))
        results.append(ShortcutResult(
            selector=selector,
            key=key,
            modifiers=modifiers,
            source=source,
            action=action,
            documented=documented,
            valid=valid,
            conflicts=conflicts,
            issues=issues,
        ))
    return results
