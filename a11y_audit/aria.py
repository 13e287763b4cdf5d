# a11y_audit/aria.py
"""
ARIA and semantic markup analysis.

Validates aria-* attribute values, role-required companion attributes,
explicit-versus-native role conflicts, computes accessible names with their
sources, and checks document structure (landmark multiplicity, heading
order).
"""

import logging
from typing import Dict, List, Optional, Tuple

from .core import AccessibilityCategory, AuditContext, Impact, Issue
from .keyboard import effective_tab_index
from .results import (
    AccessibleName,
    AriaResult,
    AttributeCheck,
    HeadingEntry,
    RoleCheck,
    StructureResult,
)
from .tree import HEADING_SELECTOR, ElementDescriptor, TreeAccessor


MAX_NAME_LENGTH = 100

VALID_ROLES = frozenset({
    "alert", "alertdialog", "application", "article", "banner", "blockquote", "button", "caption",
    "cell", "checkbox", "code", "columnheader", "combobox", "complementary", "contentinfo",
    "definition", "deletion", "dialog", "directory", "document", "emphasis", "feed", "figure",
    "form", "generic", "grid", "gridcell", "group", "heading", "img", "insertion", "link", "list",
    "listbox", "listitem", "log", "main", "marquee", "math", "menu", "menubar", "menuitem",
    "menuitemcheckbox", "menuitemradio", "meter", "navigation", "none", "note", "option",
    "paragraph", "presentation", "progressbar", "radio", "radiogroup", "region", "row",
    "rowgroup", "rowheader", "scrollbar", "search", "searchbox", "separator", "slider",
    "spinbutton", "status", "strong", "subscript", "superscript", "switch", "tab", "table",
    "tablist", "tabpanel", "term", "textbox", "time", "timer", "toolbar", "tooltip", "tree",
    "treegrid", "treeitem",
})

BOOLEAN_ATTRIBUTES = frozenset({
    "aria-atomic", "aria-busy", "aria-disabled", "aria-expanded", "aria-hidden", "aria-modal",
    "aria-multiline", "aria-multiselectable", "aria-readonly", "aria-required", "aria-selected",
})
TRISTATE_ATTRIBUTES = frozenset({"aria-checked", "aria-pressed"})
ENUM_ATTRIBUTES = {
    "aria-autocomplete": frozenset({"inline", "list", "both", "none"}),
    "aria-current": frozenset({"page", "step", "location", "date", "time", "true", "false"}),
    "aria-haspopup": frozenset({"false", "true", "menu", "listbox", "tree", "grid", "dialog"}),
    "aria-invalid": frozenset({"grammar", "false", "spelling", "true"}),
    "aria-live": frozenset({"assertive", "off", "polite"}),
    "aria-orientation": frozenset({"horizontal", "vertical", "undefined"}),
    "aria-sort": frozenset({"ascending", "descending", "none", "other"}),
}
TOKEN_LIST_ATTRIBUTES = {
    "aria-relevant": frozenset({"additions", "removals", "text", "all"}),
}
INTEGER_ATTRIBUTES = frozenset({
    "aria-colcount", "aria-colindex", "aria-colspan", "aria-level", "aria-posinset",
    "aria-rowcount", "aria-rowindex", "aria-rowspan", "aria-setsize",
})
NUMBER_ATTRIBUTES = frozenset({"aria-valuemax", "aria-valuemin", "aria-valuenow"})
IDREF_ATTRIBUTES = frozenset({"aria-activedescendant", "aria-errormessage"})
IDREFS_ATTRIBUTES = frozenset({
    "aria-controls", "aria-describedby", "aria-details", "aria-flowto", "aria-labelledby", "aria-owns",
})
STRING_ATTRIBUTES = frozenset({
    "aria-label", "aria-roledescription", "aria-placeholder", "aria-valuetext", "aria-keyshortcuts",
    "aria-description", "aria-braillelabel", "aria-brailleroledescription", "aria-colindextext",
    "aria-rowindextext",
})
KNOWN_ATTRIBUTES = (
    BOOLEAN_ATTRIBUTES | TRISTATE_ATTRIBUTES | frozenset(ENUM_ATTRIBUTES) | frozenset(TOKEN_LIST_ATTRIBUTES)
    | INTEGER_ATTRIBUTES | NUMBER_ATTRIBUTES | IDREF_ATTRIBUTES | IDREFS_ATTRIBUTES | STRING_ATTRIBUTES
)

# Companion attributes a role cannot work without
ROLE_REQUIRED_ATTRIBUTES = {
    "checkbox": ("aria-checked",),
    "radio": ("aria-checked",),
    "switch": ("aria-checked",),
    "menuitemcheckbox": ("aria-checked",),
    "menuitemradio": ("aria-checked",),
    "slider": ("aria-valuenow",),
    "progressbar": ("aria-valuenow",),
    "scrollbar": ("aria-valuenow", "aria-controls"),
    "tab": ("aria-selected",),
    "option": ("aria-selected",),
    "heading": ("aria-level",),
    "combobox": ("aria-expanded",),
}

# Explicit roles that contradict a native element's semantics
ROLE_CONFLICTS = {
    "button": frozenset({"link", "checkbox", "radio"}),
    "a": frozenset({"button", "checkbox", "radio"}),
    "input": frozenset({"button", "link"}),
}

# Roles that must expose an accessible name
NAME_REQUIRED_ROLES = frozenset({
    "button", "link", "checkbox", "radio", "switch", "tab", "menuitem", "menuitemcheckbox",
    "menuitemradio", "option", "slider", "spinbutton", "combobox", "textbox", "searchbox",
    "listbox", "img", "dialog", "alertdialog", "progressbar", "meter", "treeitem", "heading",
})

LANDMARK_ROLES = ("banner", "main", "contentinfo", "navigation", "complementary", "search", "region", "form")
UNIQUE_LANDMARK_ROLES = ("main", "banner", "contentinfo")
SECTIONING_TAGS = ("article", "aside", "main", "nav", "section")

FORM_CONTROL_TAGS = ("input", "select", "textarea", "meter", "progress", "output")
_IMAGE_TAGS = ("img", "area")


def implicit_role(element: ElementDescriptor) -> Optional[str]:
    """Role a native element exposes without a role attribute."""
    tag = element.tag
    attrs = element.attributes
    if tag == "button":
        return "button"
    if tag in ("a", "area"):
        return "link" if "href" in attrs else "generic"
    if tag == "input":
        input_type = attrs.get("type", "text").lower()
        if input_type in ("button", "submit", "reset", "image"):
            return "button"
        if input_type in ("checkbox", "radio"):
            return input_type
        if input_type == "range":
            return "slider"
        if input_type == "number":
            return "spinbutton"
        if input_type == "search":
            return "searchbox"
        if input_type == "hidden":
            return None
        return "textbox"
    if tag == "select":
        size = attrs.get("size", "1")
        multiple = "multiple" in attrs or (size.isdigit() and int(size) > 1)
        return "listbox" if multiple else "combobox"
    if tag == "textarea":
        return "textbox"
    if tag == "img":
        return "presentation" if attrs.get("alt") == "" else "img"
    if tag in ("header", "footer"):
        if any(ancestor.tag in SECTIONING_TAGS for ancestor in element.ancestors()):
            return "generic"
        return "banner" if tag == "header" else "contentinfo"
    if tag in ("h1", "h2", "h3", "h4", "h5", "h6"):
        return "heading"
    return _TAG_ROLES.get(tag)


_TAG_ROLES = {
    "nav": "navigation",
    "main": "main",
    "aside": "complementary",
    "section": "region",
    "form": "form",
    "article": "article",
    "ul": "list",
    "ol": "list",
    "li": "listitem",
    "table": "table",
    "dialog": "dialog",
    "option": "option",
    "progress": "progressbar",
    "meter": "meter",
    "hr": "separator",
    "search": "search",
    "output": "status",
    "fieldset": "group",
    "figure": "figure",
}


def effective_role(element: ElementDescriptor) -> Optional[str]:
    explicit = element.role
    if explicit and explicit in VALID_ROLES:
        return explicit
    return implicit_role(element)


def heading_level(element: ElementDescriptor) -> Optional[int]:
    if element.tag in ("h1", "h2", "h3", "h4", "h5", "h6"):
        return int(element.tag[1])
    if element.role == "heading":
        try:
            return max(1, int(element.attributes.get("aria-level", "2")))
        except ValueError:
            return 2
    return None


# Accessible names

def _labelledby_text(element: ElementDescriptor, accessor: TreeAccessor) -> str:
    texts = []
    for ref in element.attributes.get("aria-labelledby", "").split():
        target = accessor.by_id(ref)
        if target is not None:
            text = target.attributes.get("aria-label", "").strip() or target.text_content
            if text:
                texts.append(text)
    return " ".join(texts)


def _label_for_text(element: ElementDescriptor, accessor: TreeAccessor) -> str:
    element_id = element.element_id
    if not element_id:
        return ""
    labels = [
        label for label in accessor.select_document("label[for]")
        if label.attributes.get("for") == element_id
    ]
    return " ".join(label.text_content for label in labels if label.text_content)


def _content_text(element: ElementDescriptor) -> Tuple[str, str]:
    if element.tag in _IMAGE_TAGS or (element.tag == "input" and element.attributes.get("type", "").lower() == "image"):
        return "alt", element.attributes.get("alt", "").strip()
    if element.tag == "input" and element.attributes.get("type", "").lower() in ("button", "submit", "reset"):
        return "value", element.attributes.get("value", "").strip()
    if element.tag in ("input", "select", "textarea"):
        return "content", ""
    if element.tag == "svg":
        titles = [child.text_content for child in element.children if child.tag == "title"]
        return "svg-title", " ".join(t for t in titles if t)
    return "content", element.text_content


def compute_accessible_name(element: ElementDescriptor, ctx: AuditContext) -> AccessibleName:
    """
    Accessible name with every source that supplies one.

    Precedence: aria-label, aria-labelledby, label[for], element content (alt
    for images), title, then a wrapping label for form controls.
    """
    accessor = ctx.accessor
    content_source, content = _content_text(element)
    candidates = [
        ("aria-label", element.attributes.get("aria-label", "").strip()),
        ("aria-labelledby", _labelledby_text(element, accessor)),
        ("label", _label_for_text(element, accessor)),
        (content_source, content),
        ("title", element.attributes.get("title", "").strip()),
    ]
    if element.tag in FORM_CONTROL_TAGS:
        wrapper = element.closest("label")
        candidates.append(("wrapping-label", wrapper.text_content if wrapper is not None else ""))

    sources = [source for source, text in candidates if text]
    text, source = "", None
    for candidate_source, candidate_text in candidates:
        if candidate_text:
            text, source = candidate_text, candidate_source
            break

    accessible = 0 < len(text) <= MAX_NAME_LENGTH
    return AccessibleName(
        text=text,
        source=source,
        sources=sources,
        accessible=accessible,
        clear=accessible and not ctx.patterns.is_generic(text),
    )


# Attribute validation

def _idrefs_resolve(value: str, accessor: TreeAccessor) -> bool:
    refs = value.split()
    return bool(refs) and all(accessor.by_id(ref) is not None for ref in refs)


def validate_attribute(name: str, value: str, accessor: TreeAccessor) -> AttributeCheck:
    normalized = value.strip().lower()
    valid = True
    recommendation = None

    if name not in KNOWN_ATTRIBUTES:
        valid = False
        recommendation = f"Remove unknown attribute {name}"
    elif name in BOOLEAN_ATTRIBUTES:
        valid = normalized in ("true", "false")
        recommendation = None if valid else f"Use 'true' or 'false' for {name}"
    elif name in TRISTATE_ATTRIBUTES:
        valid = normalized in ("true", "false", "mixed")
        recommendation = None if valid else f"Use 'true', 'false' or 'mixed' for {name}"
    elif name in ENUM_ATTRIBUTES:
        valid = normalized in ENUM_ATTRIBUTES[name]
        recommendation = None if valid else f"Use one of {', '.join(sorted(ENUM_ATTRIBUTES[name]))} for {name}"
    elif name in TOKEN_LIST_ATTRIBUTES:
        tokens = normalized.split()
        valid = bool(tokens) and all(token in TOKEN_LIST_ATTRIBUTES[name] for token in tokens)
        recommendation = None if valid else f"Use tokens from {', '.join(sorted(TOKEN_LIST_ATTRIBUTES[name]))} for {name}"
    elif name in INTEGER_ATTRIBUTES:
        try:
            number = int(normalized)
            valid = number >= 1 if name in ("aria-level", "aria-posinset") else number >= -1
        except ValueError:
            valid = False
        recommendation = None if valid else f"Use an integer for {name}"
    elif name in NUMBER_ATTRIBUTES:
        try:
            float(normalized)
        except ValueError:
            valid = False
        recommendation = None if valid else f"Use a number for {name}"
    elif name in IDREF_ATTRIBUTES:
        valid = len(value.split()) == 1 and _idrefs_resolve(value, accessor)
        recommendation = None if valid else f"Point {name} at an existing element id"
    elif name in IDREFS_ATTRIBUTES:
        valid = _idrefs_resolve(value, accessor)
        recommendation = None if valid else f"Point {name} at existing element ids"
    elif name in STRING_ATTRIBUTES:
        valid = bool(normalized)
        recommendation = None if valid else f"Provide a non-empty value for {name} or remove it"

    return AttributeCheck(name=name, present=True, value=value, valid=valid, recommendation=recommendation)


def analyze_aria(element: ElementDescriptor, ctx: AuditContext) -> AriaResult:
    """ARIA attribute, role and accessible-name checks for one element."""
    accessor = ctx.accessor
    issues: List[Issue] = []

    attributes: Dict[str, AttributeCheck] = {}
    for name, value in element.attributes.items():
        if not name.startswith("aria-"):
            continue
        check = validate_attribute(name, value, accessor)
        attributes[name] = check
        if not check.valid:
            known = name in KNOWN_ATTRIBUTES
            issues.append(Issue(
                rule="aria-valid-attr-value" if known else "aria-valid-attr",
                message=f"Invalid value '{value}' for {name}" if known else f"Unknown ARIA attribute {name}",
                impact=Impact.CRITICAL,
                category=AccessibilityCategory.ARIA,
            ))

    explicit = element.role
    implicit = implicit_role(element)
    role_valid = explicit is None or explicit in VALID_ROLES
    conflicts = explicit is not None and explicit in ROLE_CONFLICTS.get(element.tag, frozenset())
    role_recommendation = None
    if not role_valid:
        role_recommendation = "Use a role from the WAI-ARIA specification"
        issues.append(Issue(
            rule="aria-roles",
            message=f"Invalid ARIA role '{explicit}'",
            impact=Impact.CRITICAL,
            category=AccessibilityCategory.ARIA,
        ))
    if conflicts:
        role_recommendation = f"Use a native element for role '{explicit}' instead of re-roling <{element.tag}>"
        issues.append(Issue(
            rule="aria-allowed-role",
            message=f"Role '{explicit}' conflicts with native <{element.tag}> semantics",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.ARIA,
        ))

    for required in ROLE_REQUIRED_ATTRIBUTES.get(explicit or "", ()):
        if required not in element.attributes:
            attributes[required] = AttributeCheck(
                name=required,
                present=False,
                value=None,
                valid=False,
                required=True,
                recommendation=f"Add {required} for role '{explicit}'",
            )
            issues.append(Issue(
                rule="aria-required-attr",
                message=f"Role '{explicit}' requires {required}",
                impact=Impact.CRITICAL,
                category=AccessibilityCategory.ARIA,
            ))
        elif required in attributes:
            attributes[required].required = True

    name = compute_accessible_name(element, ctx)
    role = effective_role(element)
    name_required = role in NAME_REQUIRED_ROLES and element.attributes.get("aria-hidden") != "true"
    if name_required and not name.text:
        issues.append(Issue(
            rule="aria-name",
            message=f"Element with role '{role}' has no accessible name",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.ARIA,
        ))
    elif name_required and not name.accessible:
        issues.append(Issue(
            rule="aria-name-length",
            message=f"Accessible name exceeds {MAX_NAME_LENGTH} characters",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.ARIA,
        ))

    if element.attributes.get("aria-hidden") == "true":
        if effective_tab_index(element) is not None:
            issues.append(Issue(
                rule="aria-hidden-focus",
                message="Focusable element is hidden from assistive technology",
                impact=Impact.SERIOUS,
                category=AccessibilityCategory.ARIA,
            ))

    score = 100
    score -= 10 * sum(1 for check in attributes.values() if not check.valid)
    score -= 20 if not role_valid else 0
    score -= 15 if conflicts else 0
    if name_required:
        score -= 25 if not name.text else 0
        score -= 15 if not name.accessible else 0
    score -= 5 * len(issues)

    return AriaResult(
        selector=accessor.selector_for(element),
        attributes=attributes,
        role=RoleCheck(
            implicit=implicit,
            explicit=explicit,
            valid=role_valid,
            conflicts=conflicts,
            recommendation=role_recommendation,
        ),
        name=name,
        score=max(0, score),
        issues=issues,
    )


def audit_aria(ctx: AuditContext) -> List[AriaResult]:
    """ARIA results for every element in scope carrying a role or aria-* attribute."""
    results = [analyze_aria(element, ctx) for element in ctx.accessor.aria_elements()]
    logging.info(f"ARIA analysis: {len(results)} elements, {sum(len(r.issues) for r in results)} issues")
    return results


# Document structure

def analyze_structure(ctx: AuditContext) -> StructureResult:
    """Landmark multiplicity across the document and heading order within scope."""
    accessor = ctx.accessor
    issues: List[Issue] = []

    landmarks = {role: 0 for role in LANDMARK_ROLES}
    for element in accessor.select_document("*"):
        role = effective_role(element)
        if role in landmarks and accessor.is_rendered(element):
            landmarks[role] += 1

    for role in UNIQUE_LANDMARK_ROLES:
        if landmarks[role] > 1:
            issues.append(Issue(
                rule="landmark-unique",
                message=f"Multiple {role} landmarks found ({landmarks[role]})",
                impact=Impact.MODERATE,
                category=AccessibilityCategory.STRUCTURE,
            ))

    headings: List[HeadingEntry] = []
    previous: Optional[int] = None
    for element in accessor.select(HEADING_SELECTOR):
        level = heading_level(element)
        if level is None or not accessor.is_rendered(element):
            continue
        selector = accessor.selector_for(element)
        headings.append(HeadingEntry(selector=selector, level=level, text=element.text_content))
        if previous is not None and level - previous > 1:
            issues.append(Issue(
                rule="heading-order",
                message=f"Heading level skips from h{previous} to h{level} at {selector}",
                impact=Impact.MODERATE,
                category=AccessibilityCategory.STRUCTURE,
            ))
        previous = level

    return StructureResult(
        landmarks={role: count for role, count in landmarks.items() if count},
        headings=headings,
        issues=issues,
    )
