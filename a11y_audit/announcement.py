# a11y_audit/announcement.py
"""
Screen reader announcement simulation.

Builds the string a screen reader would speak for an element (accessible
name, role, states), grades how clear it is in context, and runs the
family-specific checks for buttons, links, form controls, images, headings,
navigation regions and modals. Landmark multiplicity belongs to the
structure check in aria.py.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .aria import (
    LANDMARK_ROLES,
    MAX_NAME_LENGTH,
    compute_accessible_name,
    effective_role,
    heading_level,
)
from .core import AccessibilityCategory, AuditContext, Clarity, Impact, Issue
from .results import AnnouncementResult, AnnouncementSummary
from .tree import (
    BUTTON_SELECTOR,
    FORM_CONTROL_SELECTOR,
    HEADING_SELECTOR,
    IMAGE_SELECTOR,
    INTERACTIVE_SELECTOR,
    LINK_SELECTOR,
    NAVIGATION_SELECTOR,
    ElementDescriptor,
)


MODAL_FAMILY_SELECTOR = '[role="dialog"], [role="alertdialog"], dialog'

CLARITY_SCORES = {
    Clarity.EXCELLENT: 100,
    Clarity.GOOD: 80,
    Clarity.FAIR: 60,
    Clarity.POOR: 20,
}
ISSUE_PENALTY = 5
MAX_ISSUE_PENALTY = 50

ROLE_ANNOUNCEMENTS = {
    "button": "button",
    "link": "link",
    "checkbox": "checkbox",
    "radio": "radio button",
    "switch": "switch",
    "textbox": "edit text",
    "searchbox": "search edit text",
    "spinbutton": "spin button",
    "slider": "slider",
    "combobox": "combo box",
    "listbox": "list box",
    "option": "option",
    "img": "image",
    "tab": "tab",
    "tabpanel": "tab panel",
    "menuitem": "menu item",
    "dialog": "dialog",
    "alertdialog": "alert dialog",
    "navigation": "navigation",
    "main": "main",
    "banner": "banner",
    "contentinfo": "content info",
    "complementary": "complementary",
    "region": "region",
    "progressbar": "progress bar",
}

_LANDMARK_CONTEXT = frozenset(LANDMARK_ROLES) - {"form"}
_INVALID_HREFS = ("", "#")


def announced_role(element: ElementDescriptor) -> Optional[str]:
    role = effective_role(element)
    if role == "heading":
        return f"heading level {heading_level(element) or 2}"
    return ROLE_ANNOUNCEMENTS.get(role)


def announced_states(element: ElementDescriptor) -> List[str]:
    attrs = element.attributes
    states = []
    if element.is_disabled:
        states.append("disabled")
    if attrs.get("aria-expanded") == "true":
        states.append("expanded")
    elif attrs.get("aria-expanded") == "false":
        states.append("collapsed")

    checked = attrs.get("aria-checked")
    if checked is None and element.tag == "input" and attrs.get("type", "").lower() in ("checkbox", "radio"):
        checked = "true" if "checked" in attrs else "false"
    if checked == "true":
        states.append("checked")
    elif checked == "false":
        states.append("not checked")
    elif checked == "mixed":
        states.append("partially checked")

    if attrs.get("aria-pressed") == "true":
        states.append("pressed")
    if attrs.get("aria-selected") == "true":
        states.append("selected")
    if "required" in attrs or attrs.get("aria-required") == "true":
        states.append("required")
    if attrs.get("aria-invalid") in ("true", "grammar", "spelling"):
        states.append("invalid entry")
    return states


def build_announcement(name: str, role: Optional[str], states: List[str]) -> str:
    return ", ".join(part for part in (name, role, *states) if part)


def element_context(element: ElementDescriptor) -> Optional[str]:
    """Containing landmark, form and list, in that order, comma joined."""
    contexts = []
    for ancestor in element.ancestors():
        role = effective_role(ancestor)
        if role in _LANDMARK_CONTEXT:
            contexts.append(role)
            break
    if any(effective_role(ancestor) == "form" for ancestor in element.ancestors()):
        contexts.append("form")
    if any(effective_role(ancestor) == "list" for ancestor in element.ancestors()):
        contexts.append("list")
    return ", ".join(contexts) if contexts else None


def assess_clarity(name: str, context: Optional[str], ctx: AuditContext) -> Clarity:
    if not name:
        return Clarity.POOR

    score = 0
    if 3 <= len(name) <= MAX_NAME_LENGTH:
        score += 3
    elif len(name) > MAX_NAME_LENGTH:
        score += 1
    else:
        score += 2
    if ctx.patterns.has_descriptive_word(name):
        score += 2
    if context:
        score += 2
    if ctx.patterns.is_generic(name):
        score -= 2

    if score >= 6:
        return Clarity.EXCELLENT
    if score >= 4:
        return Clarity.GOOD
    if score >= 2:
        return Clarity.FAIR
    return Clarity.POOR


# Family checks append (message, impact, recommendation) findings

Finding = Tuple[str, Impact, str]


def _check_button(element: ElementDescriptor, name: str, ctx: AuditContext) -> List[Finding]:
    findings = []
    if not name:
        findings.append(("Button has no accessible name", Impact.CRITICAL, "Add aria-label or visible text content"))
    elif ctx.patterns.mentions(name, ctx.patterns.redundant_role_words):
        findings.append((
            "Button name includes redundant role text",
            Impact.MINOR,
            "Remove the role word from the accessible name",
        ))
    return findings


def _check_link(element: ElementDescriptor, name: str, ctx: AuditContext) -> List[Finding]:
    findings = []
    if not name:
        findings.append(("Link has no accessible name", Impact.CRITICAL, "Add text content or aria-label"))
    elif ctx.patterns.is_generic(name):
        findings.append((
            "Link has generic text",
            Impact.SERIOUS,
            "Use descriptive link text that explains the destination",
        ))

    href = element.attributes.get("href")
    if element.tag == "a" and (href is None or href.strip() in _INVALID_HREFS or href.strip().lower().startswith("javascript:")):
        findings.append((
            "Link missing valid href attribute",
            Impact.MODERATE,
            "Provide valid href or use button element instead",
        ))

    if element.attributes.get("target") == "_blank":
        warning_text = " ".join((name, element.attributes.get("title", "")))
        if not ctx.patterns.mentions(warning_text, ctx.patterns.new_window_words):
            findings.append((
                "Link opens in new window without warning",
                Impact.MINOR,
                "Include \"opens in new window\" in accessible name",
            ))
    return findings


def _check_form_control(element: ElementDescriptor, name: str, ctx: AuditContext) -> List[Finding]:
    findings = []
    if not name:
        findings.append((
            "Form control has no accessible name",
            Impact.CRITICAL,
            "Associate with label element or add aria-label",
        ))

    required = element.has("required") or element.attributes.get("aria-required") == "true"
    if required and not ctx.patterns.mentions(name, ctx.patterns.required_words):
        findings.append((
            "Required field not clearly indicated to screen readers",
            Impact.MODERATE,
            "Include \"required\" in accessible name or use aria-required",
        ))

    for ref in element.attributes.get("aria-describedby", "").split():
        if ctx.accessor.by_id(ref) is None:
            findings.append((
                "aria-describedby references non-existent element",
                Impact.SERIOUS,
                "Ensure aria-describedby points to valid element ID",
            ))
            break
    return findings


def _check_image(element: ElementDescriptor, name: str, ctx: AuditContext) -> List[Finding]:
    findings = []
    alt = element.attributes.get("alt")
    if element.tag == "img" and alt is None:
        findings.append((
            "Image missing alt attribute",
            Impact.CRITICAL,
            "Add alt attribute with descriptive text or empty alt for decorative images",
        ))
    if alt and ctx.patterns.mentions(alt, ctx.patterns.redundant_image_phrases):
        findings.append((
            "Alt text includes redundant image phrasing",
            Impact.MINOR,
            "Remove redundant phrases from alt text",
        ))
    if element.tag == "svg" and not name:
        findings.append((
            "SVG missing accessible name",
            Impact.SERIOUS,
            "Add aria-label, aria-labelledby, or title element",
        ))
    elif element.tag not in ("img", "svg") and not name:
        findings.append((
            "Image missing accessible name",
            Impact.CRITICAL,
            "Add aria-label or alt text, or mark decorative images with role=\"presentation\"",
        ))
    return findings


def _check_heading(element: ElementDescriptor, name: str, ctx: AuditContext) -> List[Finding]:
    findings = []
    if not name:
        findings.append(("Heading has no text content", Impact.SERIOUS, "Add descriptive heading text"))
    elif len(name) > MAX_NAME_LENGTH:
        findings.append((
            "Heading text is too long",
            Impact.MINOR,
            f"Keep heading text concise (under {MAX_NAME_LENGTH} characters)",
        ))
    return findings


def _check_navigation(element: ElementDescriptor, name: str, ctx: AuditContext) -> List[Finding]:
    findings = []
    labelled = element.has("aria-label") or element.has("aria-labelledby")
    if not labelled and len(ctx.accessor.select_document(NAVIGATION_SELECTOR)) > 1:
        findings.append((
            "Multiple navigation regions without distinguishing labels",
            Impact.MODERATE,
            "Add aria-label to distinguish navigation regions",
        ))
    if not element.find_all(f'{INTERACTIVE_SELECTOR}, [role="menuitem"]'):
        findings.append((
            "Navigation region contains no interactive elements",
            Impact.MODERATE,
            "Add navigation links or menu items",
        ))
    return findings


def _check_modal(element: ElementDescriptor, name: str, ctx: AuditContext) -> List[Finding]:
    findings = []
    if element.attributes.get("aria-modal") != "true" and element.tag != "dialog":
        findings.append(("Modal missing aria-modal=\"true\"", Impact.SERIOUS, "Add aria-modal=\"true\" to modal dialog"))
    if not (element.has("aria-label") or element.has("aria-labelledby")):
        findings.append(("Modal missing accessible name", Impact.SERIOUS, "Add aria-label or aria-labelledby to modal"))
    if not element.find_all(INTERACTIVE_SELECTOR):
        findings.append((
            "Modal contains no focusable elements",
            Impact.SERIOUS,
            "Ensure modal has at least one focusable element",
        ))
    return findings


# Family name -> (selector, check)
FAMILIES: Dict[str, Tuple[str, Callable[[ElementDescriptor, str, AuditContext], List[Finding]]]] = {
    "buttons": (BUTTON_SELECTOR, _check_button),
    "links": (LINK_SELECTOR, _check_link),
    "form-controls": (FORM_CONTROL_SELECTOR, _check_form_control),
    "images": (IMAGE_SELECTOR, _check_image),
    "headings": (HEADING_SELECTOR, _check_heading),
    "navigation": (NAVIGATION_SELECTOR, _check_navigation),
    "modals": (MODAL_FAMILY_SELECTOR, _check_modal),
}


def _is_decorative(element: ElementDescriptor) -> bool:
    return element.attributes.get("aria-hidden") == "true" or element.role in ("presentation", "none")


def simulate_announcement(element: ElementDescriptor, family: str, ctx: AuditContext) -> AnnouncementResult:
    """
    What a screen reader would say for one element and how well it reads.

    Args:
        element: Element to announce
        family: Key of FAMILIES selecting the family-specific checks
        ctx: Audit context

    Returns:
        AnnouncementResult with the announcement string, clarity and issues
    """
    _, check = FAMILIES[family]
    name = compute_accessible_name(element, ctx).text
    role = announced_role(element)
    states = announced_states(element)
    context = element_context(element)

    findings = check(element, name, ctx)
    issues = [
        Issue(rule=f"sr-{family}", message=message, impact=impact, category=AccessibilityCategory.SCREEN_READER)
        for message, impact, _ in findings
    ]

    return AnnouncementResult(
        selector=ctx.accessor.selector_for(element),
        family=family,
        announcement=build_announcement(name, role, states),
        accessible_name=name,
        role=role,
        states=states,
        context=context,
        clarity=assess_clarity(name, context, ctx),
        issues=issues,
        recommendations=[recommendation for _, _, recommendation in findings],
    )


def audit_announcements(ctx: AuditContext) -> List[AnnouncementResult]:
    """Announcement results for every family, family by family in document order."""
    results = []
    for family, (selector, _) in FAMILIES.items():
        for element in ctx.accessor.select(selector):
            if _is_decorative(element) or not ctx.accessor.is_rendered(element):
                continue
            results.append(simulate_announcement(element, family, ctx))
    logging.info(f"Announcement simulation: {len(results)} elements")
    return results


def summarize_announcements(results: List[AnnouncementResult]) -> AnnouncementSummary:
    if not results:
        return AnnouncementSummary()

    counts = {clarity: sum(1 for r in results if r.clarity == clarity) for clarity in Clarity}
    issue_count = sum(len(r.issues) for r in results)
    mean = sum(CLARITY_SCORES[r.clarity] for r in results) / len(results)
    penalty = min(issue_count * ISSUE_PENALTY, MAX_ISSUE_PENALTY)

    return AnnouncementSummary(
        total=len(results),
        excellent=counts[Clarity.EXCELLENT],
        good=counts[Clarity.GOOD],
        fair=counts[Clarity.FAIR],
        poor=counts[Clarity.POOR],
        issues=issue_count,
        score=max(0, round(mean - penalty)),
    )
