# a11y_audit/motion.py
"""
Motion safety (WCAG 2.2.2 / 2.3.3) and target size (2.5.5 / 2.5.8) analysis.
"""

import logging
from typing import List, Optional

from .core import AccessibilityCategory, AuditContext, Impact, Issue, Rect
from .results import MotionResult, TargetSizeResult
from .tree import BUTTON_SELECTOR, INTERACTIVE_SELECTOR, ElementDescriptor, parse_time


MEDIA_TAGS = ("video", "audio")
MOTION_TAGS = MEDIA_TAGS + ("marquee",)
REDUCED_MOTION_FEATURE = "prefers-reduced-motion"

MIN_TARGET_SIZE = 44.0
MIN_TARGET_SPACING = 8.0

MOTION_CHECK = "motion"
TARGET_SIZE_CHECK = "target-size"


def respects_reduced_motion(ctx: AuditContext) -> bool:
    """True when any readable stylesheet carries a prefers-reduced-motion media rule."""
    return any(REDUCED_MOTION_FEATURE in condition.lower() for condition in ctx.accessor.media_conditions())


def _is_animated(element: ElementDescriptor, ctx: AuditContext) -> bool:
    style = ctx.accessor.style(element)
    if style is None:
        return False
    if style.animation_name.lower() != "none":
        return True
    # Browsers report "all 0s" for elements without transitions
    return style.transition_property.lower() != "none" and parse_time(style.transition_duration) > 0


def _is_auto_playing(element: ElementDescriptor, ctx: AuditContext) -> bool:
    if element.tag in MEDIA_TAGS and element.has("autoplay"):
        return True
    if element.tag == "marquee":
        return True
    style = ctx.accessor.style(element)
    return (
        style is not None
        and style.animation_name.lower() != "none"
        and "infinite" in style.animation_iteration_count
    )


def _has_pause_control(element: ElementDescriptor, ctx: AuditContext) -> bool:
    if element.tag in MEDIA_TAGS and element.has("controls"):
        return True
    if element.find_all(BUTTON_SELECTOR):
        return True
    if element.has("onclick") or "click" in element.listeners:
        return True

    element_id = element.element_id
    if element_id:
        for control in ctx.accessor.select_document("[aria-controls]"):
            if element_id in control.attributes["aria-controls"].split() and control.matches(BUTTON_SELECTOR):
                return True

    parent = element.parent
    if parent is not None:
        for sibling in parent.children:
            if sibling is element or not sibling.matches(BUTTON_SELECTOR):
                continue
            label = " ".join((sibling.text_content, sibling.attributes.get("aria-label", "")))
            if ctx.patterns.mentions(label, ctx.patterns.pause_words):
                return True
    return False


def has_motion(element: ElementDescriptor, ctx: AuditContext) -> bool:
    return element.tag in MOTION_TAGS or _is_animated(element, ctx)


def analyze_motion(element: ElementDescriptor, ctx: AuditContext) -> MotionResult:
    """
    Motion facts for one element.

    The element is accessible when it has no motion, or when a reduced-motion
    rule exists and the motion either does not start on its own or can be
    paused.
    """
    moving = has_motion(element, ctx)
    reduced = respects_reduced_motion(ctx)
    auto_playing = moving and _is_auto_playing(element, ctx)
    pausable = _has_pause_control(element, ctx)

    issues: List[Issue] = []
    if moving and not reduced:
        issues.append(Issue(
            rule=MOTION_CHECK,
            message="Animation does not respect prefers-reduced-motion setting",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.MOTION,
        ))
    if auto_playing and not pausable:
        issues.append(Issue(
            rule=MOTION_CHECK,
            message="Auto-playing content cannot be paused",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.MOTION,
        ))

    return MotionResult(
        selector=ctx.accessor.selector_for(element),
        has_motion=moving,
        respects_reduced_motion=reduced,
        auto_playing=auto_playing,
        can_be_paused=pausable,
        accessible=not moving or (reduced and (not auto_playing or pausable)),
        issues=issues,
    )


def audit_motion(ctx: AuditContext) -> List[MotionResult]:
    """Motion results for every rendered element in scope that moves."""
    results = [
        analyze_motion(element, ctx)
        for element in ctx.accessor.elements
        if ctx.accessor.is_rendered(element) and has_motion(element, ctx)
    ]
    logging.info(f"Motion analysis: {len(results)} animated elements")
    return results


# Target size

def edge_distance(rect: Rect, other: Rect) -> float:
    """Smallest of the four edge-to-edge distances between two boxes."""
    return min(
        abs(rect.right - other.left),
        abs(other.right - rect.left),
        abs(rect.bottom - other.top),
        abs(other.bottom - rect.top),
    )


def nearest_spacing(element: ElementDescriptor, neighbors: List[ElementDescriptor]) -> Optional[float]:
    """Minimum edge distance to any other target, or None when there is none."""
    distances = [edge_distance(element.rect, other.rect) for other in neighbors if other is not element]
    return min(distances) if distances else None


def analyze_target_size(
    element: ElementDescriptor,
    ctx: AuditContext,
    neighbors: Optional[List[ElementDescriptor]] = None
) -> TargetSizeResult:
    """
    Size and spacing of one interactive target.

    A collapsed (zero width or height) target fails like any other undersized
    one.

    Args:
        element: Interactive element to measure
        ctx: Audit context
        neighbors: Other targets to measure spacing against; defaults to every
            rendered interactive element in scope

    Returns:
        TargetSizeResult
    """
    selector = ctx.accessor.selector_for(element)
    rect = element.rect
    if neighbors is None:
        neighbors = target_candidates(ctx)
    # TODO: bucket rects into a uniform grid so spacing stops being quadratic on large pages
    spacing = nearest_spacing(element, neighbors)

    issues: List[Issue] = []
    if rect.width < MIN_TARGET_SIZE:
        issues.append(Issue(
            rule=TARGET_SIZE_CHECK,
            message=f"Target width {rect.width:g}px is below {MIN_TARGET_SIZE:g}px minimum",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.TARGET_SIZE,
        ))
    if rect.height < MIN_TARGET_SIZE:
        issues.append(Issue(
            rule=TARGET_SIZE_CHECK,
            message=f"Target height {rect.height:g}px is below {MIN_TARGET_SIZE:g}px minimum",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.TARGET_SIZE,
        ))
    adequate = spacing is None or spacing >= MIN_TARGET_SPACING
    if not adequate:
        issues.append(Issue(
            rule="target-spacing",
            message=f"Target spacing {spacing:g}px is below {MIN_TARGET_SPACING:g}px minimum",
            impact=Impact.MINOR,
            category=AccessibilityCategory.TARGET_SIZE,
        ))

    return TargetSizeResult(
        selector=selector,
        width=rect.width,
        height=rect.height,
        passes=rect.width >= MIN_TARGET_SIZE and rect.height >= MIN_TARGET_SIZE,
        adequate_spacing=adequate,
        spacing=spacing,
        issues=issues,
    )


def target_candidates(ctx: AuditContext) -> List[ElementDescriptor]:
    return [el for el in ctx.accessor.select(INTERACTIVE_SELECTOR) if ctx.accessor.is_rendered(el)]
