# a11y_audit/contrast.py
"""
Color contrast analysis (WCAG 2.1 SC 1.4.3 / 1.4.6) and color-only detection (SC 1.4.1).

Contrast uses the WCAG relative luminance definition on normalized sRGB
triplets. An element with no text, or whose foreground or style cannot be
resolved, is not failed: the analyzer abstains and records why.
"""

import logging
import math
from typing import List, Optional, Tuple

from .colors import hex_to_rgb, signal_hue
from .core import (
    AccessibilityCategory,
    AuditContext,
    ContrastLevel,
    Impact,
    Issue,
    TextSize,
    WCAGLevel,
)
from .results import ColorOnlyResult, ContrastResult, ContrastSummary
from .tree import FORM_CONTROL_SELECTOR, TEXT_SELECTOR, ElementDescriptor, ResolvedStyle


# Minimum contrast ratios by level and text size
CONTRAST_REQUIREMENTS = {
    WCAGLevel.AA: {TextSize.NORMAL: 4.5, TextSize.LARGE: 3.0},
    WCAGLevel.AAA: {TextSize.NORMAL: 7.0, TextSize.LARGE: 4.5},
}

LARGE_TEXT_PX = 24.0
LARGE_BOLD_TEXT_PX = 18.67

COLOR_ONLY_CHECK = "color-only"
CONTRAST_CHECK = "color-contrast"


def _linearize(channel: int) -> float:
    c = channel / 255
    return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(color: str) -> float:
    """WCAG relative luminance of a ``#rrggbb`` color."""
    r, g, b = hex_to_rgb(color)
    return 0.2126 * _linearize(r) + 0.7152 * _linearize(g) + 0.0722 * _linearize(b)


def contrast_ratio(first: str, second: str) -> float:
    """Contrast ratio between two hex colors, in [1, 21] and symmetric."""
    l1, l2 = relative_luminance(first), relative_luminance(second)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def text_size_class(font_size: float, bold: bool) -> TextSize:
    if font_size >= LARGE_TEXT_PX or (font_size >= LARGE_BOLD_TEXT_PX and bold):
        return TextSize.LARGE
    return TextSize.NORMAL


def contrast_level(ratio: float, size: TextSize) -> ContrastLevel:
    if ratio >= CONTRAST_REQUIREMENTS[WCAGLevel.AAA][size]:
        return ContrastLevel.AAA
    if ratio >= CONTRAST_REQUIREMENTS[WCAGLevel.AA][size]:
        return ContrastLevel.AA
    return ContrastLevel.FAIL


def display_ratio(ratio: float) -> float:
    # Truncated so a failing ratio never displays as meeting its threshold
    return math.floor(ratio * 100) / 100


def contrast_recommendation(ratio: float, required: float) -> str:
    """Graded advice from the factor the ratio must improve by."""
    improvement = required / ratio
    if improvement <= 1.2:
        return "Slightly adjust text or background color"
    if improvement <= 2:
        return "Significantly darken text or lighten background"
    return "Choose completely different colors with higher contrast"


def evaluate_contrast(
    selector: str,
    foreground: str,
    background: str,
    font_size: float,
    bold: bool
) -> ContrastResult:
    """Contrast facts for an already resolved color pair."""
    ratio = contrast_ratio(foreground, background)
    size = text_size_class(font_size, bold)
    level = contrast_level(ratio, size)
    required_aa = CONTRAST_REQUIREMENTS[WCAGLevel.AA][size]
    required_aaa = CONTRAST_REQUIREMENTS[WCAGLevel.AAA][size]

    issues: List[Issue] = []
    recommendations: List[str] = []
    if level == ContrastLevel.FAIL:
        issues.append(Issue(
            rule=CONTRAST_CHECK,
            message=f"Contrast ratio {display_ratio(ratio):.2f}:1 is below the {required_aa}:1 minimum for {size.value} text",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.COLOR_CONTRAST,
        ))
        recommendations.append(contrast_recommendation(ratio, required_aa))

    return ContrastResult(
        selector=selector,
        foreground=foreground,
        background=background,
        ratio=ratio,
        size=size,
        level=level,
        passes=level != ContrastLevel.FAIL,
        required_aa=required_aa,
        required_aaa=required_aaa,
        font_size=font_size,
        bold=bold,
        issues=issues,
        recommendations=recommendations,
    )


def analyze_contrast(element: ElementDescriptor, ctx: AuditContext) -> Optional[ContrastResult]:
    """
    Contrast of one element's text against its effective background.

    Returns:
        ContrastResult, or None (abstention) when the element has no text or
        its colors cannot be resolved
    """
    selector = ctx.accessor.selector_for(element)
    if not element.text_content:
        ctx.abstentions.record(selector, CONTRAST_CHECK, "Element has no text")
        return None

    style = ctx.accessor.style(element)
    if style is None:
        ctx.abstentions.record(selector, CONTRAST_CHECK, "Computed style is not readable")
        return None
    if style.foreground is None:
        ctx.abstentions.record(selector, CONTRAST_CHECK, "Foreground color could not be resolved")
        return None

    return evaluate_contrast(selector, style.foreground, style.background, style.font_size, style.bold)


def audit_contrast(ctx: AuditContext) -> List[ContrastResult]:
    """Contrast results for every rendered text-bearing element in scope."""
    results = []
    for element in ctx.accessor.select(TEXT_SELECTOR):
        if not ctx.accessor.is_rendered(element):
            continue
        result = analyze_contrast(element, ctx)
        if result is not None:
            results.append(result)
    logging.info(
        f"Contrast analysis: {len(results)} elements measured, "
        f"{sum(1 for r in results if not r.passes)} failing"
    )
    return results


def summarize_contrast(results: List[ContrastResult]) -> ContrastSummary:
    if not results:
        return ContrastSummary()
    return ContrastSummary(
        total_elements=len(results),
        passing=sum(1 for r in results if r.passes),
        failing=sum(1 for r in results if not r.passes),
        aa_compliant=sum(1 for r in results if r.level in (ContrastLevel.AA, ContrastLevel.AAA)),
        aaa_compliant=sum(1 for r in results if r.level == ContrastLevel.AAA),
        average_ratio=round(sum(r.ratio for r in results) / len(results), 2),
    )


# Color-only information

def _class_hint(element: ElementDescriptor, keywords: Tuple[str, ...]) -> bool:
    class_attr = element.attributes.get("class", "").lower()
    return any(keyword in class_attr for keyword in keywords)


def _signal_colors(element: ElementDescriptor, style: Optional[ResolvedStyle]) -> List[str]:
    if style is None or not element.matches(FORM_CONTROL_SELECTOR):
        return []
    hues = []
    for color in (style.border_color if style.has_border else None, style.own_background):
        hue = signal_hue(color)
        if hue and hue not in hues:
            hues.append(hue)
    return hues


def analyze_color_only(element: ElementDescriptor, ctx: AuditContext) -> ColorOnlyResult:
    """
    Heuristic check for meaning conveyed by color alone.

    An element is suspected when its class names contain a color/state keyword,
    or when it is a form control painted with a saturated red or green border
    or background. It is accepted when a redundant cue exists: an indicator
    word in its text, aria-label or title; an icon descendant; or a pattern
    class hint.
    """
    patterns = ctx.patterns
    style = ctx.accessor.style(element)
    signal_colors = _signal_colors(element, style)
    uses_color = _class_hint(element, patterns.color_class_keywords) or bool(signal_colors)

    label_text = " ".join(
        part for part in (
            element.text_content,
            element.attributes.get("aria-label", ""),
            element.attributes.get("title", ""),
        ) if part
    )
    has_text = patterns.mentions(label_text, patterns.indicator_words)
    has_icon = any(
        node.tag == "svg" or _class_hint(node, patterns.icon_class_hints)
        for node in element.iter_descendants()
    )
    has_pattern = _class_hint(element, patterns.pattern_class_hints)

    color_only = uses_color and not (has_text or has_icon or has_pattern)
    issues = []
    if color_only:
        issues.append(Issue(
            rule=COLOR_ONLY_CHECK,
            message="Information appears to be conveyed by color alone",
            impact=Impact.SERIOUS,
            category=AccessibilityCategory.COLOR_ONLY,
        ))

    return ColorOnlyResult(
        selector=ctx.accessor.selector_for(element),
        uses_color_only=color_only,
        has_textual_indicator=has_text,
        has_icon_indicator=has_icon,
        has_pattern_indicator=has_pattern,
        accessible=not color_only,
        signal_colors=signal_colors,
        suspected=uses_color,
        issues=issues,
    )


def audit_color_only(ctx: AuditContext) -> List[ColorOnlyResult]:
    """Results for rendered form controls and classed elements that look color coded."""
    results = []
    for element in ctx.accessor.elements:
        if not (element.matches(FORM_CONTROL_SELECTOR) or element.classes):
            continue
        if not ctx.accessor.is_rendered(element):
            continue
        result = analyze_color_only(element, ctx)
        if result.suspected:
            results.append(result)
    return results
