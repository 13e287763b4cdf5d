# a11y_audit/scorer.py
"""
Aggregation and scoring.

Turns per-element analyzer results into element scores, a tree score, a WCAG
level, a pass/warning/fail status, a flat violation list and a capped list of
deduplicated recommendations. Also compares two reports of the same page.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .core import AccessibilityCategory, AuditStatus, Impact, Issue, WCAGLevel
from .results import (
    AnnouncementSummary,
    AuditReport,
    AuditSummary,
    ContrastResult,
    ContrastSummary,
    Recommendation,
    RegressionResult,
    Violation,
    VisualAccessibilityResult,
)


# Element score deductions
CONTRAST_PENALTY = 30
NO_INDICATOR_PENALTY = 25
WEAK_INDICATOR_PENALTY = 15
COLOR_ONLY_PENALTY = 20
MOTION_PENALTY = 15
TARGET_SIZE_PENALTY = 10

MAX_SERIOUS_FOR_AA = 2
MAX_VIOLATIONS_FOR_AAA = 5

# Recommendation titles per rule; unknown rules fall back to the issue message
RULE_GUIDANCE = {
    "color-contrast": "Increase contrast between text and background colors",
    "color-only": "Add text, icons or patterns alongside color cues",
    "focus-visible": "Provide a visible focus indicator on interactive elements",
    "focus-indicator-contrast": "Raise focus indicator contrast to at least 3:1",
    "keyboard-focusable": "Make interactive elements reachable with the keyboard",
    "keyboard-support": "Support the expected keys for each widget role",
    "click-events-have-key-events": "Pair click handlers with keyboard handlers",
    "tabindex": "Remove positive tabindex values",
    "tab-order": "Keep tab order consistent with document order",
    "modal-initial-focus": "Move focus into dialogs when they open",
    "modal-focus-trap": "Keep focus inside open dialogs",
    "modal-focus-return": "Return focus to the invoking control when dialogs close",
    "aria-valid-attr": "Remove unknown ARIA attributes",
    "aria-valid-attr-value": "Use valid values for ARIA attributes",
    "aria-required-attr": "Add the attributes required by each ARIA role",
    "aria-roles": "Use valid ARIA roles",
    "aria-allowed-role": "Do not override native element semantics with conflicting roles",
    "aria-name": "Give every interactive element an accessible name",
    "aria-hidden-focus": "Do not hide focusable elements from assistive technology",
    "heading-order": "Use sequential heading levels",
    "landmark-unique": "Use main, banner and contentinfo landmarks once per page",
    "motion": "Respect prefers-reduced-motion and let users pause moving content",
    "target-size": "Enlarge touch targets to at least 44 by 44 pixels",
    "target-spacing": "Leave at least 8 pixels between touch targets",
    "live-region": "Configure live regions with aria-live or a live role",
}


def element_score(result: VisualAccessibilityResult) -> int:
    """100 minus the deduction of every failed check on the element, floored at 0."""
    score = 100
    if result.contrast is not None and not result.contrast.passes:
        score -= CONTRAST_PENALTY
    if result.focus_indicator is not None:
        if not result.focus_indicator.has_indicator:
            score -= NO_INDICATOR_PENALTY
        elif not result.focus_indicator.sufficient:
            score -= WEAK_INDICATOR_PENALTY
    if result.color_only is not None and result.color_only.uses_color_only:
        score -= COLOR_ONLY_PENALTY
    if result.motion is not None and not result.motion.accessible:
        score -= MOTION_PENALTY
    if result.target_size is not None and not result.target_size.passes:
        score -= TARGET_SIZE_PENALTY
    return max(0, score)


def overall_score(
    contrast: Sequence[ContrastResult],
    visual: Sequence[VisualAccessibilityResult]
) -> int:
    """
    Tree score.

    Half the percentage of passing contrast checks plus half the mean element
    score. Either part alone when the other has no data, 100 when neither has.
    """
    parts = []
    if contrast:
        parts.append(100 * sum(1 for r in contrast if r.passes) / len(contrast))
    if visual:
        parts.append(sum(r.score for r in visual) / len(visual))
    if not parts:
        return 100
    return round(sum(parts) / len(parts))


def wcag_level(violations: Sequence[Violation]) -> WCAGLevel:
    impacts = Counter(v.impact for v in violations)
    if impacts[Impact.CRITICAL]:
        return WCAGLevel.A
    if impacts[Impact.SERIOUS] > MAX_SERIOUS_FOR_AA:
        return WCAGLevel.A
    if len(violations) > MAX_VIOLATIONS_FOR_AAA:
        return WCAGLevel.AA
    return WCAGLevel.AAA


def audit_status(violations: Sequence[Violation]) -> AuditStatus:
    if not violations:
        return AuditStatus.PASS
    if any(v.impact == Impact.CRITICAL for v in violations):
        return AuditStatus.FAIL
    return AuditStatus.WARNING


def collect_violations(findings: Iterable[Tuple[str, Sequence[Issue]]]) -> List[Violation]:
    """Flatten (selector, issues) pairs into violations, dropping exact duplicates."""
    seen = set()
    violations = []
    for selector, issues in findings:
        for issue in issues:
            key = (selector, issue.rule, issue.message)
            if key in seen:
                continue
            seen.add(key)
            violations.append(Violation(
                selector=selector,
                rule=issue.rule,
                message=issue.message,
                impact=issue.impact,
                category=issue.category,
            ))
    return violations


def build_recommendations(violations: Sequence[Violation], limit: int = 10) -> List[Recommendation]:
    """
    Deduplicated recommendations ordered by number of affected elements.

    Violations sharing a title collapse into one recommendation whose priority
    is the most severe impact among them.
    """
    grouped: Dict[str, Dict] = {}
    for violation in violations:
        title = RULE_GUIDANCE.get(violation.rule, violation.message)
        entry = grouped.setdefault(title, {
            "category": violation.category,
            "priority": violation.impact,
            "affected": [],
        })
        if violation.impact.rank < entry["priority"].rank:
            entry["priority"] = violation.impact
        if violation.selector not in entry["affected"]:
            entry["affected"].append(violation.selector)

    recommendations = [
        Recommendation(
            title=title,
            category=entry["category"],
            priority=entry["priority"],
            affected=tuple(entry["affected"]),
        )
        for title, entry in grouped.items()
    ]
    recommendations.sort(key=lambda r: (-r.affected_count, r.priority.rank, r.title))
    return recommendations[:limit]


def summarize(
    total_elements: int,
    visual: Sequence[VisualAccessibilityResult],
    violations: Sequence[Violation],
    incomplete: int,
    contrast: ContrastSummary,
    announcements: AnnouncementSummary
) -> AuditSummary:
    by_impact = Counter(v.impact.value for v in violations)
    by_category = Counter(v.category.value for v in violations)
    return AuditSummary(
        total_elements=total_elements,
        audited_elements=len(visual),
        violations=len(violations),
        passes=sum(1 for r in visual if not r.issues),
        incomplete=incomplete,
        by_impact={impact.value: by_impact.get(impact.value, 0) for impact in Impact},
        by_category={category.value: by_category[category.value] for category in AccessibilityCategory if by_category[category.value]},
        contrast=contrast,
        announcements=announcements,
    )


def compare_reports(previous: AuditReport, current: AuditReport, name: Optional[str] = None) -> RegressionResult:
    """Score difference and violation churn between two reports."""
    def keys(report: AuditReport) -> List[str]:
        return [f"{v.selector}: {v.rule}" for v in report.violations]

    before, after = keys(previous), keys(current)
    difference = current.score - previous.score
    if difference > 0:
        status = "improved"
    elif difference < 0:
        status = "degraded"
    else:
        status = "stable"

    return RegressionResult(
        name=name or current.context,
        previous_score=previous.score,
        current_score=current.score,
        difference=difference,
        status=status,
        new_violations=tuple(key for key in dict.fromkeys(after) if key not in before),
        resolved_violations=tuple(key for key in dict.fromkeys(before) if key not in after),
    )
