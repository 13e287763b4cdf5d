# a11y_audit/__init__.py
"""
Visual and interaction accessibility audit engine.

Audits a rendered element tree against WCAG 2.1 criteria that need layout and
style: color contrast, focus visibility, keyboard operability, ARIA
semantics, motion, target size, screen reader announcements and live regions.

Key Components:
- AuditEngine: Runs enabled rule families and aggregates an AuditReport
- TreeAccessor: Selector families, unique selectors and resolved styles
- Capability interfaces: StyleResolver, FocusController, MutationWatcher, ViewportController
- FakeDocument: In-memory host for tests and offline audits
- PlaywrightHost: Production host over a Playwright page (a11y_audit.playwright_host)

Usage:
    from a11y_audit import AuditEngine, FakeDocument

    doc = FakeDocument()
    root = doc.element("body", doc.element("button", text="Save"))
    report = AuditEngine().run(root, resolver=doc.resolver, focus=doc.focus)
    print(report.score, report.status.value)
"""

from .core import (
    AccessibilityCategory,
    AuditContext,
    AuditStatus,
    Clarity,
    ContrastLevel,
    Impact,
    Issue,
    Rect,
    TextSize,
    WCAGLevel,
)

from .results import (
    AnnouncementRecord,
    AuditReport,
    AuditSummary,
    ContrastResult,
    Recommendation,
    RegressionResult,
    Violation,
    VisualAccessibilityResult,
)

from .tree import ElementDescriptor, ResolvedStyle, TreeAccessor
from .services import (
    FocusController,
    MutationEvent,
    MutationWatcher,
    StyleResolver,
    ViewportController,
    focus_probe,
)
from .fakes import FakeDocument, InMemoryViewport
from .patterns import PatternTable, get_patterns
from .contrast import contrast_ratio, relative_luminance
from .live_region import LiveRegionMonitor
from .scorer import compare_reports

# Main entry point
from .engine import AuditEngine

__all__ = [
    # Core types
    "AccessibilityCategory",
    "AuditContext",
    "AuditStatus",
    "Clarity",
    "ContrastLevel",
    "Impact",
    "Issue",
    "Rect",
    "TextSize",
    "WCAGLevel",

    # Results
    "AnnouncementRecord",
    "AuditReport",
    "AuditSummary",
    "ContrastResult",
    "Recommendation",
    "RegressionResult",
    "Violation",
    "VisualAccessibilityResult",

    # Tree and host capabilities
    "ElementDescriptor",
    "ResolvedStyle",
    "TreeAccessor",
    "FocusController",
    "MutationEvent",
    "MutationWatcher",
    "StyleResolver",
    "ViewportController",
    "focus_probe",
    "FakeDocument",
    "InMemoryViewport",

    # Heuristics and helpers
    "PatternTable",
    "get_patterns",
    "contrast_ratio",
    "relative_luminance",
    "LiveRegionMonitor",
    "compare_reports",

    "AuditEngine",
]

# Engine version for report compatibility tracking
__version__ = "1.0.0"
