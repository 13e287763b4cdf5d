# a11y_audit/results.py
"""
Analyzer result types and the audit report.

Analyzers build these while walking the tree; AuditReport freezes the
collections into tuples once aggregation is done. Every type serializes via
``to_dict`` with enums rendered as their values.
"""

import json
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from a11y_exceptions import Abstention

from .core import (
    AccessibilityCategory,
    AuditStatus,
    Clarity,
    ContrastLevel,
    Impact,
    Issue,
    TextSize,
    WCAGLevel,
)


def to_serializable(value: Any) -> Any:
    """Recursively convert dataclasses, enums and containers to JSON-safe values."""
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_dict") and not isinstance(value, type):
        return value.to_dict()
    if is_dataclass(value):
        return {f.name: to_serializable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(k): to_serializable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_serializable(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return {f.name: to_serializable(getattr(self, f.name)) for f in fields(self)}


@dataclass
class ContrastResult(_Serializable):
    """Contrast facts for one text-bearing element."""
    selector: str
    foreground: str
    background: str
    ratio: float
    size: TextSize
    level: ContrastLevel
    passes: bool
    required_aa: float
    required_aaa: float
    font_size: float
    bold: bool
    issues: List[Issue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class ColorOnlyResult(_Serializable):
    selector: str
    uses_color_only: bool
    has_textual_indicator: bool
    has_icon_indicator: bool
    has_pattern_indicator: bool
    accessible: bool
    signal_colors: List[str] = field(default_factory=list)
    suspected: bool = False
    issues: List[Issue] = field(default_factory=list)


@dataclass
class FocusIndicatorResult(_Serializable):
    """Outcome of probing an element's focused style."""
    selector: str
    has_indicator: bool
    visible: bool
    sufficient: bool
    contrast_ratio: Optional[float] = None
    indicator_color: Optional[str] = None
    methods: List[str] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)


@dataclass
class KeyboardResult(_Serializable):
    selector: str
    focusable: bool
    tab_index: Optional[int]
    expected_keys: List[str] = field(default_factory=list)
    key_support: Dict[str, bool] = field(default_factory=dict)
    has_key_handler: bool = False
    shortcuts: List[str] = field(default_factory=list)
    accessible: bool = True
    issues: List[Issue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class TabOrderEntry(_Serializable):
    selector: str
    tab_index: int
    document_order: int
    navigation_order: int


@dataclass
class TabOrderResult(_Serializable):
    valid: bool
    sequence: List[TabOrderEntry] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    unreachable: List[str] = field(default_factory=list)


@dataclass
class FocusManagementResult(_Serializable):
    component: str
    scenario: str
    initial_focus: bool
    focus_trap: bool
    focus_return: bool
    tab_order: bool
    visual_focus_indicator: bool
    issues: List[Issue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class ShortcutResult(_Serializable):
    selector: str
    key: str
    modifiers: List[str]
    source: str
    action: str
    documented: bool
    valid: bool
    conflicts: List[str] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)


@dataclass
class AttributeCheck(_Serializable):
    name: str
    present: bool
    value: Optional[str]
    valid: bool
    required: bool = False
    recommendation: Optional[str] = None


@dataclass
class RoleCheck(_Serializable):
    implicit: Optional[str]
    explicit: Optional[str]
    valid: bool
    conflicts: bool
    recommendation: Optional[str] = None


@dataclass
class AccessibleName(_Serializable):
    text: str
    source: Optional[str]
    sources: List[str] = field(default_factory=list)
    accessible: bool = False
    clear: bool = False


@dataclass
class AriaResult(_Serializable):
    selector: str
    attributes: Dict[str, AttributeCheck]
    role: RoleCheck
    name: AccessibleName
    score: int = 100
    issues: List[Issue] = field(default_factory=list)


@dataclass
class HeadingEntry(_Serializable):
    selector: str
    level: int
    text: str


@dataclass
class StructureResult(_Serializable):
    landmarks: Dict[str, int] = field(default_factory=dict)
    headings: List[HeadingEntry] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)


@dataclass
class MotionResult(_Serializable):
    selector: str
    has_motion: bool
    respects_reduced_motion: bool
    auto_playing: bool
    can_be_paused: bool
    accessible: bool
    issues: List[Issue] = field(default_factory=list)


@dataclass
class TargetSizeResult(_Serializable):
    selector: str
    width: float
    height: float
    passes: bool
    adequate_spacing: bool
    spacing: Optional[float] = None
    issues: List[Issue] = field(default_factory=list)


@dataclass
class AnnouncementResult(_Serializable):
    selector: str
    family: str
    announcement: str
    accessible_name: str
    role: Optional[str]
    states: List[str] = field(default_factory=list)
    context: Optional[str] = None
    clarity: Clarity = Clarity.POOR
    issues: List[Issue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class LiveRegionResult(_Serializable):
    selector: str
    politeness: Optional[str]
    role: Optional[str]
    atomic: bool
    relevant: List[str]
    busy: bool
    configured: bool
    text: str
    issues: List[Issue] = field(default_factory=list)


@dataclass(frozen=True)
class AnnouncementRecord(_Serializable):
    """One textual change observed in a live region."""
    timestamp: str
    selector: str
    politeness: Optional[str]
    text: str

    def __str__(self) -> str:
        return f"{self.timestamp}: {self.text}"


@dataclass
class VisualAccessibilityResult(_Serializable):
    """Per-element bundle of every check, keyed by a unique selector."""
    selector: str
    contrast: Optional[ContrastResult] = None
    focus_indicator: Optional[FocusIndicatorResult] = None
    keyboard: Optional[KeyboardResult] = None
    aria: Optional[AriaResult] = None
    color_only: Optional[ColorOnlyResult] = None
    motion: Optional[MotionResult] = None
    target_size: Optional[TargetSizeResult] = None
    score: int = 100
    issues: List[Issue] = field(default_factory=list)


@dataclass(frozen=True)
class Violation(_Serializable):
    selector: str
    rule: str
    message: str
    impact: Impact
    category: AccessibilityCategory


@dataclass(frozen=True)
class Recommendation(_Serializable):
    title: str
    category: AccessibilityCategory
    priority: Impact
    affected: Tuple[str, ...]

    @property
    def affected_count(self) -> int:
        return len(self.affected)


@dataclass(frozen=True)
class ContrastSummary(_Serializable):
    total_elements: int = 0
    passing: int = 0
    failing: int = 0
    aa_compliant: int = 0
    aaa_compliant: int = 0
    average_ratio: float = 0.0


@dataclass(frozen=True)
class AnnouncementSummary(_Serializable):
    total: int = 0
    excellent: int = 0
    good: int = 0
    fair: int = 0
    poor: int = 0
    issues: int = 0
    score: int = 100


@dataclass(frozen=True)
class AuditSummary(_Serializable):
    total_elements: int
    audited_elements: int
    violations: int
    passes: int
    incomplete: int
    by_impact: Dict[str, int]
    by_category: Dict[str, int]
    contrast: ContrastSummary
    announcements: AnnouncementSummary


@dataclass(frozen=True)
class AuditReport:
    """
    Immutable result of one audit pass.

    Collections are tuples; ``to_dict`` produces the overview / summary /
    sections / recommendations layout consumed by report presenters.
    """
    audit_id: str
    context: str
    timestamp: str
    score: int
    wcag_level: WCAGLevel
    status: AuditStatus
    summary: AuditSummary
    profile: Optional[str] = None
    url: Optional[str] = None
    execution_time_ms: Optional[float] = None
    contrast: Tuple[ContrastResult, ...] = ()
    color_only: Tuple[ColorOnlyResult, ...] = ()
    visual: Tuple[VisualAccessibilityResult, ...] = ()
    keyboard: Tuple[KeyboardResult, ...] = ()
    tab_order: Optional[TabOrderResult] = None
    focus_management: Tuple[FocusManagementResult, ...] = ()
    shortcuts: Tuple[ShortcutResult, ...] = ()
    aria: Tuple[AriaResult, ...] = ()
    structure: Optional[StructureResult] = None
    motion: Tuple[MotionResult, ...] = ()
    announcements: Tuple[AnnouncementResult, ...] = ()
    live_regions: Tuple[LiveRegionResult, ...] = ()
    violations: Tuple[Violation, ...] = ()
    abstentions: Tuple[Abstention, ...] = ()
    recommendations: Tuple[Recommendation, ...] = ()

    def element(self, selector: str) -> Optional[VisualAccessibilityResult]:
        for result in self.visual:
            if result.selector == selector:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overview": {
                "audit_id": self.audit_id,
                "context": self.context,
                "timestamp": self.timestamp,
                "profile": self.profile,
                "url": self.url,
                "score": self.score,
                "wcag_level": self.wcag_level.value,
                "status": self.status.value,
                "execution_time_ms": self.execution_time_ms,
            },
            "summary": self.summary.to_dict(),
            "sections": {
                "contrast": to_serializable(self.contrast),
                "color_only": to_serializable(self.color_only),
                "visual": to_serializable(self.visual),
                "keyboard": to_serializable(self.keyboard),
                "tab_order": to_serializable(self.tab_order),
                "focus_management": to_serializable(self.focus_management),
                "shortcuts": to_serializable(self.shortcuts),
                "aria": to_serializable(self.aria),
                "structure": to_serializable(self.structure),
                "motion": to_serializable(self.motion),
                "announcements": to_serializable(self.announcements),
                "live_regions": to_serializable(self.live_regions),
            },
            "violations": to_serializable(self.violations),
            "abstentions": to_serializable(self.abstentions),
            "recommendations": [
                {**rec.to_dict(), "affected_count": rec.affected_count}
                for rec in self.recommendations
            ],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), default=str, indent=indent, ensure_ascii=False)


@dataclass(frozen=True)
class RegressionResult(_Serializable):
    """Score comparison between two runs of the same page."""
    name: str
    previous_score: int
    current_score: int
    difference: int
    status: str
    new_violations: Tuple[str, ...] = ()
    resolved_violations: Tuple[str, ...] = ()
