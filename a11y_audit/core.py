# a11y_audit/core.py
"""
Core audit framework components.

This module defines the enumerations, the issue type shared by every analyzer,
element geometry and the AuditContext that carries the accessor, configuration
and pattern tables through one audit run.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional, TYPE_CHECKING

from a11y_core.config import AuditConfig, RuleFamily, ViewportProfile
from a11y_exceptions import AbstentionTracker

if TYPE_CHECKING:
    from .patterns import PatternTable
    from .services import FocusController
    from .tree import TreeAccessor


class WCAGLevel(Enum):
    """WCAG compliance levels."""
    A = "A"
    AA = "AA"
    AAA = "AAA"


class ContrastLevel(Enum):
    """Highest contrast level a text element reaches."""
    AAA = "AAA"
    AA = "AA"
    FAIL = "fail"


class TextSize(Enum):
    NORMAL = "normal"
    LARGE = "large"


class Impact(Enum):
    """Violation impact, ordered from most to least severe."""
    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"

    @property
    def rank(self) -> int:
        return _IMPACT_RANK[self]


_IMPACT_RANK = {
    Impact.CRITICAL: 0,
    Impact.SERIOUS: 1,
    Impact.MODERATE: 2,
    Impact.MINOR: 3,
}


class Clarity(Enum):
    """Announcement clarity grade."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class AuditStatus(Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


class AccessibilityCategory(Enum):
    """Categories issues and recommendations are grouped under."""
    COLOR_CONTRAST = "color_contrast"
    COLOR_ONLY = "color_only"
    FOCUS = "focus"
    KEYBOARD_NAVIGATION = "keyboard_navigation"
    ARIA = "aria"
    STRUCTURE = "structure"
    MOTION = "motion"
    TARGET_SIZE = "target_size"
    SCREEN_READER = "screen_reader"
    LIVE_REGION = "live_region"


@dataclass(frozen=True)
class Issue:
    """
    A single violation found by an analyzer.

    Attributes:
        rule: Stable rule identifier (e.g. ``color-contrast``)
        message: Human readable description
        impact: Severity used by the aggregator
        category: Grouping for summaries and recommendations
    """
    rule: str
    message: str
    impact: Impact
    category: AccessibilityCategory

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule,
            "message": self.message,
            "impact": self.impact.value,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class Rect:
    """Element bounding box in CSS pixels."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class AuditContext:
    """
    Context information for one audit run.

    Analyzers are stateless functions; everything they need to read the tree
    (accessor, focus controller), decide thresholds (config) and match
    heuristics (patterns) is carried here.
    """
    accessor: "TreeAccessor"
    config: AuditConfig
    patterns: "PatternTable"
    focus: Optional["FocusController"] = None
    abstentions: AbstentionTracker = field(default_factory=AbstentionTracker)

    audit_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    correlation_id: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Page context
    page_url: Optional[str] = None
    viewport: Optional[ViewportProfile] = None

    # Focus indicator results keyed by node id, shared by keyboard checks in one run
    focus_cache: Dict[str, Any] = field(default_factory=dict)

    def is_enabled(self, rule: RuleFamily) -> bool:
        return self.config.is_enabled(rule)
