# a11y_audit/live_region.py
"""
Live region configuration checks and announcement monitoring.
"""

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Dict, List, Optional

from .core import AccessibilityCategory, AuditContext, Impact, Issue
from .results import AnnouncementRecord, LiveRegionResult
from .services import MutationEvent, MutationWatcher
from .tree import LIVE_REGION_SELECTOR, ElementDescriptor


logger = logging.getLogger(__name__)

POLITENESS_VALUES = ("polite", "assertive")
# Roles that imply a live politeness setting
ROLE_POLITENESS = {
    "status": "polite",
    "log": "polite",
    "alert": "assertive",
}
ATOMIC_ROLES = ("status", "alert")
DEFAULT_RELEVANT = ["additions", "text"]


def politeness_of(element: ElementDescriptor) -> Optional[str]:
    value = element.attributes.get("aria-live", "").strip().lower()
    if value:
        return value
    return ROLE_POLITENESS.get(element.role or "")


def live_region_of(element: ElementDescriptor) -> Optional[ElementDescriptor]:
    """The element itself or its nearest ancestor that is a live region."""
    if element.matches(LIVE_REGION_SELECTOR):
        return element
    return element.closest(LIVE_REGION_SELECTOR)


def analyze_live_region(element: ElementDescriptor, ctx: AuditContext) -> LiveRegionResult:
    """Static configuration of one live region."""
    attrs = element.attributes
    politeness = politeness_of(element)
    configured = politeness in POLITENESS_VALUES
    text = element.text_content

    issues: List[Issue] = []
    if not configured:
        issues.append(Issue(
            rule="live-region",
            message="Live region not properly configured for announcements",
            impact=Impact.MODERATE,
            category=AccessibilityCategory.LIVE_REGION,
        ))
    if not text:
        issues.append(Issue(
            rule="live-region-empty",
            message="Live region is empty",
            impact=Impact.MINOR,
            category=AccessibilityCategory.LIVE_REGION,
        ))

    atomic_attr = attrs.get("aria-atomic")
    atomic = atomic_attr == "true" if atomic_attr is not None else element.role in ATOMIC_ROLES
    relevant = attrs.get("aria-relevant", "").split() or list(DEFAULT_RELEVANT)

    return LiveRegionResult(
        selector=ctx.accessor.selector_for(element),
        politeness=politeness,
        role=element.role,
        atomic=atomic,
        relevant=relevant,
        busy=attrs.get("aria-busy") == "true",
        configured=configured,
        text=text,
        issues=issues,
    )


def audit_live_regions(ctx: AuditContext) -> List[LiveRegionResult]:
    results = [analyze_live_region(element, ctx) for element in ctx.accessor.select(LIVE_REGION_SELECTOR)]
    logging.info(f"Live region analysis: {len(results)} regions")
    return results


def _describe(element: ElementDescriptor) -> str:
    element_id = element.element_id
    if element_id:
        return f"{element.tag}#{element_id}"
    role = element.role
    return f'{element.tag}[role="{role}"]' if role else element.tag


class LiveRegionMonitor:
    """
    Records what live regions under a root would announce.

    Monitoring is explicit: ``start`` subscribes to the watcher, ``stop``
    unsubscribes and returns the records. Only non-empty text that differs
    from the region's previous text is recorded. The buffer is bounded; the
    oldest records are dropped first.

    Args:
        watcher: MutationWatcher of the host
        max_events: Buffer size
        clock: Returns the current time (UTC); injectable for tests
    """

    def __init__(
        self,
        watcher: MutationWatcher,
        max_events: int = 500,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.watcher = watcher
        self.max_events = max_events
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._records: Deque[AnnouncementRecord] = deque(maxlen=max_events)
        self._last_text: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self, root: ElementDescriptor) -> None:
        """Begin observing ``root``; a running session is restarted and its records discarded."""
        if self._active:
            self.watcher.disconnect()
        with self._lock:
            self._records.clear()
            self._last_text = {
                region.node_id: region.text_content
                for region in root.iter_subtree()
                if region.matches(LIVE_REGION_SELECTOR)
            }
        self.watcher.observe(root, self._on_mutation)
        self._active = True
        logger.debug(f"Live region monitoring started on <{root.tag}>")

    def _on_mutation(self, event: MutationEvent) -> None:
        if event.kind not in ("childList", "characterData"):
            return
        region = live_region_of(event.target)
        if region is None:
            return
        text = region.text_content
        with self._lock:
            if self._last_text.get(region.node_id) == text:
                return
            self._last_text[region.node_id] = text
            if not text:
                return
            self._records.append(AnnouncementRecord(
                timestamp=self.clock().isoformat(),
                selector=_describe(region),
                politeness=politeness_of(region),
                text=text,
            ))

    def stop(self) -> List[AnnouncementRecord]:
        """Stop observing and return the records; empty when never started."""
        if not self._active:
            return []
        self.watcher.disconnect()
        self._active = False
        with self._lock:
            records = list(self._records)
        logger.debug(f"Live region monitoring stopped with {len(records)} announcements")
        return records
