import logging
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Callable, TypeVar

from .base import StyleUnavailableError
from .logging import ABSTENTION_LOGGER_NAME


T = TypeVar("T")


@dataclass(frozen=True)
class Abstention:
    # A check that could not be evaluated for one element
    selector: str
    check: str
    reason: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selector": self.selector,
            "check": self.check,
            "reason": self.reason,
            "timestamp": self.timestamp,
        }


class AbstentionTracker:
    # Collects abstentions so a run degrades per element instead of failing

    def __init__(self):
        self._records: List[Abstention] = []
        self._lock = threading.Lock()
        self.logger = logging.getLogger(ABSTENTION_LOGGER_NAME)

    def record(self, selector: str, check: str, reason: str) -> Abstention:
        abstention = Abstention(selector=selector, check=check, reason=reason)
        with self._lock:
            self._records.append(abstention)
        self.logger.debug(
            f"Abstained from {check} on {selector}: {reason}",
            extra={"selector": selector, "check": check},
        )
        return abstention

    def guard(
        self,
        selector: str,
        check: str,
        func: Callable[..., T],
        *args,
        fallback: Optional[T] = None,
        **kwargs
    ) -> Optional[T]:
        # Run one per-element check, turning unreadable style into an abstention
        try:
            return func(*args, **kwargs)
        except StyleUnavailableError as e:
            self.record(selector, check, e.message)
            return fallback

    @property
    def records(self) -> List[Abstention]:
        with self._lock:
            return list(self._records)

    def summary(self) -> Dict[str, int]:
        # Abstention counts per check
        with self._lock:
            counts = Counter(record.check for record in self._records)
        return dict(counts)
