# a11y_audit/services.py
"""
Host capability interfaces.

The engine never touches a browser directly. It reads styles through a
StyleResolver, moves focus through a FocusController, observes mutations
through a MutationWatcher and changes the viewport through a
ViewportController. Production implementations live in
``playwright_host``; in-memory fakes live in ``fakes``.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Mapping, Optional

from a11y_core.config import ViewportProfile
from a11y_exceptions import FocusProbeError, create_error_context

from .tree import ElementDescriptor


logger = logging.getLogger(__name__)


class StyleResolver(ABC):
    """Supplies computed styles for elements of one rendered tree."""

    @abstractmethod
    def computed_style(self, element: ElementDescriptor) -> Mapping[str, str]:
        """
        Current computed style of an element.

        Raises:
            StyleUnavailableError: If the element's style cannot be read
        """

    @abstractmethod
    def media_conditions(self) -> List[str]:
        """Media query conditions of all readable stylesheets; unreadable sheets are skipped."""

    @abstractmethod
    def is_attached(self, element: ElementDescriptor) -> bool:
        """Whether the element is still part of the rendered document."""


class FocusController(ABC):
    """
    Moves keyboard focus for focus-indicator probing.

    Every controller owns a probe lock; ``focus_probe`` holds it so that no
    two probes on the same document overlap.
    """

    def __init__(self):
        self._probe_lock = threading.Lock()

    @abstractmethod
    def active_element(self) -> Optional[ElementDescriptor]:
        """Element that currently holds focus, if known."""

    @abstractmethod
    def focus(self, element: ElementDescriptor) -> None:
        pass

    @abstractmethod
    def blur(self, element: ElementDescriptor) -> None:
        pass


@dataclass(frozen=True)
class MutationEvent:
    """One observed change below the watched root."""
    target: ElementDescriptor
    kind: str = "childList"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MutationWatcher(ABC):
    """Delivers subtree/text mutations to a callback until disconnected."""

    @abstractmethod
    def observe(self, root: ElementDescriptor, callback: Callable[[MutationEvent], None]) -> None:
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass


class ViewportController(ABC):
    """Applies a viewport profile and returns a fresh root for it."""

    @abstractmethod
    def apply(self, profile: ViewportProfile) -> ElementDescriptor:
        pass


@contextmanager
def focus_probe(
    controller: FocusController,
    element: ElementDescriptor,
    timeout: float = 5.0,
    selector: Optional[str] = None
) -> Iterator[ElementDescriptor]:
    """
    Scoped focus acquisition.

    Records the current focus owner, focuses ``element`` for the body of the
    ``with`` block and restores the previous owner (or blurs ``element`` when
    there was none) on every exit path, including exceptions.

    Raises:
        FocusProbeError: If another probe holds the controller longer than ``timeout``
    """
    if not controller._probe_lock.acquire(timeout=timeout):
        raise FocusProbeError(
            message="Timed out waiting for another focus probe to finish",
            selector=selector,
            timeout=timeout,
            error_context=create_error_context(component="Focus Controller", operation="focus_probe")
        )
    try:
        previous = controller.active_element()
        try:
            controller.focus(element)
            yield element
        finally:
            if previous is not None:
                controller.focus(previous)
            else:
                controller.blur(element)
    finally:
        controller._probe_lock.release()
