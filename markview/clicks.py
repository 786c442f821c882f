"""Polled double-click detection.

A first click is held as pending together with its time and position. A
second click close enough in time and space makes a double click; otherwise
the host's periodic check releases the pending click as a single click
once the timeout has elapsed. There are no timers or threads involved.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from .constants import ViewerConstants


@dataclass
class PendingClick:
    x: int
    y: int
    at: float


class DoubleClickState:
    """Tracks the pending first click of a possible double click."""

    def __init__(self, timeout: float = ViewerConstants.DOUBLE_CLICK_TIMEOUT,
                 clock: Callable[[], float] = time.monotonic):
        self.timeout = timeout
        self.clock = clock
        self.pending_single_click: Optional[PendingClick] = None

    def _now(self, now: Optional[float]) -> float:
        return self.clock() if now is None else now

    def _same_spot(self, pending: PendingClick, x: int, y: int) -> bool:
        return pending.y == y and abs(pending.x - x) <= ViewerConstants.DOUBLE_CLICK_DISTANCE

    def process_click(self, x: int, y: int, now: Optional[float] = None) -> bool:
        """Register a click.

        Returns:
            True if this click completes a double click. The pending click
            is consumed in that case; otherwise this click becomes pending.
        """
        now = self._now(now)
        pending = self.pending_single_click
        if pending is not None and now - pending.at <= self.timeout and self._same_spot(pending, x, y):
            self.clear_pending()
            return True
        self.pending_single_click = PendingClick(x, y, now)
        return False

    def check_pending_timeout(self, now: Optional[float] = None) -> Optional[tuple[int, int]]:
        """Release the pending click once its double-click window has passed.

        Returns:
            The (x, y) of the released click, or None
        """
        pending = self.pending_single_click
        if pending is None:
            return None
        if self._now(now) - pending.at <= self.timeout:
            return None
        self.clear_pending()
        return (pending.x, pending.y)

    def has_pending(self) -> bool:
        return self.pending_single_click is not None

    def clear_pending(self) -> None:
        self.pending_single_click = None
