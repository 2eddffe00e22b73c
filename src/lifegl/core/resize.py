"""Viewport resize handling."""
from collections import deque
from typing import Deque, NamedTuple, Optional

from ..utils.logger import get_logger

LOG = get_logger(__name__)


class ResizeEvent(NamedTuple):
    """Host drawing surface size in logical pixels."""
    width: float
    height: float


class ViewportResizeHandler:
    """Applies pending resize events to a DisplayPayload."""

    def drain(self, events: Deque[ResizeEvent], display) -> bool:
        """Consume every queued event, keeping only the last size.

        Args:
            events: Pending resize events, emptied by this call
            display: DisplayPayload whose viewport is updated

        Returns:
            True if the viewport was updated
        """
        latest: Optional[ResizeEvent] = None
        drained = 0
        while events:
            latest = events.popleft()
            drained += 1
        if latest is None:
            return False
        display.viewport = (float(latest.width), float(latest.height))
        LOG.debug(f"Viewport resized to {latest.width}x{latest.height} ({drained} events)")
        return True


def resize_queue() -> Deque[ResizeEvent]:
    return deque()
