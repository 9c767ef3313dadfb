"""Ordered, single-subscriber progress notifications for one session."""

from __future__ import annotations

import logging
from collections.abc import Callable

from schemas.generation import ProgressEvent


logger = logging.getLogger(__name__)

Subscriber = Callable[[ProgressEvent], None]


class ProgressEmitter:
    """Deliver a session's events to one subscriber, synchronously and in order.

    Guarantees:
    - `progress` lengths never decrease; a smaller length is raised to the
      last one sent.
    - exactly one terminal event (`complete` or `error`) is delivered, and
      nothing after it.
    - once detached, events are dropped instead of being buffered.
    """

    def __init__(self, subscriber: Subscriber | None = None) -> None:
        self._subscriber = subscriber
        self._terminated = False
        self._last_length = 0
        self.sent: int = 0

    @property
    def terminated(self) -> bool:
        return self._terminated

    @property
    def attached(self) -> bool:
        return self._subscriber is not None

    def detach(self) -> None:
        self._subscriber = None

    def emit(self, event: ProgressEvent) -> bool:
        """Send `event`; return False when it was dropped."""
        if self._terminated:
            logger.debug("Dropping %s event after terminal event", event.type)
            return False

        if event.type == "progress" and event.length is not None:
            if event.length < self._last_length:
                event = event.model_copy(update={"length": self._last_length})
            self._last_length = event.length or 0

        if event.is_terminal:
            self._terminated = True

        if self._subscriber is None:
            return False
        self._subscriber(event)
        self.sent += 1
        return True
