"""Holder for the most recently published feed snapshot."""

from __future__ import annotations

import logging
import threading

from .models import FeedSnapshot

logger = logging.getLogger(__name__)


class FeedStore:
    """A single replaceable slot for the current :class:`FeedSnapshot`.

    Readers call :meth:`current` from any thread without locking; rebinding
    the reference is atomic, so a reader sees either the old or the new
    snapshot in full. The store starts out with an empty snapshot.
    """

    def __init__(self, initial: FeedSnapshot | None = None) -> None:
        self._lock = threading.Lock()
        self._current = initial if initial is not None else FeedSnapshot()

    def publish(self, snapshot: FeedSnapshot) -> None:
        """Replace the current snapshot."""
        with self._lock:
            self._current = snapshot
        logger.debug("Published snapshot with %d alerts", len(snapshot))

    def current(self) -> FeedSnapshot:
        return self._current
