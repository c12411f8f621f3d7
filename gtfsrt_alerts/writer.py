"""Periodic file publication of the current alerts feed."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from .gtfs import serialize_feed
from .store import FeedStore

logger = logging.getLogger(__name__)

DEFAULT_WRITE_INTERVAL = 5.0


class FeedFileWriter:
    """Writes the serialised current snapshot to ``path`` every ``interval`` seconds."""

    def __init__(
        self, store: FeedStore, path: str, interval: float = DEFAULT_WRITE_INTERVAL
    ) -> None:
        if interval <= 0:
            raise ValueError("File write interval must be positive.")
        self.store = store
        self.path = Path(path)
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def write(self) -> None:
        """Atomically replace the output file with the current feed."""
        payload = serialize_feed(self.store.current())
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d bytes to %s", len(payload), self.path)

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.write()
            except Exception:  # noqa: BLE001
                logger.warning("Failed to write alerts feed to %s", self.path, exc_info=True)
            stop_event.wait(self.interval)

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Feed file writer is already running.")
        logger.info("Writing alerts feed to %s every %ss", self.path, self.interval)
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name="alert-file-writer",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout)
        self._thread = None
