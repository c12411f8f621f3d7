"""Periodic refresh of the published alerts feed."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from .alerts import DEFAULT_DIGEST, build_snapshot
from .models import FeedSnapshot
from .source import download_alerts
from .store import FeedStore

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = 30


class AlertRefreshScheduler:
    """Downloads alerts on a fixed-rate schedule and publishes each snapshot.

    A single worker thread runs one refresh cycle immediately and then once
    per ``refresh_interval`` seconds, measured from the scheduled start of each
    cycle. Cycles never overlap: a cycle that overruns its slot is followed
    straight away by the next one, and any further missed slots are dropped.
    A failed cycle is logged and leaves the previous snapshot in place.
    """

    def __init__(
        self,
        store: FeedStore,
        source_url: str,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        request_timeout: float = 10.0,
        digest_algorithm: str = DEFAULT_DIGEST,
    ) -> None:
        if refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive.")
        self.store = store
        self.source_url = source_url
        self.refresh_interval = refresh_interval
        self.request_timeout = request_timeout
        self.digest_algorithm = digest_algorithm
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    def _build(self) -> FeedSnapshot:
        records = download_alerts(self.source_url, timeout=self.request_timeout)
        return build_snapshot(records, self.digest_algorithm)

    def _publish(self, snapshot: FeedSnapshot) -> None:
        self.store.publish(snapshot)
        logger.info("Alerts extracted: %d", len(snapshot))

    def refresh(self) -> FeedSnapshot:
        """Run one refresh cycle and publish the result."""
        snapshot = self._build()
        self._publish(snapshot)
        return snapshot

    def _run_cycle(self, stop_event: threading.Event) -> None:
        try:
            logger.info("Refreshing alerts")
            snapshot = self._build()
        except Exception:  # noqa: BLE001
            logger.warning("Error in alerts refresh task", exc_info=True)
            return
        if stop_event.is_set():
            logger.debug("Refresh finished after stop; discarding snapshot")
            return
        self._publish(snapshot)

    def _run(self, stop_event: threading.Event) -> None:
        next_run = time.monotonic()
        while not stop_event.is_set():
            self._run_cycle(stop_event)
            next_run += self.refresh_interval
            now = time.monotonic()
            if now > next_run:
                missed = int((now - next_run) // self.refresh_interval)
                if missed:
                    logger.debug("Refresh overran; skipping %d scheduled cycles", missed)
                next_run += missed * self.refresh_interval
            stop_event.wait(max(0.0, next_run - now))

    def start(self) -> None:
        """Begin refreshing in the background."""
        if self.running:
            raise RuntimeError("Alert refresh scheduler is already running.")
        logger.info(
            "Starting alerts refresh from %s every %ss",
            self.source_url,
            self.refresh_interval,
        )
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name="alert-refresh",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel the schedule.

        An in-flight cycle is abandoned rather than awaited unless ``timeout``
        is given, in which case the worker is joined for at most that long.
        """
        if self._thread is None:
            return
        logger.info("Stopping alerts refresh")
        self._stop_event.set()
        if timeout is not None:
            self._thread.join(timeout)
        self._thread = None
