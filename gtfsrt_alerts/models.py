"""Shared data models for gtfsrt_alerts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AlertText:
    """Title and description recovered from an alert's markup."""

    title: str
    description: str


@dataclass(frozen=True)
class NormalizedAlert:
    """A single alert ready to be published."""

    id: str
    header_text: str
    description_text: str
    route_id: str


@dataclass(frozen=True)
class FeedSnapshot:
    """The complete set of alerts published as one unit."""

    alerts: Tuple[NormalizedAlert, ...] = ()
    created_at: datetime = field(default_factory=_utcnow)

    def __len__(self) -> int:
        return len(self.alerts)
