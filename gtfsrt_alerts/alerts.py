"""Conversion of raw source alert records into publishable alerts."""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Iterable, List, Mapping, Optional

from .extract import extract_alert_text
from .models import AlertText, FeedSnapshot, NormalizedAlert

logger = logging.getLogger(__name__)

MESSAGE_FIELD = "advisory_message"
ROUTE_FIELD = "route_id"
DEFAULT_DIGEST = "md5"


def get_alert_text(record: Mapping[str, Any]) -> Optional[AlertText]:
    """Extract alert text from a record, or ``None`` when it carries no message."""
    markup = record.get(MESSAGE_FIELD)
    if markup is None or markup == "":
        return None
    if not isinstance(markup, str):
        raise ValueError(
            f"'{MESSAGE_FIELD}' must be a string, got {type(markup).__name__}"
        )
    return extract_alert_text(markup)


def canonical_form(record: Mapping[str, Any]) -> str:
    """Serialise ``record`` so that equal content always yields equal text."""
    return json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def fingerprint(record: Mapping[str, Any], digest_algorithm: str = DEFAULT_DIGEST) -> str:
    """Return a hex digest identifying the record's content."""
    try:
        digest = hashlib.new(digest_algorithm)
    except ValueError as exc:
        raise RuntimeError(f"Digest algorithm unavailable: {digest_algorithm}") from exc
    digest.update(canonical_form(record).encode("utf-8"))
    return digest.hexdigest()


def normalize_alert(
    record: Any, digest_algorithm: str = DEFAULT_DIGEST
) -> Optional[NormalizedAlert]:
    """Build a :class:`NormalizedAlert` from one source record.

    Records without message text produce no alert. Records that are not
    objects or lack a route are malformed and raise ``ValueError``.
    """
    if not isinstance(record, Mapping):
        raise ValueError(f"Alert record must be a JSON object, got {type(record).__name__}")

    text = get_alert_text(record)
    if text is None:
        logger.debug("Skipping alert without %s: %s", MESSAGE_FIELD, record.get(ROUTE_FIELD))
        return None

    route_id = record.get(ROUTE_FIELD)
    if route_id is None:
        raise ValueError(f"Alert record is missing '{ROUTE_FIELD}'")

    # Alerts with neither a title nor a description are still published.
    return NormalizedAlert(
        id=fingerprint(record, digest_algorithm),
        header_text=text.title,
        description_text=text.description,
        route_id=str(route_id),
    )


def build_snapshot(
    records: Iterable[Any], digest_algorithm: str = DEFAULT_DIGEST
) -> FeedSnapshot:
    """Normalise every record in source order into a new snapshot."""
    alerts: List[NormalizedAlert] = []
    for record in records:
        alert = normalize_alert(record, digest_algorithm)
        if alert is not None:
            alerts.append(alert)
    return FeedSnapshot(alerts=tuple(alerts))
