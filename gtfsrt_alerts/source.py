"""Download of the agency's raw alert records."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_URL = "http://www3.septa.org/hackathon/Alerts/get_alert_data.php?req1=all"


class AlertSourceError(RuntimeError):
    """Raised when the alert source cannot be read."""


def download_alerts(url: str, timeout: float = 10.0) -> List[Dict[str, Any]]:
    """Fetch the JSON array of alert objects published at ``url``."""
    logger.debug("Downloading alerts from %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise AlertSourceError(f"Failed to download alerts from {url}: {exc}") from exc

    try:
        payload = response.json()
    except ValueError as exc:
        raise AlertSourceError(f"Alert source did not return valid JSON: {url}") from exc

    if not isinstance(payload, list):
        raise AlertSourceError("Alert source must return a JSON array.")

    logger.debug("Downloaded %d alert records", len(payload))
    return payload
