"""Human-readable views of a feed snapshot."""

from __future__ import annotations

from .models import FeedSnapshot
from .templating import get_environment


def build_alerts_html(snapshot: FeedSnapshot, feed_path: str | None = None) -> str:
    """Render the HTML status page for ``snapshot``."""
    template = get_environment().get_template("alerts.html.j2")
    return template.render(snapshot=snapshot, feed_path=feed_path)


def build_alerts_text(snapshot: FeedSnapshot) -> str:
    """Render a plain-text listing of ``snapshot``."""
    template = get_environment().get_template("alerts.txt.j2")
    return template.render(snapshot=snapshot)
