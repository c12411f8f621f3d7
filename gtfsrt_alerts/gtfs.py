"""GTFS-realtime encoding of feed snapshots."""

from __future__ import annotations

from google.protobuf import text_format
from google.transit import gtfs_realtime_pb2

from .models import FeedSnapshot

GTFS_REALTIME_VERSION = "1.0"


def _set_text(target: gtfs_realtime_pb2.TranslatedString, value: str) -> None:
    # Single translation in the feed's default language.
    target.translation.add().text = value


def build_feed_message(snapshot: FeedSnapshot) -> gtfs_realtime_pb2.FeedMessage:
    """Build a full-dataset alerts ``FeedMessage`` from ``snapshot``."""
    message = gtfs_realtime_pb2.FeedMessage()
    message.header.gtfs_realtime_version = GTFS_REALTIME_VERSION
    message.header.incrementality = gtfs_realtime_pb2.FeedHeader.FULL_DATASET
    message.header.timestamp = int(snapshot.created_at.timestamp())

    for alert in snapshot.alerts:
        entity = message.entity.add()
        entity.id = alert.id
        _set_text(entity.alert.header_text, alert.header_text)
        _set_text(entity.alert.description_text, alert.description_text)
        entity.alert.informed_entity.add().route_id = alert.route_id

    return message


def serialize_feed(snapshot: FeedSnapshot) -> bytes:
    return build_feed_message(snapshot).SerializeToString()


def format_feed_text(snapshot: FeedSnapshot) -> str:
    """Protobuf text format of the feed, for debugging."""
    return text_format.MessageToString(build_feed_message(snapshot), as_utf8=True)
