"""GTFS-Realtime snapshot decoder."""

import logging
from typing import List, Optional

from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.transit import gtfs_realtime_pb2

from .errors import DecodeError
from .models import RawStopTimeUpdate

logger = logging.getLogger(__name__)


def _event_time(stop_time_update, field: str) -> Optional[int]:
    """Return the event time for "arrival" or "departure", or None if unset."""
    if not stop_time_update.HasField(field):
        return None
    event = getattr(stop_time_update, field)
    # A zero timestamp carries no information
    if not event.HasField("time") or event.time == 0:
        return None
    return event.time


def decode_feed(feed_data: bytes) -> List[RawStopTimeUpdate]:
    """
    Decode a GTFS-Realtime feed into a flat list of stop-time updates.

    Args:
        feed_data: Raw protobuf bytes.

    Returns:
        RawStopTimeUpdate objects in feed order (entity order, then stop order).

    Raises:
        DecodeError: If the bytes are not a valid FeedMessage.
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(feed_data)
    except (ProtobufDecodeError, ValueError) as e:
        raise DecodeError(f"Invalid GTFS-Realtime feed: {e}") from e

    updates: List[RawStopTimeUpdate] = []

    for entity in feed.entity:
        if not entity.HasField("trip_update"):
            continue

        trip_update = entity.trip_update
        trip = trip_update.trip

        for stop_time_update in trip_update.stop_time_update:
            updates.append(
                RawStopTimeUpdate(
                    stop_id=stop_time_update.stop_id,
                    arrival=_event_time(stop_time_update, "arrival"),
                    departure=_event_time(stop_time_update, "departure"),
                    entity_id=entity.id,
                    trip_id=trip.trip_id or None,
                    route_id=trip.route_id or None,
                )
            )

    logger.debug(f"Decoded {len(updates)} stop-time updates from {len(feed.entity)} entities")
    return updates
