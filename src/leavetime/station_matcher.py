"""Select and classify stop-time updates for a tracked station."""

import logging
from typing import Iterable, List, Optional, Tuple

from .models import ArrivalRecord, Direction, RawStopTimeUpdate, TrackedLine

logger = logging.getLogger(__name__)

_SUFFIXES = {d.value: d for d in Direction}


def parse_stop_id(stop_id: str) -> Optional[Tuple[str, Direction]]:
    """
    Split a platform stop ID into station code and direction.

    "G14S" -> ("G14", INBOUND), "709N" -> ("709", OUTBOUND).
    Returns None for anything without a station code and an N/S suffix.
    """
    if not stop_id or len(stop_id) < 2:
        return None
    direction = _SUFFIXES.get(stop_id[-1])
    if direction is None:
        return None
    return stop_id[:-1], direction


def resolve_arrival_ms(update: RawStopTimeUpdate) -> Optional[int]:
    """Arrival time in ms, falling back to departure; None if neither is known."""
    if update.arrival is not None:
        return update.arrival * 1000
    if update.departure is not None:
        return update.departure * 1000
    return None


def match_station(
    updates: Iterable[RawStopTimeUpdate],
    line: TrackedLine,
) -> Tuple[List[ArrivalRecord], List[ArrivalRecord]]:
    """
    Build arrival records for one tracked station.

    Args:
        updates: Decoded stop-time updates, in feed order.
        line: The tracked line whose station code to match.

    Returns:
        (inbound, outbound) lists in feed order. Stop IDs for other stations,
        including ones that merely share a prefix, are dropped.
    """
    inbound: List[ArrivalRecord] = []
    outbound: List[ArrivalRecord] = []

    for update in updates:
        parsed = parse_stop_id(update.stop_id)
        if parsed is None:
            continue
        station_code, direction = parsed
        if station_code != line.station_code:
            continue

        record = ArrivalRecord(
            direction=direction,
            arrival_ms=resolve_arrival_ms(update),
            hide_threshold=line.hide_threshold,
            stop_id=update.stop_id,
            trip_id=update.trip_id,
            route_id=update.route_id,
        )
        if direction is Direction.INBOUND:
            inbound.append(record)
        else:
            outbound.append(record)

    if not inbound and not outbound:
        logger.debug(f"No updates for station {line.station_code} ({line.name})")
    return inbound, outbound
