"""Rank, threshold and cap matched arrivals."""

from typing import Iterable, List, Tuple

from .models import ArrivalRecord

MAX_ARRIVALS = 3  # Per direction


def minutes_until(arrival_ms: int, now_ms: int) -> float:
    return (arrival_ms - now_ms) / 60000


def is_catchable(record: ArrivalRecord, now_ms: int) -> bool:
    """True if the record arrives at least hide_threshold minutes from now."""
    if record.arrival_ms is None:
        return False
    return minutes_until(record.arrival_ms, now_ms) >= record.hide_threshold


def rank(
    records: Iterable[ArrivalRecord],
    now_ms: int,
    limit: int = MAX_ARRIVALS,
) -> Tuple[ArrivalRecord, ...]:
    """
    Sort records by arrival, drop ones too soon to catch, keep the first few.

    The sort is stable, so equal arrival times keep their feed order.
    Unknown arrivals sort last and never pass the threshold.
    """
    ordered: List[ArrivalRecord] = sorted(records, key=lambda r: r.sort_key)
    kept = [r for r in ordered if is_catchable(r, now_ms)]
    return tuple(kept[:limit])


def aggregate(
    inbound: Iterable[ArrivalRecord],
    outbound: Iterable[ArrivalRecord],
    now_ms: int,
) -> Tuple[Tuple[ArrivalRecord, ...], Tuple[ArrivalRecord, ...]]:
    """Rank both directions for a line."""
    return rank(inbound, now_ms), rank(outbound, now_ms)
