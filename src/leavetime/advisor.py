"""Leave-time advice from the next inbound arrival."""

import math
from typing import Optional, Sequence

from .aggregator import minutes_until
from .models import ArrivalRecord, LeaveAdvice


def leave_advice(
    inbound: Sequence[ArrivalRecord],
    walk_minutes: Optional[float],
    now_ms: int,
) -> Optional[LeaveAdvice]:
    """
    Work out when to leave to catch the first inbound train.

    Args:
        inbound: Thresholded inbound arrivals, soonest first.
        walk_minutes: Minutes needed to reach the platform. None means the
            line does not give advice.
        now_ms: Current time in ms since epoch.

    Returns:
        LeaveAdvice, or None if the line has no walk-time budget.
    """
    if walk_minutes is None:
        return None

    first = next((r for r in inbound if r.arrival_ms is not None), None)
    if first is None:
        return LeaveAdvice.no_data()

    leave_min = minutes_until(first.arrival_ms, now_ms) - walk_minutes
    if leave_min <= 0:
        return LeaveAdvice.too_late()
    return LeaveAdvice.leave_by(math.ceil(leave_min))
