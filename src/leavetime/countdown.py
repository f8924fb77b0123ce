"""Live countdown over published results, between refreshes."""

import logging
import math
import time
from typing import TYPE_CHECKING, Dict, Optional, Set, Tuple, Union

from .advisor import leave_advice
from .models import (
    AdviceKind,
    ArrivalRecord,
    CountdownEntry,
    Direction,
    LeaveAdvice,
    LineError,
    LineResult,
    LineView,
)

if TYPE_CHECKING:
    from .tracker import ResultStore

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def format_time_string(seconds: float, fallback_if_zero: str = "Arriving now") -> str:
    """Convert seconds to "Mm Ss"."""
    if not math.isfinite(seconds):
        return "N/A"
    if seconds <= 0:
        return fallback_if_zero

    s = math.floor(seconds)
    return f"{s // 60}m {s % 60}s"


def format_countdown(direction: Direction, remaining_ms: Optional[int]) -> str:
    seconds = math.inf if remaining_ms is None else remaining_ms / 1000
    return f"{direction.label}: Arrives in {format_time_string(seconds)}"


def format_advice(advice: Optional[LeaveAdvice]) -> Optional[str]:
    """Rider-facing text for a LeaveAdvice."""
    if advice is None:
        return None
    if advice.kind is AdviceKind.NO_DATA:
        return "No inbound trains available."
    if advice.kind is AdviceKind.TOO_LATE:
        return "If you run, you might make it!"
    plural = "" if advice.minutes == 1 else "s"
    return f"Leave in the next {advice.minutes} minute{plural}"


class CountdownUpdater:
    """
    Recomputes remaining time, visibility and advice for published results.

    Never fetches, re-sorts or changes which records belong to a result.
    A record that has been hidden once stays hidden until the line's next
    refresh publishes a new generation.
    """

    def __init__(self, store: "ResultStore"):
        self.store = store
        # line name -> (generation, {(direction, index)})
        self._hidden: Dict[str, Tuple[int, Set[Tuple[Direction, int]]]] = {}

    def tick(self, now: Optional[int] = None) -> Dict[str, Union[LineView, LineError]]:
        """
        Build countdown views for every published line.

        Args:
            now: Current time in ms since epoch. Defaults to the wall clock.

        Returns:
            Mapping of line name to LineView, or the published LineError.
        """
        if now is None:
            now = now_ms()

        views: Dict[str, Union[LineView, LineError]] = {}
        for name, published in self.store.snapshot().items():
            if isinstance(published, LineError):
                self._hidden.pop(name, None)
                views[name] = published
            else:
                views[name] = self._view(name, published, now)
        return views

    def _view(self, name: str, result: LineResult, now: int) -> LineView:
        generation, hidden = self._hidden.get(name, (None, None))
        if generation != result.generation:
            hidden = set()
            self._hidden[name] = (result.generation, hidden)

        inbound = tuple(self._entry(r, i, now, hidden) for i, r in enumerate(result.inbound))
        outbound = tuple(self._entry(r, i, now, hidden) for i, r in enumerate(result.outbound))

        advice = None
        if result.line.walk_minutes is not None:
            visible = [e.record for e in inbound if e.visible]
            advice = leave_advice(visible, result.line.walk_minutes, now)

        return LineView(
            result=result,
            inbound=inbound,
            outbound=outbound,
            advice=advice,
            advice_text=format_advice(advice),
            now_ms=now,
        )

    @staticmethod
    def _entry(
        record: ArrivalRecord,
        index: int,
        now: int,
        hidden: Set[Tuple[Direction, int]],
    ) -> CountdownEntry:
        key = (record.direction, index)
        remaining = None if record.arrival_ms is None else record.arrival_ms - now

        if key in hidden:
            visible = False
        else:
            visible = remaining is not None and remaining / 60000 >= record.hide_threshold
            if not visible:
                hidden.add(key)
                logger.debug(f"Hiding {record.direction.label} arrival {record.trip_id}")

        return CountdownEntry(
            record=record,
            remaining_ms=remaining,
            visible=visible,
            text=format_countdown(record.direction, remaining),
        )
