"""Data models for the leave-time board."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class Direction(Enum):
    """Travel direction, encoded as the stop ID suffix."""
    INBOUND = "S"  # Manhattan-bound
    OUTBOUND = "N"  # Queens-bound

    @property
    def label(self) -> str:
        return "Inbound" if self is Direction.INBOUND else "Outbound"


@dataclass(frozen=True)
class TrackedLine:
    """A line/station pair shown on the board."""
    feed: str  # Key in MTA_FEEDS or a full feed URL
    station_code: str  # e.g. "G14", without direction suffix
    name: str  # Display name, also the key for published results
    hide_threshold: float = 0  # Minutes; sooner arrivals are hidden
    walk_minutes: Optional[float] = None  # Walk-time budget for leave advice

    def __post_init__(self):
        if not self.station_code:
            raise ValueError(f"Line '{self.name}' has no station code")
        if self.hide_threshold < 0:
            raise ValueError(f"Line '{self.name}' has a negative hide threshold")
        if self.walk_minutes is not None and self.walk_minutes < 0:
            raise ValueError(f"Line '{self.name}' has a negative walk time")


@dataclass(frozen=True)
class RawStopTimeUpdate:
    """One stop-time update from a decoded feed snapshot."""
    stop_id: str
    arrival: Optional[int] = None  # Unix timestamp (seconds)
    departure: Optional[int] = None  # Unix timestamp (seconds)
    entity_id: str = ""
    trip_id: Optional[str] = None
    route_id: Optional[str] = None


@dataclass(frozen=True)
class ArrivalRecord:
    """A matched arrival at a tracked station."""
    direction: Direction
    arrival_ms: Optional[int]  # None when the feed gave no time
    hide_threshold: float
    stop_id: str = ""
    trip_id: Optional[str] = None
    route_id: Optional[str] = None

    @property
    def sort_key(self) -> float:
        return float("inf") if self.arrival_ms is None else self.arrival_ms


class AdviceKind(Enum):
    NO_DATA = "no_data"
    TOO_LATE = "too_late"
    LEAVE_BY = "leave_by"


@dataclass(frozen=True)
class LeaveAdvice:
    """When to leave for the next inbound train."""
    kind: AdviceKind
    minutes: Optional[int] = None  # Only set for LEAVE_BY

    @classmethod
    def no_data(cls) -> "LeaveAdvice":
        return cls(AdviceKind.NO_DATA)

    @classmethod
    def too_late(cls) -> "LeaveAdvice":
        return cls(AdviceKind.TOO_LATE)

    @classmethod
    def leave_by(cls, minutes: int) -> "LeaveAdvice":
        if minutes <= 0:
            raise ValueError("minutes must be positive")
        return cls(AdviceKind.LEAVE_BY, minutes)


@dataclass(frozen=True)
class LineResult:
    """Arrivals and advice published for one line by one refresh cycle."""
    line: TrackedLine
    inbound: Tuple[ArrivalRecord, ...]
    outbound: Tuple[ArrivalRecord, ...]
    advice: Optional[LeaveAdvice]
    generated_at_ms: int
    generation: int = 0


@dataclass(frozen=True)
class LineError:
    """Published in place of a LineResult when a refresh cycle fails."""
    line: TrackedLine
    kind: str  # "transport", "decode" or "error"
    message: str
    generated_at_ms: int
    generation: int = 0


@dataclass(frozen=True)
class CountdownEntry:
    """Time-dependent view of one published arrival."""
    record: ArrivalRecord
    remaining_ms: Optional[int]
    visible: bool
    text: str


@dataclass(frozen=True)
class LineView:
    """Countdown view of a LineResult at one instant."""
    result: LineResult
    inbound: Tuple[CountdownEntry, ...]
    outbound: Tuple[CountdownEntry, ...]
    advice: Optional[LeaveAdvice]
    advice_text: Optional[str]
    now_ms: int


Published = Union[LineResult, LineError]
