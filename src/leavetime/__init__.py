"""leavetime - Live subway arrivals and leave-time advice from MTA GTFS-Realtime feeds."""

__version__ = "0.1.0"

from .models import (
    AdviceKind,
    ArrivalRecord,
    CountdownEntry,
    Direction,
    LeaveAdvice,
    LineError,
    LineResult,
    LineView,
    RawStopTimeUpdate,
    TrackedLine,
)
from .errors import DecodeError, LeaveTimeError, TransportError
from .feed_decoder import decode_feed
from .station_matcher import match_station, parse_stop_id, resolve_arrival_ms
from .aggregator import MAX_ARRIVALS, aggregate, rank
from .advisor import leave_advice
from .countdown import CountdownUpdater, format_advice
from .mta_client import MTAClient
from .tracker import LineTracker, ResultStore, build_line_result
from .scheduler import LiveBoard

__all__ = [
    "LiveBoard",
    "LineTracker",
    "ResultStore",
    "CountdownUpdater",
    "MTAClient",
    "build_line_result",
    "decode_feed",
    "match_station",
    "parse_stop_id",
    "resolve_arrival_ms",
    "rank",
    "aggregate",
    "MAX_ARRIVALS",
    "leave_advice",
    "format_advice",
    "TrackedLine",
    "RawStopTimeUpdate",
    "Direction",
    "ArrivalRecord",
    "AdviceKind",
    "LeaveAdvice",
    "LineResult",
    "LineError",
    "CountdownEntry",
    "LineView",
    "LeaveTimeError",
    "TransportError",
    "DecodeError",
]
