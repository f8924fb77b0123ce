"""Errors raised during a refresh cycle."""


class LeaveTimeError(Exception):
    """Base class for refresh cycle failures."""

    kind = "error"


class TransportError(LeaveTimeError):
    """Feed fetch failed or returned a non-success status."""

    kind = "transport"


class DecodeError(LeaveTimeError):
    """Feed bytes did not parse as a GTFS-Realtime FeedMessage."""

    kind = "decode"
