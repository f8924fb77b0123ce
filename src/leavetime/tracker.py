"""Refresh cycles and the published result set."""

import logging
import threading
from dataclasses import replace
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from .advisor import leave_advice
from .aggregator import aggregate
from .countdown import now_ms
from .errors import LeaveTimeError
from .feed_decoder import decode_feed
from .models import LineError, LineResult, Published, TrackedLine
from .mta_client import MTAClient, resolve_feed_url
from .station_matcher import match_station

logger = logging.getLogger(__name__)


def build_line_result(line: TrackedLine, feed_data: bytes, now: int) -> LineResult:
    """
    Turn one feed snapshot into a LineResult for a tracked line.

    Args:
        line: The tracked line.
        feed_data: Raw protobuf bytes for the line's feed.
        now: Evaluation time in ms since epoch.

    Raises:
        DecodeError: If the feed bytes are malformed.
    """
    updates = decode_feed(feed_data)
    inbound, outbound = match_station(updates, line)
    inbound, outbound = aggregate(inbound, outbound, now)

    return LineResult(
        line=line,
        inbound=inbound,
        outbound=outbound,
        advice=leave_advice(inbound, line.walk_minutes, now),
        generated_at_ms=now,
    )


class ResultStore:
    """
    Holds the latest published value per line.

    Values are frozen and replaced whole. Readers get an immutable snapshot
    of the entire set, so they never see a half-applied refresh.
    """

    def __init__(self):
        self._published: Mapping[str, Published] = MappingProxyType({})
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def publish(self, value: Published) -> Published:
        """Replace a line's published value, stamping the next generation."""
        name = value.line.name
        with self._lock:
            generation = self._generations.get(name, 0) + 1
            self._generations[name] = generation
            value = replace(value, generation=generation)
            published = dict(self._published)
            published[name] = value
            self._published = MappingProxyType(published)
        return value

    def get(self, name: str) -> Optional[Published]:
        return self._published.get(name)

    def snapshot(self) -> Mapping[str, Published]:
        return self._published


class LineTracker:
    """Runs refresh cycles for a set of tracked lines."""

    def __init__(
        self,
        lines: Sequence[TrackedLine],
        client: Optional[MTAClient] = None,
        store: Optional[ResultStore] = None,
    ):
        names = [line.name for line in lines]
        if len(set(names)) != len(names):
            raise ValueError("Tracked line names must be unique")
        for line in lines:
            resolve_feed_url(line.feed)

        self.lines: List[TrackedLine] = list(lines)
        self.client = client if client is not None else MTAClient()
        self.store = store if store is not None else ResultStore()

    def refresh_line(self, line: TrackedLine, now: Optional[int] = None) -> Published:
        """
        Fetch, decode, rank and publish one line.

        A failed fetch or decode publishes a LineError for this line only.

        Args:
            line: The tracked line to refresh.
            now: Evaluation time in ms; defaults to the clock after the fetch.

        Returns:
            The published LineResult or LineError.
        """
        try:
            feed_data = self.client.fetch_feed(line.feed)
            evaluated_at = now if now is not None else now_ms()
            value: Published = build_line_result(line, feed_data, evaluated_at)
            logger.debug(
                f"{line.name}: {len(value.inbound)} inbound, {len(value.outbound)} outbound"
            )
        except LeaveTimeError as e:
            logger.warning(f"Error fetching data for {line.name}: {e}")
            value = LineError(
                line=line,
                kind=e.kind,
                message=str(e),
                generated_at_ms=now if now is not None else now_ms(),
            )
        except Exception as e:
            logger.error(f"Unexpected error refreshing {line.name}: {e}", exc_info=True)
            value = LineError(
                line=line,
                kind=LeaveTimeError.kind,
                message=str(e),
                generated_at_ms=now if now is not None else now_ms(),
            )

        return self.store.publish(value)

    def refresh_all(self, now: Optional[int] = None) -> Mapping[str, Published]:
        """Refresh every line in order and return the published set."""
        for line in self.lines:
            self.refresh_line(line, now)
        return self.store.snapshot()

    def cleanup(self) -> None:
        """Release resources."""
        self.client.close()
        logger.info("Cleaned up tracker resources")
