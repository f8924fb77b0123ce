"""Tests for refresh cycles, the result store and the live board."""

import asyncio
import sys
import time
import unittest
from pathlib import Path
from unittest.mock import MagicMock

# Add src to path so we can import leavetime
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from feeds import MALFORMED_FEED, NOW_MS, NOW_S, make_feed

from leavetime.errors import TransportError
from leavetime.models import LeaveAdvice, LineError, LineResult, LineView, TrackedLine
from leavetime.mta_client import MTAClient
from leavetime.scheduler import LiveBoard
from leavetime.tracker import LineTracker, ResultStore

R_LINE = TrackedLine(feed="nqrw", station_code="G14", name="R", hide_threshold=14, walk_minutes=16)
E_LINE = TrackedLine(feed="ace", station_code="G14", name="E", hide_threshold=14, walk_minutes=16)
F_LINE = TrackedLine(feed="bdfm", station_code="G14", name="F", hide_threshold=14)

GOOD_FEED = make_feed([("T1", "E", [("G14S", NOW_S + 1800, None), ("G14N", NOW_S + 900, None)])])


def mock_client(feeds):
    """MTAClient double returning bytes (or raising, or calling) per feed key."""
    client = MagicMock(spec=MTAClient)

    def fetch_feed(feed):
        value = feeds[feed]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value()
        return value

    client.fetch_feed.side_effect = fetch_feed
    return client


class TestResultStore(unittest.TestCase):
    """Test wholesale publication."""

    def test_publish_replaces_whole_value_and_bumps_generation(self):
        store = ResultStore()
        first = store.publish(LineResult(R_LINE, (), (), None, NOW_MS))
        before = store.snapshot()
        second = store.publish(LineResult(R_LINE, (), (), None, NOW_MS + 1000))

        self.assertEqual(first.generation, 1)
        self.assertEqual(second.generation, 2)
        self.assertIs(store.get("R"), second)
        # Earlier snapshots are unaffected
        self.assertIs(before["R"], first)

    def test_snapshot_is_read_only(self):
        store = ResultStore()
        store.publish(LineResult(R_LINE, (), (), None, NOW_MS))
        with self.assertRaises(TypeError):
            store.snapshot()["R"] = None


class TestLineTracker(unittest.TestCase):
    """Test per-line refresh cycles."""

    def test_refresh_publishes_result(self):
        tracker = LineTracker([E_LINE], client=mock_client({"ace": GOOD_FEED}))

        result = tracker.refresh_line(E_LINE, now=NOW_MS)

        self.assertIsInstance(result, LineResult)
        self.assertEqual(len(result.inbound), 1)
        self.assertEqual(len(result.outbound), 1)
        self.assertEqual(result.advice, LeaveAdvice.leave_by(14))
        self.assertIs(tracker.store.get("E"), result)

    def test_errors_are_scoped_to_one_line(self):
        client = mock_client({
            "nqrw": TransportError("503"),
            "ace": GOOD_FEED,
            "bdfm": MALFORMED_FEED,
        })
        tracker = LineTracker([R_LINE, E_LINE, F_LINE], client=client)

        published = tracker.refresh_all(now=NOW_MS)

        self.assertIsInstance(published["R"], LineError)
        self.assertEqual(published["R"].kind, "transport")
        self.assertIsInstance(published["E"], LineResult)
        self.assertIsInstance(published["F"], LineError)
        self.assertEqual(published["F"].kind, "decode")

    def test_error_replaces_previous_result(self):
        feeds = {"ace": GOOD_FEED}
        tracker = LineTracker([E_LINE], client=mock_client(feeds))
        tracker.refresh_line(E_LINE, now=NOW_MS)

        feeds["ace"] = TransportError("timeout")
        error = tracker.refresh_line(E_LINE, now=NOW_MS)

        self.assertIsInstance(tracker.store.get("E"), LineError)
        self.assertEqual(error.generation, 2)

    def test_unexpected_error_publishes_error_marker(self):
        client = mock_client({"nqrw": RuntimeError("boom"), "ace": GOOD_FEED})
        tracker = LineTracker([R_LINE, E_LINE], client=client)

        with self.assertLogs("leavetime.tracker", level="ERROR"):
            published = tracker.refresh_all(now=NOW_MS)

        self.assertIsInstance(published["R"], LineError)
        self.assertEqual(published["R"].kind, "error")
        self.assertEqual(published["R"].message, "boom")
        self.assertIsInstance(published["E"], LineResult)

    def test_no_match_is_empty_result(self):
        feed = make_feed([("T1", "R", [("R01N", NOW_S + 900, None)])])
        tracker = LineTracker([R_LINE], client=mock_client({"nqrw": feed}))

        result = tracker.refresh_line(R_LINE, now=NOW_MS)

        self.assertIsInstance(result, LineResult)
        self.assertEqual(result.inbound, ())
        self.assertEqual(result.advice, LeaveAdvice.no_data())

    def test_duplicate_line_names_rejected(self):
        with self.assertRaises(ValueError):
            LineTracker([R_LINE, R_LINE], client=mock_client({}))

    def test_unknown_feed_rejected(self):
        line = TrackedLine(feed="nope", station_code="G14", name="X")
        with self.assertRaises(ValueError):
            LineTracker([line], client=mock_client({}))


class TestLiveBoard(unittest.IsolatedAsyncioTestCase):
    """Test the refresh and countdown tasks."""

    def test_refresh_interval_must_not_be_shorter(self):
        tracker = LineTracker([E_LINE], client=mock_client({}))
        with self.assertRaises(ValueError):
            LiveBoard(tracker, refresh_interval=1, countdown_interval=5)

    async def test_refresh_isolates_failing_line(self):
        client = mock_client({"nqrw": TransportError("503"), "ace": GOOD_FEED, "bdfm": GOOD_FEED})
        tracker = LineTracker([R_LINE, E_LINE, F_LINE], client=client)
        on_refresh = MagicMock()
        board = LiveBoard(tracker, on_refresh=on_refresh)

        published = await board.refresh()

        self.assertIsInstance(published["R"], LineError)
        self.assertIsInstance(published["E"], LineResult)
        self.assertIsInstance(published["F"], LineResult)
        # Notified once per line as each publishes
        self.assertEqual(on_refresh.call_count, 3)
        on_refresh.assert_called_with(published)

    async def test_tick_reads_published_results(self):
        far_feed = make_feed([("T1", "E", [("G14S", 4_000_000_000, None)])])
        tracker = LineTracker([E_LINE], client=mock_client({"ace": far_feed}))
        board = LiveBoard(tracker)

        await board.refresh()
        views = board.tick()

        self.assertIsInstance(views["E"], LineView)
        self.assertTrue(views["E"].inbound[0].visible)

    async def test_refresh_notifies_after_unexpected_error(self):
        client = mock_client({"nqrw": RuntimeError("boom"), "ace": GOOD_FEED})
        tracker = LineTracker([R_LINE, E_LINE], client=client)
        on_refresh = MagicMock()
        board = LiveBoard(tracker, on_refresh=on_refresh)

        published = await board.refresh()

        self.assertEqual(published["R"].kind, "error")
        self.assertIsInstance(published["E"], LineResult)
        self.assertEqual(on_refresh.call_count, 2)

    async def test_slow_line_does_not_delay_others(self):
        def slow_feed():
            time.sleep(1.0)
            return GOOD_FEED

        client = mock_client({"nqrw": slow_feed, "ace": GOOD_FEED})
        tracker = LineTracker([R_LINE, E_LINE], client=client)
        board = LiveBoard(tracker, refresh_interval=0.1, countdown_interval=0.05)

        await board.start()
        await asyncio.sleep(0.55)
        published = tracker.store.snapshot()
        await board.stop()

        fetched = [c.args[0] for c in client.fetch_feed.call_args_list]
        self.assertGreaterEqual(fetched.count("ace"), 4)
        self.assertEqual(fetched.count("nqrw"), 1)
        self.assertIn("E", published)
        self.assertNotIn("R", published)

    async def test_start_and_stop(self):
        tracker = LineTracker([E_LINE], client=mock_client({"ace": GOOD_FEED}))
        on_refresh = MagicMock()
        on_tick = MagicMock()
        board = LiveBoard(
            tracker,
            refresh_interval=60,
            countdown_interval=0.01,
            on_refresh=on_refresh,
            on_tick=on_tick,
        )

        await board.start()
        self.assertTrue(board.running)
        await asyncio.sleep(0.2)
        await board.stop()

        self.assertFalse(board.running)
        on_refresh.assert_called_once()
        self.assertGreater(on_tick.call_count, 1)


if __name__ == "__main__":
    unittest.main()
