"""Example usage of LiveBoard: print arrivals and leave advice to the terminal."""

import asyncio
import logging
import sys
from pathlib import Path

# Add src to path so we can import leavetime
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from leavetime.config import DEFAULT_LINES, get_api_key, load_lines
from leavetime.models import LineError
from leavetime.mta_client import MTAClient
from leavetime.scheduler import LiveBoard
from leavetime.tracker import LineTracker

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def print_views(views):
    """Print one countdown tick for every line."""
    print(f"\n{'='*70}")
    for name, view in views.items():
        print(name)
        if isinstance(view, LineError):
            print(f"  Error fetching data ({view.kind}): {view.message}")
            continue

        if view.advice_text:
            print(f"  >> {view.advice_text}")
        for entry in view.inbound + view.outbound:
            if entry.visible:
                print(f"  {entry.text}")
        if not view.inbound and not view.outbound:
            print("  No arrivals found")
    print(f"{'='*70}")


async def run(config_path=None):
    lines = load_lines(config_path) if config_path else DEFAULT_LINES
    tracker = LineTracker(lines, client=MTAClient(api_key=get_api_key()))
    board = LiveBoard(tracker, countdown_interval=5, on_tick=print_views)

    await board.start()
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await board.stop()
        tracker.cleanup()


if __name__ == "__main__":
    try:
        asyncio.run(run(sys.argv[1] if len(sys.argv) > 1 else None))
    except KeyboardInterrupt:
        print("\nGoodbye!")
