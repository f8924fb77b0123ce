"""Tracked line configuration."""

import logging
import os
from typing import List, Optional

import yaml

from .models import TrackedLine

logger = logging.getLogger(__name__)

# How often feeds are fetched, and how often countdowns are recomputed
FETCH_INTERVAL_SECONDS = 15
COUNTDOWN_INTERVAL_SECONDS = 1

API_KEY_ENV = "MTA_API_KEY"

DEFAULT_LINES = [
    TrackedLine(
        feed="1234567",
        station_code="709",  # 82 St-Jackson Hts
        name="7 Train at 82nd St – Jackson Heights",
        hide_threshold=8,
        walk_minutes=10,
    ),
    TrackedLine(
        feed="nqrw",
        station_code="G14",  # Jackson Hts-Roosevelt Av
        name="R Train at Roosevelt Ave",
        hide_threshold=14,
        walk_minutes=16,
    ),
    TrackedLine(
        feed="ace",
        station_code="G14",
        name="E Train at Roosevelt Ave",
        hide_threshold=14,
        walk_minutes=16,
    ),
    TrackedLine(
        feed="bdfm",
        station_code="G14",
        name="F Train at Roosevelt Ave",
        hide_threshold=14,
        walk_minutes=16,
    ),
]


def get_api_key() -> Optional[str]:
    """Read the MTA API key from the environment, if set."""
    return os.environ.get(API_KEY_ENV) or None


def _minutes(entry: dict, key: str, index: int) -> Optional[float]:
    """Read an optional minutes value; a blank YAML value counts as unset."""
    value = entry.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Line #{index + 1} has an invalid {key}: {value!r}") from None


def parse_lines(data) -> List[TrackedLine]:
    """
    Build TrackedLine objects from parsed YAML.

    Accepts either a list of line mappings or a mapping with a "lines" key.
    Each mapping needs feed, station_code and name; hide_threshold and
    walk_minutes are optional.

    Raises:
        ValueError: If the data is malformed.
    """
    if isinstance(data, dict):
        data = data.get("lines")
    if not isinstance(data, list) or not data:
        raise ValueError("Config must contain a non-empty list of lines")

    lines: List[TrackedLine] = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"Line #{i + 1} is not a mapping")
        missing = [k for k in ("feed", "station_code", "name") if not entry.get(k)]
        if missing:
            raise ValueError(f"Line #{i + 1} is missing {', '.join(missing)}")

        walk = _minutes(entry, "walk_minutes", i)
        threshold = _minutes(entry, "hide_threshold", i)
        lines.append(
            TrackedLine(
                feed=str(entry["feed"]),
                station_code=str(entry["station_code"]),
                name=str(entry["name"]),
                hide_threshold=threshold if threshold is not None else 0,
                walk_minutes=walk,
            )
        )

    names = [line.name for line in lines]
    if len(set(names)) != len(names):
        raise ValueError("Tracked line names must be unique")
    return lines


def load_lines(path: str) -> List[TrackedLine]:
    """Load tracked lines from a YAML file."""
    logger.info(f"Loading line configuration from {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    lines = parse_lines(data)
    logger.info(f"Loaded {len(lines)} tracked lines")
    return lines
