"""MTA GTFS-Realtime feed fetcher."""

import logging
import threading
from typing import List, Optional

import requests

from .errors import TransportError

logger = logging.getLogger(__name__)

# MTA GTFS-Realtime feed URLs (subway only)
MTA_FEEDS = {
    "1234567": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs",  # 1-7, S
    "ace": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-ace",
    "bdfm": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-bdfm",
    "g": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-g",
    "jz": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-jz",
    "nqrw": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-nqrw",
    "l": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-l",
    "si": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-si",
}


def resolve_feed_url(feed: str) -> str:
    """Map a feed key to its URL; full URLs pass through unchanged."""
    if feed in MTA_FEEDS:
        return MTA_FEEDS[feed]
    if feed.startswith(("http://", "https://")):
        return feed
    raise ValueError(f"Unknown feed '{feed}'")


class MTAClient:
    """Fetches raw GTFS-Realtime feeds from the MTA API."""

    def __init__(self, api_key: Optional[str] = None, timeout: float = 10):
        """
        Initialize the MTA client.

        Args:
            api_key: Optional MTA API key, sent as the x-api-key header.
            timeout: Request timeout in seconds.
        """
        self.api_key = api_key
        self.timeout = timeout
        # One session per worker thread
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._lock = threading.Lock()

    def _get_session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def fetch_feed(self, feed: str) -> bytes:
        """
        Fetch one GTFS-Realtime feed.

        Args:
            feed: Feed key from MTA_FEEDS or a full URL.

        Returns:
            Raw protobuf bytes.

        Raises:
            TransportError: If the request fails or returns a non-success status.
        """
        feed_url = resolve_feed_url(feed)
        headers = {"x-api-key": self.api_key} if self.api_key else {}

        logger.debug(f"Fetching {feed_url}")
        try:
            response = self._get_session().get(feed_url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {feed_url}: {e}")
            raise TransportError(f"Network response was not ok for feed: {feed_url}") from e

        return response.content

    def close(self) -> None:
        """Close the HTTP sessions opened by worker threads."""
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
