"""RSS feed fetching and parsing using httpx and feedparser."""

import logging
from typing import Any
from xml.sax import SAXParseException

import feedparser
import httpx

from podmirror.feeds.models import FeedItem
from podmirror.utils.errors import FeedParseError, FetchError

logger = logging.getLogger(__name__)


def _enclosure_url(entry: Any) -> str | None:
    """Pick the audio enclosure of an entry, falling back to the first one."""
    enclosures = entry.get("enclosures") or []
    for enclosure in enclosures:
        if enclosure.get("type", "").startswith("audio/") and enclosure.get("href"):
            return enclosure["href"]
    for enclosure in enclosures:
        if enclosure.get("href"):
            return enclosure["href"]
    return None


def parse_feed(content: bytes) -> list[FeedItem]:
    """Parse a syndication feed document into entries, in feed order.

    Args:
        content: Raw feed body

    Returns:
        List of unvalidated feed items

    Raises:
        FeedParseError: If the body is not a recognizable, well-formed feed
    """
    parsed = feedparser.parse(content)

    # An empty version means feedparser could not recognize a feed at all
    if not parsed.get("version"):
        reason = parsed.get("bozo_exception") or "unrecognized document"
        raise FeedParseError(f"Not a valid feed document: {reason}")

    # The loose fallback parser returns whatever entries precede broken XML.
    # Encoding overrides and similar bozo warnings are harmless.
    bozo_exception = parsed.get("bozo_exception")
    if parsed.get("bozo") and isinstance(bozo_exception, SAXParseException):
        raise FeedParseError(f"Malformed feed document: {bozo_exception}")

    return [
        FeedItem(
            title=entry.get("title"),
            published=entry.get("published"),
            enclosure_url=_enclosure_url(entry),
        )
        for entry in parsed.entries
    ]


class FeedFetcher:
    """Fetches podcast feeds and parses them into entries."""

    def __init__(
        self, client: httpx.AsyncClient | None = None, timeout: float = 30.0
    ) -> None:
        """Initialize the feed fetcher.

        Args:
            client: Optional shared HTTP client (one is created per call otherwise)
            timeout: HTTP request timeout in seconds
        """
        self.client = client
        self.timeout = timeout

    async def fetch(self, url: str) -> list[FeedItem]:
        """Fetch and parse the feed at url.

        Raises:
            FetchError: If the request fails or returns a non-success status
            FeedParseError: If the body is not a feed document
        """
        logger.debug("GET %s", url)
        try:
            if self.client is not None:
                response = await self.client.get(url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Feed request to {url} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch feed {url}: {e}") from e

        items = parse_feed(response.content)
        logger.debug("Parsed %d entries from %s", len(items), url)
        return items
