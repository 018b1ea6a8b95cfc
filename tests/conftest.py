"""Shared fixtures for podmirror tests."""

import shutil
from collections.abc import Callable
from pathlib import Path
from xml.sax.saxutils import escape

import httpx
import pytest

from podmirror.sync.backend import MediaBackend, MediaResult


def build_rss(items: list[dict]) -> bytes:
    """Build an RSS 2.0 document; keys set to None are left out of an item."""
    parts = []
    for item in items:
        fields = []
        if item.get("title") is not None:
            fields.append(f"<title>{escape(item['title'])}</title>")
        if item.get("pub_date") is not None:
            fields.append(f"<pubDate>{item['pub_date']}</pubDate>")
        if item.get("url") is not None:
            kind = item.get("type", "audio/mpeg")
            fields.append(
                f'<enclosure url="{escape(item["url"])}" length="1" type="{kind}"/>'
            )
        parts.append(f"<item>{''.join(fields)}</item>")

    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Feed</title>'
        "<link>https://example.com</link><description>Test</description>"
        f"{''.join(parts)}</channel></rss>"
    ).encode()


class FakeBackend(MediaBackend):
    """MediaBackend that writes placeholder files and records its calls."""

    def __init__(self) -> None:
        self.downloads: list[tuple[str, Path]] = []
        self.transcodes: list[tuple[Path, Path, float]] = []
        self.failing_downloads: set[str] = set()
        self.fail_transcode = False

    async def download(self, url: str, dest: Path) -> MediaResult:
        self.downloads.append((url, dest))
        if url in self.failing_downloads:
            return MediaResult(success=False, output="HTTP 404")
        dest.write_bytes(f"audio from {url}".encode())
        return MediaResult(success=True)

    async def transcode(self, src: Path, dest: Path, speed: float) -> MediaResult:
        self.transcodes.append((src, dest, speed))
        if self.fail_transcode:
            return MediaResult(success=False, output="ffmpeg exited with status 1")
        shutil.copyfile(src, dest)
        return MediaResult(success=True)

    @property
    def downloaded_urls(self) -> list[str]:
        return [url for url, _ in self.downloads]


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Fresh fake media backend."""
    return FakeBackend()


@pytest.fixture
def rss() -> Callable[[list[dict]], bytes]:
    """RSS document builder."""
    return build_rss


@pytest.fixture
def feed_client() -> Callable[[dict[str, bytes | int]], httpx.AsyncClient]:
    """Factory for an AsyncClient serving canned feeds.

    Values are feed bodies, or an int to answer with that HTTP status.
    Unknown URLs get a 404.
    """

    def make(feeds: dict[str, bytes | int]) -> httpx.AsyncClient:
        def handler(request: httpx.Request) -> httpx.Response:
            body = feeds.get(str(request.url), 404)
            if isinstance(body, int):
                return httpx.Response(body)
            return httpx.Response(200, content=body)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return make


@pytest.fixture
def sample_config_dict() -> dict:
    """Configuration document with one playlist and one podcast set."""
    return {
        "playlists": [
            {"name": "Running", "url": "https://open.spotify.com/playlist/abc"}
        ],
        "podcasts": [
            {
                "name": "Commute",
                "podcasts": [
                    {
                        "name": "My Show",
                        "url": "https://example.com/show.rss",
                        "keep_latest": 2,
                        "playback_speed": "1.5",
                    },
                    {
                        "name": "Other Show",
                        "url": "https://example.com/other.rss",
                        "keep_latest": 1,
                        "playback_speed": 1.0,
                    },
                ],
            }
        ],
    }
