"""Tests for sync run orchestration."""

import io
import os
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console

from podmirror.config.schema import Playlist, Podcast, PodcastSet, SyncConfig
from podmirror.feeds.parser import FeedFetcher
from podmirror.sync.engine import SyncEngine

SHOW_URL = "https://example.com/show.rss"
OTHER_URL = "https://example.com/other.rss"
JAN_1 = "Mon, 01 Jan 2024 00:00:00 +0000"
JAN_1_TS = 1704067200
JAN_2 = "Tue, 02 Jan 2024 00:00:00 +0000"
JAN_2_TS = 1704153600


def episodes(count: int) -> list[dict]:
    """Feed items Ep1..EpN, newest first."""
    return [
        {
            "title": f"Ep{i}",
            "pub_date": f"{i:02d} Jan 2024 00:00:00 +0000",
            "url": f"https://cdn.example.com/ep{i}.mp3",
        }
        for i in range(1, count + 1)
    ]


def podcast_set(*podcasts: Podcast, name: str = "Commute") -> PodcastSet:
    return PodcastSet(name=name, podcasts=list(podcasts))


def show(keep_latest: int = 2, name: str = "My Show", url: str = SHOW_URL) -> Podcast:
    return Podcast(name=name, url=url, keep_latest=keep_latest, playback_speed=1.5)


@pytest.fixture
def make_engine(tmp_path: Path, fake_backend, feed_client: Callable) -> Callable[..., SyncEngine]:
    """Engine factory writing into tmp_path/out with canned feeds."""

    def make(feeds: dict, **kwargs) -> SyncEngine:
        return SyncEngine(
            output_dir=tmp_path / "out",
            backend=fake_backend,
            fetcher=FeedFetcher(client=feed_client(feeds)),
            console=Console(file=io.StringIO()),
            **kwargs,
        )

    return make


def write_episode(directory: Path, name: str, timestamp: int) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(b"old audio")
    os.utime(path, (timestamp, timestamp))
    return path


class TestSyncPodcastSet:
    """Tests for SyncEngine.sync_podcast_set."""

    @pytest.mark.asyncio
    async def test_keep_latest_window_downloads(
        self, tmp_path: Path, make_engine, fake_backend, rss: Callable
    ) -> None:
        """Test only the newest keep_latest episodes are downloaded into an empty dir."""
        engine = make_engine({SHOW_URL: rss(episodes(5))})

        report = await engine.sync_podcast_set(podcast_set(show(keep_latest=2)), tmp_path)

        assert fake_backend.downloaded_urls == [
            "https://cdn.example.com/ep1.mp3",
            "https://cdn.example.com/ep2.mp3",
        ]
        set_dir = tmp_path / "out" / "Commute"
        assert sorted(p.name for p in set_dir.iterdir()) == [
            "My Show - Ep1.mp3",
            "My Show - Ep2.mp3",
        ]
        assert report.ok
        assert report.podcasts[0].downloaded == ["My Show - Ep1.mp3", "My Show - Ep2.mp3"]

    @pytest.mark.asyncio
    async def test_downloaded_mtime_is_pub_time(
        self, tmp_path: Path, make_engine, rss: Callable
    ) -> None:
        """Test a new episode's file mtime equals its publication second."""
        engine = make_engine({SHOW_URL: rss(episodes(1))})

        await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        path = tmp_path / "out" / "Commute" / "My Show - Ep1.mp3"
        assert path.stat().st_mtime == JAN_1_TS

    @pytest.mark.asyncio
    async def test_progress_lines(self, tmp_path: Path, make_engine, rss: Callable) -> None:
        """Test the reason and each pipeline stage are printed per episode."""
        engine = make_engine({SHOW_URL: rss(episodes(1))})

        await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        output = engine.console.file.getvalue()
        assert "My Show - Ep1.mp3 is missing" in output
        assert "Downloading My Show - Ep1.mp3" in output
        assert "Transcoding My Show - Ep1.mp3" in output

    @pytest.mark.asyncio
    async def test_matching_mtime_skips_download(
        self, tmp_path: Path, make_engine, fake_backend, rss: Callable
    ) -> None:
        """Test an existing file with the same publication second isn't downloaded."""
        write_episode(tmp_path / "out" / "Commute", "My Show - Ep1.mp3", JAN_1_TS)
        engine = make_engine({SHOW_URL: rss([{"title": "Ep1", "pub_date": JAN_1, "url": "https://cdn/1.mp3"}])})

        report = await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        assert fake_backend.downloads == []
        assert report.podcasts[0].up_to_date == ["My Show - Ep1.mp3"]

    @pytest.mark.asyncio
    async def test_changed_pub_date_redownloads(
        self, tmp_path: Path, make_engine, fake_backend, rss: Callable
    ) -> None:
        """Test a corrected publication date redownloads and restamps the file."""
        path = write_episode(tmp_path / "out" / "Commute", "My Show - Ep1.mp3", JAN_1_TS)
        engine = make_engine({SHOW_URL: rss([{"title": "Ep1", "pub_date": JAN_2, "url": "https://cdn/1.mp3"}])})

        await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        assert fake_backend.downloaded_urls == ["https://cdn/1.mp3"]
        assert path.read_bytes() == b"audio from https://cdn/1.mp3"
        assert path.stat().st_mtime == JAN_2_TS

    @pytest.mark.asyncio
    async def test_second_run_is_idempotent(
        self, tmp_path: Path, make_engine, fake_backend, rss: Callable
    ) -> None:
        """Test re-running a sync performs no downloads."""
        engine = make_engine({SHOW_URL: rss(episodes(3))})

        await engine.sync_podcast_set(podcast_set(show(keep_latest=3)), tmp_path)
        assert len(fake_backend.downloads) == 3

        report = await engine.sync_podcast_set(podcast_set(show(keep_latest=3)), tmp_path)

        assert len(fake_backend.downloads) == 3
        assert len(report.podcasts[0].up_to_date) == 3

    @pytest.mark.asyncio
    async def test_invalid_episode_fails_podcast_not_sibling(
        self, tmp_path: Path, make_engine, fake_backend, rss: Callable
    ) -> None:
        """Test a missing publication date fails one podcast while its sibling completes."""
        engine = make_engine(
            {
                SHOW_URL: rss([{"title": "Ep1", "pub_date": None, "url": "https://cdn/1.mp3"}]),
                OTHER_URL: rss([{"title": "Other1", "pub_date": JAN_1, "url": "https://cdn/o1.mp3"}]),
            }
        )
        config = podcast_set(show(), show(name="Other Show", url=OTHER_URL))

        report = await engine.sync_podcast_set(config, tmp_path)

        broken, sibling = report.podcasts
        assert "publication date" in broken.error
        assert "Ep1" in broken.error
        assert sibling.ok
        assert sibling.downloaded == ["Other Show - Other1.mp3"]
        assert fake_backend.downloaded_urls == ["https://cdn/o1.mp3"]
        assert not report.ok

    @pytest.mark.asyncio
    async def test_feed_fetch_failure_recorded(
        self, tmp_path: Path, make_engine, rss: Callable
    ) -> None:
        """Test an HTTP error on the feed is a podcast-level failure."""
        engine = make_engine({SHOW_URL: 503})

        report = await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        assert "HTTP 503" in report.podcasts[0].error

    @pytest.mark.asyncio
    async def test_episode_download_failure_continues(
        self, tmp_path: Path, make_engine, fake_backend, rss: Callable
    ) -> None:
        """Test a failed media download skips only that episode."""
        fake_backend.failing_downloads.add("https://cdn.example.com/ep1.mp3")
        engine = make_engine({SHOW_URL: rss(episodes(2))})

        report = await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        podcast = report.podcasts[0]
        assert list(podcast.failed) == ["My Show - Ep1.mp3"]
        assert podcast.downloaded == ["My Show - Ep2.mp3"]
        assert "My Show - Ep1.mp3" not in report.expected
        assert "My Show - Ep2.mp3" in report.expected

    @pytest.mark.asyncio
    async def test_stale_files_reported_not_deleted(
        self, tmp_path: Path, make_engine, rss: Callable
    ) -> None:
        """Test files outside every window are reported but kept by default."""
        old = write_episode(tmp_path / "out" / "Commute", "My Show - Ep0.mp3", 1000)
        engine = make_engine({SHOW_URL: rss(episodes(1))})

        report = await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        assert report.stale == ["My Show - Ep0.mp3"]
        assert report.pruned == []
        assert old.exists()

    @pytest.mark.asyncio
    async def test_prune_deletes_stale_files(
        self, tmp_path: Path, make_engine, rss: Callable
    ) -> None:
        """Test pruning removes files that fell out of the window."""
        old = write_episode(tmp_path / "out" / "Commute", "My Show - Ep0.mp3", 1000)
        engine = make_engine({SHOW_URL: rss(episodes(1))}, prune=True)

        report = await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        assert report.pruned == ["My Show - Ep0.mp3"]
        assert not old.exists()
        assert (tmp_path / "out" / "Commute" / "My Show - Ep1.mp3").exists()

    @pytest.mark.asyncio
    async def test_prune_skipped_after_failure(
        self, tmp_path: Path, make_engine, rss: Callable
    ) -> None:
        """Test nothing is pruned when a podcast in the set failed."""
        kept = write_episode(tmp_path / "out" / "Commute", "Other Show - Old.mp3", 1000)
        engine = make_engine({SHOW_URL: rss(episodes(1)), OTHER_URL: 404}, prune=True)
        config = podcast_set(show(), show(name="Other Show", url=OTHER_URL))

        report = await engine.sync_podcast_set(config, tmp_path)

        assert report.stale == ["Other Show - Old.mp3"]
        assert report.pruned == []
        assert kept.exists()

    @pytest.mark.asyncio
    async def test_truncated_feed_prunes_nothing(
        self, tmp_path: Path, make_engine, rss: Callable
    ) -> None:
        """Test a cut-off feed fails the podcast and keeps in-window episodes."""
        set_dir = tmp_path / "out" / "Commute"
        for i in (1, 2, 3):
            write_episode(set_dir, f"My Show - Ep{i}.mp3", 1000)
        content = rss(episodes(3))
        truncated = content[: content.index(b"<item><title>Ep3")]
        engine = make_engine({SHOW_URL: truncated}, prune=True)

        report = await engine.sync_podcast_set(podcast_set(show(keep_latest=3)), tmp_path)

        assert not report.ok
        assert report.podcasts[0].error is not None
        assert report.pruned == []
        assert (set_dir / "My Show - Ep3.mp3").exists()

    @pytest.mark.asyncio
    async def test_dry_run_changes_nothing(
        self, tmp_path: Path, make_engine, fake_backend, rss: Callable
    ) -> None:
        """Test dry run plans without downloading or creating directories."""
        engine = make_engine({SHOW_URL: rss(episodes(2))}, dry_run=True, prune=True)

        report = await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        assert fake_backend.downloads == []
        assert not (tmp_path / "out" / "Commute").exists()
        assert report.podcasts[0].downloaded == ["My Show - Ep1.mp3", "My Show - Ep2.mp3"]

    @pytest.mark.asyncio
    async def test_directory_failure(self, tmp_path: Path, make_engine) -> None:
        """Test an uncreatable set directory fails the set."""
        (tmp_path / "out").mkdir()
        (tmp_path / "out" / "Commute").write_text("in the way")
        engine = make_engine({})

        report = await engine.sync_podcast_set(podcast_set(show()), tmp_path)

        assert "Commute" in report.error
        assert report.podcasts == []


class TestSyncEngineRun:
    """Tests for SyncEngine.run."""

    @pytest.mark.asyncio
    async def test_run_syncs_playlists_and_sets(
        self, tmp_path: Path, make_engine, rss: Callable
    ) -> None:
        """Test a whole run with a playlist and two podcast sets."""
        config = SyncConfig(
            playlists=[Playlist(name="Running", url="https://open.spotify.com/playlist/abc")],
            podcasts=[
                podcast_set(show(), name="Commute"),
                podcast_set(show(name="Other Show", url=OTHER_URL), name="Gym"),
            ],
        )
        engine = make_engine({SHOW_URL: rss(episodes(1)), OTHER_URL: rss(episodes(1))})

        with patch(
            "podmirror.sync.playlist.run_process", AsyncMock(return_value=(0, ""))
        ):
            report = await engine.run(config)

        assert report.ok
        assert report.failures() == []
        assert (tmp_path / "out" / "Running").is_dir()
        assert (tmp_path / "out" / "Commute" / "My Show - Ep1.mp3").exists()
        assert (tmp_path / "out" / "Gym" / "Other Show - Ep1.mp3").exists()

    @pytest.mark.asyncio
    async def test_playlist_failure_does_not_stop_podcasts(
        self, tmp_path: Path, make_engine, rss: Callable
    ) -> None:
        """Test a failing playlist is recorded and podcast sets still run."""
        config = SyncConfig(
            playlists=[Playlist(name="Running", url="https://open.spotify.com/playlist/abc")],
            podcasts=[podcast_set(show())],
        )
        engine = make_engine({SHOW_URL: rss(episodes(1))})

        with patch(
            "podmirror.sync.playlist.run_process", AsyncMock(return_value=(1, "error"))
        ):
            report = await engine.run(config)

        assert not report.ok
        assert report.playlists[0].error is not None
        assert report.podcast_sets[0].ok
        assert len(report.failures()) == 1
        assert report.failures()[0].startswith("Playlist Running")

    @pytest.mark.asyncio
    async def test_work_dir_removed_after_run(
        self, tmp_path: Path, make_engine, fake_backend, rss: Callable
    ) -> None:
        """Test the run's temporary directory is cleaned up."""
        engine = make_engine({SHOW_URL: rss(episodes(1))})

        await engine.run(SyncConfig(podcasts=[podcast_set(show())]))

        work_dir = fake_backend.downloads[0][1].parent
        assert not work_dir.exists()

    @pytest.mark.asyncio
    async def test_dry_run_skips_playlists(self, tmp_path: Path, make_engine) -> None:
        """Test playlists are not synced in a dry run."""
        config = SyncConfig(
            playlists=[Playlist(name="Running", url="https://open.spotify.com/playlist/abc")]
        )
        engine = make_engine({}, dry_run=True)

        with patch("podmirror.sync.playlist.run_process", AsyncMock()) as mock_run:
            report = await engine.run(config)

        mock_run.assert_not_called()
        assert report.ok
