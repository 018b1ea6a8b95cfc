"""Sync run orchestration.

Playlists and podcast sets are processed one after another. Within a podcast
set, podcasts and their episodes are also processed in order, so writes into
an output directory never overlap.
"""

import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from podmirror.config.schema import Playlist, Podcast, PodcastSet, SyncConfig
from podmirror.feeds.parser import FeedFetcher
from podmirror.sync.backend import MediaBackend
from podmirror.sync.pipeline import EpisodePipeline
from podmirror.sync.playlist import sync_playlist
from podmirror.sync.prune import prune, stale_files
from podmirror.sync.reconcile import EpisodePlan, plan_podcast
from podmirror.sync.state import DirectoryState, ensure_directory
from podmirror.ui import get_theme
from podmirror.utils.errors import (
    DirectoryError,
    FeedError,
    FetchError,
    ProcessError,
)

logger = logging.getLogger(__name__)


@dataclass
class PodcastReport:
    """Outcome of syncing one podcast."""

    name: str
    up_to_date: list[str] = field(default_factory=list)
    downloaded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # file name -> error
    error: str | None = None  # Podcast-level failure

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed


@dataclass
class PodcastSetReport:
    """Outcome of syncing one podcast set."""

    name: str
    podcasts: list[PodcastReport] = field(default_factory=list)
    expected: set[str] = field(default_factory=set)
    stale: list[str] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)
    error: str | None = None  # Set-level failure (directory, pruning)

    @property
    def ok(self) -> bool:
        return self.error is None and all(p.ok for p in self.podcasts)


@dataclass
class PlaylistReport:
    """Outcome of syncing one playlist."""

    name: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SyncReport:
    """Outcome of a whole sync run."""

    playlists: list[PlaylistReport] = field(default_factory=list)
    podcast_sets: list[PodcastSetReport] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(p.ok for p in self.playlists) and all(
            s.ok for s in self.podcast_sets
        )

    def failures(self) -> list[str]:
        """Human-readable description of every recorded failure."""
        messages: list[str] = []
        for playlist in self.playlists:
            if playlist.error:
                messages.append(f"Playlist {playlist.name}: {playlist.error}")
        for podcast_set in self.podcast_sets:
            if podcast_set.error:
                messages.append(f"Podcast set {podcast_set.name}: {podcast_set.error}")
            for podcast in podcast_set.podcasts:
                if podcast.error:
                    messages.append(f"{podcast_set.name}/{podcast.name}: {podcast.error}")
                for file_name, error in podcast.failed.items():
                    messages.append(f"{podcast_set.name}/{file_name}: {error}")
        return messages


class SyncEngine:
    """Mirror configured playlists and podcast sets into an output directory."""

    def __init__(
        self,
        output_dir: Path,
        backend: MediaBackend,
        fetcher: FeedFetcher | None = None,
        prune: bool = False,
        dry_run: bool = False,
        spotdl: str = "spotdl",
        console: Console | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            output_dir: Root directory for playlist and podcast set folders
            backend: Media backend used to download and transcode episodes
            fetcher: Feed fetcher (default: FeedFetcher())
            prune: Delete files that fell out of every keep-latest window
            dry_run: Plan and report only; download, transcode and delete nothing
            spotdl: spotdl executable name or path
            console: Console for progress output
        """
        self.output_dir = output_dir
        self.backend = backend
        self.fetcher = fetcher or FeedFetcher()
        self.prune = prune
        self.dry_run = dry_run
        self.spotdl = spotdl
        self.console = console or Console()
        self.theme = get_theme()

    async def run(self, config: SyncConfig) -> SyncReport:
        """Sync every playlist, then every podcast set.

        A failure in one playlist or set doesn't stop the others.
        """
        report = SyncReport()

        with tempfile.TemporaryDirectory(prefix="podmirror_") as tmp:
            work_dir = Path(tmp)

            for playlist in config.playlists:
                report.playlists.append(await self.sync_playlist(playlist))

            for podcast_set in config.podcasts:
                report.podcast_sets.append(
                    await self.sync_podcast_set(podcast_set, work_dir)
                )

        return report

    async def sync_playlist(self, playlist: Playlist) -> PlaylistReport:
        """Sync one playlist, recording rather than raising failures."""
        report = PlaylistReport(name=playlist.name)

        if self.dry_run:
            self.console.print(
                self.theme.muted_text(f"Would sync playlist {playlist.name}")
            )
            return report

        self.console.print(self.theme.info_text(f"Syncing playlist {playlist.name}"))
        try:
            await sync_playlist(playlist, self.output_dir, spotdl=self.spotdl)
        except (DirectoryError, ProcessError) as e:
            logger.info("Playlist %s failed: %s", playlist.name, e)
            report.error = str(e)
            self.console.print(self.theme.error_text(str(e)))
        else:
            self.console.print(self.theme.success_text(f"Synced playlist {playlist.name}"))
        return report

    async def sync_podcast_set(
        self, podcast_set: PodcastSet, work_dir: Path
    ) -> PodcastSetReport:
        """Sync every podcast of a set into <output_dir>/<set name>.

        Args:
            podcast_set: Podcast set to sync
            work_dir: Temporary directory for downloads, owned by the run

        Returns:
            Report of what was synced, what failed and which files are stale
        """
        report = PodcastSetReport(name=podcast_set.name)
        self.console.print(
            self.theme.info_text(f"Processing podcast set {podcast_set.name}")
        )

        try:
            set_dir, state = self._scan_set_dir(podcast_set.name)
        except DirectoryError as e:
            logger.info("Podcast set %s failed: %s", podcast_set.name, e)
            report.error = str(e)
            self.console.print(self.theme.error_text(str(e)))
            return report

        self.console.print(
            self.theme.muted_text(f"  Found {len(state)} file(s) in {set_dir}")
        )

        pipeline = EpisodePipeline(
            self.backend, work_dir, progress_callback=self._print_stage
        )
        claimed: set[str] = set()
        for podcast in podcast_set.podcasts:
            podcast_report = await self._sync_podcast(
                podcast, state, claimed, pipeline, set_dir
            )
            report.podcasts.append(podcast_report)
            report.expected.update(podcast_report.up_to_date)
            report.expected.update(podcast_report.downloaded)

        report.stale = sorted(stale_files(state.filenames(), report.expected))
        self._handle_stale(report, set_dir)
        return report

    def _print_stage(self, stage: str, plan: EpisodePlan) -> None:
        verb = "Downloading" if stage == "download" else "Transcoding"
        self.console.print(self.theme.muted_text(f"  {verb} {plan.file_name}"))

    def _scan_set_dir(self, name: str) -> tuple[Path, DirectoryState]:
        set_dir = self.output_dir / name
        if self.dry_run and not set_dir.exists():
            return set_dir, DirectoryState({})
        if not self.dry_run:
            set_dir = ensure_directory(self.output_dir, name)
        return set_dir, DirectoryState.scan(set_dir)

    async def _sync_podcast(
        self,
        podcast: Podcast,
        state: DirectoryState,
        claimed: set[str],
        pipeline: EpisodePipeline,
        set_dir: Path,
    ) -> PodcastReport:
        report = PodcastReport(name=podcast.name)
        self.console.print(self.theme.info_text(f"Fetching {podcast.name}"))

        try:
            items = await self.fetcher.fetch(podcast.url)
            plans = plan_podcast(podcast, items, state, claimed)
        except FeedError as e:
            logger.info("Podcast %s (%s) failed: %s", podcast.name, podcast.url, e)
            report.error = str(e)
            self.console.print(self.theme.error_text(str(e)))
            return report

        for plan in plans:
            if not plan.needs_download:
                report.up_to_date.append(plan.file_name)
                continue

            reason = plan.reason.value
            if self.dry_run:
                self.console.print(
                    self.theme.muted_text(f"  Would download {plan.file_name} ({reason})")
                )
                report.downloaded.append(plan.file_name)
                continue

            self.console.print(self.theme.muted_text(f"  {plan.file_name} is {reason}"))
            try:
                await pipeline.process(plan, podcast, set_dir)
            except (FetchError, ProcessError) as e:
                logger.info("%s failed: %s", plan.file_name, e)
                report.failed[plan.file_name] = str(e)
                self.console.print(self.theme.error_text(str(e)))
                continue

            report.downloaded.append(plan.file_name)
            self.console.print(self.theme.success_text(f"Synced {plan.file_name}"))

        self.console.print(
            self.theme.muted_text(
                f"  {podcast.name}: {len(report.downloaded)} downloaded, "
                f"{len(report.up_to_date)} up to date, {len(report.failed)} failed"
            )
        )
        return report

    def _handle_stale(self, report: PodcastSetReport, set_dir: Path) -> None:
        if not report.stale:
            return

        if not self.prune or self.dry_run:
            for name in report.stale:
                self.console.print(self.theme.muted_text(f"  Stale: {name}"))
            return

        # An incomplete expected set would mark valid files as stale
        if not report.ok:
            self.console.print(
                self.theme.warning_text(
                    f"Not pruning {report.name}: some podcasts failed to sync"
                )
            )
            return

        try:
            report.pruned = prune(set_dir, set(report.stale))
        except DirectoryError as e:
            logger.info("Pruning %s failed: %s", report.name, e)
            report.error = str(e)
            self.console.print(self.theme.error_text(str(e)))
            return

        for name in report.pruned:
            self.console.print(self.theme.warning_text(f"Removed {name}"))
