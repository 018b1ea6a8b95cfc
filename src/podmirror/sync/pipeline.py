"""Fetch-and-transcode pipeline for episodes that need syncing."""

import asyncio
import logging
import os
import shutil
from collections.abc import Callable
from pathlib import Path

from podmirror.config.schema import Podcast
from podmirror.sync.backend import MediaBackend
from podmirror.sync.reconcile import EpisodePlan
from podmirror.utils.errors import FetchError, ProcessError

logger = logging.getLogger(__name__)


def stamp_mtime(path: Path, timestamp: int) -> None:
    """Set access and modification time of path to a whole-second timestamp."""
    os.utime(path, (timestamp, timestamp))


class EpisodePipeline:
    """Download an episode, re-encode it and move it into place.

    Downloads and transcoder output land in work_dir, which belongs to one
    sync run. The destination file is only replaced once the transcode has
    succeeded, so a failed resync leaves the previous copy untouched.
    """

    def __init__(
        self,
        backend: MediaBackend,
        work_dir: Path,
        progress_callback: Callable[[str, EpisodePlan], None] | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            backend: Media backend doing the actual work
            work_dir: Temporary directory for downloads
            progress_callback: Called with the stage ("download", "transcode")
                before each step
        """
        self.backend = backend
        self.work_dir = work_dir
        self.progress_callback = progress_callback

    def _report(self, stage: str, plan: EpisodePlan) -> None:
        if self.progress_callback:
            self.progress_callback(stage, plan)

    async def process(self, plan: EpisodePlan, podcast: Podcast, dest_dir: Path) -> Path:
        """Sync one episode into dest_dir.

        Args:
            plan: Reconciliation plan of an episode that needs downloading
            podcast: Owning podcast (for the playback speed)
            dest_dir: Output directory of the podcast set

        Returns:
            Path of the written episode file

        Raises:
            FetchError: If the media download fails
            ProcessError: If the transcoder fails
        """
        episode = plan.episode
        download_path = self.work_dir / f"{plan.file_name}.download"
        staged_path = self.work_dir / plan.file_name
        output_path = dest_dir / plan.file_name

        try:
            self._report("download", plan)
            result = await self.backend.download(episode.enclosure_url, download_path)
            if not result.success:
                raise FetchError(
                    f"Failed to download {episode.title!r} of {podcast.name!r} "
                    f"from {episode.enclosure_url}: {result.output}"
                )

            self._report("transcode", plan)
            result = await self.backend.transcode(
                download_path, staged_path, podcast.playback_speed
            )
            if not result.success:
                raise ProcessError(
                    f"Failed to transcode {episode.title!r} of {podcast.name!r}: "
                    f"{result.output}"
                )

            try:
                # Rename when work_dir shares a filesystem with dest_dir, copy otherwise
                await asyncio.to_thread(shutil.move, staged_path, output_path)
                stamp_mtime(output_path, episode.pub_timestamp)
            except OSError as e:
                raise ProcessError(f"Failed to write {output_path}: {e}") from e
        finally:
            download_path.unlink(missing_ok=True)
            staged_path.unlink(missing_ok=True)

        logger.debug("Wrote %s", output_path)
        return output_path
