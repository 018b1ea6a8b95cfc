"""Playlist sync through the spotdl executable."""

import logging
from pathlib import Path

from podmirror.config.schema import Playlist
from podmirror.sync.backend import run_process
from podmirror.sync.state import ensure_directory
from podmirror.utils.errors import ProcessError

logger = logging.getLogger(__name__)

SAVE_FILE = "playlist.spotdl"


def spotdl_command(playlist: Playlist, spotdl: str = "spotdl") -> list[str]:
    """Command line syncing a playlist into the current directory."""
    return [spotdl, "sync", playlist.url, "--save-file", SAVE_FILE]


async def sync_playlist(
    playlist: Playlist, output_dir: Path, spotdl: str = "spotdl"
) -> Path:
    """Sync a playlist into <output_dir>/<playlist.name>.

    Success is decided by the exit status only.

    Returns:
        The playlist directory

    Raises:
        DirectoryError: If the playlist directory can't be created
        ProcessError: If spotdl can't be launched or exits non-zero
    """
    playlist_dir = ensure_directory(output_dir, playlist.name)
    try:
        returncode, output = await run_process(
            spotdl_command(playlist, spotdl), cwd=playlist_dir
        )
    except OSError as e:
        raise ProcessError(f"Failed to execute {spotdl}: {e}") from e

    if returncode != 0:
        logger.debug("spotdl output for %s:\n%s", playlist.name, output)
        raise ProcessError(
            f"Failed to sync playlist {playlist.name!r}: {spotdl} exited with status {returncode}"
        )
    return playlist_dir
