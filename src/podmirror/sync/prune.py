"""Stale-file policy: files that fell out of every keep-latest window."""

import logging
from pathlib import Path

from podmirror.utils.errors import DirectoryError

logger = logging.getLogger(__name__)


def stale_files(existing: set[str], expected: set[str]) -> set[str]:
    """Files present before the run that no podcast expects anymore."""
    return existing - expected


def prune(directory: Path, names: set[str]) -> list[str]:
    """Delete the named files from directory.

    Returns:
        Sorted names of the deleted files

    Raises:
        DirectoryError: If a file can't be removed
    """
    removed: list[str] = []
    for name in sorted(names):
        path = directory / name
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise DirectoryError(f"Failed to remove {path}: {e}") from e
        logger.info("Removed stale file %s", path)
        removed.append(name)
    return removed
