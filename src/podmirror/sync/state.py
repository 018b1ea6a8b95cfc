"""Local sync state derived from the output directory.

There is no manifest: the (file name, modification time) pairs of the files in
an output directory are the record of what has already been synced.
"""

import logging
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from podmirror.utils.errors import DirectoryError, ScanError

logger = logging.getLogger(__name__)


class LocalState(Protocol):
    """Read-only view of what has already been synced."""

    def lookup(self, file_name: str) -> datetime | None:
        """Modification time of file_name, or None if absent."""
        ...

    def filenames(self) -> set[str]:
        """All file names known to the state."""
        ...


def ensure_directory(root: Path, name: str) -> Path:
    """Create <root>/<name> if needed and return it.

    The name is used verbatim.

    Raises:
        DirectoryError: If the directory can't be created
    """
    directory = root / name
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryError(f"Failed to create directory {directory}: {e}") from e
    return directory


class DirectoryState:
    """LocalState backed by a scan of one output directory."""

    def __init__(self, files: dict[str, datetime]) -> None:
        self.files = files

    @classmethod
    def scan(cls, directory: Path) -> "DirectoryState":
        """Record the mtime of every regular file directly inside directory.

        Subdirectories and other non-regular entries are skipped.

        Raises:
            ScanError: If the directory can't be listed
        """
        files: dict[str, datetime] = {}
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    try:
                        info = entry.stat(follow_symlinks=False)
                    except FileNotFoundError:
                        # Removed while scanning
                        continue
                    if not stat.S_ISREG(info.st_mode):
                        continue
                    files[entry.name] = datetime.fromtimestamp(
                        info.st_mtime, tz=timezone.utc
                    )
        except OSError as e:
            raise ScanError(f"Failed to read directory {directory}: {e}") from e

        logger.debug("Scanned %d file(s) in %s", len(files), directory)
        return cls(files)

    def lookup(self, file_name: str) -> datetime | None:
        return self.files.get(file_name)

    def filenames(self) -> set[str]:
        return set(self.files)

    def __len__(self) -> int:
        return len(self.files)
