"""Media backends: download episode audio and re-encode its playback speed."""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import aiofiles
import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 1024 * 1024
DOWNLOAD_TIMEOUT = 60.0  # Seconds per network operation, not for the whole file


class MediaResult(BaseModel):
    """Outcome of a backend operation with its captured diagnostics."""

    success: bool
    output: str = ""


class MediaBackend(ABC):
    """Capability to download and transcode episode media."""

    @abstractmethod
    async def download(self, url: str, dest: Path) -> MediaResult:
        """Download url to dest, following redirects."""

    @abstractmethod
    async def transcode(self, src: Path, dest: Path, speed: float) -> MediaResult:
        """Re-encode src into dest with the playback speed applied."""


def atempo_filter(speed: float) -> str:
    """ffmpeg audio filter expression for a playback speed."""
    return f"atempo={speed:g}"


async def run_process(args: list[str], cwd: Path | None = None) -> tuple[int, str]:
    """Run an external process with stdin closed.

    Returns:
        Exit status and combined stdout/stderr

    Raises:
        FileNotFoundError: If the executable doesn't exist
    """
    logger.debug("Running %s", " ".join(args))
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )
    stdout, _ = await process.communicate()
    return process.returncode, stdout.decode(errors="replace")


class FfmpegBackend(MediaBackend):
    """Download with httpx and transcode with the ffmpeg executable."""

    def __init__(
        self,
        ffmpeg: str = "ffmpeg",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            ffmpeg: ffmpeg executable name or path
            client: Optional shared HTTP client for downloads
        """
        self.ffmpeg = ffmpeg
        self.client = client

    async def download(self, url: str, dest: Path) -> MediaResult:
        try:
            if self.client is not None:
                await self._stream_to(self.client, url, dest)
            else:
                async with httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT) as client:
                    await self._stream_to(client, url, dest)
        except httpx.HTTPStatusError as e:
            return MediaResult(
                success=False,
                output=f"HTTP {e.response.status_code} from {url}",
            )
        except (httpx.HTTPError, OSError) as e:
            return MediaResult(success=False, output=f"{type(e).__name__}: {e}")

        return MediaResult(success=True)

    async def _stream_to(self, client: httpx.AsyncClient, url: str, dest: Path) -> None:
        async with client.stream("GET", url, follow_redirects=True) as response:
            response.raise_for_status()
            async with aiofiles.open(dest, "wb") as f:
                async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                    await f.write(chunk)

    async def transcode(self, src: Path, dest: Path, speed: float) -> MediaResult:
        args = [
            self.ffmpeg,
            "-y",  # Overwrite stale output
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(src),
            "-filter:a",
            atempo_filter(speed),
            str(dest),
        ]
        try:
            returncode, output = await run_process(args)
        except FileNotFoundError:
            return MediaResult(
                success=False, output=f"{self.ffmpeg} not found - install ffmpeg"
            )
        except OSError as e:
            return MediaResult(success=False, output=f"Failed to run {self.ffmpeg}: {e}")

        if returncode != 0:
            return MediaResult(
                success=False,
                output=f"{self.ffmpeg} exited with status {returncode}: {output.strip()}",
            )
        return MediaResult(success=True, output=output)
