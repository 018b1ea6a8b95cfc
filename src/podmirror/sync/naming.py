"""Filesystem-safe file names for podcast episodes."""

import re
from datetime import datetime

# Everything outside ASCII letters, digits, space, hyphen, underscore and period
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9 _.\-]")

EPISODE_SUFFIX = ".mp3"


def sanitize(value: str) -> str:
    """Strip every character that is not filesystem-safe.

    Case and whitespace are left as they are.

    Example:
        >>> sanitize("Show: Part #1?!")
        'Show Part 1'
    """
    return _UNSAFE_CHARS.sub("", value)


def podcast_file_name(podcast_name: str, title: str) -> str:
    """Canonical file name for an episode of a podcast."""
    return f"{sanitize(podcast_name)} - {sanitize(title)}{EPISODE_SUFFIX}"


def disambiguated_file_name(
    podcast_name: str,
    title: str,
    published: datetime,
    precise: bool = False,
    counter: int | None = None,
) -> str:
    """File name for an episode whose canonical name is already taken.

    The publication date (and time, when precise) is appended before the
    extension, followed by counter when one is given.
    """
    stamp = published.strftime("%Y-%m-%d %H%M%S" if precise else "%Y-%m-%d")
    if counter is not None:
        stamp = f"{stamp} {counter}"
    return f"{sanitize(podcast_name)} - {sanitize(title)} - {stamp}{EPISODE_SUFFIX}"
