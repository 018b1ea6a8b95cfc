"""Utility functions and helpers for podmirror."""

from podmirror.utils.errors import (
    ConfigError,
    ConfigNotFoundError,
    DirectoryError,
    FeedError,
    FeedParseError,
    FetchError,
    FieldMissingError,
    InvalidConfigError,
    PodmirrorError,
    ProcessError,
    ScanError,
    TimeParseError,
)

__all__ = [
    "PodmirrorError",
    "ConfigError",
    "InvalidConfigError",
    "ConfigNotFoundError",
    "DirectoryError",
    "ScanError",
    "FeedError",
    "FetchError",
    "FeedParseError",
    "FieldMissingError",
    "TimeParseError",
    "ProcessError",
]
