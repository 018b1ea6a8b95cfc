"""Custom exceptions for podmirror."""


class PodmirrorError(Exception):
    """Base exception for all podmirror errors."""

    pass


class ConfigError(PodmirrorError):
    """Configuration-related errors."""

    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration data."""

    pass


class ConfigNotFoundError(ConfigError):
    """Configuration file not found."""

    pass


class DirectoryError(PodmirrorError):
    """Output directory could not be created or read."""

    pass


class ScanError(DirectoryError):
    """Output directory could not be listed."""

    pass


class FeedError(PodmirrorError):
    """Feed retrieval and episode errors."""

    pass


class FetchError(FeedError):
    """Network request failed or returned a non-success status."""

    pass


class FeedParseError(FeedError):
    """RSS feed parsing errors."""

    pass


class FieldMissingError(FeedError):
    """Episode lacks a title, publication date or enclosure."""

    pass


class TimeParseError(FeedError):
    """Publication date is not in the expected format."""

    pass


class ProcessError(PodmirrorError):
    """External process failed to launch or exited non-zero."""

    pass
