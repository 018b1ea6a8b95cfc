"""Podcast reconciliation and sync for podmirror."""

from podmirror.sync.backend import FfmpegBackend, MediaBackend, MediaResult
from podmirror.sync.engine import (
    PlaylistReport,
    PodcastReport,
    PodcastSetReport,
    SyncEngine,
    SyncReport,
)
from podmirror.sync.naming import podcast_file_name, sanitize
from podmirror.sync.pipeline import EpisodePipeline
from podmirror.sync.reconcile import Action, EpisodePlan, Reason, plan_podcast
from podmirror.sync.state import DirectoryState, LocalState, ensure_directory

__all__ = [
    "Action",
    "DirectoryState",
    "EpisodePipeline",
    "EpisodePlan",
    "FfmpegBackend",
    "LocalState",
    "MediaBackend",
    "MediaResult",
    "PlaylistReport",
    "PodcastReport",
    "PodcastSetReport",
    "Reason",
    "SyncEngine",
    "SyncReport",
    "ensure_directory",
    "plan_podcast",
    "podcast_file_name",
    "sanitize",
]
