"""Configuration management for podmirror."""

from podmirror.config.manager import load_sync_config
from podmirror.config.schema import Playlist, Podcast, PodcastSet, SyncConfig

__all__ = ["load_sync_config", "Playlist", "Podcast", "PodcastSet", "SyncConfig"]
