"""podmirror - mirror playlists and podcast feeds into a local directory tree."""

__version__ = "0.1.0"
