"""Configuration schema models using Pydantic."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Playlist(BaseModel):
    """A music playlist mirrored by spotdl."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str


class Podcast(BaseModel):
    """Configuration for a single podcast feed."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str  # Feed URL
    keep_latest: int = Field(..., ge=0)
    # atempo accepts 0.5-2.0 per pass; values outside that range are passed through
    playback_speed: float = Field(default=1.0, gt=0)

    @field_validator("playback_speed", mode="before")
    @classmethod
    def parse_speed(cls, value: object) -> object:
        """Accept speeds written as strings ("1.5")."""
        if isinstance(value, str):
            return value.strip()
        return value


class PodcastSet(BaseModel):
    """A group of podcasts synced into one output subdirectory."""

    model_config = ConfigDict(frozen=True)

    name: str
    podcasts: list[Podcast] = Field(default_factory=list)


class SyncConfig(BaseModel):
    """Top-level sync configuration document."""

    model_config = ConfigDict(frozen=True)

    playlists: list[Playlist] = Field(default_factory=list)
    podcasts: list[PodcastSet] = Field(default_factory=list)

    @field_validator("podcasts")
    @classmethod
    def unique_set_names(cls, value: list[PodcastSet]) -> list[PodcastSet]:
        """Podcast set names double as directory names and must be unique."""
        seen: set[str] = set()
        for podcast_set in value:
            if podcast_set.name in seen:
                raise ValueError(f"Duplicate podcast set name: {podcast_set.name!r}")
            seen.add(podcast_set.name)
        return value
