"""Reconciliation of a podcast feed against local sync state.

For the newest ``keep_latest`` entries of a feed, decide which episodes are
already present and which need to be (re)downloaded. A local file counts as
synced when it exists and its modification time equals the episode's
publication time to the second.
"""

import logging
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel

from podmirror.config.schema import Podcast
from podmirror.feeds.models import Episode, FeedItem
from podmirror.sync.naming import disambiguated_file_name, podcast_file_name
from podmirror.sync.state import LocalState

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """What to do with an episode."""

    UP_TO_DATE = "up-to-date"
    DOWNLOAD = "download"


class Reason(str, Enum):
    """Why an episode needs downloading."""

    MISSING = "missing"
    STALE = "stale"


class EpisodePlan(BaseModel):
    """Reconciliation decision for one episode."""

    episode: Episode
    file_name: str
    action: Action
    reason: Reason | None = None

    @property
    def needs_download(self) -> bool:
        return self.action is Action.DOWNLOAD


def is_fresh(mtime: datetime, published: datetime) -> bool:
    """Whether a local mtime matches a publication time at one-second resolution."""
    return int(mtime.timestamp()) == int(published.timestamp())


def _claim_file_name(podcast: Podcast, episode: Episode, claimed: set[str]) -> str:
    """Claim a file name no other episode of the run holds.

    Collisions fall back to a date suffix, then date and time, then a
    counter after the date and time.
    """
    file_name = podcast_file_name(podcast.name, episode.title)
    if file_name in claimed:
        published = episode.published.astimezone(timezone.utc)
        file_name = disambiguated_file_name(podcast.name, episode.title, published)
        if file_name in claimed:
            file_name = disambiguated_file_name(
                podcast.name, episode.title, published, precise=True
            )
        counter = 2
        while file_name in claimed:
            file_name = disambiguated_file_name(
                podcast.name, episode.title, published, precise=True, counter=counter
            )
            counter += 1
        logger.warning(
            "Episode %r of %r collides with another episode, using %r",
            episode.title,
            podcast.name,
            file_name,
        )
    claimed.add(file_name)
    return file_name


def plan_podcast(
    podcast: Podcast,
    items: list[FeedItem],
    state: LocalState,
    claimed: set[str] | None = None,
) -> list[EpisodePlan]:
    """Classify the newest keep_latest feed entries of a podcast.

    Entries beyond keep_latest are ignored. The whole window is validated
    before anything is returned, so an invalid entry aborts the podcast
    before any of its episodes are downloaded.

    Args:
        podcast: Podcast configuration
        items: Feed entries in feed order
        state: Local state of the podcast set's output directory
        claimed: File names already claimed during this run; updated in place

    Returns:
        One plan per considered episode, in feed order

    Raises:
        FieldMissingError: If an entry lacks a title, date or enclosure
        TimeParseError: If an entry's publication date can't be parsed
    """
    if claimed is None:
        claimed = set()

    window = items[: podcast.keep_latest]
    episodes = [item.to_episode(podcast.name) for item in window]

    plans: list[EpisodePlan] = []
    for episode in episodes:
        file_name = _claim_file_name(podcast, episode, claimed)
        mtime = state.lookup(file_name)

        if mtime is None:
            plan = EpisodePlan(
                episode=episode,
                file_name=file_name,
                action=Action.DOWNLOAD,
                reason=Reason.MISSING,
            )
        elif is_fresh(mtime, episode.published):
            plan = EpisodePlan(
                episode=episode, file_name=file_name, action=Action.UP_TO_DATE
            )
        else:
            plan = EpisodePlan(
                episode=episode,
                file_name=file_name,
                action=Action.DOWNLOAD,
                reason=Reason.STALE,
            )

        logger.debug(
            "%s: %s (%s)",
            file_name,
            plan.action.value,
            plan.reason.value if plan.reason else "mtime matches",
        )
        plans.append(plan)

    return plans
