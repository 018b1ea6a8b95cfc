"""Data models for podcast feed entries and episodes."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from pydantic import BaseModel

from podmirror.utils.errors import FieldMissingError, TimeParseError


def parse_pub_date(value: str) -> datetime:
    """Parse an RFC 2822 publication date into an aware datetime.

    Dates without a zone are taken as UTC.

    Raises:
        TimeParseError: If the value is not an RFC 2822 date
    """
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError) as e:
        raise TimeParseError(f"Unparseable publication date {value!r}: {e}") from e
    if parsed is None:
        raise TimeParseError(f"Unparseable publication date {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Episode(BaseModel):
    """A validated podcast episode."""

    title: str
    published: datetime
    enclosure_url: str

    @property
    def pub_timestamp(self) -> int:
        """Publication time in whole seconds since the epoch."""
        return int(self.published.timestamp())


class FeedItem(BaseModel):
    """A feed entry as parsed, before validation."""

    title: str | None = None
    published: str | None = None
    enclosure_url: str | None = None

    def to_episode(self, podcast_name: str) -> Episode:
        """Validate this entry into an Episode.

        Args:
            podcast_name: Owning podcast, used in error messages

        Raises:
            FieldMissingError: If title, publication date or enclosure is missing
            TimeParseError: If the publication date can't be parsed
        """
        label = self.title or self.enclosure_url or "<untitled>"
        if not self.title:
            raise FieldMissingError(
                f"Episode {label!r} of {podcast_name!r} has no title"
            )
        if not self.published:
            raise FieldMissingError(
                f"Episode {self.title!r} of {podcast_name!r} has no publication date"
            )
        if not self.enclosure_url:
            raise FieldMissingError(
                f"Episode {self.title!r} of {podcast_name!r} has no enclosure"
            )

        try:
            published = parse_pub_date(self.published)
        except TimeParseError as e:
            raise TimeParseError(
                f"Episode {self.title!r} of {podcast_name!r}: {e}"
            ) from e

        return Episode(
            title=self.title,
            published=published,
            enclosure_url=self.enclosure_url,
        )
