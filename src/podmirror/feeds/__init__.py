"""Feed fetching and RSS parsing for podmirror."""

from podmirror.feeds.models import Episode, FeedItem, parse_pub_date
from podmirror.feeds.parser import FeedFetcher, parse_feed

__all__ = ["Episode", "FeedItem", "FeedFetcher", "parse_feed", "parse_pub_date"]
