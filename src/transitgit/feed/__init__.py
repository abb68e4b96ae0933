"""Transit feed reading and route selection."""

from transitgit.feed.gtfs import Feed, FeedError, load_feed, normalize_stop_id
from transitgit.feed.selection import filter_routes, parse_name_list, select_routes

__all__ = [
    "Feed",
    "FeedError",
    "filter_routes",
    "load_feed",
    "normalize_stop_id",
    "parse_name_list",
    "select_routes",
]
