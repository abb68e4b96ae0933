"""Narrowing a feed down to the routes that go into the repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from transitgit.feed.gtfs import FeedError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from transitgit.models import RouteSummary


def parse_name_list(text: str | None) -> set[str]:
    """Split a comma-separated list of route names, dropping blanks."""
    if not text:
        return set()
    return {part.strip() for part in text.split(",") if part.strip()}


def filter_routes(routes: Iterable[RouteSummary], prefilter: set[str]) -> list[RouteSummary]:
    """Keep routes whose short or long name is in *prefilter*.

    An empty prefilter keeps every route.
    """
    routes = list(routes)
    if not prefilter:
        return routes
    return [
        route
        for route in routes
        if route.short_name in prefilter or route.long_name in prefilter
    ]


def select_routes(
    routes: Iterable[RouteSummary],
    selectors: Iterable[str],
    *,
    location: str = "feed",
) -> list[RouteSummary]:
    """Keep routes matching a selector by route id, short, long or display name.

    Routes keep their feed order. Empty *selectors* keep every route.

    Raises:
        FeedError: If a selector matches no route.
    """
    routes = list(routes)
    wanted = [s for s in selectors if s]
    if not wanted:
        return routes

    def keys(route: RouteSummary) -> set[str]:
        return {route.route_id, route.short_name, route.long_name, route.display_name} - {""}

    unknown = [s for s in wanted if not any(s in keys(route) for route in routes)]
    if unknown:
        raise FeedError(location, f"no route matches {', '.join(sorted(unknown))}")

    chosen = set(wanted)
    return [route for route in routes if keys(route) & chosen]
