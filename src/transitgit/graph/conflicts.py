"""Shared-stop detection.

A stop visited by two or more routes becomes a merge point in the commit
graph. The result is computed once, after reconciliation, and never
revisited during the build.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from transitgit.models import Route

ConflictSet = dict[str, frozenset[str]]


def detect_conflicts(routes: Iterable[Route]) -> ConflictSet:
    """Map each shared stop id to the ids of the routes visiting it.

    A route visiting the same stop twice counts once.

    Args:
        routes: Reconciled routes.

    Returns:
        Stop id -> route ids, restricted to stops with at least two routes.
        Keys follow first-seen order.
    """
    visitors: dict[str, set[str]] = {}
    for route in routes:
        for stop in route.stops:
            visitors.setdefault(stop.id, set()).add(route.id)

    return {
        stop_id: frozenset(route_ids)
        for stop_id, route_ids in visitors.items()
        if len(route_ids) > 1
    }


def stop_name(routes: Mapping[str, Route], conflicts: ConflictSet, stop_id: str) -> str:
    """Name of a shared stop, taken from the first route (by id) visiting it."""
    for route_id in sorted(conflicts[stop_id]):
        for stop in routes[route_id].stops:
            if stop.id == stop_id:
                return stop.name
    return stop_id
