"""Greedy per-route commit building.

Builds one route forward from its current state, one commit per stop,
until it reaches a shared stop (left for the fixpoint driver to merge) or
the end of the route.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from transitgit.graph.state import Built, advance_by, finalize, head_commit, next_stop_index
from transitgit.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Collection

    from transitgit.graph.state import RouteBuildState
    from transitgit.graph.store import VersionStore
    from transitgit.models import Route

log = get_logger(__name__)


def build_route_alone(
    store: VersionStore,
    route: Route,
    branch: str,
    state: RouteBuildState,
    conflict_stops: Collection[str],
) -> RouteBuildState:
    """Create commits for a route up to its next shared stop.

    Resumes at the stop after the last built one. Each non-shared stop gets
    one commit whose parent is the route's previous commit (none for the
    very first), appended to *branch*. Stops in *conflict_stops* are never
    committed here.

    Args:
        store: Version store receiving the commits.
        route: Route being built.
        branch: Branch name of the route.
        state: Current build state of the route.
        conflict_stops: Ids of stops shared by two or more routes.

    Returns:
        The updated state. Built states are returned unchanged.
    """
    if isinstance(state, Built):
        return state

    state = finalize(state)
    start = next_stop_index(state)
    if start is None:
        return state

    for index in range(start, len(route)):
        stop = route.stop(index)
        if stop.id in conflict_stops:
            log.debug("stop_deferred", route=route.name, stop=stop.name, index=index)
            break

        parent = head_commit(state)
        commit_id = store.create_commit(stop.name, [parent] if parent else [], branch)
        log.debug("stop_committed", route=route.name, stop=stop.name, commit=commit_id)
        state = advance_by(state, commit_id, index)

    return state
