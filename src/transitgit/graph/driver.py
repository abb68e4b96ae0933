"""Dependency fixpoint driver for the route commit graph.

Turns a set of routes into a commit graph in a version store:

1. Reconcile stop orders so shared stops agree across routes.
2. Detect shared ("conflict") stops; these become merge commits.
3. Bootstrap: build every route greedily up to its first shared stop.
4. Loop until every route is Built:
   - compute the frontier: the next stop each unfinished route needs;
   - a shared stop is ready once every route visiting it waits on it;
   - for each ready stop, create one merge commit on the host branch
     (smallest route id), fast-forward the other participants to it,
     advance their states and resume greedy building.
   A pass with no ready stop is a deadlock and aborts the build.

Every merge advances each of its (two or more) participants by exactly one
stop, so the total number of unbuilt stops strictly decreases on every
productive pass. The loop therefore ends in all-Built or in DeadlockError.

Loop-carried state (route states) is owned by RouteGraphBuilder;
compute_frontier() and find_ready_groups() are pure and can be tested
without a store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from transitgit.graph.branches import assign_branch_names
from transitgit.graph.builder import build_route_alone
from transitgit.graph.conflicts import detect_conflicts, stop_name
from transitgit.graph.errors import DeadlockError, InvariantViolationError, RouteProgress
from transitgit.graph.ordering import reconcile_order
from transitgit.graph.state import (
    Built,
    Untouched,
    advance_by_one,
    head_commit,
    initial_state,
    next_stop_index,
)
from transitgit.graph.store import dedupe_parents
from transitgit.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from transitgit.graph.conflicts import ConflictSet
    from transitgit.graph.state import RouteBuildState
    from transitgit.graph.store import VersionStore
    from transitgit.models import Route

log = get_logger(__name__)


@dataclass(frozen=True)
class MergeGroup:
    """A shared stop whose every participant is waiting on it.

    Attributes:
        stop_id: The shared stop.
        route_ids: Participants, sorted by route id.
    """

    stop_id: str
    route_ids: tuple[str, ...]

    @property
    def host(self) -> str:
        """Route whose branch receives the merge commit."""
        return self.route_ids[0]


@dataclass
class BuildResult:
    """Outcome of a successful build.

    Attributes:
        routes: Reconciled routes, in input order.
        conflicts: Shared stop id -> participating route ids.
        states: Final state per route id (all Built).
        branches: Route id -> branch name.
        heads: Branch name -> head commit id, as reported by the store.
        commit_count: Commits created (stop commits plus merge commits).
        merge_count: Merge commits created.
    """

    routes: list[Route]
    conflicts: ConflictSet
    states: dict[str, RouteBuildState]
    branches: dict[str, str]
    heads: dict[str, str]
    commit_count: int
    merge_count: int


def compute_frontier(
    routes: Mapping[str, Route],
    states: Mapping[str, RouteBuildState],
) -> dict[str, list[str]]:
    """Group unfinished routes by the id of the next stop they need.

    Returns:
        Stop id -> route ids waiting on it, both in route order.
    """
    frontier: dict[str, list[str]] = {}
    for route_id, state in states.items():
        index = next_stop_index(state)
        if index is None:
            continue
        stop_id = routes[route_id].stop(index).id
        frontier.setdefault(stop_id, []).append(route_id)
    return frontier


def find_ready_groups(
    frontier: Mapping[str, list[str]],
    conflicts: ConflictSet,
) -> list[MergeGroup]:
    """Select frontier stops that can be merged now.

    A stop is ready only if it is shared and the number of routes waiting
    on it equals the number of routes that visit it at all. Partial merges
    are never made.
    """
    ready: list[MergeGroup] = []
    for stop_id, waiting in frontier.items():
        participants = conflicts.get(stop_id)
        if participants is None or len(waiting) != len(participants):
            continue
        ready.append(MergeGroup(stop_id=stop_id, route_ids=tuple(sorted(waiting))))
    return ready


def describe_progress(route: Route, state: RouteBuildState) -> RouteProgress:
    """Summarise how far *route* got, for deadlock reports."""
    first, last = route.stops[0].name, route.stops[-1].name
    if isinstance(state, Built):
        return RouteProgress(route.name, f"built ({first} to {last})", finished=True)
    if isinstance(state, Untouched):
        return RouteProgress(route.name, f"not started ({first} to {last}), waiting for {first}")
    done = route.stop(state.built_index).name
    waiting = route.stop(state.built_index + 1).name if not state.is_complete else None
    return RouteProgress(
        route.name, f"done until stop {done} (included), waiting for {waiting}"
    )


class RouteGraphBuilder:
    """Owns the loop-carried state of one build.

    Args:
        routes: Reconciled routes with unique ids.
        store: Version store receiving commits.
        branch_names: Route id -> branch name. Derived from route names
            when omitted.
    """

    def __init__(
        self,
        routes: Iterable[Route],
        store: VersionStore,
        branch_names: Mapping[str, str] | None = None,
    ) -> None:
        self.routes: dict[str, Route] = {route.id: route for route in routes}
        self.store = store
        self.branches: dict[str, str] = dict(
            branch_names or assign_branch_names(self.routes.values())
        )
        self.conflicts: ConflictSet = detect_conflicts(self.routes.values())
        self.states: dict[str, RouteBuildState] = {
            route_id: initial_state(len(route)) for route_id, route in self.routes.items()
        }
        self.merge_count = 0
        self._commits_before = store.commit_count()

    @property
    def finished(self) -> bool:
        """True once every route is Built."""
        return all(isinstance(state, Built) for state in self.states.values())

    def _build_alone(self, route_id: str) -> None:
        self.states[route_id] = build_route_alone(
            self.store,
            self.routes[route_id],
            self.branches[route_id],
            self.states[route_id],
            self.conflicts.keys(),
        )

    def bootstrap(self) -> None:
        """Build every route up to its first shared stop."""
        log.info(
            "bootstrap_started",
            routes=len(self.routes),
            shared_stops=len(self.conflicts),
        )
        for route_id in self.routes:
            self._build_alone(route_id)

    def merge(self, group: MergeGroup) -> str:
        """Create the merge commit for a ready group and resume its routes.

        Returns:
            Id of the merge commit.
        """
        previous: dict[str, RouteBuildState] = {}
        for route_id in group.route_ids:
            state = self.states[route_id]
            if isinstance(state, Built):
                raise InvariantViolationError(
                    "merge", state, f"route {route_id} is built but waits on {group.stop_id}"
                )
            previous[route_id] = state

        parents = dedupe_parents(
            [head for head in (head_commit(s) for s in previous.values()) if head is not None]
        )
        name = stop_name(self.routes, self.conflicts, group.stop_id)
        host_branch = self.branches[group.host]

        commit_id = self.store.create_commit(name, parents, host_branch)
        for route_id in group.route_ids[1:]:
            self.store.move_branch_head(self.branches[route_id], commit_id)
        self.merge_count += 1

        log.info(
            "merge_commit_created",
            stop=name,
            host=self.routes[group.host].name,
            routes=[self.routes[r].name for r in group.route_ids],
            parents=parents,
            commit=commit_id,
        )

        for route_id, state in previous.items():
            self.states[route_id] = advance_by_one(state, commit_id)
        for route_id in group.route_ids:
            self._build_alone(route_id)

        return commit_id

    def step(self) -> int:
        """Run one fixpoint pass.

        Returns:
            Number of merge commits created (always at least one).

        Raises:
            DeadlockError: If no shared stop is ready.
        """
        frontier = compute_frontier(self.routes, self.states)
        groups = find_ready_groups(frontier, self.conflicts)
        log.debug("frontier_computed", waiting=len(frontier), ready=len(groups))

        if not groups:
            progress = [
                describe_progress(self.routes[route_id], state)
                for route_id, state in self.states.items()
            ]
            log.error("build_deadlocked", progress=[str(p) for p in progress])
            raise DeadlockError(progress=progress)

        # Groups are disjoint: each route waits on exactly one stop.
        for group in groups:
            self.merge(group)
        return len(groups)

    def run(self) -> BuildResult:
        """Bootstrap, then loop until every route is Built."""
        self.bootstrap()
        while not self.finished:
            self.step()

        commit_count = self.store.commit_count() - self._commits_before
        log.info(
            "build_completed",
            commits=commit_count,
            merges=self.merge_count,
            branches=len(set(self.branches.values())),
        )
        return BuildResult(
            routes=list(self.routes.values()),
            conflicts=self.conflicts,
            states=dict(self.states),
            branches=dict(self.branches),
            heads=self.store.branch_heads(),
            commit_count=commit_count,
            merge_count=self.merge_count,
        )


def build_repository(
    routes: Iterable[Route],
    store: VersionStore,
    *,
    branch_names: Mapping[str, str] | None = None,
    branch_prefix: str = "",
) -> BuildResult:
    """Build the commit graph for *routes* into *store*.

    Args:
        routes: Selected routes with unique ids, in processing order.
        store: Version store receiving commits and branch heads.
        branch_names: Optional explicit route id -> branch name mapping.
        branch_prefix: Prefix for derived branch names (ignored when
            *branch_names* is given).

    Returns:
        BuildResult describing the finished graph.

    Raises:
        IrreconcilableOrderError: If stop orders cannot be unified.
        DeadlockError: If the fixpoint loop stops making progress.
    """
    reconciled = reconcile_order(routes)
    if branch_names is None:
        branch_names = assign_branch_names(reconciled, prefix=branch_prefix)
    builder = RouteGraphBuilder(reconciled, store, branch_names)
    return builder.run()
