"""Per-route build progress.

A route's progress is one of three immutable states:

- ``Untouched(length)``: no commit yet.
- ``Pending(built_index, length, head)``: stops ``0..built_index`` have
  commits on the route's branch; ``head`` is the commit for ``built_index``.
- ``Built(head)``: every stop has a commit; terminal.

States are replaced, never mutated. The only legal moves are
Untouched -> Pending -> ... -> Pending -> Built, with ``built_index``
strictly increasing by one per transition. Anything else raises
InvariantViolationError.
"""

from __future__ import annotations

from dataclasses import dataclass

from transitgit.graph.errors import InvariantViolationError


@dataclass(frozen=True)
class Untouched:
    """No commit has been created for the route yet."""

    length: int


@dataclass(frozen=True)
class Pending:
    """Stops up to and including ``built_index`` have commits."""

    built_index: int
    length: int
    head: str

    @property
    def is_complete(self) -> bool:
        """True when the last stop is built but the state was not finalised."""
        return self.built_index >= self.length - 1


@dataclass(frozen=True)
class Built:
    """Every stop of the route has a commit; ``head`` is the last one."""

    head: str


RouteBuildState = Untouched | Pending | Built


def initial_state(length: int) -> Untouched:
    """State of a route with *length* stops before any commit exists."""
    if length < 1:
        raise InvariantViolationError(
            operation="initial_state",
            state=Untouched(length),
            detail="a route needs at least one stop",
        )
    return Untouched(length)


def head_commit(state: RouteBuildState) -> str | None:
    """Commit id at the tip of the route's branch, None if Untouched."""
    if isinstance(state, Untouched):
        return None
    return state.head


def next_stop_index(state: RouteBuildState) -> int | None:
    """Index of the next stop the route needs, None once Built."""
    if isinstance(state, Built):
        return None
    if isinstance(state, Untouched):
        return 0
    return state.built_index + 1


def advance_by(state: RouteBuildState, commit_id: str, index: int) -> RouteBuildState:
    """Record that the stop at *index* now has commit *commit_id*.

    Used by the per-route builder, which always knows the exact index.

    Args:
        state: Current state of the route.
        commit_id: Commit just created for the stop.
        index: Index of that stop; must be the one right after the last built.

    Returns:
        Built if *index* is the route's last stop, else Pending at *index*.

    Raises:
        InvariantViolationError: If the route is Built or *index* is out of order.
    """
    if isinstance(state, Built):
        raise InvariantViolationError("advance_by", state, "the route has already been built")

    if isinstance(state, Untouched):
        expected, length = 0, state.length
    else:
        expected, length = state.built_index + 1, state.length

    if index != expected:
        raise InvariantViolationError(
            "advance_by", state, f"expected stop index {expected}, got {index}"
        )
    if index >= length:
        raise InvariantViolationError(
            "advance_by", state, f"stop index {index} is past the route end ({length} stops)"
        )

    if index == length - 1:
        return Built(commit_id)
    return Pending(index, length, commit_id)


def advance_by_one(state: RouteBuildState, commit_id: str) -> RouteBuildState:
    """Record that the stop after the last built one now has *commit_id*.

    Used after a merge commit, where the index is implicit.

    Raises:
        InvariantViolationError: If the route is Built or already past its end.
    """
    if isinstance(state, Built):
        raise InvariantViolationError("advance_by_one", state, "the route has already been built")

    if isinstance(state, Untouched):
        return Pending(0, state.length, commit_id)

    if state.is_complete:
        raise InvariantViolationError(
            "advance_by_one", state, "every stop of the route already has a commit"
        )
    if state.built_index == state.length - 2:
        return Built(commit_id)
    return Pending(state.built_index + 1, state.length, commit_id)


def finalize(state: RouteBuildState) -> RouteBuildState:
    """Turn a Pending state whose last stop is built into Built.

    Only a single-stop route whose stop was a merge point reaches this:
    advance_by_one moves Untouched to Pending(0, 1, ...) without
    looking at the length.
    """
    if isinstance(state, Pending) and state.is_complete:
        return Built(state.head)
    return state
