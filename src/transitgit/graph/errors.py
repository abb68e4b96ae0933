"""Fatal error types raised while building the commit graph.

None of these are retried. A build is all-or-nothing: once one of them is
raised, whatever was written to the version store is not a valid result.

Each error can render itself as a diagnostic report via to_report(), which
the CLI prints before exiting non-zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from transitgit.errors import TransitGitError

if TYPE_CHECKING:
    from transitgit.graph.state import RouteBuildState
    from transitgit.models import Route


@dataclass(frozen=True)
class ReferenceVerdict:
    """An accepted route and whether it agrees with the rejected route.

    Attributes:
        route: The accepted route, in its chosen orientation.
        matches: ``same_order(rejected, route)``.
        matches_reversed: ``same_order(reversed(rejected), route)``.
    """

    route: Route
    matches: bool
    matches_reversed: bool


@dataclass
class IrreconcilableOrderError(TransitGitError):
    """Raised when a route's stop order cannot be unified with the others.

    Attributes:
        route: The route that could not be accepted in either direction.
        references: Every route accepted so far, with pairwise verdicts.
    """

    route: Route
    references: list[ReferenceVerdict] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(f"Could not unify stops order for route {self.route.name}")

    def to_report(self) -> str:
        lines = [
            f"Could not unify stops order for route {self.route.name}.",
            "",
            f"Stops for route {self.route.name}: {self.route.stop_names}",
            "",
            "Accepted routes (match as given / match reversed):",
        ]
        for ref in self.references:
            lines.append(
                f"  ({ref.matches}, {ref.matches_reversed}) "
                f"{ref.route.name}: {ref.route.stop_names}"
            )
        return "\n".join(lines)


@dataclass(frozen=True)
class RouteProgress:
    """How far one route got before the build stalled."""

    route_name: str
    status: str
    finished: bool = False

    def __str__(self) -> str:
        return f"{self.route_name}: {self.status}"


@dataclass
class DeadlockError(TransitGitError):
    """Raised when a fixpoint pass finds no merge group ready to build.

    Every remaining route is waiting on a shared stop that some other
    participant can never reach, so continuing would loop forever.

    Attributes:
        progress: One entry per route, in route order.
    """

    progress: list[RouteProgress] = field(default_factory=list)

    def __post_init__(self) -> None:
        waiting = sum(1 for p in self.progress if not p.finished)
        super().__init__(f"No merge group is ready; {waiting} route(s) cannot progress")

    def to_report(self) -> str:
        lines = ["Build deadlocked. Done until this:"]
        for entry in self.progress:
            lines.append(f"  - {entry}")
        return "\n".join(lines)


@dataclass
class InvariantViolationError(TransitGitError):
    """Raised when a route build-state transition is illegal.

    This indicates a bug in the build, not bad input. The state is never
    silently corrected.

    Attributes:
        operation: Transition that was attempted.
        state: State the transition was applied to.
        detail: What precondition failed.
    """

    operation: str
    state: RouteBuildState
    detail: str

    def __post_init__(self) -> None:
        super().__init__(f"{self.operation} on {self.state!r}: {self.detail}")

    def to_report(self) -> str:
        return "\n".join(
            [
                "Internal invariant violated while building routes.",
                f"  operation: {self.operation}",
                f"  state: {self.state!r}",
                f"  detail: {self.detail}",
            ]
        )
