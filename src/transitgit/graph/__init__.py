"""Graph package - route commit graph construction.

Reconciles route stop orders, finds shared stops, and builds one branch of
commits per route with merge commits at every shared stop.
"""

from transitgit.graph.branches import assign_branch_names, sanitize_branch_name
from transitgit.graph.builder import build_route_alone
from transitgit.graph.conflicts import ConflictSet, detect_conflicts
from transitgit.graph.driver import (
    BuildResult,
    MergeGroup,
    RouteGraphBuilder,
    build_repository,
    compute_frontier,
    find_ready_groups,
)
from transitgit.graph.errors import (
    DeadlockError,
    InvariantViolationError,
    IrreconcilableOrderError,
    ReferenceVerdict,
    RouteProgress,
)
from transitgit.graph.ordering import reconcile_order, same_order
from transitgit.graph.state import (
    Built,
    Pending,
    RouteBuildState,
    Untouched,
    advance_by,
    advance_by_one,
)
from transitgit.graph.store import DictVersionStore, StoredCommit, VersionStore

__all__ = [
    "BuildResult",
    "Built",
    "ConflictSet",
    "DeadlockError",
    "DictVersionStore",
    "InvariantViolationError",
    "IrreconcilableOrderError",
    "MergeGroup",
    "Pending",
    "ReferenceVerdict",
    "RouteBuildState",
    "RouteGraphBuilder",
    "RouteProgress",
    "StoredCommit",
    "Untouched",
    "VersionStore",
    "advance_by",
    "advance_by_one",
    "assign_branch_names",
    "build_repository",
    "build_route_alone",
    "compute_frontier",
    "detect_conflicts",
    "find_ready_groups",
    "reconcile_order",
    "same_order",
    "sanitize_branch_name",
]
