"""Stop order reconciliation across routes.

Feeds do not say which way a route runs relative to its neighbours, so two
routes sharing stops may list them in opposite directions. Before any commit
is written every route gets one orientation, as given or fully reversed,
such that any two routes visit their common stops in the same order.

The only repair attempted is flipping whole routes. Orderings that need
more than that (e.g. three routes whose shared stops form a cycle) are
rejected with IrreconcilableOrderError rather than guessed at.
"""

from __future__ import annotations

from itertools import combinations
from typing import TYPE_CHECKING

from transitgit.graph.errors import IrreconcilableOrderError, ReferenceVerdict
from transitgit.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from transitgit.models import Route

log = get_logger(__name__)


def same_order(a: Route, b: Route) -> bool:
    """Check whether two routes visit their common stops in the same order.

    B's stops are filtered down to those also in A, A's stops down to those
    also in B, and the two filtered sequences must be identical (order and
    multiplicity, not just membership).
    """
    a_ids = a.stop_ids
    b_members = set(b.stop_ids)
    a_members = set(a_ids)

    common_in_b = [stop_id for stop_id in b.stop_ids if stop_id in a_members]
    common_in_a = [stop_id for stop_id in a_ids if stop_id in b_members]
    return common_in_a == common_in_b


def _agrees_with_all(route: Route, references: Iterable[Route]) -> bool:
    return all(same_order(route, ref) for ref in references)


def _is_self_consistent(references: list[Route]) -> bool:
    return all(same_order(r1, r2) for r1, r2 in combinations(references, 2))


def _try_repair(route: Route, accepted: dict[str, Route]) -> dict[str, Route] | None:
    """Flip the accepted routes that disagree with reversed *route* and re-validate.

    The proposal is accepted only if *route*, as given, agrees with every
    route afterwards and every accepted pair still agrees.

    Returns:
        The new accepted mapping (with *route* appended) if every pair is
        consistent afterwards, otherwise None.
    """
    flipped = route.reversed()
    disagreeing = {rid for rid, ref in accepted.items() if not same_order(flipped, ref)}
    proposal = {
        rid: ref.reversed() if rid in disagreeing else ref for rid, ref in accepted.items()
    }

    if not _agrees_with_all(route, proposal.values()):
        return None
    if not _is_self_consistent(list(proposal.values())):
        return None

    log.info(
        "order_repaired",
        route=route.name,
        flipped=[accepted[rid].name for rid in disagreeing],
    )
    proposal[route.id] = route
    return proposal


def reconcile_order(routes: Iterable[Route]) -> list[Route]:
    """Choose one orientation per route so all shared stops agree.

    Routes are processed in input order. Each new route is accepted as
    given if it agrees with every accepted route, else reversed if that
    agrees, else a one-shot repair flips the accepted routes that disagree
    with the reversed route and re-validates every pair.

    Args:
        routes: Routes with independently sourced stop orders. Route ids
            must be unique.

    Returns:
        The same routes in input order, each as given or reversed.

    Raises:
        IrreconcilableOrderError: If some route cannot be accepted in either
            direction, even after the repair attempt.
    """
    routes = list(routes)
    accepted: dict[str, Route] = {}

    for route in routes:
        if not accepted or _agrees_with_all(route, accepted.values()):
            accepted[route.id] = route
            continue

        flipped = route.reversed()
        if _agrees_with_all(flipped, accepted.values()):
            log.debug("route_reversed", route=route.name)
            accepted[route.id] = flipped
            continue

        repaired = _try_repair(route, accepted)
        if repaired is not None:
            accepted = repaired
            continue

        verdicts = [
            ReferenceVerdict(
                route=ref,
                matches=same_order(route, ref),
                matches_reversed=same_order(flipped, ref),
            )
            for ref in accepted.values()
        ]
        log.error("order_unification_failed", route=route.name, stops=route.stop_names)
        raise IrreconcilableOrderError(route=route, references=verdicts)

    for route in accepted.values():
        log.debug("order_decided", route=route.name, stops=route.stop_names)

    return [accepted[route.id] for route in routes]
