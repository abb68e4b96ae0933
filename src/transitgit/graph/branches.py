"""Branch naming for routes.

Route names come straight from the feed and routinely contain spaces,
slashes or other characters git refuses in a ref name. Two routes may
also share a display name (e.g. both directions of a line), so names
are disambiguated with the route id.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from transitgit.models import Route

# Characters git check-ref-format rejects, plus whitespace
_INVALID_REF_CHARS = re.compile(r"[\s~^:?*\[\\\x00-\x1f\x7f]+")
_REPEATED_DOTS = re.compile(r"\.{2,}")
_REPEATED_DASHES = re.compile(r"-{2,}")


def sanitize_branch_name(name: str) -> str:
    """Turn an arbitrary label into a valid git branch name component.

    Slashes are replaced as well, so each route maps to a single path
    component under ``refs/heads``.
    """
    cleaned = _INVALID_REF_CHARS.sub("-", name.replace("/", "-"))
    cleaned = _REPEATED_DOTS.sub(".", cleaned).replace("@{", "-")
    cleaned = _REPEATED_DASHES.sub("-", cleaned)
    cleaned = cleaned.strip("-.")
    if cleaned.endswith(".lock"):
        cleaned = cleaned.removesuffix(".lock") + "-lock"
    return cleaned or "route"


def assign_branch_names(routes: Iterable[Route], prefix: str = "") -> dict[str, str]:
    """Give each route a unique, valid branch name.

    Args:
        routes: Routes to name; ids must be unique.
        prefix: Prepended verbatim (e.g. ``"lines/"``) to every name.

    Returns:
        Route id -> branch name.
    """
    routes = list(routes)
    base = {route.id: sanitize_branch_name(route.name) for route in routes}

    counts: dict[str, int] = {}
    for name in base.values():
        counts[name] = counts.get(name, 0) + 1

    # Names used by exactly one route are kept as-is and reserved first
    taken = {name for name, count in counts.items() if count == 1}

    names: dict[str, str] = {}
    for route in routes:
        name = base[route.id]
        if counts[name] > 1:
            candidate = f"{name}-{sanitize_branch_name(route.id)}"
            suffix = 2
            while candidate in taken:
                candidate = f"{name}-{sanitize_branch_name(route.id)}-{suffix}"
                suffix += 1
            taken.add(candidate)
            name = candidate
        names[route.id] = f"{prefix}{name}"
    return names
