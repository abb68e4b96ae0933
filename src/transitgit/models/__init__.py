"""Value types shared by the feed reader and the graph build."""

from transitgit.models.route import Route, RouteSummary, Stop

__all__ = [
    "Route",
    "RouteSummary",
    "Stop",
]
