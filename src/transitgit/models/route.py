"""Stop and route value types.

Stops and routes are constructed once from the selected feed routes and
are read-only for the rest of a run. Reconciliation never edits a route in
place: it swaps in the value returned by :meth:`Route.reversed`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Stop(BaseModel):
    """A physical stop. Identity is ``id``; ``name`` is the commit message."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str


class Route(BaseModel):
    """An ordered sequence of stops served by one route.

    Attributes:
        id: Feed route id. Deterministic ordering (host selection) uses it.
        name: Display name, also the source of the branch name.
        stops: Stops in travel order. A route always has at least one stop.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    stops: tuple[Stop, ...] = Field(min_length=1)

    def __len__(self) -> int:
        return len(self.stops)

    @property
    def stop_ids(self) -> list[str]:
        """Stop ids in travel order (duplicates preserved)."""
        return [stop.id for stop in self.stops]

    @property
    def stop_names(self) -> list[str]:
        """Stop names in travel order."""
        return [stop.name for stop in self.stops]

    def stop(self, index: int) -> Stop:
        return self.stops[index]

    def reversed(self) -> Route:
        """Return a copy of this route travelling in the opposite direction."""
        return self.model_copy(update={"stops": tuple(reversed(self.stops))})


class RouteSummary(BaseModel):
    """A route as read from the feed, before it enters the build.

    Attributes:
        route_id: Feed route id.
        short_name: GTFS route_short_name (may be empty).
        long_name: GTFS route_long_name (may be empty).
        trip_id: Representative trip whose stop sequence is used.
        stops: Stops of the representative trip in stop_sequence order.
    """

    model_config = ConfigDict(frozen=True)

    route_id: str = Field(min_length=1)
    short_name: str = ""
    long_name: str = ""
    trip_id: str
    stops: tuple[Stop, ...] = ()

    @property
    def display_name(self) -> str:
        """Long name, else short name, else the route id."""
        return self.long_name or self.short_name or self.route_id

    def to_route(self) -> Route:
        """Convert to the core Route value used by the build."""
        return Route(id=self.route_id, name=self.display_name, stops=self.stops)
