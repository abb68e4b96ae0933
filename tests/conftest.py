"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from transitgit.models import Route, Stop

RouteFactory = Callable[..., Route]

# Small GTFS feed: line A serves S1 S2 S3, line B serves S4 S2 S5.
# Trip A2 is shorter than A1 and must not be picked as representative.
FEED_FILES: dict[str, str] = {
    "routes.txt": (
        "route_id,route_short_name,route_long_name,route_type\n"
        "A,1,Line One,3\n"
        "B,2,,3\n"
        "C,3,Ghost Line,3\n"
    ),
    "trips.txt": ("route_id,service_id,trip_id\nA,WK,A1\nA,WK,A2\nB,WK,B1\n"),
    "stop_times.txt": (
        "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n"
        "A1,08:00:00,08:00:00,S1,1\n"
        "A1,08:05:00,08:05:00,S2:platform1,2\n"
        "A1,08:10:00,08:10:00,S3,3\n"
        "A2,09:05:00,09:05:00,S2,2\n"
        "A2,09:10:00,09:10:00,S3,3\n"
        "B1,08:20:00,08:20:00,S5,30\n"
        "B1,08:00:00,08:00:00,S4,10\n"
        "B1,08:10:00,08:10:00,S2:platform2,20\n"
    ),
    "stops.txt": (
        "stop_id,stop_name,stop_lat,stop_lon\n"
        "S1,Harbour,0,0\n"
        "S2,Central,0,0\n"
        "S2:platform1,Central,0,0\n"
        "S2:platform2,Central,0,0\n"
        "S3,University,0,0\n"
        "S4,Airport,0,0\n"
        "S5,\n"
    ),
}


@pytest.fixture
def make_route() -> RouteFactory:
    """Return a factory building a Route from stop ids.

    Stop names default to the ids, so commit messages are predictable.
    """

    def _make(route_id: str, stop_ids: list[str], name: str | None = None) -> Route:
        return Route(
            id=route_id,
            name=name or route_id,
            stops=tuple(Stop(id=stop_id, name=stop_id) for stop_id in stop_ids),
        )

    return _make


@pytest.fixture
def gtfs_dir(tmp_path: Path) -> Path:
    """Write the sample GTFS feed to a directory and return its path."""
    feed_dir = tmp_path / "gtfs"
    feed_dir.mkdir()
    for name, content in FEED_FILES.items():
        (feed_dir / name).write_text(content, encoding="utf-8")
    return feed_dir


@pytest.fixture
def gtfs_zip(tmp_path: Path) -> Path:
    """Write the sample GTFS feed to a zip archive nested in a folder."""
    import zipfile

    archive = tmp_path / "feed.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        for name, content in FEED_FILES.items():
            zf.writestr(f"export/{name}", content)
    return archive
