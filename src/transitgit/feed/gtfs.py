"""GTFS feed reading.

Reads just enough of a GTFS feed to produce one stop sequence per route:
routes.txt, trips.txt, stop_times.txt and stops.txt. A feed may be a
directory, a .zip archive, or an http(s) URL pointing at a .zip archive.
"""

from __future__ import annotations

import csv
import io
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import httpx

from transitgit.config import FeedConfig
from transitgit.errors import TransitGitError
from transitgit.models import RouteSummary, Stop
from transitgit.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

log = get_logger(__name__)

REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    "routes.txt": ("route_id",),
    "trips.txt": ("route_id", "trip_id"),
    "stop_times.txt": ("trip_id", "stop_id", "stop_sequence"),
    "stops.txt": ("stop_id",),
}

DOWNLOAD_TIMEOUT = 120.0


class FeedError(TransitGitError):
    """Raised when a feed cannot be read or a route selection is invalid."""

    def __init__(self, location: str, reason: str) -> None:
        self.location = location
        self.reason = reason
        super().__init__(f"Cannot read feed {location}: {reason}")


@dataclass
class Feed:
    """Routes extracted from a GTFS feed.

    Attributes:
        location: Where the feed was read from.
        routes: One summary per route with stop times, in routes.txt order.
        trip_count: Number of trips in trips.txt.
    """

    location: str
    routes: list[RouteSummary] = field(default_factory=list)
    trip_count: int = 0


class _FeedArchive:
    """Uniform CSV access over a GTFS directory or zip archive."""

    def __init__(
        self,
        location: str,
        directory: Path | None = None,
        archive: zipfile.ZipFile | None = None,
    ) -> None:
        self.location = location
        self._directory = directory
        self._archive = archive

    def _member_text(self, name: str) -> TextIO:
        if self._directory is not None:
            path = self._directory / name
            if not path.is_file():
                raise FeedError(self.location, f"missing {name}")
            return path.open("r", encoding="utf-8-sig", newline="")

        if self._archive is None:
            raise FeedError(self.location, "feed is closed")
        # Some producers nest the files in a top-level folder
        candidates = [
            info.filename
            for info in self._archive.infolist()
            if info.filename == name or info.filename.endswith(f"/{name}")
        ]
        if not candidates:
            raise FeedError(self.location, f"missing {name}")
        raw = self._archive.open(min(candidates, key=len))
        return io.TextIOWrapper(raw, encoding="utf-8-sig", newline="")

    def rows(self, name: str) -> Iterator[dict[str, str]]:
        """Yield the rows of a feed member as dicts, checking required columns."""
        with self._member_text(name) as fh:
            reader = csv.DictReader(fh)
            columns = {column.strip() for column in (reader.fieldnames or [])}
            missing = [c for c in REQUIRED_COLUMNS.get(name, ()) if c not in columns]
            if missing:
                raise FeedError(self.location, f"{name} lacks column(s) {', '.join(missing)}")
            for row in reader:
                yield {(k or "").strip(): (v or "").strip() for k, v in row.items()}

    def close(self) -> None:
        if self._archive is not None:
            self._archive.close()


def _download(url: str) -> bytes:
    log.info("feed_download_started", url=url)
    try:
        response = httpx.get(url, follow_redirects=True, timeout=DOWNLOAD_TIMEOUT)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise FeedError(url, f"HTTP {e.response.status_code}") from e
    except httpx.RequestError as e:
        raise FeedError(url, f"request failed: {e}") from e
    log.info("feed_downloaded", url=url, size=len(response.content))
    return response.content


def _open_feed(location: str | Path) -> _FeedArchive:
    text = str(location)
    if text.startswith(("http://", "https://")):
        payload = _download(text)
        try:
            return _FeedArchive(text, archive=zipfile.ZipFile(io.BytesIO(payload)))
        except zipfile.BadZipFile as e:
            raise FeedError(text, "downloaded file is not a zip archive") from e

    path = Path(location)
    if path.is_dir():
        return _FeedArchive(text, directory=path)
    if path.is_file():
        try:
            return _FeedArchive(text, archive=zipfile.ZipFile(path))
        except zipfile.BadZipFile as e:
            raise FeedError(text, "not a zip archive") from e
    raise FeedError(text, "no such file or directory")


def normalize_stop_id(stop_id: str, separator: str) -> str:
    """Truncate a stop id at the first *separator* (no-op if empty)."""
    if not separator:
        return stop_id
    return stop_id.split(separator, 1)[0] or stop_id


def _choose_trip(trip_ids: list[str], stop_counts: dict[str, int], selection: str) -> str | None:
    served = [trip_id for trip_id in trip_ids if stop_counts.get(trip_id)]
    if not served:
        return None
    if selection == "first":
        return min(served)
    return min(served, key=lambda trip_id: (-stop_counts[trip_id], trip_id))


def load_feed(location: str | Path, config: FeedConfig | None = None) -> Feed:
    """Read a GTFS feed into route summaries.

    Each route is represented by one trip (see FeedConfig.trip_selection)
    whose stop times, ordered by stop_sequence, give the route's stops.

    Args:
        location: GTFS directory, .zip archive path, or http(s) URL.
        config: Feed options; defaults to FeedConfig().

    Returns:
        Feed with one RouteSummary per route that has at least one stop time.

    Raises:
        FeedError: If the feed cannot be opened or a required file or
            column is missing.
    """
    config = config or FeedConfig()
    archive = _open_feed(location)
    try:
        route_rows = list(archive.rows("routes.txt"))

        trips_by_route: dict[str, list[str]] = {}
        trip_count = 0
        for row in archive.rows("trips.txt"):
            trips_by_route.setdefault(row["route_id"], []).append(row["trip_id"])
            trip_count += 1

        stop_times: dict[str, list[tuple[int, str]]] = {}
        for row in archive.rows("stop_times.txt"):
            try:
                sequence = int(row["stop_sequence"])
            except ValueError as e:
                raise FeedError(
                    archive.location,
                    f"invalid stop_sequence {row['stop_sequence']!r} in trip {row['trip_id']}",
                ) from e
            stop_times.setdefault(row["trip_id"], []).append((sequence, row["stop_id"]))

        stop_names = {row["stop_id"]: row.get("stop_name", "") for row in archive.rows("stops.txt")}
    finally:
        archive.close()

    stop_counts = {trip_id: len(times) for trip_id, times in stop_times.items()}
    summaries: list[RouteSummary] = []
    for row in route_rows:
        route_id = row["route_id"]
        trip_id = _choose_trip(trips_by_route.get(route_id, []), stop_counts, config.trip_selection)
        if trip_id is None:
            log.warning("route_without_stop_times", route=route_id)
            continue

        stops = tuple(
            Stop(
                id=normalize_stop_id(raw_id, config.stop_id_separator),
                name=stop_names.get(raw_id) or raw_id,
            )
            for _, raw_id in sorted(stop_times[trip_id])
        )
        summaries.append(
            RouteSummary(
                route_id=route_id,
                short_name=row.get("route_short_name", ""),
                long_name=row.get("route_long_name", ""),
                trip_id=trip_id,
                stops=stops,
            )
        )

    log.info("feed_loaded", location=str(location), routes=len(summaries), trips=trip_count)
    return Feed(location=str(location), routes=summaries, trip_count=trip_count)
