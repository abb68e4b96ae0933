"""Tests for GTFS feed reading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from transitgit.config import FeedConfig
from transitgit.feed import FeedError, load_feed, normalize_stop_id
from transitgit.feed.gtfs import _choose_trip

if TYPE_CHECKING:
    from pathlib import Path


class TestNormalizeStopId:
    """Tests for normalize_stop_id()."""

    def test_truncates_at_separator(self) -> None:
        assert normalize_stop_id("S2:platform1", ":") == "S2"

    def test_first_separator_only(self) -> None:
        assert normalize_stop_id("a:b:c", ":") == "a"

    def test_without_separator(self) -> None:
        assert normalize_stop_id("S2", ":") == "S2"

    def test_empty_separator_disables(self) -> None:
        assert normalize_stop_id("S2:platform1", "") == "S2:platform1"

    def test_leading_separator_keeps_id(self) -> None:
        """An id that would truncate to nothing is kept whole."""
        assert normalize_stop_id(":x", ":") == ":x"


class TestChooseTrip:
    """Tests for representative trip selection."""

    def test_longest(self) -> None:
        assert _choose_trip(["t1", "t2"], {"t1": 3, "t2": 5}, "longest") == "t2"

    def test_longest_tie_broken_by_id(self) -> None:
        assert _choose_trip(["t2", "t1"], {"t1": 4, "t2": 4}, "longest") == "t1"

    def test_first(self) -> None:
        assert _choose_trip(["t2", "t1"], {"t1": 1, "t2": 9}, "first") == "t1"

    def test_trips_without_stop_times_ignored(self) -> None:
        assert _choose_trip(["t1", "t2"], {"t2": 2}, "first") == "t2"
        assert _choose_trip(["t1"], {}, "longest") is None


class TestLoadFeed:
    """Tests for load_feed()."""

    def test_directory(self, gtfs_dir: Path) -> None:
        feed = load_feed(gtfs_dir)

        assert feed.location == str(gtfs_dir)
        assert feed.trip_count == 3
        assert [r.route_id for r in feed.routes] == ["A", "B"]

    def test_longest_trip_is_representative(self, gtfs_dir: Path) -> None:
        route_a = load_feed(gtfs_dir).routes[0]

        assert route_a.trip_id == "A1"
        assert route_a.display_name == "Line One"
        assert [s.id for s in route_a.stops] == ["S1", "S2", "S3"]
        assert [s.name for s in route_a.stops] == ["Harbour", "Central", "University"]

    def test_stops_sorted_by_sequence(self, gtfs_dir: Path) -> None:
        route_b = load_feed(gtfs_dir).routes[1]

        assert route_b.display_name == "2"
        assert [s.id for s in route_b.stops] == ["S4", "S2", "S5"]

    def test_missing_stop_name_falls_back_to_id(self, gtfs_dir: Path) -> None:
        route_b = load_feed(gtfs_dir).routes[1]
        assert route_b.stops[-1].name == "S5"

    def test_separator_disabled(self, gtfs_dir: Path) -> None:
        feed = load_feed(gtfs_dir, FeedConfig(stop_id_separator=""))
        assert feed.routes[0].stops[1].id == "S2:platform1"

    def test_first_trip_selection(self, gtfs_dir: Path) -> None:
        feed = load_feed(gtfs_dir, FeedConfig(trip_selection="first"))
        assert feed.routes[0].trip_id == "A1"

    def test_zip_with_nested_folder(self, gtfs_zip: Path) -> None:
        feed = load_feed(gtfs_zip)
        assert [r.route_id for r in feed.routes] == ["A", "B"]
        assert [s.id for s in feed.routes[1].stops] == ["S4", "S2", "S5"]

    def test_missing_location(self, tmp_path: Path) -> None:
        with pytest.raises(FeedError, match="no such file or directory"):
            load_feed(tmp_path / "nowhere")

    def test_missing_member(self, gtfs_dir: Path) -> None:
        (gtfs_dir / "stops.txt").unlink()
        with pytest.raises(FeedError, match="missing stops.txt"):
            load_feed(gtfs_dir)

    def test_missing_column(self, gtfs_dir: Path) -> None:
        (gtfs_dir / "trips.txt").write_text("route_id,service_id\nA,WK\n")
        with pytest.raises(FeedError, match="trips.txt lacks column"):
            load_feed(gtfs_dir)

    def test_invalid_stop_sequence(self, gtfs_dir: Path) -> None:
        (gtfs_dir / "stop_times.txt").write_text(
            "trip_id,stop_id,stop_sequence\nA1,S1,first\n"
        )
        with pytest.raises(FeedError, match="invalid stop_sequence"):
            load_feed(gtfs_dir)

    def test_not_a_zip(self, tmp_path: Path) -> None:
        bogus = tmp_path / "feed.zip"
        bogus.write_text("not a zip")
        with pytest.raises(FeedError, match="not a zip archive"):
            load_feed(bogus)

    def test_download_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """HTTP failures surface as FeedError."""
        request = httpx.Request("GET", "https://example.org/gtfs.zip")

        def fake_get(url: str, **kwargs: object) -> httpx.Response:
            return httpx.Response(404, request=request)

        monkeypatch.setattr(httpx, "get", fake_get)

        with pytest.raises(FeedError, match="HTTP 404"):
            load_feed("https://example.org/gtfs.zip")

    def test_download_zip(self, monkeypatch: pytest.MonkeyPatch, gtfs_zip: Path) -> None:
        request = httpx.Request("GET", "https://example.org/gtfs.zip")
        payload = gtfs_zip.read_bytes()

        def fake_get(url: str, **kwargs: object) -> httpx.Response:
            return httpx.Response(200, content=payload, request=request)

        monkeypatch.setattr(httpx, "get", fake_get)

        feed = load_feed("https://example.org/gtfs.zip")

        assert feed.location == "https://example.org/gtfs.zip"
        assert len(feed.routes) == 2
