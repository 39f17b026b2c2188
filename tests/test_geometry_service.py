"""Tests for route geometry assembly."""

from pathlib import Path

import pytest

from transit_search.models.catalog import Stop, Trip
from transit_search.services.geometry_service import (
    assemble_route,
    get_route_geometry,
    get_routes_geojson,
    get_routes_in_bbox,
    line_from_stops,
    line_intersects_bbox,
    stored_line,
    validate_bbox,
)


def _trip(geometry=None, stop_ids=("A", "B", "C")) -> Trip:
    return Trip(
        trip_id="T1",
        number="126",
        operator="KSRTC",
        geometry=geometry,
        stops=[{"seq": i, "stop_id": s} for i, s in enumerate(stop_ids)],
    )


STOPS = {
    "A": Stop(stop_id="A", stop_name="A", stop_lon=76.0, stop_lat=12.0),
    "B": Stop(stop_id="B", stop_name="B"),
    "C": Stop(stop_id="C", stop_name="C", stop_lon=77.0, stop_lat=13.0, stop_code="CC"),
}


class TestStoredLine:
    def test_linestring(self) -> None:
        geometry = {"type": "LineString", "coordinates": [[76.0, 12.0], [77, 13]]}
        assert stored_line(geometry) == [(76.0, 12.0), (77.0, 13.0)]

    def test_bare_positions(self) -> None:
        assert stored_line([[76.0, 12.0], [77.0, 13.0]]) is not None

    def test_single_position_rejected(self) -> None:
        assert stored_line({"type": "LineString", "coordinates": [[76.0, 12.0]]}) is None

    def test_out_of_range_rejected(self) -> None:
        geometry = {"type": "LineString", "coordinates": [[76.0, 12.0], [181.0, 13.0]]}
        assert stored_line(geometry) is None

    def test_malformed_rejected(self) -> None:
        assert stored_line({"type": "Point", "coordinates": [76.0, 12.0]}) is None
        assert stored_line({"type": "LineString", "coordinates": [["x", 1], [2, 3]]}) is None
        assert stored_line("not geometry") is None
        assert stored_line(None) is None


class TestAssembleRoute:
    def test_prefers_stored_geometry(self) -> None:
        geometry = {"type": "LineString", "coordinates": [[70.0, 10.0], [71.0, 11.0]]}
        collection = assemble_route(_trip(geometry), STOPS)

        feature = collection.features[0]
        assert feature.geometry.coordinates == [(70.0, 10.0), (71.0, 11.0)]
        assert feature.properties["source"] == "stored"
        assert feature.properties["trip_id"] == "T1"
        assert feature.properties["operator"] == "KSRTC"

    def test_falls_back_to_stops_skipping_unresolvable(self) -> None:
        collection = assemble_route(_trip(), STOPS)

        feature = collection.features[0]
        assert feature.geometry.coordinates == [(76.0, 12.0), (77.0, 13.0)]
        assert feature.properties["source"] == "stops"

    def test_empty_when_fewer_than_two_positions(self) -> None:
        collection = assemble_route(_trip(stop_ids=("A", "B", "Z")), STOPS)

        assert collection.type == "FeatureCollection"
        assert collection.features == []

    def test_stop_points(self) -> None:
        collection = assemble_route(_trip(), STOPS, include_stops=True)

        points = [f for f in collection.features if f.geometry.type == "Point"]
        assert [p.properties["stop_id"] for p in points] == ["A", "C"]
        assert points[1].properties["stop_code"] == "CC"
        assert points[1].properties["seq"] == 2

    def test_line_from_stops_order(self) -> None:
        line = line_from_stops(_trip(stop_ids=("C", "A")), STOPS)
        assert line == [(77.0, 13.0), (76.0, 12.0)]


class TestGetRouteGeometry:
    async def test_stored_geometry(self, db_path: Path) -> None:
        collection = await get_route_geometry("TRIP_C", db_path=db_path)

        assert collection.features[0].properties["source"] == "stored"

    async def test_derived_from_stops(self, db_path: Path) -> None:
        collection = await get_route_geometry("TRIP_A", db_path=db_path)

        line = collection.features[0].geometry.coordinates
        assert len(line) == 3
        assert line[0] == (76.6548, 12.3106)

    async def test_invalid_stored_geometry_degrades(self, db_path: Path) -> None:
        collection = await get_route_geometry("TRIP_T", db_path=db_path)

        feature = collection.features[0]
        assert feature.properties["source"] == "stops"
        assert len(feature.geometry.coordinates) == 2

    async def test_empty_geometry(self, db_path: Path) -> None:
        # the depot stop has no coordinates, leaving a single position
        collection = await get_route_geometry("TRIP_D", db_path=db_path)

        assert collection.features == []

    async def test_include_stops(self, db_path: Path) -> None:
        collection = await get_route_geometry("TRIP_C", include_stops=True, db_path=db_path)

        assert [f.geometry.type for f in collection.features] == ["LineString", "Point", "Point"]

    async def test_unknown_trip(self, db_path: Path) -> None:
        assert await get_route_geometry("NOPE", db_path=db_path) is None


def _trip_ids(collection) -> list[str]:
    return [f.properties["trip_id"] for f in collection.features]


class TestLineIntersectsBBox:
    def test_vertex_inside(self) -> None:
        assert line_intersects_bbox([(0.0, 0.0), (5.0, 5.0)], (4.0, 4.0, 6.0, 6.0))

    def test_crossing_without_vertex_inside(self) -> None:
        assert line_intersects_bbox([(0.0, 5.0), (10.0, 5.0)], (4.0, 4.0, 6.0, 6.0))

    def test_vertical_segment(self) -> None:
        line = [(5.0, 0.0), (5.0, 10.0)]
        assert line_intersects_bbox(line, (4.0, 4.0, 6.0, 6.0))
        assert not line_intersects_bbox(line, (6.0, 4.0, 7.0, 6.0))

    def test_passes_beside_box(self) -> None:
        assert not line_intersects_bbox([(0.0, 0.0), (10.0, 10.0)], (4.0, 6.0, 5.0, 7.0))


class TestValidateBBox:
    def test_valid(self) -> None:
        assert validate_bbox(76.0, 12.0, 77.0, 13.0) == (76.0, 12.0, 77.0, 13.0)

    def test_inverted_rejected(self) -> None:
        with pytest.raises(ValueError, match="minimum exceeds maximum"):
            validate_bbox(77.0, 12.0, 76.0, 13.0)

    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(ValueError, match="Latitude"):
            validate_bbox(76.0, -95.0, 77.0, 13.0)


class TestGetRoutesGeojson:
    async def test_all_drawable_active_trips(self, db_path: Path) -> None:
        """The depot shuttle has only one located stop, the retired trip is inactive."""
        collection = await get_routes_geojson(db_path=db_path)

        assert _trip_ids(collection) == ["TRIP_A", "TRIP_B", "TRIP_C", "TRIP_R", "TRIP_T"]
        sources = {f.properties["trip_id"]: f.properties["source"] for f in collection.features}
        assert sources["TRIP_C"] == "stored"
        assert sources["TRIP_T"] == "stops"

    async def test_operator_filter(self, db_path: Path) -> None:
        collection = await get_routes_geojson(operator="KSRTC", db_path=db_path)

        assert _trip_ids(collection) == ["TRIP_A", "TRIP_B", "TRIP_R"]

    async def test_mode_filter(self, db_path: Path) -> None:
        collection = await get_routes_geojson(mode="train", db_path=db_path)

        assert _trip_ids(collection) == ["TRIP_T"]
        assert collection.features[0].properties["mode"] == "train"

    async def test_limit(self, db_path: Path) -> None:
        collection = await get_routes_geojson(limit=2, db_path=db_path)

        assert _trip_ids(collection) == ["TRIP_A", "TRIP_B"]


class TestGetRoutesInBBox:
    async def test_box_around_intermediate_stop(self, db_path: Path) -> None:
        """Only trips calling at Mandya pass through a small box around it."""
        collection = await get_routes_in_bbox(76.88, 12.51, 76.91, 12.53, db_path=db_path)

        assert _trip_ids(collection) == ["TRIP_A", "TRIP_B"]

    async def test_lines_crossing_box_without_vertices(self, db_path: Path) -> None:
        collection = await get_routes_in_bbox(76.90, 12.45, 76.93, 12.52, db_path=db_path)

        assert _trip_ids(collection) == ["TRIP_C", "TRIP_R", "TRIP_T"]

    async def test_mode_filter(self, db_path: Path) -> None:
        collection = await get_routes_in_bbox(
            76.90, 12.45, 76.93, 12.52, mode="bus", db_path=db_path
        )

        assert _trip_ids(collection) == ["TRIP_C", "TRIP_R"]

    async def test_empty_box(self, db_path: Path) -> None:
        collection = await get_routes_in_bbox(10.0, 10.0, 11.0, 11.0, db_path=db_path)

        assert collection.features == []

    async def test_invalid_box(self, db_path: Path) -> None:
        with pytest.raises(ValueError):
            await get_routes_in_bbox(77.0, 12.0, 76.0, 13.0, db_path=db_path)
