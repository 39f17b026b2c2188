"""Route geometry assembly for map rendering.

Positions are always (longitude, latitude).
"""

import logging
from pathlib import Path
from typing import Any

from transit_search.data.database import get_db
from transit_search.data.trip_store import TripFilter, fetch_stops, fetch_trip, fetch_trips
from transit_search.models.catalog import Stop, TransitMode, Trip
from transit_search.models.responses import (
    Feature,
    LineGeometry,
    PointGeometry,
    RouteFeatureCollection,
)

logger = logging.getLogger(__name__)

MIN_LINE_POSITIONS = 2
DEFAULT_ROUTE_FEATURES = 500
MAX_ROUTE_FEATURES = 2000

# (min_lon, min_lat, max_lon, max_lat)
BBox = tuple[float, float, float, float]


def _valid_position(position: Any) -> tuple[float, float] | None:
    """Coerce a [lon, lat] pair, or None if it is malformed or out of range."""
    if not isinstance(position, list | tuple) or len(position) < 2:
        return None
    lon, lat = position[0], position[1]
    if isinstance(lon, bool) or isinstance(lat, bool):
        return None
    if not isinstance(lon, int | float) or not isinstance(lat, int | float):
        return None
    if not (-180 <= lon <= 180 and -90 <= lat <= 90):
        return None
    return (float(lon), float(lat))


def stored_line(geometry: Any) -> list[tuple[float, float]] | None:
    """Validate stored geometry as a line.

    Accepts a LineString object or a bare list of positions. Every position
    must be valid; a single bad position rejects the stored shape.
    """
    if isinstance(geometry, dict):
        if geometry.get("type") != "LineString":
            return None
        positions = geometry.get("coordinates")
    else:
        positions = geometry

    if not isinstance(positions, list) or len(positions) < MIN_LINE_POSITIONS:
        return None

    line: list[tuple[float, float]] = []
    for position in positions:
        valid = _valid_position(position)
        if valid is None:
            return None
        line.append(valid)
    return line


def line_from_stops(trip: Trip, stops: dict[str, Stop]) -> list[tuple[float, float]] | None:
    """Assemble a line from stop coordinates in sequence order.

    Stops that can't be resolved or have no coordinates are skipped.
    """
    line: list[tuple[float, float]] = []
    for trip_stop in trip.stops:
        stop = stops.get(trip_stop.stop_id)
        if stop is None:
            logger.warning(f"Trip {trip.trip_id}: stop {trip_stop.stop_id} not in catalog")
            continue
        if stop.coordinates is None:
            continue
        line.append(stop.coordinates)

    return line if len(line) >= MIN_LINE_POSITIONS else None


def route_line(
    trip: Trip, stops: dict[str, Stop]
) -> tuple[list[tuple[float, float]] | None, str]:
    """Pick the line for a trip and say where it came from ("stored" or "stops")."""
    line = stored_line(trip.geometry)
    if line is not None:
        return line, "stored"
    if trip.geometry is not None:
        logger.warning(f"Trip {trip.trip_id}: stored geometry unusable, deriving from stops")
    return line_from_stops(trip, stops), "stops"


def _line_feature(trip: Trip, line: list[tuple[float, float]], source: str) -> Feature:
    return Feature(
        geometry=LineGeometry(coordinates=line),
        properties={
            "trip_id": trip.trip_id,
            "number": trip.number,
            "operator": trip.operator,
            "mode": trip.mode.value,
            "source": source,
        },
    )


def _stop_features(trip: Trip, stops: dict[str, Stop]) -> list[Feature]:
    features: list[Feature] = []
    for trip_stop in trip.stops:
        stop = stops.get(trip_stop.stop_id)
        if stop is None or stop.coordinates is None:
            continue
        features.append(
            Feature(
                geometry=PointGeometry(coordinates=stop.coordinates),
                properties={
                    "seq": trip_stop.seq,
                    "stop_id": stop.stop_id,
                    "name": stop.stop_name or trip_stop.name,
                    "stop_code": stop.stop_code,
                },
            )
        )
    return features


def assemble_route(
    trip: Trip, stops: dict[str, Stop], include_stops: bool = False
) -> RouteFeatureCollection:
    """Build the route feature collection for a trip.

    Prefers stored geometry, then stop coordinates; with neither the
    collection has no line feature.

    Args:
        trip: Trip to draw.
        stops: Stop catalog entries for the trip's stops, keyed by stop id.
        include_stops: Also append one Point feature per resolvable stop.
    """
    line, source = route_line(trip, stops)

    features: list[Feature] = []
    if line is not None:
        features.append(_line_feature(trip, line, source))
    else:
        logger.warning(f"Trip {trip.trip_id}: fewer than 2 positions, empty geometry")

    if include_stops:
        features.extend(_stop_features(trip, stops))

    return RouteFeatureCollection(features=features)


async def get_route_geometry(
    trip_id: str,
    include_stops: bool = False,
    db_path: Path | None = None,
) -> RouteFeatureCollection | None:
    """Get a renderable route for a trip.

    Returns:
        Feature collection (possibly empty), or None if the trip doesn't exist.
    """
    async with get_db(db_path) as db:
        trip = await fetch_trip(db, trip_id)
        if trip is None:
            return None

        stops: dict[str, Stop] = {}
        if include_stops or stored_line(trip.geometry) is None:
            stops = await fetch_stops(db, [s.stop_id for s in trip.stops])

    return assemble_route(trip, stops, include_stops=include_stops)


def validate_bbox(min_lon: float, min_lat: float, max_lon: float, max_lat: float) -> BBox:
    """Check a bounding box and return it as a tuple.

    Raises:
        ValueError: If a bound is out of range or min exceeds max.
    """
    if not (-180 <= min_lon <= 180 and -180 <= max_lon <= 180):
        raise ValueError("Longitude bounds must be between -180 and 180")
    if not (-90 <= min_lat <= 90 and -90 <= max_lat <= 90):
        raise ValueError("Latitude bounds must be between -90 and 90")
    if min_lon > max_lon or min_lat > max_lat:
        raise ValueError("Bounding box minimum exceeds maximum")
    return (min_lon, min_lat, max_lon, max_lat)


def _segment_in_bbox(start: tuple[float, float], end: tuple[float, float], bbox: BBox) -> bool:
    """Liang-Barsky clip: True if any part of the segment lies inside the box."""
    min_lon, min_lat, max_lon, max_lat = bbox
    lon, lat = start
    d_lon, d_lat = end[0] - lon, end[1] - lat
    t_enter, t_exit = 0.0, 1.0

    for p, q in (
        (-d_lon, lon - min_lon),
        (d_lon, max_lon - lon),
        (-d_lat, lat - min_lat),
        (d_lat, max_lat - lat),
    ):
        if p == 0:
            if q < 0:
                return False
            continue
        t = q / p
        if p < 0:
            if t > t_exit:
                return False
            t_enter = max(t_enter, t)
        else:
            if t < t_enter:
                return False
            t_exit = min(t_exit, t)
    return True


def line_intersects_bbox(line: list[tuple[float, float]], bbox: BBox) -> bool:
    """Return True if the line touches or crosses the bounding box."""
    return any(_segment_in_bbox(a, b, bbox) for a, b in zip(line, line[1:]))


async def _collect_routes(
    operator: str | None,
    mode: TransitMode | str | None,
    limit: int,
    bbox: BBox | None,
    db_path: Path | None,
) -> RouteFeatureCollection:
    limit = max(1, min(MAX_ROUTE_FEATURES, limit))
    trip_filter = TripFilter(
        mode=TransitMode(mode) if mode else None,
        operators=[operator] if operator else [],
    )

    async with get_db(db_path) as db:
        trips = await fetch_trips(db, trip_filter)
        needs_stops = [t for t in trips if stored_line(t.geometry) is None]
        stops = await fetch_stops(db, [s.stop_id for t in needs_stops for s in t.stops])

    features: list[Feature] = []
    for trip in trips:
        line, source = route_line(trip, stops)
        if line is None:
            continue
        if bbox is not None and not line_intersects_bbox(line, bbox):
            continue
        features.append(_line_feature(trip, line, source))
        if len(features) >= limit:
            break

    logger.debug(f"Route layer: {len(features)} of {len(trips)} trips drawn")
    return RouteFeatureCollection(features=features)


async def get_routes_geojson(
    operator: str | None = None,
    mode: TransitMode | str | None = None,
    limit: int = DEFAULT_ROUTE_FEATURES,
    db_path: Path | None = None,
) -> RouteFeatureCollection:
    """Draw every active trip as one line feature, for a network map layer.

    Trips with no usable line (no stored shape and fewer than 2 located stops)
    are left out. Features are ordered by trip id.

    Args:
        operator: Optional exact operator filter.
        mode: Optional bus/train filter.
        limit: Maximum features (capped at 2000).
        db_path: Optional database path override.
    """
    return await _collect_routes(operator, mode, limit, None, db_path)


async def get_routes_in_bbox(
    min_lon: float,
    min_lat: float,
    max_lon: float,
    max_lat: float,
    operator: str | None = None,
    mode: TransitMode | str | None = None,
    limit: int = DEFAULT_ROUTE_FEATURES,
    db_path: Path | None = None,
) -> RouteFeatureCollection:
    """Draw active trips whose route line crosses a map viewport.

    A line matches when any of its segments touches the box, even if no
    vertex falls inside it.

    Raises:
        ValueError: If the bounding box is invalid.
    """
    bbox = validate_bbox(min_lon, min_lat, max_lon, max_lat)
    return await _collect_routes(operator, mode, limit, bbox, db_path)
