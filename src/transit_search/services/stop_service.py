"""Stop search service for discovering stop ids and public codes."""

import math
from pathlib import Path

import aiosqlite

from transit_search.data.database import get_db
from transit_search.data.trip_store import STOP_COLUMNS, row_to_stop
from transit_search.models.catalog import Stop, TransitMode
from transit_search.models.responses import SearchStopsResponse, StopResult

# Earth's radius in meters for haversine calculation
EARTH_RADIUS_METERS = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in meters.

    Args:
        lat1, lon1: First point coordinates in degrees.
        lat2, lon2: Second point coordinates in degrees.

    Returns:
        Distance in meters.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def stop_to_result(stop: Stop, distance: float | None = None) -> StopResult:
    return StopResult(
        stop_id=stop.stop_id,
        stop_code=stop.stop_code,
        stop_name=stop.stop_name,
        stop_lon=stop.stop_lon,
        stop_lat=stop.stop_lat,
        locality=stop.locality,
        timezone=stop.timezone,
        mode=stop.mode,
        distance_meters=distance,
    )


def _mode_clause(mode: TransitMode | None, params: list) -> str:
    if mode is None:
        return ""
    params.append(TransitMode(mode).value)
    return " AND mode = ?"


async def search_stops_by_text(
    db: aiosqlite.Connection,
    query: str,
    limit: int = 20,
    mode: TransitMode | None = None,
) -> SearchStopsResponse:
    """Search stops by name or locality using LIKE matching."""
    pattern = f"%{query.strip()}%"
    params: list = [pattern, pattern]

    sql = f"""
        SELECT {STOP_COLUMNS}
        FROM stops
        WHERE (stop_name LIKE ? OR locality LIKE ?)
    """
    sql += _mode_clause(mode, params)
    sql += " ORDER BY stop_name, stop_id LIMIT ?"
    params.append(limit)

    async with db.execute(sql, params) as cursor:
        rows = await cursor.fetchall()

    stops = [stop_to_result(row_to_stop(row)) for row in rows]
    return SearchStopsResponse(stops=stops, count=len(stops))


async def search_stops_by_code(
    db: aiosqlite.Connection,
    stop_code: str,
    mode: TransitMode | None = None,
) -> SearchStopsResponse:
    """Search stops by exact public code."""
    params: list = [stop_code.strip()]
    sql = f"SELECT {STOP_COLUMNS} FROM stops WHERE stop_code = ?"
    sql += _mode_clause(mode, params)
    sql += " ORDER BY stop_id"

    async with db.execute(sql, params) as cursor:
        rows = await cursor.fetchall()

    stops = [stop_to_result(row_to_stop(row)) for row in rows]
    return SearchStopsResponse(stops=stops, count=len(stops))


async def search_stops_by_location(
    db: aiosqlite.Connection,
    lat: float,
    lon: float,
    radius_meters: int = 500,
    limit: int = 20,
    mode: TransitMode | None = None,
) -> SearchStopsResponse:
    """Search stops near a geographic location.

    Uses a bounding box filter for efficient SQL query, then calculates
    exact haversine distance for final filtering and sorting.

    Args:
        db: Database connection.
        lat: Latitude in degrees.
        lon: Longitude in degrees.
        radius_meters: Search radius in meters.
        limit: Maximum number of results.
        mode: Optional bus/train filter.

    Returns:
        SearchStopsResponse with stops sorted by distance.
    """
    # 1 degree of latitude ~= 111,000 meters; longitude shrinks with latitude
    lat_delta = radius_meters / 111_000
    lon_delta = radius_meters / (111_000 * max(math.cos(math.radians(lat)), 1e-6))

    params: list = [lat - lat_delta, lat + lat_delta, lon - lon_delta, lon + lon_delta]
    sql = f"""
        SELECT {STOP_COLUMNS}
        FROM stops
        WHERE stop_lat BETWEEN ? AND ?
          AND stop_lon BETWEEN ? AND ?
          AND stop_lat IS NOT NULL
          AND stop_lon IS NOT NULL
    """
    sql += _mode_clause(mode, params)

    async with db.execute(sql, params) as cursor:
        rows = await cursor.fetchall()

    stops_with_distance: list[tuple[Stop, float]] = []
    for row in rows:
        distance = haversine_distance(lat, lon, row["stop_lat"], row["stop_lon"])
        if distance <= radius_meters:
            stops_with_distance.append((row_to_stop(row), distance))

    stops_with_distance.sort(key=lambda x: (x[1], x[0].stop_id))
    stops_with_distance = stops_with_distance[:limit]

    stops = [stop_to_result(stop, round(distance, 1)) for stop, distance in stops_with_distance]
    return SearchStopsResponse(stops=stops, count=len(stops))


async def search_stops(
    query: str | None = None,
    stop_code: str | None = None,
    lat: float | None = None,
    lon: float | None = None,
    radius_meters: int = 500,
    limit: int = 20,
    mode: TransitMode | None = None,
    db_path: Path | None = None,
) -> SearchStopsResponse:
    """Search for stops using various criteria.

    Supports three search modes:
    1. Text search: Search by stop name or locality (query parameter)
    2. Stop code: Exact match on the public stop code
    3. Geo search: Find stops near a location (lat/lon)

    If multiple criteria are provided, geo search takes priority,
    then stop_code, then text search.

    Raises:
        ValueError: If no search criteria provided.
    """
    async with get_db(db_path) as db:
        if lat is not None and lon is not None:
            return await search_stops_by_location(db, lat, lon, radius_meters, limit, mode)

        if stop_code is not None:
            return await search_stops_by_code(db, stop_code, mode)

        if query is not None:
            return await search_stops_by_text(db, query, limit, mode)

        raise ValueError("At least one search parameter required: query, stop_code, or lat/lon")


async def get_stop_by_id(
    stop_id: str,
    db_path: Path | None = None,
) -> StopResult | None:
    """Get a single stop by its ID, or None if it doesn't exist."""
    async with get_db(db_path) as db:
        sql = f"SELECT {STOP_COLUMNS} FROM stops WHERE stop_id = ?"
        async with db.execute(sql, (stop_id,)) as cursor:
            row = await cursor.fetchone()

    if row is None:
        return None
    return stop_to_result(row_to_stop(row))
