"""Read-only access to the stop and trip catalog.

Everything the search engine knows about stops and trips comes through this
module. All functions take an open connection from ``get_db`` so callers can
batch several reads into one unit of work.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import aiosqlite

from transit_search.models.catalog import Stop, TransitMode, Trip

logger = logging.getLogger(__name__)

# Keep IN (...) lists well under SQLite's bound-variable limit
IN_CLAUSE_CHUNK = 500

STOP_COLUMNS = """
    stop_id, stop_code, stop_name, stop_lon, stop_lat,
    locality, timezone, mode, metadata
"""


@dataclass
class TripFilter:
    """Filter pushed down to the trip catalog."""

    mode: TransitMode | None = None
    operators: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)  # any-overlap, applied after SQL
    serving_stop_ids: list[str] = field(default_factory=list)  # trip must visit every one
    region: str | None = None
    include_inactive: bool = False


def _load_json(value: str | None, default: Any) -> Any:
    if value is None:
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning(f"Ignoring malformed JSON column value: {value[:40]!r}")
        return default


def row_to_stop(row: aiosqlite.Row) -> Stop:
    """Convert a database row to a Stop."""
    return Stop(
        stop_id=row["stop_id"],
        stop_code=row["stop_code"],
        stop_name=row["stop_name"],
        stop_lon=row["stop_lon"],
        stop_lat=row["stop_lat"],
        locality=row["locality"],
        timezone=row["timezone"],
        mode=row["mode"],
        metadata=_load_json(row["metadata"], {}),
    )


def _chunks(items: list[str]) -> list[list[str]]:
    return [items[i : i + IN_CLAUSE_CHUNK] for i in range(0, len(items), IN_CLAUSE_CHUNK)]


# Stop catalog


async def resolve_stop_ref(db: aiosqlite.Connection, ref: str) -> Stop | None:
    """Resolve a stop reference (internal id, then public code) to a stop.

    Args:
        db: Database connection.
        ref: Stop id or public stop code.

    Returns:
        The matching Stop, or None if neither lookup finds one.
    """
    ref = ref.strip()
    if not ref:
        return None

    sql = f"SELECT {STOP_COLUMNS} FROM stops WHERE stop_id = ?"
    async with db.execute(sql, (ref,)) as cursor:
        row = await cursor.fetchone()
    if row is not None:
        return row_to_stop(row)

    sql = f"SELECT {STOP_COLUMNS} FROM stops WHERE stop_code = ? ORDER BY stop_id LIMIT 1"
    async with db.execute(sql, (ref,)) as cursor:
        row = await cursor.fetchone()
    return row_to_stop(row) if row is not None else None


async def fetch_stops(db: aiosqlite.Connection, stop_ids: list[str]) -> dict[str, Stop]:
    """Fetch stops by id. Unknown ids are simply absent from the result."""
    stops: dict[str, Stop] = {}
    for chunk in _chunks(sorted(set(stop_ids))):
        placeholders = ",".join("?" for _ in chunk)
        sql = f"SELECT {STOP_COLUMNS} FROM stops WHERE stop_id IN ({placeholders})"
        async with db.execute(sql, chunk) as cursor:
            async for row in cursor:
                stops[row["stop_id"]] = row_to_stop(row)
    return stops


# Trip catalog


async def fetch_trips(
    db: aiosqlite.Connection,
    trip_filter: TripFilter | None = None,
    order_by: str = "t.trip_id",
    limit: int | None = None,
) -> list[Trip]:
    """Fetch fully hydrated trips matching a filter.

    Args:
        db: Database connection.
        trip_filter: Filter to apply (active trips only unless told otherwise).
        order_by: SQL ORDER BY expression over the ``t`` alias.
        limit: Optional maximum number of trips.

    Returns:
        Trips with ordered stops and fare bands attached.
    """
    if trip_filter is None:
        trip_filter = TripFilter()

    clauses: list[str] = []
    params: list[Any] = []

    if not trip_filter.include_inactive:
        clauses.append("t.is_active = 1")
    if trip_filter.mode is not None:
        clauses.append("t.mode = ?")
        params.append(TransitMode(trip_filter.mode).value)
    if trip_filter.operators:
        clauses.append(f"t.operator IN ({','.join('?' for _ in trip_filter.operators)})")
        params.extend(trip_filter.operators)
    if trip_filter.region is not None:
        clauses.append("t.region = ?")
        params.append(trip_filter.region)
    for stop_id in trip_filter.serving_stop_ids:
        clauses.append("t.trip_id IN (SELECT trip_id FROM trip_stops WHERE stop_id = ?)")
        params.append(stop_id)

    sql = "SELECT t.* FROM trips t"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += f" ORDER BY {order_by}"
    # class overlap is checked in Python, so the limit can only be pushed down without it
    if limit is not None and not trip_filter.classes:
        sql += " LIMIT ?"
        params.append(limit)

    async with db.execute(sql, params) as cursor:
        rows = await cursor.fetchall()

    if trip_filter.classes:
        wanted = set(trip_filter.classes)
        rows = [r for r in rows if wanted.intersection(_load_json(r["classes"], []))]
        if limit is not None:
            rows = rows[:limit]

    trips = await _hydrate_trips(db, rows)
    logger.debug(f"Fetched {len(trips)} trips")
    return trips


async def fetch_trip(
    db: aiosqlite.Connection, trip_id: str, include_inactive: bool = False
) -> Trip | None:
    """Fetch a single trip by id, or None if it doesn't exist (or is inactive)."""
    sql = "SELECT t.* FROM trips t WHERE t.trip_id = ?"
    if not include_inactive:
        sql += " AND t.is_active = 1"
    async with db.execute(sql, (trip_id,)) as cursor:
        row = await cursor.fetchone()
    if row is None:
        return None
    trips = await _hydrate_trips(db, [row])
    return trips[0]


async def aggregate_operators(
    db: aiosqlite.Connection,
    mode: TransitMode | None = None,
    limit: int = 100,
) -> list[aiosqlite.Row]:
    """Group active trips by operator with trip counts and observed fare range."""
    params: list[Any] = []
    sql = """
        SELECT t.operator,
               COUNT(DISTINCT t.trip_id) AS trip_count,
               MIN(f.min_price) AS fare_min,
               MAX(f.max_price) AS fare_max
        FROM trips t
        LEFT JOIN fare_bands f ON t.trip_id = f.trip_id
        WHERE t.is_active = 1
    """
    if mode is not None:
        sql += " AND t.mode = ?"
        params.append(TransitMode(mode).value)
    sql += " GROUP BY t.operator ORDER BY trip_count DESC, t.operator LIMIT ?"
    params.append(limit)

    async with db.execute(sql, params) as cursor:
        return list(await cursor.fetchall())


async def _hydrate_trips(db: aiosqlite.Connection, rows: list[aiosqlite.Row]) -> list[Trip]:
    """Attach ordered stops and fare bands to trip rows and build Trip models."""
    trip_ids = [row["trip_id"] for row in rows]
    stops_by_trip: dict[str, list[dict[str, Any]]] = {tid: [] for tid in trip_ids}
    fares_by_trip: dict[str, list[dict[str, Any]]] = {tid: [] for tid in trip_ids}

    for chunk in _chunks(trip_ids):
        placeholders = ",".join("?" for _ in chunk)

        sql = f"""
            SELECT trip_id, stop_sequence, stop_id, stop_name, arrival_time,
                   departure_time, platform, distance_km
            FROM trip_stops
            WHERE trip_id IN ({placeholders})
            ORDER BY trip_id, stop_sequence
        """
        async with db.execute(sql, chunk) as cursor:
            async for row in cursor:
                stops_by_trip[row["trip_id"]].append(
                    {
                        "seq": row["stop_sequence"],
                        "stop_id": row["stop_id"],
                        "name": row["stop_name"],
                        "arrival": row["arrival_time"],
                        "departure": row["departure_time"],
                        "platform": row["platform"],
                        "distance_km": row["distance_km"],
                    }
                )

        sql = f"""
            SELECT trip_id, class_code, currency, min_price, max_price
            FROM fare_bands
            WHERE trip_id IN ({placeholders})
            ORDER BY trip_id, band_index
        """
        async with db.execute(sql, chunk) as cursor:
            async for row in cursor:
                fares_by_trip[row["trip_id"]].append(
                    {
                        "class_code": row["class_code"],
                        "currency": row["currency"],
                        "min": row["min_price"],
                        "max": row["max_price"],
                    }
                )

    trips: list[Trip] = []
    for row in rows:
        trip_id = row["trip_id"]
        trips.append(
            Trip.model_validate(
                {
                    "trip_id": trip_id,
                    "number": row["number"],
                    "name": row["name"],
                    "operator": row["operator"],
                    "mode": row["mode"],
                    "classes": _load_json(row["classes"], []),
                    "amenities": _load_json(row["amenities"], []),
                    "calendar": {
                        "monday": bool(row["monday"]),
                        "tuesday": bool(row["tuesday"]),
                        "wednesday": bool(row["wednesday"]),
                        "thursday": bool(row["thursday"]),
                        "friday": bool(row["friday"]),
                        "saturday": bool(row["saturday"]),
                        "sunday": bool(row["sunday"]),
                        "start_date": row["start_date"],
                        "end_date": row["end_date"],
                    },
                    "stops": stops_by_trip[trip_id],
                    "fares": fares_by_trip[trip_id],
                    "geometry": _load_json(row["geometry"], None),
                    "popularity": row["popularity"],
                    "view_count": row["view_count"],
                    "region": row["region"],
                    "is_active": bool(row["is_active"]),
                    "metadata": _load_json(row["metadata"], {}),
                }
            )
        )
    return trips
