"""Catalog loader for ingesting stop and trip records into SQLite."""

import json
import logging
from pathlib import Path
from typing import Any

import aiosqlite
from pydantic import ValidationError

from transit_search.models.catalog import Stop, Trip

logger = logging.getLogger(__name__)

# Schema definitions
SCHEMA_SQL = """
-- stops
CREATE TABLE stops (
    stop_id TEXT PRIMARY KEY,
    stop_code TEXT,
    stop_name TEXT NOT NULL,
    stop_lon REAL,
    stop_lat REAL,
    locality TEXT,
    timezone TEXT,
    mode TEXT NOT NULL,
    metadata TEXT
);

-- trips
CREATE TABLE trips (
    trip_id TEXT PRIMARY KEY,
    number TEXT NOT NULL,
    name TEXT,
    operator TEXT NOT NULL,
    mode TEXT NOT NULL,
    classes TEXT,
    amenities TEXT,
    monday INTEGER,
    tuesday INTEGER,
    wednesday INTEGER,
    thursday INTEGER,
    friday INTEGER,
    saturday INTEGER,
    sunday INTEGER,
    start_date TEXT,
    end_date TEXT,
    geometry TEXT,
    popularity INTEGER NOT NULL DEFAULT 0,
    view_count INTEGER NOT NULL DEFAULT 0,
    region TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    metadata TEXT
);

-- trip_stops
CREATE TABLE trip_stops (
    trip_id TEXT NOT NULL,
    stop_sequence INTEGER NOT NULL,
    stop_id TEXT NOT NULL,
    stop_name TEXT,
    arrival_time TEXT,
    departure_time TEXT,
    platform TEXT,
    distance_km REAL,
    PRIMARY KEY (trip_id, stop_sequence)
);

-- fare_bands (band_index keeps source order)
CREATE TABLE fare_bands (
    trip_id TEXT NOT NULL,
    band_index INTEGER NOT NULL,
    class_code TEXT NOT NULL,
    currency TEXT NOT NULL,
    min_price REAL NOT NULL,
    max_price REAL,
    PRIMARY KEY (trip_id, band_index)
);
"""

INDEX_SQL = """
CREATE INDEX idx_stops_code ON stops(stop_code);
CREATE INDEX idx_stops_name ON stops(stop_name);
CREATE INDEX idx_trips_operator ON trips(operator);
CREATE INDEX idx_trips_mode ON trips(mode);
CREATE INDEX idx_trips_region ON trips(region);
CREATE INDEX idx_trips_popularity ON trips(popularity DESC, view_count DESC);
CREATE INDEX idx_trip_stops_stop ON trip_stops(stop_id);
"""

TABLE_NAMES = ["stops", "trips", "trip_stops", "fare_bands"]

STOPS_FILENAME = "stops.json"
TRIPS_FILENAME = "trips.json"

# Chunk size for bulk inserts
CHUNK_SIZE = 5000


def _json_or_none(value: Any) -> str | None:
    if value is None or value == {} or value == []:
        return None
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


def _iso_or_none(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


class CatalogLoader:
    """Loader for ingesting a JSON stop/trip catalog into SQLite."""

    def __init__(self, db_path: Path):
        """Initialize the loader.

        Args:
            db_path: Path where the SQLite database will be created.
        """
        self.db_path = Path(db_path)

    async def ingest(self, catalog_path: Path) -> dict[str, int]:
        """Ingest a catalog directory or JSON file into SQLite.

        Uses atomic swap: loads into temp DB, then replaces the target DB.

        Args:
            catalog_path: Directory holding stops.json and trips.json, or a single
                JSON file with "stops" and "trips" arrays.

        Returns:
            Dictionary with row counts per table.

        Raises:
            FileNotFoundError: If the catalog path doesn't exist.
            ValueError: If the catalog is malformed or yields no stops or trips.
        """
        catalog_path = Path(catalog_path)
        if not catalog_path.exists():
            raise FileNotFoundError(f"Catalog path not found: {catalog_path}")

        stop_records, trip_records = self._read_catalog(catalog_path)
        stops = self._validate_records(stop_records, Stop, "stops")
        trips = self._validate_records(trip_records, Trip, "trips")

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        temp_db = self.db_path.with_suffix(".tmp.db")

        try:
            temp_db.unlink(missing_ok=True)

            async with aiosqlite.connect(temp_db) as db:
                await db.execute("PRAGMA journal_mode=OFF")
                await db.execute("PRAGMA synchronous=OFF")

                await db.executescript(SCHEMA_SQL)
                row_counts = {
                    "stops": await self._insert_stops(db, stops),
                    **await self._insert_trips(db, trips),
                }
                await db.commit()

                logger.info("Creating indexes...")
                await db.executescript(INDEX_SQL)
                await db.commit()
                await self._verify_integrity(db)

            # atomic swap
            temp_db.replace(self.db_path)

            logger.info(f"Catalog ingestion complete: {self.db_path}")
            return row_counts

        except Exception:
            temp_db.unlink(missing_ok=True)
            raise

    def _read_catalog(self, catalog_path: Path) -> tuple[list[Any], list[Any]]:
        """Read raw stop and trip records from a directory or single file."""
        if catalog_path.is_dir():
            stops = self._read_json(catalog_path / STOPS_FILENAME)
            trips = self._read_json(catalog_path / TRIPS_FILENAME)
        else:
            document = self._read_json(catalog_path)
            if not isinstance(document, dict):
                raise ValueError(f"{catalog_path.name} must hold an object with stops and trips")
            stops = document.get("stops", [])
            trips = document.get("trips", [])

        if not isinstance(stops, list) or not isinstance(trips, list):
            raise ValueError("stops and trips must be JSON arrays")
        return stops, trips

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {path}")
        logger.info(f"Reading {path.name}...")
        with open(path, encoding="utf-8-sig") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path.name} is not valid JSON: {e}") from e

    def _validate_records(self, records: list[Any], model: type, label: str) -> list:
        """Validate raw records, skipping (and counting) the invalid ones."""
        valid = []
        seen_ids: set[str] = set()
        skipped = 0
        key = "stop_id" if model is Stop else "trip_id"

        for idx, record in enumerate(records):
            try:
                item = model.model_validate(record)
            except ValidationError as e:
                skipped += 1
                logger.warning(f"Skipping invalid {label} record #{idx}: {e.error_count()} error(s)")
                continue
            item_id = getattr(item, key)
            if item_id in seen_ids:
                skipped += 1
                logger.warning(f"Skipping duplicate {label} record {item_id}")
                continue
            seen_ids.add(item_id)
            valid.append(item)

        logger.info(
            f"  Validated {len(valid):,} {label}"
            + (f" (skipped {skipped:,} invalid)" if skipped else "")
        )
        return valid

    async def _insert_stops(self, db: aiosqlite.Connection, stops: list[Stop]) -> int:
        """Insert stop rows in chunks."""
        sql = """
            INSERT INTO stops (stop_id, stop_code, stop_name, stop_lon, stop_lat,
                               locality, timezone, mode, metadata)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        rows = [
            (
                s.stop_id,
                s.stop_code,
                s.stop_name,
                s.stop_lon,
                s.stop_lat,
                s.locality,
                s.timezone,
                s.mode.value,
                _json_or_none(s.metadata),
            )
            for s in stops
        ]
        await self._insert_chunked(db, sql, rows)
        logger.info(f"  Loaded {len(rows):,} rows into stops")
        return len(rows)

    async def _insert_trips(self, db: aiosqlite.Connection, trips: list[Trip]) -> dict[str, int]:
        """Insert trips with their ordered stops and fare bands."""
        trip_sql = """
            INSERT INTO trips (trip_id, number, name, operator, mode, classes, amenities,
                               monday, tuesday, wednesday, thursday, friday, saturday, sunday,
                               start_date, end_date, geometry, popularity, view_count,
                               region, is_active, metadata)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        stop_sql = """
            INSERT INTO trip_stops (trip_id, stop_sequence, stop_id, stop_name,
                                    arrival_time, departure_time, platform, distance_km)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """
        fare_sql = """
            INSERT INTO fare_bands (trip_id, band_index, class_code, currency, min_price, max_price)
            VALUES (?, ?, ?, ?, ?, ?)
        """

        trip_rows: list[tuple[Any, ...]] = []
        stop_rows: list[tuple[Any, ...]] = []
        fare_rows: list[tuple[Any, ...]] = []

        for t in trips:
            cal = t.calendar
            trip_rows.append(
                (
                    t.trip_id,
                    t.number,
                    t.name,
                    t.operator,
                    t.mode.value,
                    _json_or_none(t.classes),
                    _json_or_none(t.amenities),
                    int(cal.monday),
                    int(cal.tuesday),
                    int(cal.wednesday),
                    int(cal.thursday),
                    int(cal.friday),
                    int(cal.saturday),
                    int(cal.sunday),
                    _iso_or_none(cal.start_date),
                    _iso_or_none(cal.end_date),
                    _json_or_none(t.geometry),
                    t.popularity,
                    t.view_count,
                    t.region,
                    int(t.is_active),
                    _json_or_none(t.metadata),
                )
            )
            for s in t.stops:
                stop_rows.append(
                    (
                        t.trip_id,
                        s.seq,
                        s.stop_id,
                        s.name,
                        _iso_or_none(s.arrival),
                        _iso_or_none(s.departure),
                        s.platform,
                        s.distance_km,
                    )
                )
            for idx, band in enumerate(t.fares):
                fare_rows.append(
                    (t.trip_id, idx, band.class_code, band.currency, band.min, band.max)
                )

        await self._insert_chunked(db, trip_sql, trip_rows)
        await self._insert_chunked(db, stop_sql, stop_rows)
        await self._insert_chunked(db, fare_sql, fare_rows)

        logger.info(
            f"  Loaded {len(trip_rows):,} trips, {len(stop_rows):,} trip stops, "
            f"{len(fare_rows):,} fare bands"
        )
        return {
            "trips": len(trip_rows),
            "trip_stops": len(stop_rows),
            "fare_bands": len(fare_rows),
        }

    async def _insert_chunked(
        self, db: aiosqlite.Connection, sql: str, rows: list[tuple[Any, ...]]
    ) -> None:
        for start in range(0, len(rows), CHUNK_SIZE):
            await db.executemany(sql, rows[start : start + CHUNK_SIZE])

    async def _verify_integrity(self, db: aiosqlite.Connection) -> None:
        """Verify database integrity after loading."""
        logger.info("Verifying database integrity...")

        for table in ("stops", "trips"):
            async with db.execute(f"SELECT COUNT(*) FROM {table}") as cursor:
                row = await cursor.fetchone()
                if row is None or row[0] == 0:
                    raise ValueError(f"No {table} loaded - check catalog data")

        sql = """
            SELECT COUNT(DISTINCT ts.stop_id)
            FROM trip_stops ts
            LEFT JOIN stops s ON ts.stop_id = s.stop_id
            WHERE s.stop_id IS NULL
        """
        async with db.execute(sql) as cursor:
            row = await cursor.fetchone()
            if row and row[0]:
                logger.warning(f"{row[0]} stop reference(s) in trips have no stop record")

        logger.info("Database integrity verified")


async def get_table_counts(db_path: Path) -> dict[str, int]:
    """Get row counts for all tables in the database.

    Args:
        db_path: Path to the SQLite database.

    Returns:
        Dictionary mapping table names to row counts.
    """
    counts: dict[str, int] = {}
    async with aiosqlite.connect(db_path) as db:
        for table_name in TABLE_NAMES:
            async with db.execute(f"SELECT COUNT(*) FROM {table_name}") as cursor:
                row = await cursor.fetchone()
                counts[table_name] = row[0] if row else 0
    return counts
