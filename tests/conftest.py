"""Shared fixtures: a small bus/train catalog ingested into a temp database."""

import json
from pathlib import Path
from typing import Any

import pytest

from transit_search.data.catalog_loader import CatalogLoader
from transit_search.services import search_service

ALL_WEEK = {
    "monday": True,
    "tuesday": True,
    "wednesday": True,
    "thursday": True,
    "friday": True,
    "saturday": True,
    "sunday": True,
}
WEEKDAYS_ONLY = {**ALL_WEEK, "saturday": False, "sunday": False}


def _ts(hhmm: str) -> str:
    return f"2025-09-01T{hhmm}:00+05:30"


SAMPLE_STOPS: list[dict[str, Any]] = [
    {
        "stop_id": "S1",
        "stop_code": "MYS",
        "stop_name": "Mysuru Bus Stand",
        "stop_lon": 76.6548,
        "stop_lat": 12.3106,
        "locality": "Mysuru",
        "timezone": "Asia/Kolkata",
        "mode": "bus",
    },
    {
        "stop_id": "S2",
        "stop_code": "MND",
        "stop_name": "Mandya",
        "stop_lon": 76.8958,
        "stop_lat": 12.5223,
        "locality": "Mandya",
        "timezone": "Asia/Kolkata",
        "mode": "bus",
    },
    {
        "stop_id": "S3",
        "stop_code": "SBC",
        "stop_name": "Bengaluru Majestic",
        "stop_lon": 77.5712,
        "stop_lat": 12.9767,
        "locality": "Bengaluru",
        "timezone": "Asia/Kolkata",
        "mode": "bus",
    },
    {
        "stop_id": "S4",
        "stop_code": "DEP",
        "stop_name": "City Depot",
        "locality": "Mysuru",
        "mode": "bus",
    },
    {
        "stop_id": "T1",
        "stop_code": "MYSJ",
        "stop_name": "Mysuru Junction",
        "stop_lon": 76.6433,
        "stop_lat": 12.3163,
        "locality": "Mysuru",
        "timezone": "Asia/Kolkata",
        "mode": "train",
    },
]

A_STOPS = [
    {"seq": 0, "stop_id": "S1", "name": "Mysuru", "departure": _ts("08:00"), "platform": "4"},
    {"seq": 1, "stop_id": "S2", "arrival": _ts("08:35"), "departure": _ts("08:40")},
    {"seq": 2, "stop_id": "S3", "arrival": _ts("09:00")},
]

SAMPLE_TRIPS: list[dict[str, Any]] = [
    {
        "trip_id": "TRIP_A",
        "number": "126",
        "name": "Coastal Express",
        "operator": "KSRTC",
        "mode": "bus",
        "classes": ["STD", "AC"],
        "amenities": ["wifi"],
        "calendar": {**ALL_WEEK, "start_date": "2025-09-01", "end_date": "2026-03-31"},
        "stops": A_STOPS,
        "fares": [
            {"class_code": "STD", "currency": "INR", "min": 60, "max": 90},
            {"class_code": "AC", "currency": "INR", "min": 90, "max": 140},
        ],
        "popularity": 50,
        "view_count": 500,
        "region": "karnataka",
    },
    {
        "trip_id": "TRIP_B",
        "number": "127",
        "name": "Mysuru Flyer",
        "operator": "KSRTC",
        "mode": "bus",
        "classes": ["STD"],
        "calendar": {**ALL_WEEK, "start_date": "2025-01-01", "end_date": "2025-06-30"},
        "stops": A_STOPS,
        "fares": [{"class_code": "STD", "currency": "INR", "min": 55, "max": 80}],
        "popularity": 80,
        "view_count": 10,
    },
    {
        "trip_id": "TRIP_C",
        "number": "300",
        "name": "Night Rider",
        "operator": "SRS Travels",
        "mode": "bus",
        "classes": ["SLEEPER"],
        "calendar": ALL_WEEK,
        "stops": [
            {"seq": 0, "stop_id": "S1", "departure": _ts("07:30")},
            {"seq": 1, "stop_id": "S3", "arrival": _ts("09:30")},
        ],
        "fares": [{"class_code": "SLEEPER", "currency": "INR", "min": 45, "max": 70}],
        "geometry": {"type": "LineString", "coordinates": [[76.6548, 12.3106], [77.5712, 12.9767]]},
        "popularity": 10,
        "view_count": 20,
        "region": "karnataka",
    },
    {
        "trip_id": "TRIP_R",
        "number": "128",
        "name": "Return Express",
        "operator": "KSRTC",
        "mode": "bus",
        "classes": ["STD"],
        "stops": [
            {"seq": 0, "stop_id": "S3", "departure": _ts("10:00")},
            {"seq": 1, "stop_id": "S1", "arrival": _ts("11:00")},
        ],
        "popularity": 5,
    },
    {
        "trip_id": "TRIP_D",
        "number": "900",
        "name": "Depot Shuttle",
        "operator": "City Depot",
        "mode": "bus",
        "stops": [
            {"seq": 0, "stop_id": "S4", "departure": _ts("05:00")},
            {"seq": 1, "stop_id": "S1", "arrival": _ts("05:30")},
        ],
    },
    {
        "trip_id": "TRIP_T",
        "number": "16232",
        "name": "Mysuru Mayiladuthurai Express",
        "operator": "Indian Railways",
        "mode": "train",
        "classes": ["2A", "3A", "SL"],
        "calendar": WEEKDAYS_ONLY,
        "stops": [
            {"seq": 0, "stop_id": "T1", "departure": _ts("18:00"), "platform": "1"},
            {"seq": 1, "stop_id": "S3", "arrival": _ts("21:00"), "distance_km": 139.0},
        ],
        "fares": [
            {"class_code": "SL", "currency": "INR", "min": 150},
            {"class_code": "3A", "currency": "INR", "min": 400},
            {"class_code": "2A", "currency": "INR", "min": 600},
        ],
        "geometry": {"type": "LineString", "coordinates": [[500.0, 12.3], [77.57, 12.97]]},
        "popularity": 100,
        "view_count": 900,
        "region": "karnataka",
    },
    {
        "trip_id": "TRIP_X",
        "number": "129",
        "name": "Retired Service",
        "operator": "KSRTC",
        "mode": "bus",
        "stops": A_STOPS,
        "fares": [{"class_code": "STD", "currency": "INR", "min": 1}],
        "popularity": 999,
        "is_active": False,
    },
]


def write_catalog(directory: Path, stops: list[dict], trips: list[dict]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "stops.json").write_text(json.dumps(stops))
    (directory / "trips.json").write_text(json.dumps(trips))
    return directory


@pytest.fixture
def sample_catalog_dir(tmp_path: Path) -> Path:
    """Create a catalog directory with stops.json and trips.json."""
    return write_catalog(tmp_path / "catalog", SAMPLE_STOPS, SAMPLE_TRIPS)


@pytest.fixture
async def db_path(sample_catalog_dir: Path, tmp_path: Path) -> Path:
    """Create a test database from the sample catalog."""
    db_file = tmp_path / "test.db"
    loader = CatalogLoader(db_file)
    await loader.ingest(sample_catalog_dir)
    return db_file


@pytest.fixture(autouse=True)
def reset_operators_cache():
    """Start every test with an empty operators cache."""
    search_service._operators_cache = None
    yield
    search_service._operators_cache = None
