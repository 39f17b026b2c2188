"""Synthetic seat-map generator.

Used when no provider layout exists. Every seat is reported available; the
output never reflects real occupancy.
"""

from pathlib import Path

from transit_search.data.database import get_db
from transit_search.data.trip_store import fetch_trip
from transit_search.models.catalog import TransitMode
from transit_search.models.responses import Seat, SeatCoach, SeatMap

DEFAULT_ROWS = 12
MAX_ROWS = 40
MAX_COACHES = 24

# Seats per row by class code: AC coaches run 2+1, sleeper berths 6 per bay
SEATS_PER_ROW: dict[str, int] = {
    "AC": 3,
    "2A": 6,
    "3A": 6,
}
DEFAULT_SEATS_PER_ROW = {
    TransitMode.BUS: 4,
    TransitMode.TRAIN: 8,
}


def seats_per_row(class_code: str, mode: TransitMode = TransitMode.BUS) -> int:
    return SEATS_PER_ROW.get(class_code.upper(), DEFAULT_SEATS_PER_ROW[mode])


def generate_seat_map(
    class_code: str = "STD",
    rows: int = DEFAULT_ROWS,
    coaches: int = 1,
    mode: TransitMode = TransitMode.BUS,
    trip_id: str | None = None,
) -> SeatMap:
    """Build a deterministic grid of seats for a class.

    Seat ids are row number plus seat letter ("3B"); with more than one coach
    they are prefixed with the coach number ("2-3B").
    """
    rows = max(1, min(MAX_ROWS, rows))
    coaches = max(1, min(MAX_COACHES, coaches))
    cols = seats_per_row(class_code, mode)

    maps: list[SeatCoach] = []
    for c in range(1, coaches + 1):
        prefix = f"{c}-" if coaches > 1 else ""
        layout = [
            [Seat(seat=f"{prefix}{r}{chr(ord('A') + s)}") for s in range(cols)]
            for r in range(1, rows + 1)
        ]
        maps.append(SeatCoach(coach=f"{class_code}-{c}", rows=rows, cols=cols, layout=layout))

    return SeatMap(trip_id=trip_id, class_code=class_code, coaches=maps)


async def get_seat_map(
    trip_id: str,
    class_code: str = "STD",
    rows: int = DEFAULT_ROWS,
    coaches: int = 1,
    db_path: Path | None = None,
) -> SeatMap | None:
    """Seat map for a trip and class, or None if the trip doesn't exist."""
    async with get_db(db_path) as db:
        trip = await fetch_trip(db, trip_id)
    if trip is None:
        return None
    return generate_seat_map(
        class_code=class_code, rows=rows, coaches=coaches, mode=trip.mode, trip_id=trip.trip_id
    )
