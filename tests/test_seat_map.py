"""Tests for the synthetic seat map."""

from pathlib import Path

from transit_search.models.catalog import TransitMode
from transit_search.services.seat_map import generate_seat_map, get_seat_map, seats_per_row


class TestSeatsPerRow:
    def test_class_heuristic(self) -> None:
        assert seats_per_row("AC") == 3
        assert seats_per_row("STD") == 4
        assert seats_per_row("2A", TransitMode.TRAIN) == 6
        assert seats_per_row("3a", TransitMode.TRAIN) == 6
        assert seats_per_row("SL", TransitMode.TRAIN) == 8


class TestGenerateSeatMap:
    def test_default_grid(self) -> None:
        seat_map = generate_seat_map("STD")

        assert len(seat_map.coaches) == 1
        coach = seat_map.coaches[0]
        assert (coach.rows, coach.cols) == (12, 4)
        assert len(coach.layout) == 12
        assert [s.seat for s in coach.layout[0]] == ["1A", "1B", "1C", "1D"]
        assert all(seat.available for row in coach.layout for seat in row)

    def test_multiple_coaches_prefixed(self) -> None:
        seat_map = generate_seat_map("3A", rows=2, coaches=2, mode=TransitMode.TRAIN)

        assert [c.coach for c in seat_map.coaches] == ["3A-1", "3A-2"]
        assert seat_map.coaches[1].layout[1][5].seat == "2-2F"

    def test_rows_clamped(self) -> None:
        seat_map = generate_seat_map("AC", rows=0)

        assert seat_map.coaches[0].rows == 1

    def test_deterministic(self) -> None:
        assert generate_seat_map("AC", rows=5) == generate_seat_map("AC", rows=5)


class TestGetSeatMap:
    async def test_uses_trip_mode(self, db_path: Path) -> None:
        seat_map = await get_seat_map("TRIP_T", class_code="SL", db_path=db_path)

        assert seat_map is not None
        assert seat_map.trip_id == "TRIP_T"
        assert seat_map.coaches[0].cols == 8

    async def test_bus_class(self, db_path: Path) -> None:
        seat_map = await get_seat_map("TRIP_A", class_code="AC", db_path=db_path)

        assert seat_map.coaches[0].cols == 3

    async def test_unknown_trip(self, db_path: Path) -> None:
        assert await get_seat_map("NOPE", db_path=db_path) is None
