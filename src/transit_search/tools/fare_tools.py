from transit_search.app import mcp
from transit_search.models.responses import FareQuote, SeatMap
from transit_search.services.fare_service import get_fare_quote as _get_fare_quote
from transit_search.services.seat_map import MAX_COACHES, MAX_ROWS
from transit_search.services.seat_map import get_seat_map as _get_seat_map

MAX_PASSENGERS = 9


@mcp.tool()
async def quote_fare(
    trip_id: str,
    class_code: str | None = None,
    passengers: int = 1,
    currency: str | None = None,
    date: str | None = None,
    origin_seq: int | None = None,
    destination_seq: int | None = None,
) -> FareQuote | None:
    """Quote a fare for a trip.

    The quote carries a hold_expiry timestamp but nothing is reserved: two
    quotes for the same class can both succeed.

    Args:
        trip_id: Trip id.
        class_code: Fare class; the cheapest class is used if omitted or not offered.
        passengers: Number of passengers (1-9, default 1).
        currency: Currency override (optional).
        date: Travel date YYYY-MM-DD (optional, echoed back).
        origin_seq: Boarding stop sequence (optional, echoed back).
        destination_seq: Alighting stop sequence (optional, echoed back).

    Returns:
        FareQuote, or null if the trip doesn't exist or has no fares.
    """
    passengers = max(1, min(MAX_PASSENGERS, passengers))

    return await _get_fare_quote(
        trip_id,
        class_code=class_code,
        passengers=passengers,
        currency=currency,
        date=date,
        origin_seq=origin_seq,
        destination_seq=destination_seq,
    )


@mcp.tool()
async def get_seat_map(
    trip_id: str,
    class_code: str = "STD",
    rows: int = 12,
    coaches: int = 1,
) -> SeatMap | None:
    """Get a synthetic seat layout for a trip and class.

    The layout is generated, not read from the operator: every seat shows as
    available.

    Args:
        trip_id: Trip id.
        class_code: Fare class code (default "STD").
        rows: Rows per coach (1-40, default 12).
        coaches: Number of coaches (1-24, default 1).

    Returns:
        SeatMap, or null if the trip doesn't exist.
    """
    rows = max(1, min(MAX_ROWS, rows))
    coaches = max(1, min(MAX_COACHES, coaches))

    return await _get_seat_map(trip_id, class_code=class_code, rows=rows, coaches=coaches)
