"""Fare quoting for a trip, class and passenger count.

Quotes are advisory. The hold expiry is a timestamp only: no seat or fare
inventory is reserved, so two concurrent quotes for the same band can both
report availability. A booking flow built on top must do its own atomic hold.
"""

import logging
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from transit_search.data.config import SearchConfig, get_search_config
from transit_search.data.database import get_db
from transit_search.data.trip_store import fetch_trip
from transit_search.models.catalog import FareBand, Trip
from transit_search.models.responses import FareQuote
from transit_search.services.calendar import parse_service_date

logger = logging.getLogger(__name__)


class FareQuoter:
    """Prices trips from their fare bands.

    The hold window and fallback currency are fixed at construction, so
    different callers can run with different rate settings side by side.
    """

    def __init__(self, hold_minutes: int = 15, default_currency: str = "INR"):
        """Initialize the quoter.

        Args:
            hold_minutes: Length of the soft hold window stamped on each quote.
            default_currency: Currency used when neither the caller nor the
                fare band supplies one.
        """
        if hold_minutes < 0:
            raise ValueError("hold_minutes must be >= 0")
        self.hold_minutes = hold_minutes
        self.default_currency = default_currency

    @classmethod
    def from_config(cls, config: SearchConfig) -> "FareQuoter":
        return cls(hold_minutes=config.hold_minutes, default_currency=config.default_currency)

    @staticmethod
    def select_band(fares: list[FareBand], class_code: str | None = None) -> FareBand | None:
        """Pick the requested class band, else the band with the lowest minimum.

        An unknown class code falls back to the cheapest band. Ties keep the
        earliest band.
        """
        if class_code:
            for band in fares:
                if band.class_code == class_code:
                    return band
            logger.debug(f"No fare band for class {class_code!r}, using cheapest")

        cheapest: FareBand | None = None
        for band in fares:
            if cheapest is None or band.min < cheapest.min:
                cheapest = band
        return cheapest

    def quote(
        self,
        trip: Trip,
        class_code: str | None = None,
        passengers: int = 1,
        currency: str | None = None,
        service_date: date | None = None,
        origin_seq: int | None = None,
        destination_seq: int | None = None,
        now: datetime | None = None,
    ) -> FareQuote | None:
        """Build a quote for a trip.

        Args:
            trip: Trip to price.
            class_code: Requested class; cheapest band if None or not offered.
            passengers: Passenger count; values below 1 count as 1.
            currency: Currency override for the quote.
            service_date: Travel date, echoed back.
            origin_seq: Boarding stop sequence, echoed back (not priced).
            destination_seq: Alighting stop sequence, echoed back (not priced).
            now: Clock override for the hold expiry.

        Returns:
            FareQuote, or None if the trip has no fare bands.
        """
        band = self.select_band(trip.fares, class_code)
        if band is None:
            return None

        qty = passengers if passengers >= 1 else 1
        unit = band.min
        issued_at = now or datetime.now(UTC)

        return FareQuote(
            trip_id=trip.trip_id,
            number=trip.number,
            operator=trip.operator,
            date=service_date.isoformat() if service_date else None,
            class_code=band.class_code,
            origin_seq=origin_seq,
            destination_seq=destination_seq,
            passengers=qty,
            unit_amount=unit,
            total_amount=unit * qty,
            currency=currency or band.currency or self.default_currency,
            hold_expiry=issued_at + timedelta(minutes=self.hold_minutes),
        )


async def get_fare_quote(
    trip_id: str,
    class_code: str | None = None,
    passengers: int = 1,
    currency: str | None = None,
    date: str | None = None,
    origin_seq: int | None = None,
    destination_seq: int | None = None,
    quoter: FareQuoter | None = None,
    db_path: Path | None = None,
) -> FareQuote | None:
    """Quote a fare for a trip by id.

    Args:
        trip_id: Trip to price.
        class_code: Requested class (cheapest band if omitted).
        passengers: Passenger count.
        currency: Optional currency override.
        date: Optional travel date YYYY-MM-DD.
        origin_seq: Optional boarding stop sequence.
        destination_seq: Optional alighting stop sequence.
        quoter: Quoter to use (defaults to one built from configuration).
        db_path: Optional database path override.

    Returns:
        FareQuote, or None if the trip doesn't exist or has no fare bands.

    Raises:
        ValueError: If date is malformed.
    """
    service_date = parse_service_date(date)
    if quoter is None:
        quoter = FareQuoter.from_config(get_search_config())

    async with get_db(db_path) as db:
        trip = await fetch_trip(db, trip_id)

    if trip is None:
        return None

    return quoter.quote(
        trip,
        class_code=class_code,
        passengers=passengers,
        currency=currency,
        service_date=service_date,
        origin_seq=origin_seq,
        destination_seq=destination_seq,
    )
