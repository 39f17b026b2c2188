"""Metrics calculator for matched segments."""

import logging
from dataclasses import replace

from transit_search.models.catalog import FareBand
from transit_search.services.journey_matcher import MatchedSegment

logger = logging.getLogger(__name__)


def cheapest_fare(fares: list[FareBand]) -> tuple[float | None, str | None]:
    """Return the lowest band minimum and the currency of the first band.

    Bands are assumed to share one currency; it is read from the first band
    without checking the others.
    """
    if not fares:
        return None, None
    return min(band.min for band in fares), fares[0].currency


def annotate_segment(segment: MatchedSegment) -> MatchedSegment | None:
    """Compute departure, arrival, duration and cheapest fare for a segment.

    Args:
        segment: Segment produced by the journey matcher.

    Returns:
        A copy of the segment with metrics filled in, or None when the
        segment is unusable (missing times, or a negative duration).
    """
    trip_id = segment.trip.trip_id
    departure = segment.origin_stop.departure
    arrival = segment.destination_stop.arrival

    if departure is None or arrival is None:
        logger.debug(f"Trip {trip_id}: segment lacks departure or arrival time, skipped")
        return None

    try:
        delta = arrival - departure
    except TypeError:
        logger.warning(f"Trip {trip_id}: mixed naive and offset-aware timestamps, skipped")
        return None

    duration_minutes = int(delta.total_seconds() // 60)
    if duration_minutes < 0:
        logger.debug(f"Trip {trip_id}: negative duration {duration_minutes} min, skipped")
        return None

    fare, currency = cheapest_fare(segment.trip.fares)

    return replace(
        segment,
        departure=departure,
        arrival=arrival,
        duration_minutes=duration_minutes,
        cheapest_fare=fare,
        fare_currency=currency,
    )
