"""Journey matcher: find a direction-correct origin -> destination segment on a trip."""

from dataclasses import dataclass
from datetime import datetime

from transit_search.models.catalog import Trip, TripStop


@dataclass(frozen=True)
class MatchedSegment:
    """The part of a trip between the requested origin and destination.

    Metric fields stay None until the metrics calculator annotates the segment.
    """

    trip: Trip
    origin_index: int
    destination_index: int
    departure: datetime | None = None
    arrival: datetime | None = None
    duration_minutes: int | None = None
    cheapest_fare: float | None = None
    fare_currency: str | None = None

    @property
    def origin_stop(self) -> TripStop:
        return self.trip.stops[self.origin_index]

    @property
    def destination_stop(self) -> TripStop:
        return self.trip.stops[self.destination_index]

    @property
    def num_stops(self) -> int:
        """Stops travelled, endpoints included."""
        return self.destination_index - self.origin_index + 1


def first_stop_indices(
    trip: Trip, origin_stop_id: str, destination_stop_id: str
) -> tuple[int | None, int | None]:
    """Single pass over the ordered stops, keeping the first index of each stop id.

    Loop routes that revisit a stop resolve to its first occurrence only.
    """
    origin_index: int | None = None
    destination_index: int | None = None

    for idx, stop in enumerate(trip.stops):
        if origin_index is None and stop.stop_id == origin_stop_id:
            origin_index = idx
        if destination_index is None and stop.stop_id == destination_stop_id:
            destination_index = idx
        if origin_index is not None and destination_index is not None:
            break

    return origin_index, destination_index


def match_journey(
    trip: Trip, origin_stop_id: str, destination_stop_id: str
) -> MatchedSegment | None:
    """Match a trip against an origin/destination pair.

    The trip matches only when both stops occur and the origin comes strictly
    before the destination, so trips never match in reverse.

    Returns:
        An un-annotated MatchedSegment, or None if the trip doesn't serve the
        journey in this direction.
    """
    origin_index, destination_index = first_stop_indices(
        trip, origin_stop_id, destination_stop_id
    )
    if origin_index is None or destination_index is None:
        return None
    if origin_index >= destination_index:
        return None

    return MatchedSegment(
        trip=trip,
        origin_index=origin_index,
        destination_index=destination_index,
    )
