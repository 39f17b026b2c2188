"""Trip search and catalog read operations.

A search resolves origin and destination through the stop catalog, keeps
trips that operate on the requested date, matches the origin -> destination
segment on each, annotates the survivors with journey metrics and returns one
ranked page.
"""

import logging
from datetime import UTC, date, datetime
from pathlib import Path

import aiosqlite

from transit_search.data.cache import ResultCache
from transit_search.data.config import get_search_config
from transit_search.data.database import get_db, get_db_path
from transit_search.data.trip_store import (
    TripFilter,
    aggregate_operators,
    fetch_stops,
    fetch_trip,
    fetch_trips,
    resolve_stop_ref,
)
from transit_search.models.catalog import Stop, TransitMode, Trip
from transit_search.models.responses import (
    AvailabilityResponse,
    LiveStatus,
    LiveStatusResponse,
    OperatorsResponse,
    OperatorSummary,
    SearchTripsResponse,
    StopResolutionInfo,
    StopVisit,
    TrendingResponse,
    TripDetailResponse,
    TripResult,
    TripScheduleResponse,
    TripsAtStopResponse,
    TripStopDetail,
    TripSummary,
)
from transit_search.services.calendar import operates, parse_service_date
from transit_search.services.journey_matcher import MatchedSegment, match_journey
from transit_search.services.metrics import annotate_segment
from transit_search.services.ranking import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MAX_PAGE,
    MIN_LIMIT,
    MIN_PAGE,
    clamp,
    parse_sort_mode,
    rank_segments,
)
from transit_search.services.stop_service import stop_to_result

logger = logging.getLogger(__name__)

MAX_OPERATORS = 200
MAX_TRENDING = 50
MAX_STOP_VISITS = 100

_operators_cache: ResultCache[OperatorsResponse] | None = None


def get_operators_cache() -> ResultCache[OperatorsResponse]:
    """Get the process-wide operators cache, creating it on first use."""
    global _operators_cache
    if _operators_cache is None:
        _operators_cache = ResultCache(ttl=get_search_config().operators_cache_ttl_seconds)
    return _operators_cache


def split_values(value: list[str] | str | None) -> list[str]:
    """Accept a list or a comma-separated string; blank entries are dropped."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


async def _resolve_stop_for_search(
    db: aiosqlite.Connection, query: str | None, role: str
) -> tuple[StopResolutionInfo, Stop | None]:
    """Resolve an origin or destination reference and describe the outcome."""
    query = (query or "").strip()
    if not query:
        return (
            StopResolutionInfo(query=query, resolved=False, error=f"{role} is required"),
            None,
        )

    stop = await resolve_stop_ref(db, query)
    if stop is None:
        return (
            StopResolutionInfo(
                query=query, resolved=False, error=f"No stop with id or code {query!r}"
            ),
            None,
        )

    return (
        StopResolutionInfo(
            query=query,
            resolved_stop_id=stop.stop_id,
            resolved_stop_name=stop.stop_name,
            resolved_stop_code=stop.stop_code,
            resolved=True,
        ),
        stop,
    )


def _segment_to_result(segment: MatchedSegment) -> TripResult:
    trip = segment.trip
    return TripResult(
        trip_id=trip.trip_id,
        number=trip.number,
        name=trip.name,
        operator=trip.operator,
        mode=trip.mode,
        classes=trip.classes,
        amenities=trip.amenities,
        origin_stop_id=segment.origin_stop.stop_id,
        origin_seq=segment.origin_stop.seq,
        origin_platform=segment.origin_stop.platform,
        destination_stop_id=segment.destination_stop.stop_id,
        destination_seq=segment.destination_stop.seq,
        num_stops=segment.num_stops,
        departure_time=segment.departure,
        arrival_time=segment.arrival,
        duration_minutes=segment.duration_minutes,
        cheapest_fare=segment.cheapest_fare,
        fare_currency=segment.fare_currency,
        popularity=trip.popularity,
        view_count=trip.view_count,
    )


def match_segments(
    trips: list[Trip],
    origin_stop_id: str,
    destination_stop_id: str,
    service_date: date | None,
) -> list[MatchedSegment]:
    """Run calendar, direction and metrics checks over candidate trips."""
    segments: list[MatchedSegment] = []
    for trip in trips:
        if not operates(trip, service_date):
            continue
        segment = match_journey(trip, origin_stop_id, destination_stop_id)
        if segment is None:
            continue
        annotated = annotate_segment(segment)
        if annotated is not None:
            segments.append(annotated)
    return segments


async def search_trips(
    origin: str | None,
    destination: str | None,
    date: str | None = None,
    operators: list[str] | str | None = None,
    classes: list[str] | str | None = None,
    mode: TransitMode | str | None = None,
    sort: str | None = "departure",
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    db_path: Path | None = None,
) -> SearchTripsResponse:
    """Search scheduled trips from an origin stop to a destination stop.

    Args:
        origin: Origin stop id or public code.
        destination: Destination stop id or public code.
        date: Travel date YYYY-MM-DD. Omit to ignore service calendars.
        operators: Operator names (list or comma-separated).
        classes: Fare class codes (list or comma-separated); any overlap matches.
        mode: Optional bus/train filter.
        sort: departure (default), duration, price or popularity.
        page: 1-based page (clamped to 1-200).
        limit: Page size (clamped to 1-100).
        db_path: Optional database path override.

    Returns:
        SearchTripsResponse. Validation failures come back with success=False
        and an error message; zero matches is a successful empty page.
    """
    sort_mode = parse_sort_mode(sort)
    page = clamp(page, MIN_PAGE, MAX_PAGE)
    limit = clamp(limit, MIN_LIMIT, MAX_LIMIT)

    async with get_db(db_path) as db:
        origin_res, origin_stop = await _resolve_stop_for_search(db, origin, "origin")
        dest_res, dest_stop = await _resolve_stop_for_search(db, destination, "destination")

        def failure(message: str) -> SearchTripsResponse:
            logger.debug(f"Search rejected: {message}")
            return SearchTripsResponse(
                origin_resolution=origin_res,
                destination_resolution=dest_res,
                items=[],
                date=date,
                sort=sort_mode.value,
                page=page,
                limit=limit,
                total=0,
                has_more=False,
                count=0,
                success=False,
                error=message,
            )

        if origin_stop is None or dest_stop is None:
            return failure(origin_res.error or dest_res.error or "Could not resolve stops")

        try:
            service_date = parse_service_date(date)
            trip_filter = TripFilter(
                mode=TransitMode(mode) if mode else None,
                operators=split_values(operators),
                classes=split_values(classes),
                serving_stop_ids=[origin_stop.stop_id, dest_stop.stop_id],
            )
        except ValueError as e:
            return failure(str(e))

        trips = await fetch_trips(db, trip_filter)

    segments = match_segments(trips, origin_stop.stop_id, dest_stop.stop_id, service_date)
    ranked = rank_segments(segments, sort_mode, page, limit)
    logger.debug(
        f"Search {origin_stop.stop_id}->{dest_stop.stop_id} on {service_date}: "
        f"{len(trips)} candidates, {ranked.total} matches"
    )

    items = [_segment_to_result(s) for s in ranked.items]
    return SearchTripsResponse(
        origin_resolution=origin_res,
        destination_resolution=dest_res,
        items=items,
        date=service_date.isoformat() if service_date else None,
        sort=sort_mode.value,
        page=ranked.page,
        limit=ranked.limit,
        total=ranked.total,
        has_more=ranked.has_more,
        count=len(items),
        success=True,
        error=None,
    )


async def get_trip(trip_id: str, db_path: Path | None = None) -> TripDetailResponse | None:
    """Get the full trip record with stop-catalog details merged into each stop.

    Returns:
        TripDetailResponse, or None if the trip doesn't exist.
    """
    async with get_db(db_path) as db:
        trip = await fetch_trip(db, trip_id)
        if trip is None:
            return None
        stops = await fetch_stops(db, [s.stop_id for s in trip.stops])

    details: list[TripStopDetail] = []
    for trip_stop in trip.stops:
        stop = stops.get(trip_stop.stop_id)
        if stop is None:
            logger.warning(f"Trip {trip_id}: stop {trip_stop.stop_id} not in catalog")
        details.append(
            TripStopDetail(
                seq=trip_stop.seq,
                stop_id=trip_stop.stop_id,
                stop_code=stop.stop_code if stop else None,
                name=(stop.stop_name if stop else None) or trip_stop.name,
                locality=stop.locality if stop else None,
                timezone=stop.timezone if stop else None,
                stop_lon=stop.stop_lon if stop else None,
                stop_lat=stop.stop_lat if stop else None,
                arrival=trip_stop.arrival,
                departure=trip_stop.departure,
                platform=trip_stop.platform,
                distance_km=trip_stop.distance_km,
            )
        )

    return TripDetailResponse(
        trip_id=trip.trip_id,
        number=trip.number,
        name=trip.name,
        operator=trip.operator,
        mode=trip.mode,
        classes=trip.classes,
        amenities=trip.amenities,
        calendar=trip.calendar,
        fares=trip.fares,
        stops=details,
        popularity=trip.popularity,
        view_count=trip.view_count,
        region=trip.region,
    )


async def get_trip_schedule(
    trip_id: str,
    date: str | None = None,
    db_path: Path | None = None,
) -> TripScheduleResponse | None:
    """Get a trip's ordered stops and whether it operates on a date.

    Raises:
        ValueError: If date is malformed.
    """
    service_date = parse_service_date(date)
    async with get_db(db_path) as db:
        trip = await fetch_trip(db, trip_id)
    if trip is None:
        return None

    return TripScheduleResponse(
        trip_id=trip.trip_id,
        date=service_date.isoformat() if service_date else None,
        active=operates(trip, service_date),
        stops=trip.stops,
    )


def _visit_sort_key(visit: StopVisit) -> tuple:
    when = visit.departure or visit.arrival
    return (when is None, when.timestamp() if when else 0.0, visit.trip_id)


async def get_trips_at_stop(
    stop_ref: str,
    date: str | None = None,
    mode: TransitMode | str | None = None,
    limit: int = 50,
    db_path: Path | None = None,
) -> TripsAtStopResponse:
    """List trips calling at a stop, with the times at that stop.

    Times are taken from the trip's first visit to the stop. Results are
    ordered by departure (arrival at a terminus).

    Raises:
        ValueError: If date is malformed.
    """
    service_date = parse_service_date(date)
    limit = clamp(limit, 1, MAX_STOP_VISITS)

    async with get_db(db_path) as db:
        stop = await resolve_stop_ref(db, stop_ref)
        if stop is None:
            return TripsAtStopResponse(
                stop=None,
                date=date,
                items=[],
                count=0,
                error=f"No stop with id or code {stop_ref!r}",
            )
        trip_filter = TripFilter(
            mode=TransitMode(mode) if mode else None, serving_stop_ids=[stop.stop_id]
        )
        trips = await fetch_trips(db, trip_filter)

    visits: list[StopVisit] = []
    for trip in trips:
        if not operates(trip, service_date):
            continue
        trip_stop = next((s for s in trip.stops if s.stop_id == stop.stop_id), None)
        if trip_stop is None:
            continue
        visits.append(
            StopVisit(
                trip_id=trip.trip_id,
                number=trip.number,
                name=trip.name,
                operator=trip.operator,
                mode=trip.mode,
                seq=trip_stop.seq,
                arrival=trip_stop.arrival,
                departure=trip_stop.departure,
                platform=trip_stop.platform,
            )
        )

    visits.sort(key=_visit_sort_key)
    visits = visits[:limit]
    return TripsAtStopResponse(
        stop=stop_to_result(stop),
        date=service_date.isoformat() if service_date else None,
        items=visits,
        count=len(visits),
    )


async def get_operators(
    mode: TransitMode | str | None = None,
    limit: int = 100,
    db_path: Path | None = None,
) -> OperatorsResponse:
    """List operators with trip counts and observed fare range.

    Results are cached per database, mode and limit for the configured TTL.
    Each caller gets its own copy of the cached response.
    """
    transit_mode = TransitMode(mode) if mode else None
    limit = clamp(limit, 1, MAX_OPERATORS)
    cache = get_operators_cache()
    key = (str(db_path or get_db_path()), transit_mode, limit)

    async with cache.lock:
        cached = cache.get(key)
        if cached is not None:
            return cached.model_copy(deep=True)

        async with get_db(db_path) as db:
            rows = await aggregate_operators(db, transit_mode, limit)

        operators = [
            OperatorSummary(
                operator=row["operator"],
                trip_count=row["trip_count"],
                fare_min=row["fare_min"],
                fare_max=row["fare_max"],
            )
            for row in rows
        ]
        response = OperatorsResponse(
            operators=operators, count=len(operators), mode=transit_mode
        )
        cache.set(key, response)
        logger.debug(f"Cached {len(operators)} operators for {key}")
        return response.model_copy(deep=True)


async def get_trending(
    region: str | None = None,
    mode: TransitMode | str | None = None,
    limit: int = 10,
    db_path: Path | None = None,
) -> TrendingResponse:
    """Trips ordered by popularity then view count, optionally scoped to a region."""
    limit = clamp(limit, 1, MAX_TRENDING)
    trip_filter = TripFilter(mode=TransitMode(mode) if mode else None, region=region)

    async with get_db(db_path) as db:
        trips = await fetch_trips(
            db,
            trip_filter,
            order_by="t.popularity DESC, t.view_count DESC, t.trip_id",
            limit=limit,
        )

    summaries = [
        TripSummary(
            trip_id=t.trip_id,
            number=t.number,
            name=t.name,
            operator=t.operator,
            mode=t.mode,
            classes=t.classes,
            popularity=t.popularity,
            view_count=t.view_count,
            region=t.region,
        )
        for t in trips
    ]
    return TrendingResponse(trips=summaries, count=len(summaries), region=region)


async def check_availability(
    trip_id: str,
    date: str | None = None,
    class_code: str | None = None,
    db_path: Path | None = None,
) -> AvailabilityResponse:
    """Whether a trip runs on a date and offers a class.

    No inventory is consulted. An unknown trip is simply unavailable.

    Raises:
        ValueError: If date is malformed.
    """
    service_date = parse_service_date(date)
    date_str = service_date.isoformat() if service_date else None

    async with get_db(db_path) as db:
        trip = await fetch_trip(db, trip_id)

    if trip is None:
        return AvailabilityResponse(
            trip_id=trip_id,
            date=date_str,
            class_code=class_code,
            active=False,
            class_offered=False,
            available=False,
        )

    active = operates(trip, service_date)
    class_offered = class_code is None or class_code in trip.classes
    return AvailabilityResponse(
        trip_id=trip.trip_id,
        date=date_str,
        class_code=class_code,
        active=active,
        class_offered=class_offered,
        available=active and class_offered,
    )


def get_live_status(
    operator: str | None = None,
    number: str | None = None,
    date: str | None = None,
    now: datetime | None = None,
) -> LiveStatusResponse:
    """Live running status placeholder; no telemetry feed is connected."""
    return LiveStatusResponse(
        operator=operator,
        number=number,
        date=date,
        status=LiveStatus.UNKNOWN,
        last_updated=now or datetime.now(UTC),
    )
