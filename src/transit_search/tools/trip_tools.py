from transit_search.app import mcp
from transit_search.models.catalog import TransitMode
from transit_search.models.responses import (
    AvailabilityResponse,
    LiveStatusResponse,
    RouteFeatureCollection,
    TripDetailResponse,
    TripScheduleResponse,
    TripsAtStopResponse,
)
from transit_search.services.geometry_service import MAX_ROUTE_FEATURES
from transit_search.services.geometry_service import get_route_geometry as _get_route_geometry
from transit_search.services.geometry_service import get_routes_geojson as _get_routes_geojson
from transit_search.services.geometry_service import get_routes_in_bbox as _get_routes_in_bbox
from transit_search.services.search_service import MAX_STOP_VISITS
from transit_search.services.search_service import check_availability as _check_availability
from transit_search.services.search_service import get_live_status as _get_live_status
from transit_search.services.search_service import get_trip as _get_trip
from transit_search.services.search_service import get_trip_schedule as _get_trip_schedule
from transit_search.services.search_service import get_trips_at_stop as _get_trips_at_stop


@mcp.tool()
async def get_trip(trip_id: str) -> TripDetailResponse | None:
    """Get a trip with its calendar, fare bands and ordered stops.

    Args:
        trip_id: Trip id (from search_trips or suggest_trips).

    Returns:
        TripDetailResponse, or null if the trip doesn't exist.
    """
    return await _get_trip(trip_id)


@mcp.tool()
async def get_trip_schedule(trip_id: str, date: str | None = None) -> TripScheduleResponse | None:
    """Get a trip's timetable and whether it runs on a date.

    Args:
        trip_id: Trip id.
        date: Travel date YYYY-MM-DD (optional; active is true when omitted).

    Returns:
        TripScheduleResponse, or null if the trip doesn't exist.
    """
    return await _get_trip_schedule(trip_id, date=date)


@mcp.tool()
async def get_trips_at_stop(
    stop: str,
    date: str | None = None,
    mode: TransitMode | None = None,
    limit: int = 50,
) -> TripsAtStopResponse:
    """List trips calling at a stop, ordered by departure.

    Args:
        stop: Stop id or public stop code.
        date: Travel date YYYY-MM-DD (optional).
        mode: "bus" or "train" (optional).
        limit: Maximum trips (1-100, default 50).

    Returns:
        TripsAtStopResponse with arrival/departure at that stop for each trip.
    """
    limit = max(1, min(MAX_STOP_VISITS, limit))
    return await _get_trips_at_stop(stop, date=date, mode=mode, limit=limit)


@mcp.tool()
async def get_route_geometry(
    trip_id: str,
    include_stops: bool = False,
) -> RouteFeatureCollection | None:
    """Get a map-renderable route line for a trip.

    Uses the stored route shape when valid, otherwise joins stop coordinates in
    order. Positions are [longitude, latitude].

    Args:
        trip_id: Trip id.
        include_stops: Also return one Point feature per stop.

    Returns:
        FeatureCollection (empty if no line can be built), or null if the trip
        doesn't exist.
    """
    return await _get_route_geometry(trip_id, include_stops=include_stops)


@mcp.tool()
async def get_routes_geojson(
    operator: str | None = None,
    mode: TransitMode | None = None,
    limit: int = 500,
) -> RouteFeatureCollection:
    """Get route lines for all active trips as one map layer.

    Args:
        operator: Exact operator name (optional).
        mode: "bus" or "train" (optional).
        limit: Maximum features (1-2000, default 500).

    Returns:
        FeatureCollection with one LineString feature per drawable trip.
    """
    limit = max(1, min(MAX_ROUTE_FEATURES, limit))
    return await _get_routes_geojson(operator=operator, mode=mode, limit=limit)


@mcp.tool()
async def get_routes_in_bbox(
    min_lon: float,
    min_lat: float,
    max_lon: float,
    max_lat: float,
    operator: str | None = None,
    mode: TransitMode | None = None,
    limit: int = 500,
) -> RouteFeatureCollection:
    """Get route lines that cross a map viewport.

    Args:
        min_lon: West edge longitude.
        min_lat: South edge latitude.
        max_lon: East edge longitude.
        max_lat: North edge latitude.
        operator: Exact operator name (optional).
        mode: "bus" or "train" (optional).
        limit: Maximum features (1-2000, default 500).

    Returns:
        FeatureCollection of the trips whose line touches the box.
    """
    limit = max(1, min(MAX_ROUTE_FEATURES, limit))
    return await _get_routes_in_bbox(
        min_lon, min_lat, max_lon, max_lat, operator=operator, mode=mode, limit=limit
    )


@mcp.tool()
async def check_availability(
    trip_id: str,
    date: str | None = None,
    class_code: str | None = None,
) -> AvailabilityResponse:
    """Check whether a trip runs on a date and offers a fare class.

    No seat inventory is consulted.

    Args:
        trip_id: Trip id.
        date: Travel date YYYY-MM-DD (optional).
        class_code: Fare class code, e.g. "AC" or "3A" (optional).

    Returns:
        AvailabilityResponse.
    """
    return await _check_availability(trip_id, date=date, class_code=class_code)


@mcp.tool()
def get_live_status(
    operator: str | None = None,
    number: str | None = None,
    date: str | None = None,
) -> LiveStatusResponse:
    """Live running status for a service.

    Not connected to a telemetry feed yet: status is always "unknown".

    Args:
        operator: Operator name.
        number: Service number.
        date: Travel date YYYY-MM-DD.
    """
    return _get_live_status(operator=operator, number=number, date=date)
