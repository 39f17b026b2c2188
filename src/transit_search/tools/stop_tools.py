"""MCP tools for searching stops."""

from transit_search.app import mcp
from transit_search.models.catalog import TransitMode
from transit_search.models.responses import SearchStopsResponse, StopResult
from transit_search.services.stop_service import get_stop_by_id as _get_stop_by_id
from transit_search.services.stop_service import search_stops as _search_stops


@mcp.tool()
async def search_stops(
    query: str | None = None,
    stop_code: str | None = None,
    lat: float | None = None,
    lon: float | None = None,
    radius_meters: int = 500,
    limit: int = 20,
    mode: TransitMode | None = None,
) -> SearchStopsResponse:
    """Search for bus stops and train stations.

    Supports three search modes:
    - Text search: Find stops by name or locality (e.g., "Majestic", "Mysuru")
    - Stop code: Find by exact public code (e.g., "SBC")
    - Geo search: Find stops near coordinates within a radius

    Examples:
        search_stops(query="Majestic")  # Find stops with "Majestic" in name
        search_stops(stop_code="SBC")  # Find stop by code
        search_stops(lat=12.977, lon=77.571, radius_meters=1000)  # Nearby stops

    Args:
        query: Text to search for in stop names (case-insensitive partial match).
        stop_code: Exact public code to match.
        lat: Latitude for geographic search (requires lon).
        lon: Longitude for geographic search (requires lat).
        radius_meters: Search radius for geo search (default 500m, max 10000m).
        limit: Maximum number of results to return (default 20, max 100).
        mode: "bus" or "train" (optional).

    Returns:
        SearchStopsResponse with list of matching stops and count.
        For geo search, stops are sorted by distance and include distance_meters.
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 100:
        limit = 100

    # Validate radius
    if radius_meters < 1:
        radius_meters = 1
    elif radius_meters > 10000:
        radius_meters = 10000

    return await _search_stops(
        query=query,
        stop_code=stop_code,
        lat=lat,
        lon=lon,
        radius_meters=radius_meters,
        limit=limit,
        mode=mode,
    )


@mcp.tool()
async def get_stop(stop_id: str) -> StopResult | None:
    """Get a single stop by its id.

    Args:
        stop_id: Internal stop id.

    Returns:
        StopResult, or null if no such stop exists.
    """
    return await _get_stop_by_id(stop_id)
