"""MCP tools for trip search and discovery."""

from transit_search.app import mcp
from transit_search.matching.trip_matcher import MAX_SUGGESTIONS
from transit_search.matching.trip_matcher import suggest_trips as _suggest_trips
from transit_search.models.catalog import TransitMode
from transit_search.models.responses import (
    OperatorsResponse,
    SearchTripsResponse,
    SuggestResponse,
    TrendingResponse,
)
from transit_search.services.ranking import MAX_LIMIT, MAX_PAGE
from transit_search.services.search_service import MAX_OPERATORS, MAX_TRENDING
from transit_search.services.search_service import get_operators as _get_operators
from transit_search.services.search_service import get_trending as _get_trending
from transit_search.services.search_service import search_trips as _search_trips


@mcp.tool()
async def search_trips(
    origin: str,
    destination: str,
    date: str | None = None,
    operators: list[str] | None = None,
    classes: list[str] | None = None,
    mode: TransitMode | None = None,
    sort: str = "departure",
    page: int = 1,
    limit: int = 20,
) -> SearchTripsResponse:
    """Find scheduled trips from an origin stop to a destination stop.

    Only trips that visit the origin before the destination are returned. With
    a date, trips must also run on that date (weekday pattern and validity
    window).

    Examples:
        search_trips(origin="MYS", destination="SBC", date="2025-09-20")
        search_trips(origin="S1", destination="S3", sort="price", classes=["AC"])

    Args:
        origin: Origin stop id or public stop code (see search_stops).
        destination: Destination stop id or public stop code.
        date: Travel date YYYY-MM-DD (optional).
        operators: Only trips run by these operators.
        classes: Only trips offering at least one of these fare classes.
        mode: "bus" or "train" (optional).
        sort: departure (default), duration, price or popularity.
        page: Page number (1-200).
        limit: Results per page (1-100, default 20).

    Returns:
        SearchTripsResponse with one page of trips annotated with departure,
        arrival, duration and cheapest fare, plus total and has_more.
    """
    page = max(1, min(MAX_PAGE, page))
    limit = max(1, min(MAX_LIMIT, limit))

    return await _search_trips(
        origin=origin,
        destination=destination,
        date=date,
        operators=operators,
        classes=classes,
        mode=mode,
        sort=sort,
        page=page,
        limit=limit,
    )


@mcp.tool()
async def suggest_trips(
    query: str,
    limit: int = 10,
    mode: TransitMode | None = None,
    operator: str | None = None,
) -> SuggestResponse:
    """Typeahead over trip numbers, names and operators.

    Case and accent insensitive, tolerant of small typos. Needs at least 2
    characters.

    Args:
        query: Partial trip number, name or operator (e.g. "126", "coastal").
        limit: Maximum suggestions (1-25, default 10).
        mode: "bus" or "train" (optional).
        operator: Only trips from this operator (optional).

    Returns:
        SuggestResponse with prefix matches first, then substring, then fuzzy.
    """
    limit = max(1, min(MAX_SUGGESTIONS, limit))
    return await _suggest_trips(query=query, limit=limit, mode=mode, operator=operator)


@mcp.tool()
async def list_operators(
    mode: TransitMode | None = None,
    limit: int = 100,
) -> OperatorsResponse:
    """List operators with trip counts and observed fare range.

    Args:
        mode: "bus" or "train" (optional).
        limit: Maximum operators (1-200, default 100).

    Returns:
        OperatorsResponse sorted by trip count, busiest first.
    """
    limit = max(1, min(MAX_OPERATORS, limit))
    return await _get_operators(mode=mode, limit=limit)


@mcp.tool()
async def trending_trips(
    region: str | None = None,
    mode: TransitMode | None = None,
    limit: int = 10,
) -> TrendingResponse:
    """Most popular trips, optionally within a region.

    Args:
        region: Region tag to scope to (optional).
        mode: "bus" or "train" (optional).
        limit: Maximum trips (1-50, default 10).

    Returns:
        TrendingResponse ordered by popularity, then view count.
    """
    limit = max(1, min(MAX_TRENDING, limit))
    return await _get_trending(region=region, mode=mode, limit=limit)
