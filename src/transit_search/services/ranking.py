"""Ranking and pagination of matched segments."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from transit_search.services.journey_matcher import MatchedSegment

logger = logging.getLogger(__name__)

# Pagination bounds
MIN_PAGE = 1
MAX_PAGE = 200
MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_LIMIT = 20


class SortMode(str, Enum):
    """Ordering criteria for search results."""

    DEPARTURE = "departure"
    DURATION = "duration"
    PRICE = "price"
    POPULARITY = "popularity"


@dataclass
class RankedPage:
    """One page of ranked segments plus pagination bookkeeping."""

    items: list[MatchedSegment]
    page: int
    limit: int
    total: int
    has_more: bool


def parse_sort_mode(value: str | SortMode | None) -> SortMode:
    """Parse a sort mode, falling back to departure order for unknown values."""
    if isinstance(value, SortMode):
        return value
    if value is None:
        return SortMode.DEPARTURE
    try:
        return SortMode(value.strip().lower())
    except ValueError:
        logger.debug(f"Unknown sort mode {value!r}, using departure")
        return SortMode.DEPARTURE


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _departure_key(segment: MatchedSegment) -> Any:
    # annotated segments always carry a departure
    return segment.departure.timestamp() if segment.departure else float("inf")


def _sort_key(mode: SortMode) -> Callable[[MatchedSegment], tuple]:
    if mode is SortMode.DURATION:
        return lambda s: (s.duration_minutes, _departure_key(s), s.trip.trip_id)
    if mode is SortMode.PRICE:
        # unpriced trips sort after every priced one
        return lambda s: (
            s.cheapest_fare is None,
            s.cheapest_fare or 0.0,
            _departure_key(s),
            s.trip.trip_id,
        )
    if mode is SortMode.POPULARITY:
        return lambda s: (-s.trip.popularity, -s.trip.view_count, s.trip.trip_id)
    return lambda s: (_departure_key(s), s.trip.trip_id)


def rank_segments(
    segments: list[MatchedSegment],
    sort_mode: str | SortMode | None = SortMode.DEPARTURE,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> RankedPage:
    """Sort annotated segments and slice out one page.

    Args:
        segments: Every date-eligible, direction-matched, annotated segment.
        sort_mode: departure (default), duration, price or popularity.
        page: 1-based page number, clamped to [1, 200].
        limit: Page size, clamped to [1, 100].

    Returns:
        RankedPage where total counts all segments before pagination.
    """
    mode = parse_sort_mode(sort_mode)
    page = clamp(page, MIN_PAGE, MAX_PAGE)
    limit = clamp(limit, MIN_LIMIT, MAX_LIMIT)
    skip = (page - 1) * limit

    ordered = sorted(segments, key=_sort_key(mode))
    items = ordered[skip : skip + limit]
    total = len(ordered)

    return RankedPage(
        items=items,
        page=page,
        limit=limit,
        total=total,
        has_more=skip + len(items) < total,
    )
