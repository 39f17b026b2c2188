"""Typeahead suggestions over trip numbers, names and operators."""

import logging
from pathlib import Path

import aiosqlite
from rapidfuzz import fuzz

from transit_search.data.database import get_db
from transit_search.matching.normalizers import normalize_text
from transit_search.models.catalog import TransitMode
from transit_search.models.responses import SuggestMatchType, SuggestResponse, TripSuggestion

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_SUGGESTIONS = 25
FUZZY_MIN_SCORE = 80.0

# Fields searched, in tie-break order
SUGGEST_FIELDS = ("number", "name", "operator")

_MATCH_RANK = {
    SuggestMatchType.PREFIX: 0,
    SuggestMatchType.SUBSTRING: 1,
    SuggestMatchType.FUZZY: 2,
}


def score_field(query: str, value: str) -> tuple[SuggestMatchType, float] | None:
    """Score one normalized field against a normalized query.

    Returns:
        (match type, score) for the best way the field matches, or None.
    """
    if not value:
        return None
    if value.startswith(query):
        return SuggestMatchType.PREFIX, 100.0
    if query in value:
        return SuggestMatchType.SUBSTRING, 90.0

    score = fuzz.partial_ratio(query, value)
    if score >= FUZZY_MIN_SCORE:
        return SuggestMatchType.FUZZY, round(score, 1)
    return None


def _best_match(
    query: str, row: aiosqlite.Row
) -> tuple[SuggestMatchType, float, str] | None:
    best: tuple[SuggestMatchType, float, str] | None = None
    for field_name in SUGGEST_FIELDS:
        scored = score_field(query, normalize_text(row[field_name] or ""))
        if scored is None:
            continue
        match_type, score = scored
        if best is None or (_MATCH_RANK[match_type], -score) < (_MATCH_RANK[best[0]], -best[1]):
            best = (match_type, score, field_name)
    return best


def _label(row: aiosqlite.Row) -> str:
    title = row["name"] or row["number"]
    return f"{title} · {row['operator']}"


async def suggest_trips(
    query: str,
    limit: int = 10,
    mode: TransitMode | None = None,
    operator: str | None = None,
    db_path: Path | None = None,
) -> SuggestResponse:
    """Suggest trips whose number, name or operator matches a partial query.

    Matching is case and accent insensitive. Prefix hits rank above substring
    hits, which rank above fuzzy (typo-tolerant) hits.

    Args:
        query: Partial text, at least 2 characters.
        limit: Maximum suggestions (capped at 25).
        mode: Optional bus/train filter.
        operator: Optional exact operator filter.
        db_path: Optional database path override.

    Returns:
        SuggestResponse, empty when the query is too short.
    """
    query = query.strip()
    normalized_query = normalize_text(query)
    limit = max(1, min(MAX_SUGGESTIONS, limit))

    if len(normalized_query) < MIN_QUERY_LENGTH:
        return SuggestResponse(query=query, suggestions=[], count=0)

    params: list = []
    sql = "SELECT trip_id, number, name, operator, mode FROM trips WHERE is_active = 1"
    if mode is not None:
        sql += " AND mode = ?"
        params.append(TransitMode(mode).value)
    if operator:
        sql += " AND operator = ?"
        params.append(operator)

    async with get_db(db_path) as db:
        async with db.execute(sql, params) as cursor:
            rows = await cursor.fetchall()

    scored: list[tuple[tuple, TripSuggestion]] = []
    for row in rows:
        best = _best_match(normalized_query, row)
        if best is None:
            continue
        match_type, score, field_name = best
        suggestion = TripSuggestion(
            trip_id=row["trip_id"],
            number=row["number"],
            name=row["name"],
            operator=row["operator"],
            mode=row["mode"],
            label=_label(row),
            score=score,
            match_type=match_type,
            matched_field=field_name,
        )
        key = (
            _MATCH_RANK[match_type],
            -score,
            SUGGEST_FIELDS.index(field_name),
            row["number"],
            row["trip_id"],
        )
        scored.append((key, suggestion))

    scored.sort(key=lambda item: item[0])
    suggestions = [s for _, s in scored[:limit]]
    logger.debug(f"Suggest {query!r}: {len(scored)} matches, returning {len(suggestions)}")

    return SuggestResponse(query=query, suggestions=suggestions, count=len(suggestions))
