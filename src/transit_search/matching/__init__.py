"""Text matching for trip suggestions."""

from transit_search.matching.normalizers import normalize_text, remove_accents
from transit_search.matching.trip_matcher import score_field, suggest_trips

__all__ = [
    # Matchers
    "suggest_trips",
    "score_field",
    # Normalizers
    "normalize_text",
    "remove_accents",
]
