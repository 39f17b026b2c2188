"""Tests for text normalization."""

from transit_search.matching.normalizers import normalize_text, remove_accents


class TestRemoveAccents:
    def test_removes_diacritics(self) -> None:
        assert remove_accents("Préfontaine") == "Prefontaine"
        assert remove_accents("Côte-Vertu") == "Cote-Vertu"

    def test_plain_text_unchanged(self) -> None:
        assert remove_accents("Mysuru") == "Mysuru"


class TestNormalizeText:
    def test_lowercases_and_strips(self) -> None:
        assert normalize_text("  Coastal EXPRESS ") == "coastal express"

    def test_collapses_whitespace(self) -> None:
        assert normalize_text("Night\t  Rider") == "night rider"

    def test_removes_accents(self) -> None:
        assert normalize_text("Cöastal Éxpress") == "coastal express"

    def test_empty(self) -> None:
        assert normalize_text("") == ""
