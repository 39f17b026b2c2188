"""Tests for the journey matcher."""

from transit_search.models.catalog import Trip
from transit_search.services.journey_matcher import first_stop_indices, match_journey


def _trip(*stop_ids: str) -> Trip:
    return Trip(
        trip_id="T",
        number="1",
        operator="KSRTC",
        stops=[{"seq": i, "stop_id": stop_id} for i, stop_id in enumerate(stop_ids)],
    )


class TestMatchJourney:
    """Tests for match_journey."""

    def test_forward_match(self) -> None:
        segment = match_journey(_trip("S1", "S2", "S3"), "S1", "S3")

        assert segment is not None
        assert segment.origin_index == 0
        assert segment.destination_index == 2
        assert segment.num_stops == 3
        assert segment.origin_stop.stop_id == "S1"
        assert segment.destination_stop.stop_id == "S3"

    def test_intermediate_segment(self) -> None:
        segment = match_journey(_trip("S1", "S2", "S3", "S4"), "S2", "S3")

        assert segment is not None
        assert (segment.origin_index, segment.destination_index) == (1, 2)

    def test_reverse_direction_not_matched(self) -> None:
        assert match_journey(_trip("S1", "S2", "S3"), "S3", "S1") is None

    def test_missing_stop_not_matched(self) -> None:
        assert match_journey(_trip("S1", "S2"), "S1", "S9") is None
        assert match_journey(_trip("S1", "S2"), "S9", "S2") is None

    def test_same_origin_and_destination(self) -> None:
        assert match_journey(_trip("S1", "S2"), "S1", "S1") is None

    def test_metrics_empty_until_annotated(self) -> None:
        segment = match_journey(_trip("S1", "S2"), "S1", "S2")

        assert segment is not None
        assert segment.departure is None
        assert segment.duration_minutes is None


class TestLoopRoutes:
    """A trip revisiting a stop resolves to the first occurrence."""

    def test_first_occurrence_used(self) -> None:
        trip = _trip("A", "B", "C", "A", "D")

        assert first_stop_indices(trip, "A", "D") == (0, 4)

    def test_first_occurrence_after_destination_not_matched(self) -> None:
        # A appears again after C, but only its first index (0) counts
        trip = _trip("C", "A", "B", "C")

        assert first_stop_indices(trip, "A", "C") == (1, 0)
        assert match_journey(trip, "A", "C") is None

    def test_loop_back_to_origin(self) -> None:
        trip = _trip("A", "B", "A")

        segment = match_journey(trip, "B", "A")
        assert segment is None
        segment = match_journey(trip, "A", "B")
        assert segment is not None
        assert segment.num_stops == 2
