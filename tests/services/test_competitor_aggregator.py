"""
Tests for cross-query competitor detection.
"""

from ai_visibility.models.report import (
    Analysis,
    GeneratedQuery,
    QueryIntent,
    QueryResult,
)
from ai_visibility.services.competitor_aggregator import (
    active_competitors,
    detect_competitors,
)


def result_with(analyses):
    return QueryResult(
        query=GeneratedQuery(query="best cafes", intent=QueryIntent.DISCOVERY, description="d"),
        analyses={
            platform: Analysis(competitors_mentioned=tuple(names))
            for platform, names in analyses.items()
        },
    )


class TestDetectCompetitors:
    def test_single_sighting_is_noise(self):
        results = [result_with({"chatgpt": ["Blue Bottle"]}), result_with({})]

        assert detect_competitors(results) == []

    def test_two_queries_kept(self):
        results = [
            result_with({"chatgpt": ["Blue Bottle"]}),
            result_with({"claude": ["Blue Bottle"]}),
        ]

        competitors = detect_competitors(results)

        assert len(competitors) == 1
        assert competitors[0].competitor_name == "Blue Bottle"
        assert competitors[0].detection_count == 2
        assert competitors[0].detected_in_platforms == ["chatgpt", "claude"]

    def test_counts_distinct_queries_not_platforms(self):
        """Several platforms naming a rival in one query count once."""
        results = [
            result_with({"chatgpt": ["Stumptown"], "claude": ["Stumptown"], "gemini": ["stumptown"]}),
        ]

        assert detect_competitors(results) == []

    def test_case_insensitive_dedupe_keeps_first_spelling(self):
        results = [
            result_with({"chatgpt": ["Heart Coffee"]}),
            result_with({"chatgpt": ["HEART COFFEE"]}),
        ]

        competitors = detect_competitors(results)

        assert [c.competitor_name for c in competitors] == ["Heart Coffee"]

    def test_sorted_by_count_then_first_sighting(self):
        results = [
            result_with({"chatgpt": ["Coava", "Heart"]}),
            result_with({"chatgpt": ["Heart", "Coava", "Stumptown"]}),
            result_with({"chatgpt": ["Stumptown"]}),
            result_with({"chatgpt": ["Stumptown"]}),
        ]

        names = [c.competitor_name for c in detect_competitors(results)]

        assert names == ["Stumptown", "Coava", "Heart"]

    def test_disabled_competitors_flagged(self):
        results = [
            result_with({"chatgpt": ["Blue Bottle", "Coava"]}),
            result_with({"chatgpt": ["Blue Bottle", "Coava"]}),
        ]

        competitors = detect_competitors(results, disabled_competitors=["blue bottle"])
        by_name = {c.competitor_name: c for c in competitors}

        assert by_name["Blue Bottle"].is_user_disabled is True
        assert by_name["Blue Bottle"].disabled_at is not None
        assert by_name["Coava"].is_user_disabled is False
        assert [c.competitor_name for c in active_competitors(competitors)] == ["Coava"]

    def test_custom_threshold(self):
        results = [result_with({"chatgpt": ["Blue Bottle"]})]

        assert len(detect_competitors(results, min_detections=1)) == 1
