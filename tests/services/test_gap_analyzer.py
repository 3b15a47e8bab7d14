"""
Tests for content gaps, priority actions and achievements.
"""

from ai_visibility.models.report import (
    ActionPriority,
    Analysis,
    Competitor,
    GapType,
    GeneratedQuery,
    QueryIntent,
    QueryResult,
    ScoreParams,
    SeverityLevel,
    Sentiment,
)
from ai_visibility.services.gap_analyzer import (
    analyze_content_gaps,
    analyze_topic_gaps,
    generate_achievements,
    generate_priority_actions,
    queries_with_mention,
)
from ai_visibility.services.scoring import calculate_platform_score


def result_with(**analyses):
    return QueryResult(
        query=GeneratedQuery(query="best cafes", intent=QueryIntent.DISCOVERY, description="d"),
        analyses=analyses,
    )


def breakdown(platform, mentioned, ranking=None, sentiment=None, query_count=1, error_count=0):
    score = calculate_platform_score(
        ScoreParams(business_mentioned=mentioned, ranking=ranking, sentiment=sentiment),
        platform=platform,
    )
    return score.model_copy(update={"query_count": query_count, "error_count": error_count})


def competitors(*names):
    return [Competitor(competitor_name=n, detection_count=2) for n in names]


class TestContentGaps:
    def test_no_mentions_is_critical_structural_gap(self):
        results = [result_with(chatgpt=Analysis()) for _ in range(4)]

        gaps = analyze_content_gaps(results, competitors("Blue Bottle", "Coava", "Heart", "Stumptown"))

        assert len(gaps) == 1
        assert gaps[0].gap_type is GapType.STRUCTURAL
        assert gaps[0].severity is SeverityLevel.CRITICAL
        assert gaps[0].competitors_have_this == ["Blue Bottle", "Coava", "Heart"]
        assert "0 out of 4" in gaps[0].gap_description

    def test_low_visibility_is_significant(self):
        results = [result_with(chatgpt=Analysis(business_mentioned=True))] + [
            result_with(chatgpt=Analysis()) for _ in range(3)
        ]

        gaps = analyze_content_gaps(results, [])

        assert gaps[0].severity is SeverityLevel.SIGNIFICANT
        assert queries_with_mention(results) == 1

    def test_unanswered_queries_count_towards_visibility(self):
        results = (
            [result_with(chatgpt=Analysis(business_mentioned=True, business_ranking=1))]
            + [result_with(chatgpt=Analysis())]
            + [result_with() for _ in range(8)]
        )

        gaps = analyze_content_gaps(results, [])

        assert [g.gap_title for g in gaps] == ["Low AI Platform Visibility"]
        assert gaps[0].severity is SeverityLevel.SIGNIFICANT
        assert "1 out of 10" in gaps[0].gap_description

    def test_no_queries_no_gaps(self):
        assert analyze_content_gaps([], []) == []

    def test_poor_ranking_is_thematic_gap(self):
        results = [
            result_with(chatgpt=Analysis(business_mentioned=True, business_ranking=6)),
            result_with(chatgpt=Analysis(business_mentioned=True, business_ranking=7)),
        ]

        gaps = analyze_content_gaps(results, [])

        assert [g.gap_type for g in gaps] == [GapType.THEMATIC]
        assert gaps[0].severity is SeverityLevel.SIGNIFICANT

    def test_good_visibility_has_no_gaps(self):
        results = [result_with(chatgpt=Analysis(business_mentioned=True, business_ranking=1))]

        assert analyze_content_gaps(results, []) == []


class TestTopicGaps:
    def test_recurring_phrases(self):
        results = [
            result_with(
                chatgpt=Analysis(content_gaps=("outdoor seating options",)),
                claude=Analysis(content_gaps=("Outdoor  seating options",)),
            ),
            result_with(chatgpt=Analysis(content_gaps=("outdoor seating options", "vegan pastry menu"))),
            result_with(chatgpt=Analysis(content_gaps=("outdoor seating options", "vegan pastry menu"))),
            result_with(chatgpt=Analysis(content_gaps=("parking information",))),
        ]

        gaps = analyze_topic_gaps(results)

        assert [(g.gap_title, g.gap_type) for g in gaps] == [
            ("Missing topic: outdoor seating options", GapType.CRITICAL_TOPIC),
            ("Missing topic: vegan pastry menu", GapType.SIGNIFICANT_TOPIC),
        ]

    def test_max_gaps(self):
        phrases = tuple(f"missing topic number {i}" for i in range(8))
        results = [result_with(chatgpt=Analysis(content_gaps=phrases)) for _ in range(2)]

        assert len(analyze_topic_gaps(results, max_gaps=5)) == 5


class TestPriorityActions:
    def test_critical_action_for_invisible_platform(self):
        actions = generate_priority_actions(
            [
                breakdown("chatgpt", True, ranking=1, sentiment=Sentiment.POSITIVE),
                breakdown("claude", False),
            ],
            [],
        )

        assert len(actions) == 1
        assert actions[0].priority is ActionPriority.CRITICAL
        assert "CLAUDE" in actions[0].action_title

    def test_platform_actions_capped_at_three(self):
        breakdowns = [breakdown(name, False) for name in ("a", "b", "c", "d")]

        actions = generate_priority_actions(breakdowns, [])

        assert len(actions) == 3

    def test_platform_without_data_gets_no_action(self):
        actions = generate_priority_actions(
            [breakdown("gemini", False, query_count=2, error_count=2)], []
        )

        assert actions == []

    def test_competitive_strategy_above_threshold(self):
        many = competitors("A1", "B2", "C3", "D4", "E5", "F6")

        actions = generate_priority_actions([], many)

        assert [a.action_title for a in actions] == ["Competitive Intelligence Strategy"]
        assert generate_priority_actions([], many[:5]) == []

    def test_content_actions_from_critical_topics(self):
        results = [
            result_with(chatgpt=Analysis(content_gaps=("outdoor seating options",)))
            for _ in range(3)
        ]
        gaps = analyze_topic_gaps(results)

        actions = generate_priority_actions([], [], gaps)

        assert actions[0].action_title == "Create Content: outdoor seating options"
        assert actions[0].priority is ActionPriority.MEDIUM


class TestAchievements:
    def test_strong_scores(self):
        achievements = generate_achievements(
            [breakdown("chatgpt", True, ranking=1, sentiment=Sentiment.POSITIVE)], 100, 80
        )
        categories = [a.category for a in achievements]

        assert categories == ["overall_performance", "platform_performance", "score_improvement"]
        assert achievements[2].improvement_percentage == 25.0

    def test_nothing_to_celebrate(self):
        assert generate_achievements([breakdown("chatgpt", False)], 0, None) == []

    def test_no_score(self):
        assert generate_achievements([], None, 50) == []
