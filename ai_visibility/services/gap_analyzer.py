"""
Content gaps, priority actions and achievements.

Turns weak scores, missing mentions, recurring "could improve" phrases and
competitor dominance into the recommendations shown in a report.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from ai_visibility.models.report import (
    Achievement,
    ActionPriority,
    Competitor,
    ContentGap,
    EffortLevel,
    GapType,
    ImpactLevel,
    PriorityAction,
    ProviderScoreBreakdown,
    QueryResult,
    SeverityLevel,
)
from ai_visibility.services.competitor_aggregator import active_competitors
from ai_visibility.services.scoring import (
    OpportunityPriority,
    ScoringOpportunity,
    identify_scoring_opportunities,
)
from ai_visibility.utils.logger import get_logger

logger = get_logger(__name__)

# Business mentioned in fewer than this share of queries -> structural gap
LOW_VISIBILITY_RATIO = 0.3
# Mean rank above this -> thematic gap; above the second -> significant
RANKING_GAP_THRESHOLD = 3
SIGNIFICANT_RANKING_THRESHOLD = 5
TOP_COMPETITORS_IN_GAP = 3

CRITICAL_TOPIC_MIN_QUERIES = 3
SIGNIFICANT_TOPIC_MIN_QUERIES = 2
MAX_TOPIC_GAPS = 5

MAX_PLATFORM_ACTIONS = 3
MAX_CONTENT_ACTIONS = 2
# More competitors than this triggers the competitive strategy action
COMPETITIVE_STRATEGY_THRESHOLD = 5

STRONG_OVERALL_SCORE = 70
EXCELLENT_OVERALL_SCORE = 85
STRONG_PLATFORM_SCORE = 75
IMPROVEMENT_THRESHOLD = 2


# === Content gaps ===


def _top_competitor_names(competitors: Sequence[Competitor]) -> List[str]:
    return [
        c.competitor_name
        for c in active_competitors(competitors)[:TOP_COMPETITORS_IN_GAP]
    ]


def queries_with_mention(query_results: Sequence[QueryResult]) -> int:
    """Queries in which at least one platform mentioned the business."""
    return sum(
        1
        for result in query_results
        if any(a.business_mentioned for a in result.analyses.values())
    )


def analyze_content_gaps(
    query_results: Sequence[QueryResult],
    competitors: Sequence[Competitor],
    low_visibility_ratio: float = LOW_VISIBILITY_RATIO,
) -> List[ContentGap]:
    """Structural (visibility) and thematic (ranking) gaps."""
    gaps: List[ContentGap] = []
    total_queries = len(query_results)
    mentions = queries_with_mention(query_results)
    top_names = _top_competitor_names(competitors)

    if total_queries and mentions < total_queries * low_visibility_ratio:
        description = (
            f"Business appears in only {mentions} out of {total_queries} queries."
        )
        if top_names:
            description += (
                f" Competitors like {', '.join(top_names)} are mentioned more frequently."
            )
        gaps.append(
            ContentGap(
                gap_type=GapType.STRUCTURAL,
                gap_title="Low AI Platform Visibility",
                gap_description=description,
                severity=(
                    SeverityLevel.CRITICAL if mentions == 0 else SeverityLevel.SIGNIFICANT
                ),
                competitors_have_this=top_names,
                recommended_action=(
                    "Optimize online presence with structured data, consistent NAP "
                    "citations, and authoritative backlinks"
                ),
                content_type="technical_seo",
            )
        )

    rankings = [
        analysis.business_ranking
        for result in query_results
        for analysis in result.analyses.values()
        if analysis.business_ranking is not None
    ]
    if rankings:
        average_rank = sum(rankings) / len(rankings)
        if average_rank > RANKING_GAP_THRESHOLD:
            gaps.append(
                ContentGap(
                    gap_type=GapType.THEMATIC,
                    gap_title="Suboptimal Ranking Position",
                    gap_description=(
                        f"Business ranks at position {average_rank:.1f} on average "
                        "when mentioned. Top competitors consistently rank higher."
                    ),
                    severity=(
                        SeverityLevel.SIGNIFICANT
                        if average_rank > SIGNIFICANT_RANKING_THRESHOLD
                        else SeverityLevel.MODERATE
                    ),
                    competitors_have_this=top_names,
                    recommended_action=(
                        "Increase review volume, improve rating, and enhance content quality"
                    ),
                    content_type="reputation_management",
                )
            )

    return gaps


def analyze_topic_gaps(
    query_results: Sequence[QueryResult],
    competitors: Sequence[Competitor] = (),
    max_gaps: int = MAX_TOPIC_GAPS,
) -> List[ContentGap]:
    """
    Gaps from content-gap phrases that recur across queries.

    A phrase counts once per query however many platforms raised it.
    """
    spellings: Dict[str, str] = {}
    query_counts: Counter = Counter()

    for result in query_results:
        seen_in_query = set()
        for analysis in result.analyses.values():
            for phrase in analysis.content_gaps:
                key = " ".join(phrase.lower().split())
                if not key:
                    continue
                spellings.setdefault(key, phrase.strip())
                seen_in_query.add(key)
        query_counts.update(seen_in_query)

    recurring = [
        (key, count)
        for key, count in query_counts.most_common()
        if count >= SIGNIFICANT_TOPIC_MIN_QUERIES
    ][:max_gaps]

    top_names = _top_competitor_names(competitors)
    total_queries = len(query_results)
    gaps = []
    for key, count in recurring:
        critical = count >= CRITICAL_TOPIC_MIN_QUERIES
        phrase = spellings[key]
        gaps.append(
            ContentGap(
                gap_type=GapType.CRITICAL_TOPIC if critical else GapType.SIGNIFICANT_TOPIC,
                gap_title=f"Missing topic: {phrase}",
                gap_description=(
                    f'AI assistants pointed out "{phrase}" in {count} of '
                    f"{total_queries} queries."
                ),
                severity=SeverityLevel.CRITICAL if critical else SeverityLevel.SIGNIFICANT,
                competitors_have_this=top_names,
                recommended_action=f"Publish content that addresses: {phrase}",
                content_type="content",
            )
        )
    return gaps


# === Priority actions ===

_PLATFORM_FIX_INSTRUCTIONS = {
    ActionPriority.CRITICAL: (
        "1. Claim and optimize your business listing on relevant directories\n"
        "2. Build citations on authoritative sites\n"
        "3. Create quality content mentioning your services and location\n"
        "4. Encourage customer reviews on multiple platforms"
    ),
    ActionPriority.HIGH: (
        "1. Optimize Google Business Profile with complete information\n"
        "2. Add high-quality photos and regular posts\n"
        "3. Respond to all reviews professionally\n"
        "4. Build more positive reviews"
    ),
    ActionPriority.MEDIUM: (
        "1. Monitor and maintain current performance\n"
        "2. Continue regular content updates\n"
        "3. Stay engaged with customer feedback\n"
        "4. Track competitor strategies"
    ),
}

_COMPETITIVE_FIX_INSTRUCTIONS = (
    "1. Analyze top 3 competitor strengths\n"
    "2. Identify unique value propositions\n"
    "3. Emphasize differentiators in content\n"
    "4. Monitor competitor review strategies"
)

_CONTENT_FIX_INSTRUCTIONS = (
    "1. Create a dedicated page or post covering this topic\n"
    "2. Add it to your business listings and FAQ\n"
    "3. Mark it up with structured data\n"
    "4. Ask satisfied customers to mention it in reviews"
)


def _impact_for_gain(potential_gain: int) -> ImpactLevel:
    if potential_gain > 30:
        return ImpactLevel.HIGH
    if potential_gain > 15:
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


_EFFORT_BY_PRIORITY = {
    ActionPriority.CRITICAL: EffortLevel.EXTENSIVE,
    ActionPriority.HIGH: EffortLevel.MODERATE,
    ActionPriority.MEDIUM: EffortLevel.QUICK,
}


def _platform_action(opportunity: ScoringOpportunity) -> PriorityAction:
    label = opportunity.platform.upper()

    if opportunity.priority is OpportunityPriority.CRITICAL:
        priority = ActionPriority.CRITICAL
        title = f"Critical: Establish {label} Presence"
        description = (
            f"{label} shows zero visibility. This is a critical gap affecting "
            "overall AI discoverability."
        )
    elif opportunity.priority is OpportunityPriority.HIGH:
        priority = ActionPriority.HIGH
        title = f"Improve {label} Ranking"
        description = (
            f"{label} shows opportunities for improvement. {opportunity.opportunity}"
        )
    else:
        priority = ActionPriority.MEDIUM
        title = f"Optimize {label} Performance"
        description = f"{label} has room for improvement. {opportunity.opportunity}"

    return PriorityAction(
        action_title=title,
        action_description=description,
        priority=priority,
        category="platform_optimization",
        fix_instructions=_PLATFORM_FIX_INSTRUCTIONS[priority],
        estimated_impact=_impact_for_gain(opportunity.potential_gain),
        estimated_effort=_EFFORT_BY_PRIORITY[priority],
    )


def generate_priority_actions(
    breakdowns: Iterable[ProviderScoreBreakdown],
    competitors: Sequence[Competitor],
    content_gaps: Sequence[ContentGap] = (),
) -> List[PriorityAction]:
    """
    Ranked recommendations for the report.

    The three most urgent scoring opportunities become platform actions;
    recurring critical topics add content actions and a crowded field adds
    a competitive strategy action.
    """
    actions = [
        _platform_action(opportunity)
        for opportunity in identify_scoring_opportunities(breakdowns)[
            :MAX_PLATFORM_ACTIONS
        ]
    ]

    critical_topics = [g for g in content_gaps if g.gap_type is GapType.CRITICAL_TOPIC]
    for gap in critical_topics[:MAX_CONTENT_ACTIONS]:
        actions.append(
            PriorityAction(
                action_title=f"Create Content: {gap.gap_title.split(': ', 1)[-1]}",
                action_description=gap.gap_description,
                priority=ActionPriority.MEDIUM,
                category="content",
                fix_instructions=_CONTENT_FIX_INSTRUCTIONS,
                estimated_impact=ImpactLevel.MEDIUM,
                estimated_effort=EffortLevel.MODERATE,
            )
        )

    if len(competitors) > COMPETITIVE_STRATEGY_THRESHOLD:
        actions.append(
            PriorityAction(
                action_title="Competitive Intelligence Strategy",
                action_description=(
                    f"{len(competitors)} competitors detected across AI platforms. "
                    "Need competitive differentiation strategy."
                ),
                priority=ActionPriority.HIGH,
                category="competitive_analysis",
                fix_instructions=_COMPETITIVE_FIX_INSTRUCTIONS,
                estimated_impact=ImpactLevel.HIGH,
                estimated_effort=EffortLevel.MODERATE,
            )
        )

    logger.info(
        "Priority actions generated",
        total=len(actions),
        critical=sum(1 for a in actions if a.priority is ActionPriority.CRITICAL),
    )
    return actions


# === Achievements ===


def generate_achievements(
    breakdowns: Iterable[ProviderScoreBreakdown],
    overall_score: Optional[int],
    previous_score: Optional[int] = None,
) -> List[Achievement]:
    """Recent wins worth highlighting."""
    achievements: List[Achievement] = []

    if overall_score is not None and overall_score >= STRONG_OVERALL_SCORE:
        achievements.append(
            Achievement(
                achievement_text=(
                    f"Strong AI visibility with {overall_score}/100 overall score"
                ),
                category="overall_performance",
                impact_level=(
                    ImpactLevel.HIGH
                    if overall_score >= EXCELLENT_OVERALL_SCORE
                    else ImpactLevel.MEDIUM
                ),
                current_value=str(overall_score),
            )
        )

    for breakdown in breakdowns:
        if breakdown.has_data and breakdown.score >= STRONG_PLATFORM_SCORE:
            achievements.append(
                Achievement(
                    achievement_text=(
                        f"Excellent {breakdown.platform.upper()} presence with "
                        f"{breakdown.score}/100 score"
                    ),
                    category="platform_performance",
                    impact_level=ImpactLevel.MEDIUM,
                    current_value=str(breakdown.score),
                )
            )

    if (
        overall_score is not None
        and previous_score is not None
        and overall_score - previous_score > IMPROVEMENT_THRESHOLD
    ):
        achievements.append(
            Achievement(
                achievement_text=(
                    f"Overall score improved by {overall_score - previous_score} "
                    f"points since the last report"
                ),
                category="score_improvement",
                impact_level=ImpactLevel.HIGH,
                previous_value=str(previous_score),
                current_value=str(overall_score),
                improvement_percentage=(
                    (overall_score - previous_score) / previous_score * 100
                    if previous_score > 0
                    else None
                ),
            )
        )

    return achievements
