"""
Scoring engine for AI visibility.

Per platform score (0-100):
- Mention: 40 points when the business appears in at least one answer
- Ranking: up to 40 points from the mean extracted rank
    #1: 40, #2: 35, #3: 30, #4: 25, #5: 20, #6 or lower: 15,
    mentioned but never ranked: 10
- Sentiment: positive 20, neutral or undetected 10, negative 0

Ranking and sentiment only count when the business was mentioned. The
overall score is the mean over platforms that returned at least one answer.
"""

import math
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from ai_visibility.models.report import (
    Analysis,
    ProviderScoreBreakdown,
    QueryResult,
    ScoreChange,
    ScoreComponents,
    ScoreParams,
    Sentiment,
)
from ai_visibility.utils.logger import get_logger

logger = get_logger(__name__)

MENTION_POINTS = 40
UNRANKED_POINTS = 10
# Only an exact rank of 1 to 5 earns table points; fractional means do not
RANKING_POINTS = {1: 40, 2: 35, 3: 30, 4: 25, 5: 20}
LOW_RANK_POINTS = 15
SENTIMENT_POINTS = {
    Sentiment.POSITIVE: 20,
    Sentiment.NEUTRAL: 10,
    Sentiment.NEGATIVE: 0,
}
UNKNOWN_SENTIMENT_POINTS = 10

GRADE_THRESHOLDS = ((95, "A+"), (85, "A"), (70, "B"), (55, "C"), (40, "D"))
LOWEST_GRADE = "F"

# Score change within +/- this many points is "stable"
TREND_THRESHOLD = 2


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def ranking_points(ranking: Optional[float]) -> int:
    """Ranking component for a mentioned business."""
    if ranking is None:
        return UNRANKED_POINTS
    return RANKING_POINTS.get(ranking, LOW_RANK_POINTS)


def calculate_platform_score(
    params: ScoreParams, platform: str = "unknown"
) -> ProviderScoreBreakdown:
    """Apply the scoring formula to one platform's aggregated signals."""
    if params.business_mentioned:
        components = ScoreComponents(
            mention=MENTION_POINTS,
            ranking=ranking_points(params.ranking),
            sentiment=(
                SENTIMENT_POINTS[params.sentiment]
                if params.sentiment is not None
                else UNKNOWN_SENTIMENT_POINTS
            ),
        )
    else:
        components = ScoreComponents(mention=0, ranking=0, sentiment=0)

    return ProviderScoreBreakdown(
        platform=platform,
        score=components.total,
        components=components,
        details=params,
    )


def majority_sentiment(sentiments: Iterable[Optional[Sentiment]]) -> Optional[Sentiment]:
    """
    Most frequent detected sentiment; a tie for first place is neutral and
    no detected sentiment at all is None.
    """
    counts = Counter(s for s in sentiments if s is not None)
    if not counts:
        return None

    ranked = counts.most_common()
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return Sentiment.NEUTRAL
    return ranked[0][0]


def aggregate_platform_params(analyses: Sequence[Analysis]) -> ScoreParams:
    """Collapse one platform's per-query analyses into ScoreParams."""
    mentioned = [a for a in analyses if a.business_mentioned]
    rankings = [a.business_ranking for a in mentioned if a.business_ranking is not None]
    competitors = {
        name.lower() for a in analyses for name in a.competitors_mentioned
    }

    return ScoreParams(
        business_mentioned=bool(mentioned),
        ranking=sum(rankings) / len(rankings) if rankings else None,
        sentiment=majority_sentiment(a.sentiment for a in mentioned),
        competitor_count=len(competitors),
    )


def calculate_platform_scores(
    query_results: Sequence[QueryResult], platforms: Iterable[str]
) -> Dict[str, ProviderScoreBreakdown]:
    """
    Score every platform over all queries of a run.

    A platform that errored on every query still gets a zero breakdown so the
    report is complete; ``has_data`` is False for it.
    """
    breakdowns: Dict[str, ProviderScoreBreakdown] = {}

    for platform in platforms:
        analyses: List[Analysis] = []
        query_count = error_count = 0
        total_cost = 0.0
        total_time = 0

        for result in query_results:
            response = result.responses.get(platform)
            if response is None:
                continue
            query_count += 1
            total_cost += response.cost
            total_time += response.response_time_ms
            if not response.success:
                error_count += 1
                continue
            analysis = result.analyses.get(platform)
            if analysis is not None:
                analyses.append(analysis)

        breakdown = calculate_platform_score(
            aggregate_platform_params(analyses), platform=platform
        )
        breakdowns[platform] = breakdown.model_copy(
            update={
                "mention_count": sum(1 for a in analyses if a.business_mentioned),
                "query_count": query_count,
                "error_count": error_count,
                "total_cost": total_cost,
                "total_response_time_ms": total_time,
            }
        )

        logger.info(
            "Platform scored",
            platform=platform,
            score=breakdown.score,
            mention_count=breakdowns[platform].mention_count,
            query_count=query_count,
            error_count=error_count,
        )

    return breakdowns


def calculate_grade(score: float) -> str:
    """Letter grade for a 0-100 score."""
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return LOWEST_GRADE


class OverallScore(BaseModel):
    """Cross-platform aggregate for one report."""

    score: Optional[int] = None
    grade: Optional[str] = None
    platform_scores: Dict[str, int] = Field(default_factory=dict)
    average_ranking: Optional[float] = None
    # Percentage of scored platforms that mentioned the business
    mention_rate: float = 0.0
    sentiment: str = "neutral"  # positive | neutral | negative | mixed
    excluded_platforms: List[str] = Field(default_factory=list)


def calculate_overall_score(breakdowns: Iterable[ProviderScoreBreakdown]) -> OverallScore:
    """
    Mean of the platform scores actually computed in this run.

    Platforms without any successful answer are listed in
    ``excluded_platforms`` and left out of the denominator. When every
    platform is excluded, score and grade are None.
    """
    scored: List[ProviderScoreBreakdown] = []
    excluded: List[ProviderScoreBreakdown] = []
    for breakdown in breakdowns:
        (scored if breakdown.has_data else excluded).append(breakdown)

    if not scored:
        return OverallScore(excluded_platforms=[b.platform for b in excluded])

    mean = sum(b.score for b in scored) / len(scored)
    mentioned = [b for b in scored if b.details.business_mentioned]
    rankings = [b.details.ranking for b in mentioned if b.details.ranking is not None]
    sentiments = Counter(
        b.details.sentiment for b in mentioned if b.details.sentiment is not None
    )

    score = round_half_up(mean)
    return OverallScore(
        score=score,
        grade=calculate_grade(score),
        platform_scores={b.platform: b.score for b in scored},
        average_ranking=sum(rankings) / len(rankings) if rankings else None,
        mention_rate=len(mentioned) / len(scored) * 100,
        sentiment=_overall_sentiment(sentiments),
        excluded_platforms=[b.platform for b in excluded],
    )


def _overall_sentiment(counts: Counter) -> str:
    positive = counts.get(Sentiment.POSITIVE, 0)
    neutral = counts.get(Sentiment.NEUTRAL, 0)
    negative = counts.get(Sentiment.NEGATIVE, 0)

    if positive > neutral and positive > negative:
        return "positive"
    if negative > neutral and negative > positive:
        return "negative"
    if positive and negative:
        return "mixed"
    return "neutral"


class OpportunityPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_PRIORITY_ORDER = {
    OpportunityPriority.CRITICAL: 0,
    OpportunityPriority.HIGH: 1,
    OpportunityPriority.MEDIUM: 2,
    OpportunityPriority.LOW: 3,
}


@dataclass(frozen=True)
class ScoringOpportunity:
    priority: OpportunityPriority
    platform: str
    issue: str
    opportunity: str
    potential_gain: int


def identify_scoring_opportunities(
    breakdowns: Iterable[ProviderScoreBreakdown],
) -> List[ScoringOpportunity]:
    """
    Where points are being lost, most urgent first.

    Sorted by priority, then by potential gain (largest first); platforms
    without data are skipped.
    """
    opportunities: List[ScoringOpportunity] = []

    for breakdown in breakdowns:
        if not breakdown.has_data:
            continue

        platform = breakdown.platform
        details = breakdown.details

        if not details.business_mentioned:
            opportunities.append(
                ScoringOpportunity(
                    OpportunityPriority.CRITICAL,
                    platform,
                    f"Not appearing in {platform} responses",
                    "Increase online presence and content to appear in AI recommendations",
                    60,
                )
            )
            continue

        if details.ranking is None:
            opportunities.append(
                ScoringOpportunity(
                    OpportunityPriority.HIGH,
                    platform,
                    f"Mentioned on {platform} but not ranked",
                    "Improve content and reviews to achieve ranked position",
                    30,
                )
            )
        elif details.ranking > 3:
            opportunities.append(
                ScoringOpportunity(
                    OpportunityPriority.MEDIUM,
                    platform,
                    f"Ranked #{details.ranking:.1f} on average on {platform}",
                    "Optimize content and reviews to move into top 3",
                    15,
                )
            )

        if details.sentiment is Sentiment.NEGATIVE:
            opportunities.append(
                ScoringOpportunity(
                    OpportunityPriority.HIGH,
                    platform,
                    f"Negative sentiment on {platform}",
                    "Address negative feedback and improve reputation",
                    20,
                )
            )
        elif details.sentiment is Sentiment.NEUTRAL:
            opportunities.append(
                ScoringOpportunity(
                    OpportunityPriority.LOW,
                    platform,
                    f"Neutral sentiment on {platform}",
                    "Build stronger positive reputation",
                    10,
                )
            )

    opportunities.sort(key=lambda o: (_PRIORITY_ORDER[o.priority], -o.potential_gain))
    return opportunities


def calculate_score_change(current: int, previous: Optional[int]) -> ScoreChange:
    """Change against the previous report's overall score."""
    if previous is None:
        return ScoreChange(change=current, percent_change=None, trend="new")

    change = current - previous
    percent_change = change / previous * 100 if previous > 0 else None

    trend = "stable"
    if change > TREND_THRESHOLD:
        trend = "up"
    elif change < -TREND_THRESHOLD:
        trend = "down"

    return ScoreChange(change=change, percent_change=percent_change, trend=trend)
