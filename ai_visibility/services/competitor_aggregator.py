"""
Competitor detection across all queries of a report.

A name counts once per query no matter how many platforms (or how many times
one platform) mentioned it, so ``detection_count`` is the number of distinct
queries the competitor was seen in.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Set

from ai_visibility.models.report import Competitor, QueryResult
from ai_visibility.utils.logger import get_logger

logger = get_logger(__name__)

# Names seen in fewer queries than this are treated as noise
MIN_COMPETITOR_DETECTIONS = 2


@dataclass
class _Tally:
    name: str
    order: int
    queries: Set[int] = field(default_factory=set)
    platforms: List[str] = field(default_factory=list)


def detect_competitors(
    query_results: Sequence[QueryResult],
    min_detections: int = MIN_COMPETITOR_DETECTIONS,
    disabled_competitors: Optional[Iterable[str]] = None,
) -> List[Competitor]:
    """
    Aggregate competitor names from every platform analysis.

    Names are matched case-insensitively and keep the spelling of their first
    sighting. Competitors the user disabled earlier are still reported, but
    flagged ``is_user_disabled``.

    Returns:
        Competitors seen in at least ``min_detections`` queries, most
        frequently detected first (ties keep first-sighting order)
    """
    tallies: Dict[str, _Tally] = {}

    for query_index, result in enumerate(query_results):
        for platform, analysis in result.analyses.items():
            for name in analysis.competitors_mentioned:
                key = name.strip().lower()
                if not key:
                    continue

                tally = tallies.get(key)
                if tally is None:
                    tally = _Tally(name=name.strip(), order=len(tallies))
                    tallies[key] = tally

                tally.queries.add(query_index)
                if platform not in tally.platforms:
                    tally.platforms.append(platform)

    disabled = {name.strip().lower() for name in disabled_competitors or ()}
    now = datetime.now(timezone.utc)

    kept = [t for t in tallies.values() if len(t.queries) >= min_detections]
    kept.sort(key=lambda t: (-len(t.queries), t.order))

    competitors = [
        Competitor(
            competitor_name=tally.name,
            detected_in_platforms=list(tally.platforms),
            detection_count=len(tally.queries),
            is_user_disabled=tally.name.lower() in disabled,
            disabled_at=now if tally.name.lower() in disabled else None,
            first_detected_at=now,
        )
        for tally in kept
    ]

    logger.info(
        "Competitors detected",
        candidates=len(tallies),
        kept=len(competitors),
        min_detections=min_detections,
    )
    return competitors


def active_competitors(competitors: Iterable[Competitor]) -> List[Competitor]:
    """Competitors the user has not disabled."""
    return [c for c in competitors if not c.is_user_disabled]
