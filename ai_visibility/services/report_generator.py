"""
AI visibility report generation.

Orchestrates one report run: query generation, fan-out to every configured
AI platform, scoring, competitor detection, gap analysis and action
planning. Individual platform failures are absorbed into the report; only
configuration errors (no platform available) fail the run.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ai_visibility.core.config import Settings, settings
from ai_visibility.models.report import BusinessProfile, QueryResult, Report
from ai_visibility.services.ai_platforms.base import BasePlatform
from ai_visibility.services.competitor_aggregator import (
    active_competitors,
    detect_competitors,
)
from ai_visibility.services.fanout import FanOutCoordinator
from ai_visibility.services.gap_analyzer import (
    analyze_content_gaps,
    analyze_topic_gaps,
    generate_achievements,
    generate_priority_actions,
)
from ai_visibility.services.platform_manager import PlatformManager
from ai_visibility.services.query_generator import QueryGenerator
from ai_visibility.services.report_sink import ReportSink
from ai_visibility.services.scoring import (
    calculate_overall_score,
    calculate_platform_scores,
    calculate_score_change,
)
from ai_visibility.utils.error_handler import (
    ErrorHandler,
    ReportConfigurationError,
    ReportGenerationError,
)
from ai_visibility.utils.error_handler import error_handler as default_handler
from ai_visibility.utils.logger import get_logger, report_context

logger = get_logger(__name__)


class GenerateReportParams(BaseModel):
    """Input for one report run."""

    business: BusinessProfile
    organization_id: str = ""
    query_count: Optional[int] = Field(default=None, ge=1)
    # Subset of platform names; None means every configured platform
    platforms: Optional[List[str]] = None
    previous_overall_score: Optional[int] = Field(default=None, ge=0, le=100)
    disabled_competitors: List[str] = Field(default_factory=list)

    @field_validator("platforms")
    @classmethod
    def _normalize_platforms(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return [name.strip().lower() for name in value if name.strip()]


class AIVisibilityService:
    """
    Generates monthly AI visibility reports.

    Collaborators are injected so tests can substitute fake platforms and an
    in-memory sink.
    """

    def __init__(
        self,
        platform_manager: Optional[PlatformManager] = None,
        query_generator: Optional[QueryGenerator] = None,
        sink: Optional[ReportSink] = None,
        app_settings: Optional[Settings] = None,
        inter_query_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.settings = app_settings or settings
        self.platform_manager = platform_manager or PlatformManager(self.settings)
        self.query_generator = query_generator or QueryGenerator()
        self.sink = sink
        self.inter_query_delay = (
            self.settings.REPORT_INTER_QUERY_DELAY_SECONDS
            if inter_query_delay is None
            else inter_query_delay
        )
        self._sleep = sleep
        self.error_handler = error_handler or default_handler

    async def generate_monthly_report(self, params: GenerateReportParams) -> Report:
        """
        Run the full pipeline for one business.

        The report moves pending -> processing -> completed, or to failed on
        a configuration error, and is handed to the sink exactly once.

        Returns:
            The finished report (completed or failed)

        Raises:
            Exception: Unexpected errors are re-raised after the failed report
                has been saved
        """
        business = params.business
        report = Report(
            organization_id=params.organization_id,
            business=business,
            is_initial_report=params.previous_overall_score is None,
        )

        with report_context(report.id, business.name):
            logger.info(
                "Starting report generation",
                category=business.category,
                location=business.location,
            )

            try:
                report.mark_processing()
                platforms = self._select_platforms(params.platforms)

                queries = self.query_generator.generate(
                    business_name=business.name,
                    business_type=business.category,
                    location=business.location,
                    custom_queries=business.custom_queries,
                    count=params.query_count or self.settings.REPORT_DEFAULT_QUERY_COUNT,
                )

                coordinator = FanOutCoordinator(
                    platforms, inter_query_delay=self.inter_query_delay, sleep=self._sleep
                )
                query_results = await coordinator.run(queries, business)

                fields = self._assemble(query_results, list(platforms), params)
                report.queries = queries
                for name, value in fields.items():
                    setattr(report, name, value)
                report.mark_completed()

                logger.info(
                    "Report generation completed",
                    overall_score=report.overall_score,
                    grade=report.grade,
                    competitors=len(report.competitors),
                    priority_actions=len(report.priority_actions),
                    total_cost=round(report.total_cost, 6),
                )

            except ReportGenerationError as e:
                self._fail(report, e)

            except Exception as e:
                self._fail(report, e)
                await self._save(report)
                raise

            await self._save(report)

        return report

    async def check_all_providers_health(self) -> Dict[str, Dict[str, Any]]:
        """Per platform availability, latency and error."""
        return await self.platform_manager.check_all_providers_health()

    def _select_platforms(self, names: Optional[List[str]]) -> Dict[str, BasePlatform]:
        platforms = self.platform_manager.select(names)
        if not platforms:
            requested = ", ".join(names) if names else "any"
            raise ReportConfigurationError(
                f"No platforms available (requested: {requested})",
                technical_details={
                    "requested": names,
                    "configured": self.platform_manager.get_available_platforms(),
                },
            )
        return platforms

    def _assemble(
        self,
        query_results: List[QueryResult],
        platform_names: List[str],
        params: GenerateReportParams,
    ) -> Dict[str, Any]:
        """Scoring, competitors, gaps, actions and achievements as report fields."""
        breakdowns = calculate_platform_scores(query_results, platform_names)
        platform_scores = list(breakdowns.values())
        overall = calculate_overall_score(platform_scores)

        notes = [
            f"{name} returned no successful responses and was excluded "
            "from the overall score"
            for name in overall.excluded_platforms
        ]
        score_change = None
        if overall.score is None:
            notes.append(
                "No platform returned a successful response; "
                "overall score was not computed"
            )
        else:
            score_change = calculate_score_change(
                overall.score, params.previous_overall_score
            )

        competitors = detect_competitors(
            query_results, disabled_competitors=params.disabled_competitors
        )
        active = active_competitors(competitors)
        content_gaps = analyze_content_gaps(query_results, active) + analyze_topic_gaps(
            query_results, active
        )

        return {
            "query_results": query_results,
            "platform_scores": platform_scores,
            "overall_score": overall.score,
            "grade": overall.grade,
            "score_change": score_change,
            "competitors": competitors,
            "content_gaps": content_gaps,
            "priority_actions": generate_priority_actions(
                platform_scores, active, content_gaps
            ),
            "achievements": generate_achievements(
                platform_scores, overall.score, params.previous_overall_score
            ),
            "total_cost": sum(b.total_cost for b in platform_scores),
            "notes": notes,
        }

    def _fail(self, report: Report, error: Exception) -> None:
        error_context = self.error_handler.handle_error(
            error, {"report_id": report.id}
        )
        report.notes.extend(error_context.recovery_suggestions)
        report.mark_failed(f"{error_context.user_message} ({error})")

    async def _save(self, report: Report) -> None:
        if self.sink is None:
            return
        await self.sink.save(report)
        logger.info("Report saved", status=report.status.value)
