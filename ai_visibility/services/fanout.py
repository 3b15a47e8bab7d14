"""
Fan-out of generated queries across AI platforms.

Queries run one after another with a short pause between them; within a
query every platform is called concurrently and the results are combined
only after all calls have settled. One failing call never aborts the query
or the run.
"""

import asyncio
import contextlib
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from ai_visibility.models.report import (
    BusinessProfile,
    GeneratedQuery,
    ProviderResponse,
    QueryResult,
)
from ai_visibility.services.ai_platforms.base import BasePlatform
from ai_visibility.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_INTER_QUERY_DELAY_SECONDS = 1.0


class FanOutCoordinator:
    """
    Executes queries against an explicit set of platform instances.

    The coordinator owns nothing global: platforms are injected, so tests can
    pass fakes that implement ``execute_query`` and ``parse_response``.
    """

    def __init__(
        self,
        platforms: Mapping[str, BasePlatform],
        inter_query_delay: float = DEFAULT_INTER_QUERY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.platforms: Dict[str, BasePlatform] = dict(platforms)
        self.inter_query_delay = max(0.0, inter_query_delay)
        self._sleep = sleep

    async def run(
        self, queries: Sequence[GeneratedQuery], business: BusinessProfile
    ) -> List[QueryResult]:
        """
        Run every query against every platform.

        Platform sessions that are not already open are opened for the
        duration of the run and closed afterwards.

        Returns:
            One QueryResult per query, in generation order
        """
        if not self.platforms:
            return []

        results: List[QueryResult] = []
        context = business.as_context()

        async with contextlib.AsyncExitStack() as stack:
            for platform in self.platforms.values():
                if not getattr(platform, "is_session_open", True):
                    await stack.enter_async_context(platform)

            logger.info(
                "Starting query fan-out",
                total_queries=len(queries),
                platforms=list(self.platforms),
            )

            for index, generated in enumerate(queries):
                result = await self.run_query(generated, context, business.name)
                results.append(result)

                logger.info(
                    "Query processed",
                    query_number=index + 1,
                    total_queries=len(queries),
                    successful=len(result.successful_platforms()),
                    failed=len(result.responses) - len(result.successful_platforms()),
                )

                if index < len(queries) - 1 and self.inter_query_delay:
                    await self._sleep(self.inter_query_delay)

        return results

    async def run_query(
        self,
        generated: GeneratedQuery,
        context: Mapping[str, Any],
        business_name: str,
    ) -> QueryResult:
        """Send one query to every platform concurrently."""
        names = list(self.platforms)
        started = time.perf_counter()
        outcomes = await asyncio.gather(
            *(
                self.platforms[name].execute_query(generated.query, context)
                for name in names
            ),
            return_exceptions=True,
        )

        result = QueryResult(query=generated)
        for name, outcome in zip(names, outcomes):
            response = self._to_response(name, generated.query, outcome, started)
            result.responses[name] = response
            if response.success:
                result.analyses[name] = self.platforms[name].parse_response(
                    response.response, business_name
                )
        return result

    @staticmethod
    def _to_response(
        name: str, query: str, outcome: Any, started: float
    ) -> ProviderResponse:
        if isinstance(outcome, ProviderResponse):
            return outcome

        # execute_query converts platform errors itself; anything else is a bug
        # in an adapter and is recorded the same way
        error: Optional[BaseException] = (
            outcome if isinstance(outcome, BaseException) else None
        )
        logger.error(
            "Platform task failed outside the adapter boundary",
            platform=name,
            error_type=type(outcome).__name__,
            error_message=str(outcome),
        )
        return ProviderResponse(
            platform=name,
            query=query,
            response_time_ms=int((time.perf_counter() - started) * 1000),
            error=str(error) if error is not None else "Invalid platform result",
            error_type=type(error).__name__ if error is not None else "TypeError",
            retryable=False,
        )
