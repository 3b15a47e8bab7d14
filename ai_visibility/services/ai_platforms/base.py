"""
Base class for AI platform clients.

Provides:
- BasePlatform: Abstract base class for all platform implementations

Every platform shares the same execution path: local rate limiting, a hard
deadline around the network call, status code mapping, cost estimation and
conversion of any failure into an error-flagged ProviderResponse. Subclasses
only describe their wire format.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple

import httpx

from ai_visibility.models.report import Analysis, ProviderResponse
from ai_visibility.services.response_analyzer import analyze_response
from ai_visibility.utils.logger import add_platform_context, get_logger
from ai_visibility.utils.rate_limiter import AIRateLimiter

from .exceptions import (
    AuthenticationError,
    MalformedResponseError,
    PlatformError,
    PlatformTimeoutError,
    RateLimitError,
    TransientError,
)

logger = get_logger(__name__)

HEALTH_CHECK_PROMPT = "Hello, are you available?"

SYSTEM_PROMPT_TEMPLATE = """You are a local business expert analyzing visibility and reputation in the {location} market.
When asked about {business_type} options, provide honest, comprehensive recommendations based on quality,
reputation, and customer satisfaction. Include {business_name} in your analysis if it's a legitimate
competitive option in this market. Rank businesses by their overall quality and reputation.

Format your response clearly with:
1. Top recommendations (ranked)
2. What makes each business stand out
3. Any notable weaknesses or areas for improvement
4. Alternative options customers should consider

Be objective and helpful to consumers making a choice."""


class QueryOutput(NamedTuple):
    """Successful platform answer before it is wrapped in a ProviderResponse."""

    text: str
    input_tokens: int
    output_tokens: int
    metadata: Dict[str, Any]


class BasePlatform(ABC):
    """
    Abstract base class for all AI platform implementations.

    Provides:
    - Rate limiting per platform
    - Deadline and error mapping for every call
    - Async context manager for session management
    - Unified response format (ProviderResponse)
    """

    platform_name: str = "base"
    default_base_url: str = ""
    default_model: str = ""
    # USD per 1K tokens
    input_cost_per_1k: float = 0.0
    output_cost_per_1k: float = 0.0
    system_prompt_template: str = SYSTEM_PROMPT_TEMPLATE

    def __init__(
        self,
        api_key: str,
        rate_limit: int = 60,
        rate_limiter: Optional[AIRateLimiter] = None,
        **config: Any,
    ):
        """
        Initialize platform client.

        Args:
            api_key: API key for the platform ("" when not configured)
            rate_limit: Requests per minute limit
            rate_limiter: Pre-built limiter (tests inject one with a fake clock)
            **config: Additional platform-specific configuration:
                - base_url, default_model, max_tokens, temperature, timeout
                - input_cost_per_1k / output_cost_per_1k
        """
        self.api_key = (api_key or "").strip()
        self.rate_limiter = rate_limiter or AIRateLimiter(
            max_requests=rate_limit, name=self.platform_name
        )
        self.config = config
        self.base_url = (config.get("base_url") or self.default_base_url).rstrip("/")
        self.model = config.get("default_model") or self.default_model
        self.max_tokens = int(config.get("max_tokens", 1000))
        self.temperature = float(config.get("temperature", 0.7))
        self.timeout = float(config.get("timeout") or 30)
        self.input_cost_per_1k = float(
            config.get("input_cost_per_1k", self.input_cost_per_1k)
        )
        self.output_cost_per_1k = float(
            config.get("output_cost_per_1k", self.output_cost_per_1k)
        )
        self.session: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Create HTTP session when entering async context."""
        await self._open_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Clean up HTTP session when exiting async context."""
        await self._close_session()

    async def _open_session(self) -> None:
        self.session = httpx.AsyncClient(
            timeout=self.timeout, headers=self._get_default_headers()
        )

    async def _close_session(self) -> None:
        if self.session is not None:
            await self.session.aclose()
            self.session = None

    @property
    def is_session_open(self) -> bool:
        return self.session is not None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    # === Wire format hooks ===

    @abstractmethod
    def _get_default_headers(self) -> Dict[str, str]:
        """Get default headers for HTTP requests."""

    @abstractmethod
    def _get_endpoint_url(self) -> str:
        """Get the API endpoint URL for this platform."""

    @abstractmethod
    def _prepare_request_payload(self, query: str, system_prompt: str) -> Dict[str, Any]:
        """Prepare platform-specific request payload."""

    @abstractmethod
    def extract_text_response(self, raw_response: Dict[str, Any]) -> str:
        """
        Extract clean text from platform-specific response.

        Raises:
            ValueError: If response format is invalid
        """

    def extract_token_usage(
        self, raw_response: Dict[str, Any], payload: Dict[str, Any], text: str
    ) -> Tuple[int, int]:
        """(input_tokens, output_tokens) reported by the platform."""
        return 0, 0

    def extract_metadata(
        self, raw_response: Dict[str, Any], payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Extra platform-specific fields kept on the ProviderResponse."""
        return {}

    # === Shared behaviour ===

    def build_system_prompt(self, context: Optional[Mapping[str, Any]] = None) -> str:
        """Render the ranking-oriented system prompt for a business context."""
        context = context or {}
        return self.system_prompt_template.format(
            business_name=context.get("business_name") or "the business",
            business_type=context.get("business_type") or "local business",
            location=context.get("location") or "the area",
        )

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Estimated USD cost of one call."""
        return (input_tokens / 1000) * self.input_cost_per_1k + (
            output_tokens / 1000
        ) * self.output_cost_per_1k

    def parse_response(self, text: str, business_name: str) -> Analysis:
        """Turn an answer into structured signals using the shared heuristics."""
        return analyze_response(text, business_name)

    async def execute_query(
        self, query: str, context: Optional[Mapping[str, Any]] = None
    ) -> ProviderResponse:
        """
        Send one query and normalize the outcome.

        Never raises for platform failures: errors come back as a
        ProviderResponse with ``error`` set. Response time is always recorded.

        Args:
            query: Natural-language query
            context: Business context (business_name, business_type, location)

        Returns:
            ProviderResponse for this (query, platform) pair
        """
        start_time = time.perf_counter()
        try:
            if not self.api_key:
                raise AuthenticationError(
                    f"{self.platform_name} API key not configured",
                    platform=self.platform_name,
                )

            await self.rate_limiter.acquire()
            system_prompt = self.build_system_prompt(context)
            try:
                output = await asyncio.wait_for(
                    self._query(query, system_prompt), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                raise PlatformTimeoutError(
                    f"Request timed out after {self.timeout:g}s",
                    platform=self.platform_name,
                )
        except PlatformError as e:
            return self._create_error_response(query, e, start_time)
        except Exception as e:
            logger.error(
                "Unexpected platform failure",
                **add_platform_context(self.platform_name),
                error_type=type(e).__name__,
                error_message=str(e),
                operation="call_failed",
                exc_info=True,
            )
            wrapped = PlatformError(
                f"Unexpected error: {e}", platform=self.platform_name
            )
            return self._create_error_response(query, wrapped, start_time)

        response_time_ms = self._elapsed_ms(start_time)
        cost = self.calculate_cost(output.input_tokens, output.output_tokens)
        logger.debug(
            "Platform query completed",
            platform=self.platform_name,
            response_time_ms=response_time_ms,
            tokens_used=output.input_tokens + output.output_tokens,
            cost=round(cost, 6),
        )
        return ProviderResponse(
            platform=self.platform_name,
            query=query,
            response=output.text,
            response_time_ms=response_time_ms,
            tokens_used=output.input_tokens + output.output_tokens,
            cost=cost,
            metadata={
                "model": self.model,
                "input_tokens": output.input_tokens,
                "output_tokens": output.output_tokens,
                **output.metadata,
            },
        )

    async def health_check(self) -> bool:
        """True when a short probe prompt comes back without error."""
        if not self.is_session_open:
            async with self:
                response = await self.execute_query(HEALTH_CHECK_PROMPT)
        else:
            response = await self.execute_query(HEALTH_CHECK_PROMPT)
        return response.success

    async def _query(self, query: str, system_prompt: str) -> QueryOutput:
        payload = self._prepare_request_payload(query, system_prompt)
        raw_response = await self._request(payload)
        try:
            text = self.extract_text_response(raw_response)
        except ValueError as e:
            raise MalformedResponseError(str(e), platform=self.platform_name)

        input_tokens, output_tokens = self.extract_token_usage(
            raw_response, payload, text
        )
        return QueryOutput(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            metadata=self.extract_metadata(raw_response, payload),
        )

    async def _request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST the payload and return the decoded JSON body.

        Raises:
            Various platform errors, see _raise_for_status
        """
        if self.session is None:
            raise PlatformError(
                "HTTP session not initialized", platform=self.platform_name
            )

        try:
            response = await self.session.post(self._get_endpoint_url(), json=payload)
        except httpx.TimeoutException as e:
            raise PlatformTimeoutError(
                f"Request timeout: {e}", platform=self.platform_name
            )
        except httpx.HTTPError as e:
            # Network-level failures can succeed on resubmission
            raise TransientError(f"Network error: {e}", platform=self.platform_name)

        self._raise_for_status(response.status_code, response.headers, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Response body is not JSON: {e}",
                platform=self.platform_name,
                status_code=response.status_code,
            )

    def _raise_for_status(
        self, status: int, headers: Mapping[str, str], detail: Any
    ) -> None:
        """Map a non-2xx HTTP status onto the platform error taxonomy."""
        if 200 <= status < 300:
            return
        if status == 429:
            raise RateLimitError(
                "Rate limited",
                platform=self.platform_name,
                retry_after=_parse_retry_after(headers),
            )
        if status == 401:
            raise AuthenticationError(
                "Invalid API key", platform=self.platform_name, status_code=401
            )
        if status >= 500:
            raise TransientError(
                f"Server error: {status}",
                platform=self.platform_name,
                status_code=status,
            )
        raise PlatformError(
            f"HTTP {status}: {str(detail)[:500]}",
            platform=self.platform_name,
            status_code=status,
            retryable=False,
        )

    def _create_error_response(
        self, query: str, error: PlatformError, start_time: float
    ) -> ProviderResponse:
        """Create standardized error response."""
        log = logger.warning if error.retryable else logger.error
        log(
            "Platform call failed",
            **add_platform_context(self.platform_name),
            error_type=type(error).__name__,
            error_message=str(error),
            status_code=error.status_code,
            retryable=error.retryable,
        )
        metadata: Dict[str, Any] = {"model": self.model}
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            metadata["retry_after"] = error.retry_after

        return ProviderResponse(
            platform=self.platform_name,
            query=query,
            response="",
            response_time_ms=self._elapsed_ms(start_time),
            tokens_used=None,
            cost=0.0,
            error=str(error),
            error_type=type(error).__name__,
            retryable=error.retryable,
            status_code=error.status_code,
            metadata=metadata,
        )

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.perf_counter() - start_time) * 1000)


def _parse_retry_after(headers: Mapping[str, str]) -> Optional[int]:
    value = headers.get("retry-after") if headers is not None else None
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None
