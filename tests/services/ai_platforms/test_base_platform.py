"""
Unit tests for BasePlatform.

Covers the shared execution path: missing keys, rate limiting, deadlines,
HTTP status mapping, token cost and async session management.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from ai_visibility.services.ai_platforms.base import BasePlatform
from ai_visibility.utils.rate_limiter import AIRateLimiter

ENDPOINT = "https://api.test.com/v1/chat"


class MockPlatform(BasePlatform):
    """Mock platform implementation for testing."""

    platform_name = "mock"
    default_model = "mock-1"
    input_cost_per_1k = 1.0
    output_cost_per_1k = 2.0

    def _get_default_headers(self):
        return {"Authorization": f"Bearer {self.api_key}"}

    def _get_endpoint_url(self):
        return ENDPOINT

    def _prepare_request_payload(self, query, system_prompt):
        return {"input": query, "system": system_prompt}

    def extract_text_response(self, raw_response):
        try:
            return raw_response["output"]
        except KeyError as e:
            raise ValueError(f"missing {e}")

    def extract_token_usage(self, raw_response, payload, text):
        usage = raw_response.get("usage", {})
        return usage.get("in", 0), usage.get("out", 0)


def http_response(status, json=None, headers=None):
    return httpx.Response(
        status,
        json=json if json is not None else {},
        headers=headers,
        request=httpx.Request("POST", ENDPOINT),
    )


class TestBasePlatform:
    """Test cases for BasePlatform abstract base class."""

    def test_platform_initialization(self):
        """Config overrides class defaults."""
        platform = MockPlatform(
            " test_key ", 30, default_model="mock-2", timeout=5, max_tokens=50
        )

        assert platform.api_key == "test_key"
        assert platform.model == "mock-2"
        assert platform.timeout == 5
        assert platform.max_tokens == 50
        assert platform.rate_limiter.max_requests == 30
        assert platform.rate_limiter.name == "mock"
        assert platform.is_configured is True

    def test_calculate_cost(self):
        platform = MockPlatform("key")

        assert platform.calculate_cost(1000, 500) == pytest.approx(2.0)

    def test_build_system_prompt(self):
        platform = MockPlatform("key")

        prompt = platform.build_system_prompt(
            {"business_name": "Espresso Elegance", "business_type": "coffee shop", "location": "Portland"}
        )

        assert "Portland market" in prompt
        assert "Espresso Elegance" in prompt
        assert "{" not in prompt

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        """Session exists only inside the context."""
        platform = MockPlatform("test_key")

        assert platform.session is None
        async with platform:
            assert isinstance(platform.session, httpx.AsyncClient)
            assert platform.session.headers["Authorization"] == "Bearer test_key"
        assert platform.session is None

    @pytest.mark.asyncio
    async def test_successful_query(self):
        platform = MockPlatform("test_key")

        async with platform:
            with patch.object(
                platform.session,
                "post",
                new=AsyncMock(
                    return_value=http_response(
                        200, {"output": "Answer", "usage": {"in": 1000, "out": 1000}}
                    )
                ),
            ) as mock_post:
                response = await platform.execute_query(
                    "best cafes in Portland", {"business_name": "Espresso Elegance"}
                )

        assert response.success is True
        assert response.platform == "mock"
        assert response.response == "Answer"
        assert response.tokens_used == 2000
        assert response.cost == pytest.approx(3.0)
        assert response.metadata["model"] == "mock-1"
        assert response.response_time_ms >= 0
        assert mock_post.call_args.kwargs["json"]["input"] == "best cafes in Portland"

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_without_consuming_slot(self):
        platform = MockPlatform("")

        response = await platform.execute_query("best cafes")

        assert response.success is False
        assert response.error_type == "AuthenticationError"
        assert response.retryable is False
        assert len(platform.rate_limiter.requests) == 0

    @pytest.mark.asyncio
    async def test_rate_limiter_acquired_per_call(self):
        limiter = AIRateLimiter(max_requests=5)
        platform = MockPlatform("key", rate_limiter=limiter)

        async with platform:
            with patch.object(
                platform.session,
                "post",
                new=AsyncMock(return_value=http_response(200, {"output": "ok"})),
            ):
                await platform.execute_query("one")
                await platform.execute_query("two")

        assert len(limiter.requests) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, error_type, retryable",
        [
            (401, "AuthenticationError", False),
            (400, "PlatformError", False),
            (500, "TransientError", True),
            (503, "TransientError", True),
        ],
    )
    async def test_status_mapping(self, status, error_type, retryable):
        platform = MockPlatform("key")

        async with platform:
            with patch.object(
                platform.session,
                "post",
                new=AsyncMock(return_value=http_response(status, {"error": "nope"})),
            ):
                response = await platform.execute_query("q")

        assert response.success is False
        assert response.error_type == error_type
        assert response.retryable is retryable
        assert response.status_code == status
        assert response.cost == 0.0
        assert response.tokens_used is None

    @pytest.mark.asyncio
    async def test_rate_limit_response_keeps_retry_after(self):
        platform = MockPlatform("key")

        async with platform:
            with patch.object(
                platform.session,
                "post",
                new=AsyncMock(
                    return_value=http_response(429, {}, headers={"Retry-After": "12"})
                ),
            ):
                response = await platform.execute_query("q")

        assert response.error_type == "RateLimitError"
        assert response.retryable is True
        assert response.status_code == 429
        assert response.metadata["retry_after"] == 12

    @pytest.mark.asyncio
    async def test_network_errors(self):
        platform = MockPlatform("key")

        async with platform:
            with patch.object(
                platform.session, "post", new=AsyncMock(side_effect=httpx.ReadTimeout("slow"))
            ):
                timeout_response = await platform.execute_query("q")
            with patch.object(
                platform.session, "post", new=AsyncMock(side_effect=httpx.ConnectError("down"))
            ):
                network_response = await platform.execute_query("q")

        assert timeout_response.error_type == "PlatformTimeoutError"
        assert timeout_response.retryable is True
        assert network_response.error_type == "TransientError"

    @pytest.mark.asyncio
    async def test_deadline_exceeded(self):
        platform = MockPlatform("key", timeout=0.05)

        async def hang(*args, **kwargs):
            await asyncio.sleep(5)

        async with platform:
            with patch.object(platform.session, "post", new=AsyncMock(side_effect=hang)):
                response = await platform.execute_query("q")

        assert response.error_type == "PlatformTimeoutError"
        assert response.response_time_ms < 5000

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        platform = MockPlatform("key")

        async with platform:
            with patch.object(
                platform.session,
                "post",
                new=AsyncMock(return_value=http_response(200, {"unexpected": True})),
            ):
                response = await platform.execute_query("q")

        assert response.error_type == "MalformedResponseError"
        assert response.retryable is False

    @pytest.mark.asyncio
    async def test_query_without_session(self):
        platform = MockPlatform("key")

        response = await platform.execute_query("q")

        assert response.success is False
        assert "session not initialized" in response.error

    @pytest.mark.asyncio
    async def test_health_check_opens_session(self):
        platform = MockPlatform("key")

        with patch.object(
            httpx.AsyncClient,
            "post",
            new=AsyncMock(return_value=http_response(200, {"output": "yes"})),
        ):
            assert await platform.health_check() is True

        assert platform.session is None

    def test_parse_response_uses_shared_heuristics(self):
        analysis = MockPlatform("key").parse_response(
            "1. Espresso Elegance is excellent", "Espresso Elegance"
        )

        assert analysis.business_mentioned is True
        assert analysis.business_ranking == 1
