from typing import Callable, Dict, List, Optional, Union

import pytest

from ai_visibility.core.config import Settings
from ai_visibility.services.ai_platforms.base import BasePlatform, QueryOutput
from ai_visibility.services.ai_platforms.exceptions import PlatformError

Answer = Union[str, Exception, Callable[[str], str]]


class FakePlatform(BasePlatform):
    """
    Platform that answers from a script instead of the network.

    The answer is a fixed string, a callable of the query, or an exception
    to raise from the transport layer.
    """

    default_model = "fake-1"
    input_cost_per_1k = 0.001
    output_cost_per_1k = 0.001

    def __init__(self, name: str, answer: Answer, **config):
        self.platform_name = name
        super().__init__("fake-key", rate_limit=1000, **config)
        self.answer = answer
        self.queries: List[str] = []
        self.opened = 0
        self.closed = 0
        self._open = False

    async def _open_session(self) -> None:
        self._open = True
        self.opened += 1

    async def _close_session(self) -> None:
        self._open = False
        self.closed += 1

    @property
    def is_session_open(self) -> bool:
        return self._open

    def _get_default_headers(self) -> Dict[str, str]:
        return {}

    def _get_endpoint_url(self) -> str:
        return "https://fake.invalid"

    def _prepare_request_payload(self, query, system_prompt):
        return {"query": query}

    def extract_text_response(self, raw_response):
        return raw_response["text"]

    async def _query(self, query: str, system_prompt: str) -> QueryOutput:
        self.queries.append(query)
        if isinstance(self.answer, Exception):
            raise self.answer
        text = self.answer(query) if callable(self.answer) else self.answer
        return QueryOutput(text=text, input_tokens=100, output_tokens=100, metadata={})


@pytest.fixture
def make_platform() -> Callable[..., FakePlatform]:
    def factory(name: str, answer: Answer, **config) -> FakePlatform:
        return FakePlatform(name, answer, **config)

    return factory


@pytest.fixture
def failing_error() -> PlatformError:
    return PlatformError("upstream exploded", platform="fake", status_code=502, retryable=True)


@pytest.fixture
def empty_settings() -> Settings:
    """Settings with no API keys and no .env file."""
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="",
        ANTHROPIC_API_KEY="",
        GOOGLE_AI_API_KEY="",
        PERPLEXITY_API_KEY="",
        REPORT_INTER_QUERY_DELAY_SECONDS=0,
    )


@pytest.fixture
def keyed_settings() -> Settings:
    """Settings with keys for two platforms."""
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="sk-test",
        ANTHROPIC_API_KEY="ak-test",
        GOOGLE_AI_API_KEY="",
        PERPLEXITY_API_KEY="",
        ANTHROPIC_MODEL="claude-override",
        REPORT_INTER_QUERY_DELAY_SECONDS=0,
    )
