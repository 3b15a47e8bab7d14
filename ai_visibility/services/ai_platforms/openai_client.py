"""
OpenAI (ChatGPT) platform client implementation.

Uses the official async SDK rather than raw HTTP; SDK exceptions are mapped
onto the shared platform error taxonomy.
"""

from typing import Any, Dict, List, Optional, Tuple, TypedDict, cast

import openai

from .base import BasePlatform
from .exceptions import PlatformError, PlatformTimeoutError, TransientError


class _Message(TypedDict):
    content: str


class _Choice(TypedDict):
    message: _Message


class _OpenAIResponse(TypedDict):
    choices: List[_Choice]


class OpenAIPlatform(BasePlatform):
    """
    OpenAI platform implementation.

    Supports OpenAI chat completions with configurable model, token budget
    and temperature.
    """

    platform_name = "chatgpt"
    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-4-turbo-preview"
    input_cost_per_1k = 0.01
    output_cost_per_1k = 0.01

    def __init__(self, api_key: str, rate_limit: int = 60, **config: Any):
        super().__init__(api_key, rate_limit, **config)
        self.client: Optional[openai.AsyncOpenAI] = None

    async def _open_session(self) -> None:
        if self.api_key:
            # Retries stay with the caller
            self.client = openai.AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )

    async def _close_session(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None

    @property
    def is_session_open(self) -> bool:
        return self.client is not None

    def _get_default_headers(self) -> Dict[str, str]:
        """The SDK manages its own headers."""
        return {}

    def _get_endpoint_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _prepare_request_payload(self, query: str, system_prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": query},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def _request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            raise PlatformError(
                "OpenAI client not initialized", platform=self.platform_name
            )

        try:
            completion = await self.client.chat.completions.create(**payload)
        except openai.APITimeoutError as e:
            raise PlatformTimeoutError(
                f"Request timeout: {e}", platform=self.platform_name
            )
        except openai.APIConnectionError as e:
            raise TransientError(f"Network error: {e}", platform=self.platform_name)
        except openai.APIStatusError as e:
            self._raise_for_status(e.status_code, e.response.headers, e.message)
            raise

        return completion.model_dump()

    def extract_text_response(self, raw_response: Dict[str, Any]) -> str:
        typed_response = cast(_OpenAIResponse, raw_response)
        try:
            content = typed_response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Invalid OpenAI response format: {e}")
        return (content or "").strip()

    def extract_token_usage(
        self, raw_response: Dict[str, Any], payload: Dict[str, Any], text: str
    ) -> Tuple[int, int]:
        usage = raw_response.get("usage") or {}
        return int(usage.get("prompt_tokens") or 0), int(
            usage.get("completion_tokens") or 0
        )
