"""
Anthropic platform client implementation.

Provides integration with Anthropic's Claude messages API using the
standardized BasePlatform interface with proper error handling and response
parsing.
"""

from typing import Any, Dict, Tuple

from .base import BasePlatform


class AnthropicPlatform(BasePlatform):
    """
    Anthropic platform implementation.

    The system prompt travels in the top-level ``system`` field; the answer
    is the concatenation of the returned text blocks.
    """

    platform_name = "claude"
    default_base_url = "https://api.anthropic.com"
    default_model = "claude-sonnet-4-5-20250929"
    input_cost_per_1k = 0.003
    output_cost_per_1k = 0.015
    api_version = "2023-06-01"

    def __init__(self, api_key: str, rate_limit: int = 50, **config: Any):
        """
        Initialize Anthropic platform client.

        Args:
            api_key: Anthropic API key
            rate_limit: Requests per minute limit (default: 50)
            **config: Additional configuration options (see BasePlatform)
        """
        super().__init__(api_key, rate_limit, **config)

    def _get_default_headers(self) -> Dict[str, str]:
        """Get default headers for Anthropic requests."""
        return {
            "x-api-key": self.api_key,
            "Content-Type": "application/json",
            "anthropic-version": self.api_version,
            "User-Agent": "AI-Visibility-Report/1.0",
        }

    def _get_endpoint_url(self) -> str:
        """Get Anthropic messages endpoint URL."""
        return f"{self.base_url}/v1/messages"

    def _prepare_request_payload(self, query: str, system_prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "system": system_prompt,
            "messages": [{"role": "user", "content": query}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    def extract_text_response(self, raw_response: Dict[str, Any]) -> str:
        """
        Extract text from Anthropic response format.

        Raises:
            ValueError: If response format is invalid
        """
        try:
            blocks = raw_response["content"]
            texts = [block["text"] for block in blocks if block.get("type") == "text"]
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid Anthropic response format: {e}")
        if not texts:
            raise ValueError("Invalid Anthropic response format: no text content")
        return "\n".join(texts).strip()

    def extract_token_usage(
        self, raw_response: Dict[str, Any], payload: Dict[str, Any], text: str
    ) -> Tuple[int, int]:
        usage = raw_response.get("usage") or {}
        return int(usage.get("input_tokens") or 0), int(usage.get("output_tokens") or 0)

    def extract_metadata(
        self, raw_response: Dict[str, Any], payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        return {"stop_reason": raw_response.get("stop_reason")}
