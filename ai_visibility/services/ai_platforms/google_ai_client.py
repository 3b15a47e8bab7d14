"""
Google AI platform client implementation.

Provides integration with Google's Generative Language API (Gemini) using
the standardized BasePlatform interface.
"""

import math
from typing import Any, Dict, Tuple

from .base import BasePlatform

# Rough characters-per-token ratio used when the API omits usage metadata
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class GoogleAIPlatform(BasePlatform):
    """
    Google AI platform implementation.

    Gemini takes a single prompt here: the system prompt and the query are
    joined into one user turn.
    """

    platform_name = "gemini"
    default_base_url = "https://generativelanguage.googleapis.com"
    default_model = "gemini-2.5-pro"
    input_cost_per_1k = 0.00025
    output_cost_per_1k = 0.0005

    def _get_default_headers(self) -> Dict[str, str]:
        """Get default headers for Google AI requests."""
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
            "User-Agent": "AI-Visibility-Report/1.0",
        }

    def _get_endpoint_url(self) -> str:
        """Get Google AI generate content endpoint URL."""
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    def build_prompt(self, query: str, system_prompt: str) -> str:
        return f"{system_prompt}\n\nUser Query: {query}"

    def _prepare_request_payload(self, query: str, system_prompt: str) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": self.build_prompt(query, system_prompt)}],
                }
            ],
            "generationConfig": {
                "maxOutputTokens": self.max_tokens,
                "temperature": self.temperature,
            },
        }

    def extract_text_response(self, raw_response: Dict[str, Any]) -> str:
        """
        Extract text from Google AI response format.

        Raises:
            ValueError: If response format is invalid
        """
        try:
            parts = raw_response["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts).strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid Google AI response format: {e}")

    def extract_token_usage(
        self, raw_response: Dict[str, Any], payload: Dict[str, Any], text: str
    ) -> Tuple[int, int]:
        usage = raw_response.get("usageMetadata")
        if usage:
            return int(usage.get("promptTokenCount") or 0), int(
                usage.get("candidatesTokenCount") or 0
            )

        prompt = payload["contents"][0]["parts"][0]["text"]
        return estimate_tokens(prompt), estimate_tokens(text)

    def extract_metadata(
        self, raw_response: Dict[str, Any], payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "tokens_estimated": not raw_response.get("usageMetadata")
        }
        candidates = raw_response.get("candidates") or []
        if candidates:
            metadata["finish_reason"] = candidates[0].get("finishReason")
        return metadata
