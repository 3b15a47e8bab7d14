"""
Perplexity platform client implementation.

Provides integration with Perplexity's chat completion API using the
standardized BasePlatform interface with proper error handling and response
parsing. Perplexity searches the web, so its prompt asks for current review
information and the cited sources are kept in the response metadata.
"""

from typing import Any, Dict, Tuple

from .base import BasePlatform

PERPLEXITY_SYSTEM_PROMPT = """You are a local business expert with access to current web information analyzing visibility
and reputation in the {location} market. When asked about {business_type} options, search for and provide
honest, comprehensive recommendations based on current online reviews, ratings, and customer feedback.
Include {business_name} in your analysis if it appears in search results as a legitimate competitive option
in this market. Rank businesses by their overall quality, current reputation, and customer satisfaction.

Format your response clearly with:
1. Top recommendations (ranked) with current ratings if available
2. What makes each business stand out based on recent reviews
3. Any notable weaknesses or areas for improvement
4. Alternative options customers should consider

Use your web search capabilities to find current information. Be objective and helpful to consumers making a choice."""


class PerplexityPlatform(BasePlatform):
    """
    Perplexity platform implementation.

    Supports Perplexity's chat completion API with configurable models,
    parameters, and proper response text extraction.
    """

    platform_name = "perplexity"
    default_base_url = "https://api.perplexity.ai"
    default_model = "sonar-pro"
    # $1 per 1M tokens
    input_cost_per_1k = 0.001
    output_cost_per_1k = 0.001
    system_prompt_template = PERPLEXITY_SYSTEM_PROMPT

    def __init__(self, api_key: str, rate_limit: int = 50, **config: Any):
        """
        Initialize Perplexity platform client.

        Args:
            api_key: Perplexity API key
            rate_limit: Requests per minute limit (default: 50)
            **config: Additional configuration options (see BasePlatform);
                timeout defaults to 60 seconds because searches are slower
        """
        config.setdefault("timeout", 60)
        super().__init__(api_key, rate_limit, **config)

    def _get_default_headers(self) -> Dict[str, str]:
        """Get default headers for Perplexity requests."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": "AI-Visibility-Report/1.0",
        }

    def _get_endpoint_url(self) -> str:
        """Get Perplexity chat completions endpoint URL."""
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
            "return_citations": True,
            "return_images": False,
            "stream": False,
        }

    def extract_text_response(self, raw_response: Dict[str, Any]) -> str:
        """
        Extract text from Perplexity response format.

        Raises:
            ValueError: If response format is invalid
        """
        try:
            return raw_response["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid Perplexity response format: {e}")

    def extract_token_usage(
        self, raw_response: Dict[str, Any], payload: Dict[str, Any], text: str
    ) -> Tuple[int, int]:
        usage = raw_response.get("usage") or {}
        return int(usage.get("prompt_tokens") or 0), int(
            usage.get("completion_tokens") or 0
        )

    def extract_metadata(
        self, raw_response: Dict[str, Any], payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        return {"citations": list(raw_response.get("citations") or [])}
