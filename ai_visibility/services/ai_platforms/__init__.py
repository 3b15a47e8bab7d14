"""
AI Platform Client Module

Provides a unified interface for querying multiple AI assistant platforms
(ChatGPT, Claude, Gemini, Perplexity) with rate limiting, deadlines and a
shared error taxonomy.
"""

from .anthropic_client import AnthropicPlatform
from .base import HEALTH_CHECK_PROMPT, BasePlatform
from .exceptions import (
    AuthenticationError,
    MalformedResponseError,
    PlatformError,
    PlatformTimeoutError,
    RateLimitError,
    TransientError,
)
from .google_ai_client import GoogleAIPlatform
from .openai_client import OpenAIPlatform
from .perplexity_client import PerplexityPlatform
from .registry import PlatformRegistry

__all__ = [
    "BasePlatform",
    "HEALTH_CHECK_PROMPT",
    "PlatformError",
    "TransientError",
    "PlatformTimeoutError",
    "RateLimitError",
    "AuthenticationError",
    "MalformedResponseError",
    "OpenAIPlatform",
    "AnthropicPlatform",
    "PerplexityPlatform",
    "GoogleAIPlatform",
    "PlatformRegistry",
]
