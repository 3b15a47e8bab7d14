"""
Maps provider ids (chatgpt, claude, gemini, perplexity) to adapter classes.

Construction goes through the registry so extra providers can be plugged in
at runtime, e.g. by tests, without touching the platform manager.
"""

from typing import Any, Dict, List, Mapping, Optional, Type

from .anthropic_client import AnthropicPlatform
from .base import BasePlatform
from .google_ai_client import GoogleAIPlatform
from .openai_client import OpenAIPlatform
from .perplexity_client import PerplexityPlatform


class PlatformRegistry:
    """Class-level table of adapter classes keyed by provider id."""

    _platforms: Dict[str, Type[BasePlatform]] = {
        OpenAIPlatform.platform_name: OpenAIPlatform,
        AnthropicPlatform.platform_name: AnthropicPlatform,
        GoogleAIPlatform.platform_name: GoogleAIPlatform,
        PerplexityPlatform.platform_name: PerplexityPlatform,
    }

    @classmethod
    def get_platform_class(cls, provider_id: str) -> Type[BasePlatform]:
        try:
            return cls._platforms[provider_id]
        except KeyError:
            raise ValueError(f"Unknown platform: {provider_id}") from None

    @classmethod
    def create_platform(
        cls,
        provider_id: str,
        api_key: str,
        config: Optional[Mapping[str, Any]] = None,
    ) -> BasePlatform:
        """
        Build an adapter for ``provider_id``.

        ``config`` is passed through as keyword arguments, so it may carry
        ``rate_limit`` as well as any BasePlatform option.

        Raises:
            ValueError: If no adapter is registered under that id
        """
        adapter_class = cls.get_platform_class(provider_id)
        return adapter_class(api_key=api_key, **dict(config or {}))

    @classmethod
    def get_available_platforms(cls) -> List[str]:
        return list(cls._platforms)

    @classmethod
    def is_platform_available(cls, provider_id: str) -> bool:
        return provider_id in cls._platforms

    @classmethod
    def register_platform(
        cls, provider_id: str, adapter_class: Type[BasePlatform]
    ) -> None:
        """
        Add or replace an adapter.

        Raises:
            TypeError: If ``adapter_class`` is not a BasePlatform subclass
        """
        if not (isinstance(adapter_class, type) and issubclass(adapter_class, BasePlatform)):
            raise TypeError("Platform class must inherit from BasePlatform")
        cls._platforms[provider_id] = adapter_class

    @classmethod
    def unregister_platform(cls, provider_id: str) -> None:
        """
        Raises:
            KeyError: If nothing is registered under ``provider_id``
        """
        if provider_id not in cls._platforms:
            raise KeyError(f"Platform '{provider_id}' is not registered")
        del cls._platforms[provider_id]
