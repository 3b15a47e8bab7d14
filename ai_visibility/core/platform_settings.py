"""
Platform-specific configurations for AI platforms.

Provides centralized configuration for all AI platform clients including
rate limits, model defaults, pricing and environment variable mappings.
"""

from typing import Any, Dict, Optional

from ai_visibility.core.config import Settings, settings

# Platform-specific configurations
PLATFORM_CONFIGS: Dict[str, Dict[str, Any]] = {
    "chatgpt": {
        "base_url": "https://api.openai.com/v1",
        "default_model": "gpt-4-turbo-preview",
        "max_tokens": 1000,
        "temperature": 0.7,
        "rate_limit": 60,  # RPM
        "timeout": 30,
    },
    "claude": {
        "base_url": "https://api.anthropic.com",
        "default_model": "claude-sonnet-4-5-20250929",
        "max_tokens": 1000,
        "temperature": 0.7,
        "rate_limit": 50,
        "timeout": 30,
    },
    "gemini": {
        "base_url": "https://generativelanguage.googleapis.com",
        "default_model": "gemini-2.5-pro",
        "max_tokens": 1000,
        "temperature": 0.7,
        "rate_limit": 60,
        "timeout": 30,
    },
    "perplexity": {
        "base_url": "https://api.perplexity.ai",
        "default_model": "sonar-pro",
        "max_tokens": 1000,
        "temperature": 0.7,
        "rate_limit": 50,
        "timeout": 60,  # web search answers are slower
    },
}

# Environment variable mapping
REQUIRED_ENV_VARS = {
    "chatgpt": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "gemini": "GOOGLE_AI_API_KEY",
    "perplexity": "PERPLEXITY_API_KEY",
}

# Settings attribute prefix used for model / base URL overrides
_OVERRIDE_PREFIXES = {
    "chatgpt": "OPENAI",
    "claude": "ANTHROPIC",
    "gemini": "GOOGLE_AI",
    "perplexity": "PERPLEXITY",
}


def get_platform_config(
    platform_name: str, app_settings: Optional[Settings] = None
) -> Dict[str, Any]:
    """
    Get configuration for a specific platform.

    Static defaults are merged with model, base URL and timeout overrides from the
    environment.

    Args:
        platform_name: Name of the platform
        app_settings: Settings to read overrides from (defaults to global)

    Returns:
        Configuration dictionary for the platform

    Raises:
        KeyError: If platform is not configured
    """
    if platform_name not in PLATFORM_CONFIGS:
        raise KeyError(f"No configuration found for platform: {platform_name}")

    app_settings = app_settings or settings
    config = PLATFORM_CONFIGS[platform_name].copy()

    prefix = _OVERRIDE_PREFIXES[platform_name]
    model = getattr(app_settings, f"{prefix}_MODEL", None)
    base_url = getattr(app_settings, f"{prefix}_BASE_URL", None)
    timeout = getattr(app_settings, f"{prefix}_TIMEOUT", None)
    if model:
        config["default_model"] = model
    if base_url:
        config["base_url"] = base_url.rstrip("/")
    if timeout:
        config["timeout"] = timeout
    if not config.get("timeout"):
        config["timeout"] = app_settings.REPORT_PROVIDER_TIMEOUT_SECONDS

    return config


def get_api_key(platform_name: str, app_settings: Optional[Settings] = None) -> str:
    """
    Get the configured API key for a platform ("" when unset).

    Raises:
        KeyError: If platform is not configured
    """
    env_var = get_api_key_env_var(platform_name)
    return (getattr(app_settings or settings, env_var, "") or "").strip()


def get_api_key_env_var(platform_name: str) -> str:
    """
    Get the environment variable name for a platform's API key.

    Args:
        platform_name: Name of the platform

    Returns:
        Environment variable name

    Raises:
        KeyError: If platform is not configured
    """
    if platform_name not in REQUIRED_ENV_VARS:
        raise KeyError(
            f"No API key environment variable configured for platform: {platform_name}"
        )

    return REQUIRED_ENV_VARS[platform_name]


def get_all_platform_names() -> list[str]:
    """
    Get list of all configured platform names.

    Returns:
        List of platform names
    """
    return list(PLATFORM_CONFIGS.keys())
