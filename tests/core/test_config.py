"""
Tests for settings and per-platform configuration.
"""

import pytest

from ai_visibility.core.config import Settings
from ai_visibility.core.platform_settings import (
    get_all_platform_names,
    get_api_key,
    get_api_key_env_var,
    get_platform_config,
)


class TestSettings:
    def test_defaults(self, empty_settings):
        assert empty_settings.REPORT_DEFAULT_QUERY_COUNT == 10
        assert empty_settings.REPORT_PROVIDER_TIMEOUT_SECONDS == 30.0

    def test_invalid_query_count(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, REPORT_DEFAULT_QUERY_COUNT=0)

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        loaded = Settings(_env_file=None)

        assert loaded.ANTHROPIC_API_KEY == "from-env"
        assert loaded.LOG_LEVEL == "DEBUG"

    def test_api_keys_hidden_from_repr(self, keyed_settings):
        assert "sk-test" not in repr(keyed_settings)


class TestPlatformSettings:
    def test_platform_names(self):
        assert get_all_platform_names() == ["chatgpt", "claude", "gemini", "perplexity"]

    def test_config_with_overrides(self, keyed_settings):
        config = get_platform_config("claude", keyed_settings)

        assert config["default_model"] == "claude-override"
        assert config["rate_limit"] == 50

    def test_config_is_a_copy(self, keyed_settings):
        get_platform_config("chatgpt", keyed_settings)["rate_limit"] = 1

        assert get_platform_config("chatgpt", keyed_settings)["rate_limit"] == 60

    def test_api_keys(self, keyed_settings):
        assert get_api_key("chatgpt", keyed_settings) == "sk-test"
        assert get_api_key("gemini", keyed_settings) == ""
        assert get_api_key_env_var("perplexity") == "PERPLEXITY_API_KEY"

    def test_unknown_platform(self):
        with pytest.raises(KeyError):
            get_platform_config("bard")
        with pytest.raises(KeyError):
            get_api_key_env_var("bard")
