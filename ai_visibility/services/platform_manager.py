"""
Platform manager for AI platform clients.

Provides centralized management of the AI platform instances used by one
report run, including initialization from settings, health checks, and
platform availability management. Instances are explicitly constructed and
owned by the manager; nothing is cached at module level.
"""

import asyncio
import time
from typing import Any, Dict, Iterable, List, Optional

from ai_visibility.core.config import Settings, settings
from ai_visibility.core.platform_settings import (
    PLATFORM_CONFIGS,
    get_api_key,
    get_api_key_env_var,
    get_platform_config,
)
from ai_visibility.services.ai_platforms.base import HEALTH_CHECK_PROMPT, BasePlatform
from ai_visibility.services.ai_platforms.registry import PlatformRegistry
from ai_visibility.utils.logger import get_logger

logger = get_logger(__name__)


class PlatformManager:
    """
    Manages multiple AI platform instances.

    Platforms without an API key are skipped at initialization and reported
    as unconfigured by the health check.
    """

    def __init__(
        self,
        app_settings: Optional[Settings] = None,
        platform_names: Optional[Iterable[str]] = None,
        platforms: Optional[Dict[str, BasePlatform]] = None,
    ):
        """
        Initialize the platform manager.

        Args:
            app_settings: Settings holding API keys and overrides
            platform_names: Subset of platforms to load (default: all known)
            platforms: Pre-built instances; when given, settings are not read
        """
        self.settings = app_settings or settings
        self.platforms: Dict[str, BasePlatform] = {}
        self.skipped: Dict[str, str] = {}

        if platforms is not None:
            for name, platform in platforms.items():
                self.register_platform(name, platform)
        else:
            self._initialize_platforms(platform_names)

    def _initialize_platforms(self, platform_names: Optional[Iterable[str]]) -> None:
        """
        Create instances for every requested platform that has an API key.
        """
        names = list(PLATFORM_CONFIGS if platform_names is None else platform_names)

        for platform_name in names:
            if platform_name not in PLATFORM_CONFIGS:
                logger.warning(
                    "Unknown platform requested, skipping", platform=platform_name
                )
                self.skipped[platform_name] = "unknown platform"
                continue

            api_key = get_api_key(platform_name, self.settings)
            if not api_key:
                logger.warning(
                    "No valid API key found for platform, skipping",
                    platform=platform_name,
                    env_var=get_api_key_env_var(platform_name),
                )
                self.skipped[platform_name] = (
                    f"{get_api_key_env_var(platform_name)} not configured"
                )
                continue

            config = get_platform_config(platform_name, self.settings)
            self.platforms[platform_name] = PlatformRegistry.create_platform(
                platform_name, api_key, config
            )
            logger.info(
                "Successfully initialized platform",
                platform=platform_name,
                model=config.get("default_model"),
                rate_limit=config.get("rate_limit", "unknown"),
            )

    def get_available_platforms(self) -> List[str]:
        return list(self.platforms.keys())

    def select(self, names: Optional[Iterable[str]] = None) -> Dict[str, BasePlatform]:
        """
        Platforms to use for a run; ``None`` means all available.

        Requested names that are not available are ignored with a warning.
        """
        if names is None:
            return dict(self.platforms)

        selected: Dict[str, BasePlatform] = {}
        for name in names:
            if name in self.platforms:
                selected[name] = self.platforms[name]
            else:
                logger.warning("Requested platform not available", platform=name)
        return selected

    async def check_all_providers_health(self) -> Dict[str, Dict[str, Any]]:
        """
        Probe every known platform concurrently.

        Returns:
            Platform name -> {configured, available, response_time_ms, error}
        """
        names = list(self.platforms)
        probes = await asyncio.gather(
            *(self._probe(name, self.platforms[name]) for name in names)
        )
        report: Dict[str, Dict[str, Any]] = dict(zip(names, probes))

        for name, reason in self.skipped.items():
            report[name] = {
                "configured": False,
                "available": False,
                "response_time_ms": None,
                "error": reason,
            }
        return report

    async def _probe(self, name: str, platform: BasePlatform) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            if platform.is_session_open:
                response = await platform.execute_query(HEALTH_CHECK_PROMPT)
            else:
                async with platform:
                    response = await platform.execute_query(HEALTH_CHECK_PROMPT)
        except Exception as e:
            logger.error(
                "Platform health check error",
                platform=name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return {
                "configured": True,
                "available": False,
                "response_time_ms": int((time.perf_counter() - started) * 1000),
                "error": str(e),
            }

        if response.success:
            logger.info(
                "Platform health check passed",
                platform=name,
                response_time_ms=response.response_time_ms,
            )
        else:
            logger.warning(
                "Platform health check failed", platform=name, error=response.error
            )
        return {
            "configured": True,
            "available": response.success,
            "response_time_ms": response.response_time_ms,
            "error": response.error,
        }

    def register_platform(self, name: str, platform: BasePlatform) -> None:
        """
        Register additional platform (for testing or custom platforms).
        """
        self.platforms[name] = platform
        self.skipped.pop(name, None)
        logger.info(
            "Manually registered platform",
            platform=name,
            class_name=type(platform).__name__,
        )


async def check_all_providers_health(
    app_settings: Optional[Settings] = None,
) -> Dict[str, Dict[str, Any]]:
    """Operator diagnostic: availability, latency and error per platform."""
    manager = PlatformManager(app_settings=app_settings)
    return await manager.check_all_providers_health()
