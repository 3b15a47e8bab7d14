"""
structlog setup for the report engine.

Development renders colored console lines; any other APP_ENV emits one JSON
object per event. Report id and business name are bound per run through
contextvars, so provider tasks spawned inside a run carry them too.
"""

import contextlib
import logging
import sys
from typing import Any, Dict, Iterator, List, Optional

import structlog
from structlog.types import Processor

from ai_visibility.core.config import settings


def _shared_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
    ]


def _renderers(development: bool) -> List[Processor]:
    if development:
        return [structlog.dev.set_exc_info, structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure stdlib logging and structlog once at process start.

    Args:
        level: Overrides settings.LOG_LEVEL (e.g. "debug" from a CLI flag)
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    structlog.configure(
        processors=_shared_processors() + _renderers(settings.is_development),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger; call as ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def add_report_context(
    report_id: str, business_name: Optional[str] = None
) -> Dict[str, Any]:
    """Fields identifying one report run in log events."""
    context = {"report_id": report_id}
    if business_name:
        context["business_name"] = business_name
    return context


def add_platform_context(platform_name: str) -> Dict[str, Any]:
    return {"ai_platform": platform_name}


@contextlib.contextmanager
def report_context(report_id: str, business_name: Optional[str] = None) -> Iterator[None]:
    """Bind report fields to every log event emitted inside the block."""
    with structlog.contextvars.bound_contextvars(
        **add_report_context(report_id, business_name)
    ):
        yield
