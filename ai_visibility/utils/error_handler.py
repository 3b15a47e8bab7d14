"""
Run-level error handling for report generation.

Platform call failures are absorbed into the report as error-flagged
responses (see ``services.ai_platforms.exceptions``). What reaches this
module is a failure of the run itself: it is classified, logged once with
report context, and turned into the message stored on the failed report.
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from ai_visibility.services.ai_platforms.exceptions import (
    AuthenticationError,
    PlatformError,
    PlatformTimeoutError,
    RateLimitError,
    TransientError,
)
from ai_visibility.utils.logger import get_logger

logger = get_logger(__name__)


class ErrorSeverity(str, Enum):
    LOW = "low"  # expected, informational
    MEDIUM = "medium"  # one platform or one input affected
    HIGH = "high"  # no report can be produced
    CRITICAL = "critical"  # environment is broken


class ErrorCategory(str, Enum):
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    PLATFORM = "platform"
    NETWORK = "network"
    VALIDATION = "validation"
    SYSTEM = "system"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"


_USER_MESSAGES: Dict[ErrorCategory, str] = {
    ErrorCategory.CONFIGURATION: (
        "The report could not run because no AI platform is configured. "
        "Please check your API keys."
    ),
    ErrorCategory.AUTHENTICATION: (
        "An AI platform rejected the configured API key."
    ),
    ErrorCategory.RATE_LIMIT: (
        "An AI platform is rate limiting requests. Try again in a few minutes."
    ),
    ErrorCategory.TIMEOUT: "An AI platform did not answer in time.",
    ErrorCategory.NETWORK: "An AI platform could not be reached.",
    ErrorCategory.VALIDATION: "The report input is invalid. Please check it.",
}
_FALLBACK_MESSAGE = "Report generation failed unexpectedly."

# Checked in order; subclasses come before their parents
_PLATFORM_CATEGORIES: Tuple[Tuple[Type[PlatformError], ErrorCategory], ...] = (
    (AuthenticationError, ErrorCategory.AUTHENTICATION),
    (RateLimitError, ErrorCategory.RATE_LIMIT),
    (PlatformTimeoutError, ErrorCategory.TIMEOUT),
    (TransientError, ErrorCategory.NETWORK),
)

_BUILTIN_CATEGORIES: Dict[type, Tuple[ErrorSeverity, ErrorCategory]] = {
    ConnectionError: (ErrorSeverity.MEDIUM, ErrorCategory.NETWORK),
    TimeoutError: (ErrorSeverity.MEDIUM, ErrorCategory.TIMEOUT),
    ValueError: (ErrorSeverity.LOW, ErrorCategory.VALIDATION),
    KeyError: (ErrorSeverity.LOW, ErrorCategory.VALIDATION),
}


@dataclass
class ErrorContext:
    """Classified error plus the context needed to log and report it."""

    error: Exception
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    category: ErrorCategory = ErrorCategory.SYSTEM
    user_message: str = ""
    technical_details: Dict[str, Any] = field(default_factory=dict)
    report_id: Optional[str] = None
    platform_name: Optional[str] = None
    recovery_suggestions: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.user_message:
            self.user_message = _USER_MESSAGES.get(self.category, _FALLBACK_MESSAGE)

    @property
    def error_id(self) -> str:
        return f"err_{int(self.timestamp.timestamp())}"

    @property
    def is_severe(self) -> bool:
        return self.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form; the traceback is kept only for severe errors."""
        data: Dict[str, Any] = {
            "error_id": self.error_id,
            "timestamp": self.timestamp.isoformat(),
            "error_type": type(self.error).__name__,
            "error_message": str(self.error),
            "severity": self.severity.value,
            "category": self.category.value,
            "user_message": self.user_message,
            "technical_details": self.technical_details,
            "report_id": self.report_id,
            "platform_name": self.platform_name,
            "recovery_suggestions": self.recovery_suggestions,
            "traceback": None,
        }
        if self.is_severe:
            data["traceback"] = "".join(
                traceback.format_exception(
                    type(self.error), self.error, self.error.__traceback__
                )
            )
        return data


class ReportGenerationError(Exception):
    """A report run that cannot produce a report."""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        technical_details: Optional[Dict[str, Any]] = None,
        recovery_suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.severity = severity
        self.category = category
        self.technical_details = technical_details or {}
        self.recovery_suggestions = recovery_suggestions or []


class ReportConfigurationError(ReportGenerationError):
    """No usable platform for the run."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault(
            "recovery_suggestions",
            [
                "Set at least one platform API key",
                "Check the requested platform names",
            ],
        )
        super().__init__(
            message,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.CONFIGURATION,
            **kwargs,
        )


class ErrorHandler:
    """Classifies and logs errors that end a report run."""

    def handle_error(
        self, error: Exception, context: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        """
        Args:
            error: The exception that ended the run
            context: report_id and/or platform_name, if known

        Returns:
            The classified ErrorContext (already logged)
        """
        error_context = self.classify(error, context or {})
        self._log(error_context)
        return error_context

    def classify(self, error: Exception, context: Dict[str, Any]) -> ErrorContext:
        report_id = context.get("report_id")

        if isinstance(error, ReportGenerationError):
            return ErrorContext(
                error=error,
                severity=error.severity,
                category=error.category,
                technical_details=error.technical_details,
                report_id=report_id,
                recovery_suggestions=list(error.recovery_suggestions),
            )

        if isinstance(error, PlatformError):
            category = next(
                (cat for cls, cat in _PLATFORM_CATEGORIES if isinstance(error, cls)),
                ErrorCategory.PLATFORM,
            )
            return ErrorContext(
                error=error,
                severity=ErrorSeverity.MEDIUM,
                category=category,
                technical_details={
                    "status_code": error.status_code,
                    "retryable": error.retryable,
                },
                report_id=report_id,
                platform_name=error.platform or context.get("platform_name"),
            )

        severity, category = _BUILTIN_CATEGORIES.get(
            type(error), (ErrorSeverity.HIGH, ErrorCategory.SYSTEM)
        )
        return ErrorContext(
            error=error,
            severity=severity,
            category=category,
            technical_details=dict(context),
            report_id=report_id,
            platform_name=context.get("platform_name"),
        )

    def _log(self, error_context: ErrorContext) -> None:
        fields = error_context.to_dict()
        message = fields.pop("user_message")
        # structlog's TimeStamper owns the timestamp key
        fields.pop("timestamp")
        if fields["traceback"] is None:
            del fields["traceback"]

        if error_context.severity is ErrorSeverity.CRITICAL:
            logger.critical(message, **fields)
        elif error_context.severity is ErrorSeverity.HIGH:
            logger.error(message, **fields)
        elif error_context.severity is ErrorSeverity.MEDIUM:
            logger.warning(message, **fields)
        else:
            logger.info(message, **fields)


error_handler = ErrorHandler()
