"""
Tests for error categorization and user-facing messages.
"""

from datetime import datetime
from unittest.mock import patch

from ai_visibility.services.ai_platforms.exceptions import (
    AuthenticationError,
    MalformedResponseError,
    PlatformTimeoutError,
    RateLimitError,
    TransientError,
)
from ai_visibility.utils.error_handler import (
    ErrorCategory,
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ReportConfigurationError,
    ReportGenerationError,
)


class TestErrorContext:
    """Test cases for ErrorContext class"""

    def test_error_context_creation(self):
        error = ValueError("Test error")
        context = ErrorContext(
            error=error,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.VALIDATION,
            report_id="report_123",
            platform_name="chatgpt",
        )

        assert context.error is error
        assert context.report_id == "report_123"
        assert context.error_id.startswith("err_")
        assert isinstance(context.timestamp, datetime)
        assert "invalid" in context.user_message

    def test_to_dict_includes_traceback_for_high_severity(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            high = ErrorContext(e, severity=ErrorSeverity.HIGH).to_dict()
            low = ErrorContext(e, severity=ErrorSeverity.LOW).to_dict()

        assert "RuntimeError" in high["traceback"]
        assert low["traceback"] is None
        assert high["error_type"] == "RuntimeError"
        assert high["category"] == "system"


class TestExceptions:
    def test_configuration_error_defaults(self):
        error = ReportConfigurationError("No platforms available")

        assert isinstance(error, ReportGenerationError)
        assert error.category is ErrorCategory.CONFIGURATION
        assert error.severity is ErrorSeverity.HIGH
        assert error.recovery_suggestions

    def test_platform_error_retryable_flags(self):
        assert TransientError("x").retryable is True
        assert PlatformTimeoutError("x").retryable is True
        assert RateLimitError(retry_after=5).retryable is True
        assert RateLimitError().status_code == 429
        assert AuthenticationError().retryable is False
        assert MalformedResponseError("x").retryable is False


class TestErrorHandler:
    def setup_method(self):
        self.handler = ErrorHandler()

    def test_report_error_keeps_its_category(self):
        context = self.handler.handle_error(
            ReportConfigurationError("none"), {"report_id": "r1"}
        )

        assert context.category is ErrorCategory.CONFIGURATION
        assert context.report_id == "r1"
        assert "API keys" in context.user_message
        assert context.recovery_suggestions

    def test_platform_errors_categorized(self):
        cases = [
            (AuthenticationError(platform="claude"), ErrorCategory.AUTHENTICATION),
            (RateLimitError(platform="claude"), ErrorCategory.RATE_LIMIT),
            (PlatformTimeoutError("t", platform="claude"), ErrorCategory.TIMEOUT),
            (TransientError("n", platform="claude"), ErrorCategory.NETWORK),
            (MalformedResponseError("m", platform="claude"), ErrorCategory.PLATFORM),
        ]

        for error, category in cases:
            context = self.handler.handle_error(error)
            assert context.category is category
            assert context.platform_name == "claude"
            assert context.severity is ErrorSeverity.MEDIUM

    def test_builtin_errors(self):
        assert self.handler.handle_error(ValueError("v")).category is ErrorCategory.VALIDATION
        assert self.handler.handle_error(ConnectionError("c")).category is ErrorCategory.NETWORK

        unexpected = self.handler.handle_error(RuntimeError("r"))
        assert unexpected.category is ErrorCategory.SYSTEM
        assert unexpected.severity is ErrorSeverity.HIGH

    def test_severe_errors_logged_with_traceback(self):
        with patch("ai_visibility.utils.error_handler.logger") as mock_logger:
            try:
                raise RuntimeError("disk full")
            except RuntimeError as e:
                context = self.handler.handle_error(e, {"report_id": "r9"})

        mock_logger.error.assert_called_once()
        message, = mock_logger.error.call_args.args
        fields = mock_logger.error.call_args.kwargs
        assert message == context.user_message
        assert fields["error_id"] == context.error_id
        assert fields["report_id"] == "r9"
        assert fields["category"] == "system"
        assert "disk full" in fields["traceback"]
        assert "timestamp" not in fields

    def test_medium_errors_logged_as_warning_without_traceback(self):
        with patch("ai_visibility.utils.error_handler.logger") as mock_logger:
            self.handler.handle_error(RateLimitError(platform="gemini"))

        mock_logger.warning.assert_called_once()
        fields = mock_logger.warning.call_args.kwargs
        assert fields["platform_name"] == "gemini"
        assert "traceback" not in fields
