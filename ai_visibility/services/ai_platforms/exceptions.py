"""
Custom exceptions for AI platform clients.

Provides a hierarchy of exceptions for different types of platform errors.
Every error carries a ``retryable`` flag so callers can decide whether to
resubmit a query; the pipeline itself never retries automatically.
"""

from typing import Optional


class PlatformError(Exception):
    """Base exception for all platform errors."""

    default_retryable = False

    def __init__(
        self,
        message: str,
        platform: Optional[str] = None,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(message)
        self.platform = platform
        self.status_code = status_code
        self.retryable = self.default_retryable if retryable is None else retryable


class TransientError(PlatformError):
    """
    Temporary error that may succeed on resubmission.

    Used for server errors (5xx) and network failures.
    """

    default_retryable = True


class PlatformTimeoutError(TransientError):
    """The platform call exceeded its deadline."""


class RateLimitError(PlatformError):
    """
    Platform-side rate limit (HTTP 429).

    Distinct from the local AIRateLimiter, which throttles proactively.
    Includes optional retry_after information from the response headers.
    """

    default_retryable = True

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        platform: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        super().__init__(message, platform=platform, status_code=429)
        self.retry_after = retry_after


class AuthenticationError(PlatformError):
    """
    Missing or rejected API key.

    Raised before any network call when no key is configured, and for 401
    responses. Never retryable.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        platform: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            message, platform=platform, status_code=status_code, retryable=False
        )


class MalformedResponseError(PlatformError):
    """
    Response format is invalid or unexpected.

    Used when the platform returns a body that doesn't match the expected
    format for text extraction.
    """
