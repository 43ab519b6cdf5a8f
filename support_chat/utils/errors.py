"""
Custom error classes for the application

Every error carries a stable machine-readable code and the HTTP status the
API layer answers with.
"""

from typing import Any, Dict, Optional


class ChatServiceError(Exception):
    """Base exception for chat pipeline errors"""

    error_code = "UNKNOWN"
    status_code = 500
    default_message = "Service temporarily unavailable"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        body = {"error": self.message, "errorCode": self.error_code}
        body.update(self.extra)
        return body

    def to_headers(self) -> Dict[str, str]:
        return {}


class ValidationError(ChatServiceError):
    """Malformed input, rejected before any side effect"""

    error_code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation failed"


class RateLimitedError(ChatServiceError):
    """Caller exceeded the local request throttle"""

    error_code = "RATE_LIMIT"
    status_code = 429
    default_message = "Too many requests. Please slow down."

    def __init__(self, message: Optional[str] = None, retry_after: int = 60):
        self.retry_after = retry_after
        super().__init__(message, retryAfter=retry_after)

    def to_headers(self) -> Dict[str, str]:
        return {"Retry-After": str(self.retry_after), "X-RateLimit-Remaining": "0"}


class RateLimitExceededError(RateLimitedError):
    """Upstream provider kept throttling after every retry"""

    default_message = (
        "Our assistant is receiving a lot of requests right now. "
        "Please try again in a few moments."
    )

    def to_headers(self) -> Dict[str, str]:
        return {"Retry-After": str(self.retry_after)}


class ModelNotFoundError(ChatServiceError):
    """Upstream rejects the configured model, even after fallback"""

    error_code = "SERVICE_UNAVAILABLE"
    status_code = 503


class UpstreamTimeoutError(ChatServiceError):
    """Upstream call exceeded the deadline"""

    error_code = "TIMEOUT"
    status_code = 504
    default_message = "The assistant took too long to respond. Please try again."


class UpstreamServiceError(ChatServiceError):
    """Any other upstream failure"""

    error_code = "SERVICE_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: Optional[str] = None, upstream_message: Optional[str] = None):
        self.upstream_message = upstream_message
        super().__init__(message)


class PersistenceError(ChatServiceError):
    """Conversation store unavailable or failed mid-write"""

    error_code = "UNKNOWN"
    status_code = 500


class UnknownError(ChatServiceError):
    """Catch-all"""
