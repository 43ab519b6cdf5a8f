"""
Shared utilities - Logging and error types
"""

from support_chat.utils.errors import (
    ChatServiceError,
    ValidationError,
    RateLimitedError,
    RateLimitExceededError,
    ModelNotFoundError,
    UpstreamTimeoutError,
    UpstreamServiceError,
    PersistenceError,
    UnknownError,
)

__all__ = [
    "ChatServiceError",
    "ValidationError",
    "RateLimitedError",
    "RateLimitExceededError",
    "ModelNotFoundError",
    "UpstreamTimeoutError",
    "UpstreamServiceError",
    "PersistenceError",
    "UnknownError",
]
