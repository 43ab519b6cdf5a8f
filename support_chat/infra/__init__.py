"""
Infrastructure layer - Database and in-memory rate limiting
"""

from support_chat.infra.database import Database, get_database, close_database
from support_chat.infra.rate_limiter import RateLimiter, RateLimitConfig, get_rate_limiter

__all__ = [
    "Database",
    "get_database",
    "close_database",
    "RateLimiter",
    "RateLimitConfig",
    "get_rate_limiter",
]
