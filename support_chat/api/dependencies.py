"""
FastAPI dependencies - service wiring and the chat rate-limit gate
"""

from fastapi import Depends, Request, Response
from loguru import logger

from support_chat.config.constants import ANONYMOUS_RATE_LIMIT_KEY, RATE_LIMIT_REMAINING_HEADER
from support_chat.config.settings import settings
from support_chat.infra.rate_limiter import RateLimitConfig, RateLimiter, get_rate_limiter
from support_chat.memory.conversation_store import ConversationStore, get_conversation_store
from support_chat.services.chat_service import ChatService, get_chat_service
from support_chat.utils.errors import RateLimitedError

__all__ = [
    "chat_rate_limit_config",
    "enforce_chat_rate_limit",
    "get_chat_service",
    "get_conversation_store",
    "get_rate_limiter",
    "ChatService",
    "ConversationStore",
]


def chat_rate_limit_config() -> RateLimitConfig:
    """Chat endpoint policy (default 20 messages per minute per session)"""
    return RateLimitConfig(
        window_ms=settings.chat_rate_limit_window_ms,
        max_requests=settings.chat_rate_limit_max_requests,
        message=settings.chat_rate_limit_message,
    )


async def rate_limit_key(request: Request) -> str:
    """Session id from the JSON body, else the client address, else a shared bucket"""
    try:
        body = await request.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        session_id = body.get("sessionId")
        if isinstance(session_id, str) and session_id:
            return session_id
    if request.client and request.client.host:
        return request.client.host
    return ANONYMOUS_RATE_LIMIT_KEY


async def enforce_chat_rate_limit(
    request: Request,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter),
    config: RateLimitConfig = Depends(chat_rate_limit_config),
) -> None:
    """Reject the request with 429 once the caller's window budget is spent"""
    key = await rate_limit_key(request)

    if limiter.check(key, config):
        retry_after = limiter.retry_after_seconds(key)
        logger.warning(f"Rate limit hit for {key}, retry after {retry_after}s")
        raise RateLimitedError(config.message, retry_after=retry_after)

    remaining = limiter.remaining(key, config)
    # Read back by the error handlers in api/errors.py
    request.state.rate_limit_remaining = remaining
    response.headers[RATE_LIMIT_REMAINING_HEADER] = str(remaining)
