"""
Shared fixtures for HTTP tests: the app wired to a temporary SQLite store,
a scripted reply generator and a private rate limiter.
"""

import pytest
from fastapi.testclient import TestClient

from support_chat.api.app import app
from support_chat.api.dependencies import (
    chat_rate_limit_config,
    get_chat_service,
    get_conversation_store,
    get_rate_limiter,
)
from support_chat.infra.database import Database
from support_chat.infra.rate_limiter import RateLimitConfig, RateLimiter
from support_chat.llm.reply_generator import ReplyResult
from support_chat.memory.conversation_store import ConversationStore
from support_chat.services.chat_service import ChatService


class StubReplyGenerator:
    """Returns a canned reply, or raises ``error`` when set"""

    def __init__(self, reply="Hello! I'm Apex. How can I help you today?", tokens_used=42):
        self.reply = reply
        self.tokens_used = tokens_used
        self.error = None
        self.calls = []

    async def generate(self, history, user_message):
        self.calls.append((list(history), user_message))
        if self.error is not None:
            raise self.error
        return ReplyResult(reply=self.reply, tokens_used=self.tokens_used, response_time_ms=12)


@pytest.fixture
def generator():
    return StubReplyGenerator()


@pytest.fixture
def rate_limit_config():
    return RateLimitConfig(window_ms=60_000, max_requests=20, message="Slow down")


@pytest.fixture
def limiter():
    return RateLimiter()


@pytest.fixture
def client(tmp_path, generator, limiter, rate_limit_config):
    store = ConversationStore(Database(f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}"))
    service = ChatService(store, generator, serialize_sessions=True, max_history_messages=0)

    app.dependency_overrides[get_chat_service] = lambda: service
    app.dependency_overrides[get_conversation_store] = lambda: store
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[chat_rate_limit_config] = lambda: rate_limit_config

    with TestClient(app) as test_client:
        yield test_client
        test_client.portal.call(store.close)

    app.dependency_overrides.clear()
