"""
Tests for the chat service orchestration.

Uses a real conversation store on SQLite and a fake reply generator.
"""

import asyncio
import uuid

import pytest

from support_chat.infra.database import Database
from support_chat.llm.reply_generator import ReplyResult
from support_chat.memory.conversation_store import ConversationStore
from support_chat.services.chat_service import ChatService, SessionLocks
from support_chat.utils.errors import UpstreamTimeoutError


class FakeGenerator:
    """Records the history it was shown and echoes the user message"""

    def __init__(self, error=None, delay=0.0, tokens_used=17):
        self.error = error
        self.delay = delay
        self.tokens_used = tokens_used
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def generate(self, history, user_message):
        self.calls.append((list(history), user_message))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error:
                raise self.error
            return ReplyResult(reply=f"Echo: {user_message}", tokens_used=self.tokens_used, response_time_ms=5)
        finally:
            self.active -= 1


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}"


def run_with_service(database_url, generator, scenario, **service_kwargs):
    async def runner():
        store = ConversationStore(Database(database_url))
        service = ChatService(store, generator, **service_kwargs)
        try:
            return await scenario(service, store)
        finally:
            await store.close()

    return asyncio.run(runner())


class TestProcessMessage:
    """Test ChatService.process_message()"""

    def test_first_message_on_fresh_session(self, database_url):
        session_id = str(uuid.uuid4())
        generator = FakeGenerator()

        async def scenario(service, store):
            result = await service.process_message(session_id, "Hi")
            return result, await store.get_history(session_id)

        result, history = run_with_service(database_url, generator, scenario)

        assert result.reply == "Echo: Hi"
        assert result.session_id == session_id
        assert result.tokens_used == 17
        assert result.response_time_ms == 5
        assert generator.calls[0] == ([], "Hi")
        assert [(m.role, m.text) for m in history] == [("user", "Hi"), ("ai", "Echo: Hi")]
        assert result.message_id == history[1].id

    def test_history_is_replayed_on_next_turn(self, database_url):
        session_id = str(uuid.uuid4())
        generator = FakeGenerator()

        async def scenario(service, store):
            await service.process_message(session_id, "Hi")
            await service.process_message(session_id, "Where is my order?")

        run_with_service(database_url, generator, scenario)

        history, user_message = generator.calls[1]
        assert user_message == "Where is my order?"
        assert history == [
            {"role": "user", "parts": [{"text": "Hi"}]},
            {"role": "model", "parts": [{"text": "Echo: Hi"}]},
        ]

    def test_generator_failure_writes_nothing(self, database_url):
        session_id = str(uuid.uuid4())
        generator = FakeGenerator(error=UpstreamTimeoutError())

        async def scenario(service, store):
            with pytest.raises(UpstreamTimeoutError):
                await service.process_message(session_id, "Hi")
            return await store.get_history(session_id)

        history = run_with_service(database_url, generator, scenario)

        assert history == []

    def test_history_window_caps_replayed_turns(self, database_url):
        session_id = str(uuid.uuid4())
        generator = FakeGenerator()

        async def scenario(service, store):
            for text in ("one", "two", "three"):
                await service.process_message(session_id, text)
            return await store.get_history(session_id)

        stored = run_with_service(database_url, generator, scenario, max_history_messages=2)

        replayed, _ = generator.calls[2]
        assert [turn["parts"][0]["text"] for turn in replayed] == ["two", "Echo: two"]
        assert len(stored) == 6


class TestSessionSerialization:
    """Test per-session request ordering"""

    def test_same_session_requests_run_one_at_a_time(self, database_url):
        session_id = str(uuid.uuid4())
        generator = FakeGenerator(delay=0.02)

        async def scenario(service, store):
            await asyncio.gather(
                service.process_message(session_id, "first"),
                service.process_message(session_id, "second"),
            )
            return await store.get_history(session_id)

        history = run_with_service(database_url, generator, scenario, serialize_sessions=True)

        assert generator.max_active == 1
        assert len(generator.calls[1][0]) == 2
        assert [m.role for m in history] == ["user", "ai", "user", "ai"]

    def test_different_sessions_run_concurrently(self, database_url):
        generator = FakeGenerator(delay=0.05)

        async def scenario(service, store):
            await asyncio.gather(
                service.process_message(str(uuid.uuid4()), "a"),
                service.process_message(str(uuid.uuid4()), "b"),
            )

        run_with_service(database_url, generator, scenario, serialize_sessions=True)

        assert generator.max_active == 2

    def test_session_locks_are_released(self):
        locks = SessionLocks()

        async def scenario():
            async with locks.hold("a"):
                assert len(locks) == 1
            return len(locks)

        assert asyncio.run(scenario()) == 0
