"""
Conversation store - persistence for chat sessions.

Provides:
- Find-or-create of the conversation bound to a session token
- Ordered message history per session
- Atomic append of a (user turn, ai turn) exchange

Rows are handed out as plain dataclasses so callers never touch a live
SQLAlchemy session.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from support_chat.config.constants import ROLE_AI, ROLE_USER
from support_chat.infra.database import Database, get_database
from support_chat.models.domain import Conversation, Message
from support_chat.utils.errors import PersistenceError


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class StoredMessage:
    """Snapshot of a persisted message"""
    id: str
    role: str
    text: str
    created_at: datetime
    turn_index: int

    @classmethod
    def from_row(cls, row: Message) -> "StoredMessage":
        return cls(
            id=row.id,
            role=row.role,
            text=row.text,
            created_at=_as_utc(row.created_at),
            turn_index=row.turn_index,
        )


@dataclass
class ConversationRecord:
    """Snapshot of a conversation and its ordered messages"""
    id: str
    session_id: str
    created_at: datetime
    messages: List[StoredMessage] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Conversation) -> "ConversationRecord":
        return cls(
            id=row.id,
            session_id=row.session_id,
            created_at=_as_utc(row.created_at),
            messages=[StoredMessage.from_row(m) for m in row.messages],
        )


class ConversationStore:
    """Conversation persistence on top of the async SQLAlchemy database"""

    def __init__(self, database: Optional[Database] = None):
        """
        Args:
            database: Database manager (defaults to the global instance)
        """
        self.db = database or get_database()

    async def async_init(self):
        """Create the schema - call this from lifespan startup"""
        await self.db.async_init()

    async def close(self):
        await self.db.close()

    async def _fetch(self, session_id: str) -> Optional[ConversationRecord]:
        async with self.db.session_scope() as session:
            result = await session.execute(
                select(Conversation)
                .where(Conversation.session_id == session_id)
                .options(selectinload(Conversation.messages))
            )
            row = result.scalar_one_or_none()
            return ConversationRecord.from_row(row) if row else None

    async def resolve(self, session_id: str) -> ConversationRecord:
        """
        Find the conversation for ``session_id`` or create an empty one.

        Two requests racing to create the same session both end up with the
        single row that won the UNIQUE(session_id) insert.

        Raises:
            PersistenceError: The store is unavailable
        """
        try:
            existing = await self._fetch(session_id)
            if existing is not None:
                return existing

            try:
                async with self.db.session_scope() as session:
                    conversation = Conversation(session_id=session_id)
                    session.add(conversation)
                    await session.flush()
                    created = ConversationRecord(
                        id=conversation.id,
                        session_id=session_id,
                        created_at=_as_utc(conversation.created_at),
                    )
                logger.info(f"Created conversation {created.id} for session {session_id}")
                return created
            except IntegrityError:
                logger.info(f"Lost create race for session {session_id}, re-fetching")

            winner = await self._fetch(session_id)
            if winner is None:
                raise PersistenceError(f"Conversation for session {session_id} vanished after create race")
            return winner
        except SQLAlchemyError as e:
            raise PersistenceError() from e

    async def get_history(self, session_id: str) -> List[StoredMessage]:
        """Messages for ``session_id`` in creation order (empty if unseen)"""
        try:
            conversation = await self._fetch(session_id)
        except SQLAlchemyError as e:
            raise PersistenceError() from e
        return conversation.messages if conversation else []

    async def append_exchange(
        self, conversation_id: str, user_text: str, reply_text: str
    ) -> Tuple[StoredMessage, StoredMessage]:
        """
        Persist the user turn and the ai turn in one transaction.

        Returns:
            (user message, ai message)

        Raises:
            PersistenceError: Nothing was written
        """
        now = datetime.now(timezone.utc)
        try:
            async with self.db.session_scope() as session:
                last_turn = await session.scalar(
                    select(func.max(Message.turn_index)).where(Message.conversation_id == conversation_id)
                )
                next_turn = 0 if last_turn is None else last_turn + 1

                user_row = Message(
                    conversation_id=conversation_id,
                    role=ROLE_USER,
                    text=user_text,
                    turn_index=next_turn,
                    created_at=now,
                )
                ai_row = Message(
                    conversation_id=conversation_id,
                    role=ROLE_AI,
                    text=reply_text,
                    turn_index=next_turn + 1,
                    created_at=now,
                )
                session.add_all([user_row, ai_row])
                await session.execute(
                    update(Conversation)
                    .where(Conversation.id == conversation_id)
                    .values(updated_at=now)
                )
                await session.flush()
                return StoredMessage.from_row(user_row), StoredMessage.from_row(ai_row)
        except SQLAlchemyError as e:
            raise PersistenceError() from e


# Global instance (singleton pattern)
_conversation_store: Optional[ConversationStore] = None


def get_conversation_store() -> ConversationStore:
    """Get global conversation store instance (singleton)"""
    global _conversation_store
    if _conversation_store is None:
        _conversation_store = ConversationStore()
    return _conversation_store
