"""Conversation sessions and their ordered message history."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime, timezone

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lore_engine.models.chat import ChatMessage
from lore_engine.models.db_models import ConversationMessage, ConversationSession

TITLE_LENGTH = 80


class SessionSummary(BaseModel):
    id: str
    title: str | None
    created_at: datetime
    updated_at: datetime


class ConversationStore(ABC):
    @abstractmethod
    async def create_session(self, user_id: str) -> str: ...

    @abstractmethod
    async def append_messages(self, session_id: str, messages: Sequence[ChatMessage]) -> None: ...

    @abstractmethod
    async def get_owner(self, session_id: str) -> str | None: ...

    @abstractmethod
    async def get_history(self, session_id: str) -> list[ChatMessage]: ...

    @abstractmethod
    async def list_sessions(self, user_id: str) -> list[SessionSummary]: ...


class SqlConversationStore(ConversationStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_session(self, user_id: str) -> str:
        async with self._session_factory() as db:
            session = ConversationSession(user_id=user_id)
            db.add(session)
            await db.commit()
            return session.id

    async def append_messages(self, session_id: str, messages: Sequence[ChatMessage]) -> None:
        if not messages:
            return
        async with self._session_factory() as db:
            seq = await db.scalar(
                select(func.coalesce(func.max(ConversationMessage.seq), 0)).where(
                    ConversationMessage.session_id == session_id
                )
            )
            now = datetime.now(timezone.utc)
            for message in messages:
                seq += 1
                db.add(
                    ConversationMessage(
                        session_id=session_id,
                        seq=seq,
                        role=message.role,
                        content=message.content,
                        author_name=message.author_name,
                        created_at=now,
                    )
                )

            session = await db.get(ConversationSession, session_id)
            if session is not None:
                session.updated_at = now
                if session.title is None:
                    first = next(
                        (m.content for m in messages if m.role == "user" and m.content), None
                    )
                    if first:
                        session.title = (
                            first if len(first) <= TITLE_LENGTH else first[:TITLE_LENGTH] + "…"
                        )
            await db.commit()

    async def get_owner(self, session_id: str) -> str | None:
        async with self._session_factory() as db:
            return await db.scalar(
                select(ConversationSession.user_id).where(ConversationSession.id == session_id)
            )

    async def get_history(self, session_id: str) -> list[ChatMessage]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(ConversationMessage)
                .where(ConversationMessage.session_id == session_id)
                .order_by(ConversationMessage.seq)
            )
            return [
                ChatMessage(role=m.role, content=m.content, author_name=m.author_name)
                for m in result.scalars().all()
            ]

    async def list_sessions(self, user_id: str) -> list[SessionSummary]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(ConversationSession)
                .where(ConversationSession.user_id == user_id)
                .order_by(ConversationSession.updated_at.desc())
            )
            return [
                SessionSummary(
                    id=s.id, title=s.title, created_at=s.created_at, updated_at=s.updated_at
                )
                for s in result.scalars().all()
            ]
