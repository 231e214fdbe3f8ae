"""Story memories — short facts about a player's adventure, recalled into later prompts.

Memories are written by the game loop (travel, loot, encounters, the
narration itself) and by the player through the memory API. Only the most
recent ones are recalled; each user keeps at most
``settings.memory_max_per_user`` and the oldest are dropped first.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone

from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lore_engine.infra.config import settings
from lore_engine.models.db_models import StoryMemoryRecord

logger = logging.getLogger("lore-engine.memory")

MEMORY_TYPES = ("event", "character", "location", "item", "lore")
DEFAULT_SESSION = "global"


class StoryMemory(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    session_id: str = DEFAULT_SESSION
    content: str
    memory_type: str = "event"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def normalize_type(memory_type: str | None) -> str:
    """Unknown or missing types are stored as plain events."""
    memory_type = (memory_type or "").strip().lower()
    return memory_type if memory_type in MEMORY_TYPES else "event"


class MemoryStore(ABC):
    @abstractmethod
    async def store(
        self,
        user_id: str,
        session_id: str | None,
        content: str,
        memory_type: str | None = None,
    ) -> StoryMemory: ...

    @abstractmethod
    async def recent(self, user_id: str, limit: int = 10) -> list[StoryMemory]:
        """Newest first."""


class InMemoryMemoryStore(MemoryStore):
    def __init__(self, max_per_user: int | None = None) -> None:
        self._max_per_user = max_per_user or settings.memory_max_per_user
        self._memories: dict[str, deque[StoryMemory]] = {}

    async def store(self, user_id, session_id, content, memory_type=None) -> StoryMemory:
        memory = StoryMemory(
            user_id=user_id,
            session_id=session_id or DEFAULT_SESSION,
            content=content,
            memory_type=normalize_type(memory_type),
        )
        entries = self._memories.setdefault(user_id, deque(maxlen=self._max_per_user))
        entries.append(memory)
        logger.debug("Stored %s memory for user %s", memory.memory_type, user_id)
        return memory.model_copy()

    async def recent(self, user_id: str, limit: int = 10) -> list[StoryMemory]:
        if limit <= 0:
            return []
        entries = self._memories.get(user_id, ())
        return [m.model_copy() for m in reversed(entries)][:limit]


class SqlMemoryStore(MemoryStore):
    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession], max_per_user: int | None = None
    ) -> None:
        self._session_factory = session_factory
        self._max_per_user = max_per_user or settings.memory_max_per_user

    async def store(self, user_id, session_id, content, memory_type=None) -> StoryMemory:
        memory = StoryMemory(
            user_id=user_id,
            session_id=session_id or DEFAULT_SESSION,
            content=content,
            memory_type=normalize_type(memory_type),
        )
        async with self._session_factory() as db:
            db.add(StoryMemoryRecord(**memory.model_dump()))
            await db.flush()

            # Drop everything past the per-user cap, oldest first.
            stale = (
                select(StoryMemoryRecord.id)
                .where(StoryMemoryRecord.user_id == user_id)
                .order_by(StoryMemoryRecord.created_at.desc())
                .offset(self._max_per_user)
            )
            await db.execute(
                delete(StoryMemoryRecord).where(StoryMemoryRecord.id.in_(stale.scalar_subquery()))
            )
            await db.commit()
        logger.debug("Stored %s memory for user %s", memory.memory_type, user_id)
        return memory

    async def recent(self, user_id: str, limit: int = 10) -> list[StoryMemory]:
        if limit <= 0:
            return []
        async with self._session_factory() as db:
            result = await db.execute(
                select(StoryMemoryRecord)
                .where(StoryMemoryRecord.user_id == user_id)
                .order_by(StoryMemoryRecord.created_at.desc())
                .limit(limit)
            )
            return [
                StoryMemory(
                    id=r.id,
                    user_id=r.user_id,
                    session_id=r.session_id,
                    content=r.content,
                    memory_type=r.memory_type,
                    created_at=r.created_at,
                )
                for r in result.scalars().all()
            ]
