"""Per-user PlayerState persistence with optimistic concurrency.

Callers load a copy, change it, and save it back. ``save`` succeeds only if
the copy still carries the version that is currently stored; otherwise it
raises :class:`StateConflictError` and the caller retries the whole turn.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from abc import ABC, abstractmethod

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lore_engine.models.db_models import PlayerStateRecord
from lore_engine.models.player import PlayerState

logger = logging.getLogger("lore-engine.state_store")


class StateConflictError(Exception):
    """Another request saved this user's state first. Retryable."""

    def __init__(self, user_id: str, expected: int, actual: int | None) -> None:
        super().__init__(
            f"State for user {user_id} changed concurrently "
            f"(expected version {expected}, found {actual})"
        )
        self.user_id = user_id
        self.expected = expected
        self.actual = actual


class StateStore(ABC):
    @abstractmethod
    async def load_or_create(self, user_id: str) -> PlayerState:
        """Return a private copy of the user's state, creating a default one lazily."""

    @abstractmethod
    async def save(self, user_id: str, state: PlayerState) -> PlayerState:
        """Compare-and-swap on ``state.version``; return the stored copy (version + 1)."""

    @abstractmethod
    async def reset(self, user_id: str, state: PlayerState) -> PlayerState:
        """Replace the user's state unconditionally (new game)."""


class InMemoryStateStore(StateStore):
    """Dict-backed store for single-process deployments and tests.

    Per-user locks live only while some call holds or awaits them, so the
    lock table does not grow with every user id ever seen.
    """

    def __init__(self) -> None:
        self._states: dict[str, PlayerState] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    async def load_or_create(self, user_id: str) -> PlayerState:
        async with self._lock(user_id):
            state = self._states.get(user_id)
            if state is None:
                state = PlayerState(id=user_id)
                self._states[user_id] = state
            return state.model_copy(deep=True)

    async def save(self, user_id: str, state: PlayerState) -> PlayerState:
        async with self._lock(user_id):
            current = self._states.get(user_id)
            if current is not None and current.version != state.version:
                logger.warning("State save conflict for user %s", user_id)
                raise StateConflictError(user_id, state.version, current.version)
            stored = state.model_copy(update={"version": state.version + 1}, deep=True)
            self._states[user_id] = stored
            return stored.model_copy(deep=True)

    async def reset(self, user_id: str, state: PlayerState) -> PlayerState:
        async with self._lock(user_id):
            current = self._states.get(user_id)
            version = current.version + 1 if current is not None else 1
            stored = state.model_copy(update={"id": user_id, "version": version}, deep=True)
            self._states[user_id] = stored
            return stored.model_copy(deep=True)


class SqlStateStore(StateStore):
    """SQLAlchemy-backed store; the version column makes ``save`` a compare-and-swap."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load_or_create(self, user_id: str) -> PlayerState:
        async with self._session_factory() as db:
            record = await db.get(PlayerStateRecord, user_id)
            if record is not None:
                return _decode(record)
            state = PlayerState(id=user_id)
            db.add(PlayerStateRecord(user_id=user_id, version=0, state_json=state.model_dump_json()))
            try:
                await db.commit()
            except IntegrityError:
                # Lost a creation race; the winner's row is authoritative.
                await db.rollback()
                record = await db.get(PlayerStateRecord, user_id)
                if record is None:
                    raise
                return _decode(record)
            return state

    async def save(self, user_id: str, state: PlayerState) -> PlayerState:
        stored = state.model_copy(update={"version": state.version + 1}, deep=True)
        async with self._session_factory() as db:
            result = await db.execute(
                update(PlayerStateRecord)
                .where(
                    PlayerStateRecord.user_id == user_id,
                    PlayerStateRecord.version == state.version,
                )
                .values(version=stored.version, state_json=stored.model_dump_json())
            )
            if result.rowcount == 1:
                await db.commit()
                return stored

            await db.rollback()
            actual = await db.scalar(
                select(PlayerStateRecord.version).where(PlayerStateRecord.user_id == user_id)
            )
            if actual is None:
                try:
                    await db.execute(
                        insert(PlayerStateRecord).values(
                            user_id=user_id, version=stored.version, state_json=stored.model_dump_json()
                        )
                    )
                    await db.commit()
                except IntegrityError as exc:
                    await db.rollback()
                    raise StateConflictError(user_id, state.version, None) from exc
                return stored
            logger.warning("State save conflict for user %s", user_id)
            raise StateConflictError(user_id, state.version, actual)

    async def reset(self, user_id: str, state: PlayerState) -> PlayerState:
        async with self._session_factory() as db:
            record = await db.get(PlayerStateRecord, user_id)
            version = record.version + 1 if record is not None else 1
            stored = state.model_copy(update={"id": user_id, "version": version}, deep=True)
            if record is None:
                db.add(PlayerStateRecord(user_id=user_id, version=version, state_json=stored.model_dump_json()))
            else:
                record.version = version
                record.state_json = stored.model_dump_json()
            await db.commit()
            return stored


def _decode(record: PlayerStateRecord) -> PlayerState:
    state = PlayerState.model_validate_json(record.state_json)
    state.version = record.version
    return state
