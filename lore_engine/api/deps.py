"""Shared FastAPI dependencies and request helpers for the API routers."""

from __future__ import annotations

from collections.abc import Sequence

from fastapi import HTTPException

from lore_engine.infra.config import settings
from lore_engine.infra.conversation_store import ConversationStore, SqlConversationStore
from lore_engine.infra.db import async_session_factory
from lore_engine.infra.deadline import Deadline
from lore_engine.infra.memory_store import InMemoryMemoryStore, MemoryStore, SqlMemoryStore
from lore_engine.infra.state_store import InMemoryStateStore, SqlStateStore, StateStore
from lore_engine.models.chat import ChatMessage, ChatRequest
from lore_engine.security.validator import validate

MAX_SESSION_ID_LENGTH = 128

_state_store: StateStore | None = None
_conversation_store: ConversationStore | None = None
_memory_store: MemoryStore | None = None


def get_state_store() -> StateStore:
    global _state_store
    if _state_store is None:
        if settings.state_store_backend.lower() == "sql":
            _state_store = SqlStateStore(async_session_factory)
        else:
            _state_store = InMemoryStateStore()
    return _state_store


def get_conversation_store() -> ConversationStore:
    global _conversation_store
    if _conversation_store is None:
        _conversation_store = SqlConversationStore(async_session_factory)
    return _conversation_store


def get_memory_store() -> MemoryStore:
    global _memory_store
    if _memory_store is None:
        if settings.memory_store_backend.lower() == "sql":
            _memory_store = SqlMemoryStore(async_session_factory)
        else:
            _memory_store = InMemoryMemoryStore()
    return _memory_store


def new_deadline() -> Deadline:
    """One deadline per request; everything below shares it."""
    return Deadline(settings.request_timeout_seconds, grace=settings.cleanup_grace_seconds)


def validate_request(body: ChatRequest) -> list[ChatMessage]:
    """Run the validation gate; 400 with the rule's message on rejection."""
    client_tools = [t.name for t in body.client_tools or ()]
    result = validate(body.messages, client_tools)
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.error)
    return result.messages


async def resolve_session(
    conversations: ConversationStore, user_id: str, session_id: str | None
) -> str:
    """Reuse the caller's own session, or start a new one.

    Ids that are empty or too long are ignored; unknown ids are 404 and
    sessions owned by someone else are 403.
    """
    if session_id and len(session_id) <= MAX_SESSION_ID_LENGTH:
        owner = await conversations.get_owner(session_id)
        if owner is None:
            raise HTTPException(status_code=404, detail="Session not found.")
        if owner != user_id:
            raise HTTPException(status_code=403, detail="Session access denied.")
        return session_id
    return await conversations.create_session(user_id)


def latest_user_message(messages: Sequence[ChatMessage]) -> list[ChatMessage]:
    """The newest user turn; earlier turns were stored by previous requests."""
    for message in reversed(messages):
        if message.role == "user":
            return [ChatMessage(role="user", content=message.content, author_name=message.author_name)]
    return []


def model_history(system_prompt: str, messages: Sequence[ChatMessage]) -> list[ChatMessage]:
    """Server system prompt followed by the sanitized client turns as plain text.

    Client-side tool turns are passed on as user text; only the server's own
    tool calls travel in structured form.
    """
    history = [ChatMessage(role="system", content=system_prompt)]
    for message in messages:
        role = "assistant" if message.role == "assistant" else "user"
        history.append(ChatMessage(role=role, content=message.content or "", author_name=message.author_name))
    return history
