"""Sessions API — create, list and read the caller's conversation sessions."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from lore_engine.api.deps import MAX_SESSION_ID_LENGTH, get_conversation_store
from lore_engine.infra.auth import get_current_user_id
from lore_engine.infra.conversation_store import ConversationStore, SessionSummary

logger = logging.getLogger("lore-engine.sessions")

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

UserId = Annotated[str, Depends(get_current_user_id)]
Conversations = Annotated[ConversationStore, Depends(get_conversation_store)]


@router.post("/")
async def create_session(user_id: UserId, conversations: Conversations) -> dict:
    session_id = await conversations.create_session(user_id)
    logger.info("Session %s created for user %s", session_id, user_id)
    return {"session_id": session_id}


@router.get("/", response_model=list[SessionSummary])
async def list_sessions(user_id: UserId, conversations: Conversations) -> list[SessionSummary]:
    return await conversations.list_sessions(user_id)


@router.get("/{session_id}/history")
async def session_history(session_id: str, user_id: UserId, conversations: Conversations) -> dict:
    if not session_id.strip() or len(session_id) > MAX_SESSION_ID_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid session ID.")

    owner = await conversations.get_owner(session_id)
    if owner is None:
        raise HTTPException(status_code=404, detail="Session not found.")
    if owner != user_id:
        raise HTTPException(status_code=403, detail="Session access denied.")

    messages = await conversations.get_history(session_id)
    return {
        "session_id": session_id,
        "messages": [m.model_dump(include={"role", "content", "author_name"}) for m in messages],
    }
