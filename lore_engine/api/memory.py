"""Memory API — read and add the caller's story memories."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from lore_engine.api.deps import MAX_SESSION_ID_LENGTH, get_memory_store
from lore_engine.infra.auth import get_current_user_id
from lore_engine.infra.config import settings
from lore_engine.infra.memory_store import MemoryStore
from lore_engine.models.chat import StoreMemoryRequest
from lore_engine.security.validator import validate_text

logger = logging.getLogger("lore-engine.memory")

router = APIRouter(prefix="/api/memory", tags=["memory"])

UserId = Annotated[str, Depends(get_current_user_id)]
Memories = Annotated[MemoryStore, Depends(get_memory_store)]


@router.get("/recent")
async def recent_memories(
    user_id: UserId, memories: Memories, limit: int = Query(20, ge=1, le=100)
) -> list[dict]:
    recalled = await memories.recent(user_id, limit)
    return [
        m.model_dump(mode="json", include={"id", "content", "memory_type", "created_at"})
        for m in recalled
    ]


@router.post("/store")
async def store_memory(body: StoreMemoryRequest, user_id: UserId, memories: Memories) -> dict:
    limit = settings.memory_max_content_length
    if not body.content.strip():
        raise HTTPException(status_code=400, detail="Content is required.")
    if len(body.content) > limit:
        raise HTTPException(status_code=400, detail=f"Content too long (max {limit} chars).")
    if body.session_id is not None and len(body.session_id) > MAX_SESSION_ID_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid session ID.")

    # Stored memories are replayed into the Dungeon Master prompt.
    error = validate_text(body.content)
    if error is not None:
        raise HTTPException(status_code=400, detail=error)

    memory = await memories.store(user_id, body.session_id, body.content, body.memory_type)
    logger.info("Player stored %s memory %s for user %s", memory.memory_type, memory.id, user_id)
    return {"stored": True, "id": memory.id, "memory_type": memory.memory_type}
