"""Chat API — the storytelling assistant with server-side story tools."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from lore_engine.api.deps import (
    get_conversation_store,
    latest_user_message,
    model_history,
    new_deadline,
    resolve_session,
    validate_request,
)
from lore_engine.domain.orchestrator import chat_orchestrator
from lore_engine.domain.streaming import StreamEmitter
from lore_engine.infra.auth import get_current_user_id
from lore_engine.infra.conversation_store import ConversationStore
from lore_engine.models.chat import ChatRequest, ChatResponse
from lore_engine.modules.llm.client import ChatProvider, get_provider
from lore_engine.modules.llm.prompts import STORY_SYSTEM_PROMPT

router = APIRouter(prefix="/api/chat", tags=["chat"])

UserId = Annotated[str, Depends(get_current_user_id)]
Conversations = Annotated[ConversationStore, Depends(get_conversation_store)]
Provider = Annotated[ChatProvider, Depends(get_provider)]


@router.post("/", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    user_id: UserId,
    conversations: Conversations,
    provider: Provider,
) -> ChatResponse:
    messages = validate_request(body)
    deadline = new_deadline()

    session_id = await resolve_session(conversations, user_id, body.session_id)
    await conversations.append_messages(session_id, latest_user_message(messages))

    outcome = await chat_orchestrator(provider, user_id).run(
        model_history(STORY_SYSTEM_PROMPT, messages), None, deadline
    )
    await conversations.append_messages(session_id, [outcome.reply])
    return ChatResponse(messages=[outcome.reply], session_id=session_id)


@router.post("/stream")
async def chat_stream(
    body: ChatRequest,
    user_id: UserId,
    conversations: Conversations,
    provider: Provider,
) -> StreamingResponse:
    messages = validate_request(body)
    deadline = new_deadline()

    session_id = await resolve_session(conversations, user_id, body.session_id)
    await conversations.append_messages(session_id, latest_user_message(messages))

    emitter = StreamEmitter(chat_orchestrator(provider, user_id), conversations, session_id)
    return StreamingResponse(
        emitter.emit(model_history(STORY_SYSTEM_PROMPT, messages), None, deadline),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
