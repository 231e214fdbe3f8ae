"""Play API — Dungeon Master turns, player state, new game, twists, map and achievements."""

from __future__ import annotations

import dataclasses
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from lore_engine.api.deps import (
    get_conversation_store,
    get_memory_store,
    get_state_store,
    latest_user_message,
    model_history,
    new_deadline,
    resolve_session,
    validate_request,
)
from lore_engine.domain import achievements
from lore_engine.domain.new_game import new_player_state
from lore_engine.domain.orchestrator import game_orchestrator
from lore_engine.domain.streaming import StreamEmitter
from lore_engine.domain.world import random_twist, render_map
from lore_engine.infra.auth import get_current_user_id
from lore_engine.infra.config import settings
from lore_engine.infra.conversation_store import ConversationStore
from lore_engine.infra.memory_store import MemoryStore
from lore_engine.infra.state_store import StateStore
from lore_engine.models.chat import ChatRequest, NewGameRequest, PlayResponse, TwistRequest
from lore_engine.models.player import PlayerState
from lore_engine.modules.llm.client import ChatProvider, get_provider
from lore_engine.modules.llm.prompts import build_dm_prompt
from lore_engine.security.validator import validate_text

router = APIRouter(prefix="/api/play", tags=["play"])

UserId = Annotated[str, Depends(get_current_user_id)]
States = Annotated[StateStore, Depends(get_state_store)]
Conversations = Annotated[ConversationStore, Depends(get_conversation_store)]
Memories = Annotated[MemoryStore, Depends(get_memory_store)]
Provider = Annotated[ChatProvider, Depends(get_provider)]


@router.post("/", response_model=PlayResponse)
async def play(
    body: ChatRequest,
    user_id: UserId,
    states: States,
    conversations: Conversations,
    memories: Memories,
    provider: Provider,
) -> PlayResponse:
    """Run one Dungeon Master turn and return the narration with its game events."""
    messages = validate_request(body)
    deadline = new_deadline()

    state = await deadline.run(states.load_or_create(user_id))
    recalled = await deadline.run(memories.recent(user_id, settings.memory_recall_limit))
    session_id = await resolve_session(conversations, user_id, body.session_id)
    await conversations.append_messages(session_id, latest_user_message(messages))

    orchestrator = game_orchestrator(provider, states, user_id, memories=memories, session_id=session_id)
    outcome = await orchestrator.run(
        model_history(build_dm_prompt(state, recalled), messages), state, deadline
    )
    await conversations.append_messages(session_id, [outcome.reply])

    return PlayResponse(
        messages=[outcome.reply],
        session_id=session_id,
        player_state=outcome.state,
        game_events=outcome.events,
    )


@router.post("/stream")
async def play_stream(
    body: ChatRequest,
    user_id: UserId,
    states: States,
    conversations: Conversations,
    memories: Memories,
    provider: Provider,
) -> StreamingResponse:
    """Same turn as ``POST /`` delivered as server-sent events."""
    messages = validate_request(body)
    deadline = new_deadline()

    state = await deadline.run(states.load_or_create(user_id))
    recalled = await deadline.run(memories.recent(user_id, settings.memory_recall_limit))
    session_id = await resolve_session(conversations, user_id, body.session_id)
    await conversations.append_messages(session_id, latest_user_message(messages))

    orchestrator = game_orchestrator(provider, states, user_id, memories=memories, session_id=session_id)
    emitter = StreamEmitter(orchestrator, conversations, session_id)
    return StreamingResponse(
        emitter.emit(model_history(build_dm_prompt(state, recalled), messages), state, deadline),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/state", response_model=PlayerState)
async def get_state(user_id: UserId, states: States) -> PlayerState:
    return await states.load_or_create(user_id)


@router.post("/new-game", response_model=PlayerState)
async def new_game(
    user_id: UserId, states: States, body: NewGameRequest | None = None
) -> PlayerState:
    body = body or NewGameRequest()
    # Both fields are rendered into the system prompt.
    for text in (body.character_name, body.character_class):
        error = validate_text(text)
        if error is not None:
            raise HTTPException(status_code=400, detail=error)
    state = new_player_state(user_id, body.character_name, body.character_class)
    return await states.reset(user_id, state)


@router.post("/twist")
async def twist_of_fate(
    user_id: UserId, states: States, body: TwistRequest | None = None
) -> dict:
    """Draw a Twist of Fate for the player to weave into their next action."""
    twist = random_twist(body.category if body else None)

    state = await states.load_or_create(user_id)
    before = set(state.unlocked_achievements)
    state.unlocked_achievements.add("twist-of-fate")
    achievements.sweep(state)
    state = await states.save(user_id, state)

    unlocked = [
        dataclasses.asdict(a)
        for a in achievements.CATALOG
        if a.id in state.unlocked_achievements and a.id not in before
    ]
    return {
        "twist": dataclasses.asdict(twist),
        "new_achievements": unlocked,
        "player_state": state.model_dump(mode="json"),
    }


@router.get("/map")
async def world_map(user_id: UserId, states: States) -> dict:
    state = await states.load_or_create(user_id)
    return {
        "map": render_map(state.location, state.visited_locations),
        "location": state.location,
        "visited": sorted(state.visited_locations),
    }


@router.get("/achievements")
async def list_achievements(user_id: UserId, states: States) -> dict:
    state = await states.load_or_create(user_id)
    entries = [
        {**dataclasses.asdict(a), "unlocked": a.id in state.unlocked_achievements}
        for a in achievements.CATALOG
    ]
    return {
        "achievements": entries,
        "unlocked": sum(1 for e in entries if e["unlocked"]),
        "total": len(entries),
    }
