"""Conversation schemas — messages exchanged with clients and the model."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from lore_engine.models.player import PlayerState


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ToolCallRequest(BaseModel):
    """A model's request to invoke a tool. Opaque until matched against a catalog."""

    call_id: str
    name: str
    arguments: dict[str, Any] | None = None


class ChatMessage(BaseModel):
    role: str
    content: str | None = None
    tool_calls: list[ToolCallRequest] | None = None
    tool_call_id: str | None = None
    author_name: str | None = None


class ToolDefinition(BaseModel):
    """A client-side tool declared by the caller (checked against the allowlist)."""

    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = None


class ToolSchema(BaseModel):
    """A server tool as advertised to the model."""

    name: str
    description: str
    parameters: dict[str, Any]


class GameEvent(BaseModel):
    """Audit / client-notification record for one applied tool result or achievement."""

    type: str
    data: Any = None


# --- Request / response bodies ---


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)
    session_id: str | None = None
    client_tools: list[ToolDefinition] | None = None


class ChatResponse(BaseModel):
    messages: list[ChatMessage]
    session_id: str | None = None


class PlayResponse(BaseModel):
    messages: list[ChatMessage]
    session_id: str | None = None
    player_state: PlayerState
    game_events: list[GameEvent] = []


class NewGameRequest(BaseModel):
    character_name: str | None = None
    character_class: str | None = None


class TwistRequest(BaseModel):
    category: str | None = None


class StoreMemoryRequest(BaseModel):
    content: str = ""
    memory_type: str | None = None
    session_id: str | None = None
