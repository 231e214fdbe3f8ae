"""LLM provider abstraction — OpenAI-compatible tool calling, and a scripted Mock."""

from __future__ import annotations

import json
import uuid
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable
from typing import Any

from lore_engine.infra.config import settings
from lore_engine.infra.deadline import Deadline
from lore_engine.models.chat import ChatMessage, ToolCallRequest, ToolSchema


class ChatProvider(ABC):
    @abstractmethod
    async def respond(
        self, messages: list[ChatMessage], tools: list[ToolSchema], deadline: Deadline
    ) -> ChatMessage:
        """Return the model's next assistant message (text and/or tool calls)."""


class OpenAIProvider(ChatProvider):
    """OpenAI-compatible API provider (works with any OpenAI-compatible endpoint)."""

    def __init__(self, api_key: str, base_url: str, model: str) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model

    async def respond(
        self, messages: list[ChatMessage], tools: list[ToolSchema], deadline: Deadline
    ) -> ChatMessage:
        import httpx

        body: dict[str, Any] = {
            "model": self.model,
            "messages": [_to_openai(m) for m in messages],
        }
        if tools:
            body["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": t.name,
                        "description": t.description,
                        "parameters": t.parameters,
                    },
                }
                for t in tools
            ]

        # The socket timeout follows the request deadline rather than a fixed value.
        async with httpx.AsyncClient(timeout=max(deadline.remaining(), 1.0)) as client:
            resp = await client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=body,
            )
            resp.raise_for_status()
            return _from_openai(resp.json()["choices"][0]["message"])


def _to_openai(message: ChatMessage) -> dict[str, Any]:
    if message.role == "tool":
        return {"role": "tool", "tool_call_id": message.tool_call_id, "content": message.content or ""}
    out: dict[str, Any] = {"role": message.role, "content": message.content}
    if message.tool_calls:
        out["tool_calls"] = [
            {
                "id": call.call_id,
                "type": "function",
                "function": {"name": call.name, "arguments": json.dumps(call.arguments or {})},
            }
            for call in message.tool_calls
        ]
    return out


def _from_openai(raw: dict[str, Any]) -> ChatMessage:
    calls = []
    for call in raw.get("tool_calls") or []:
        function = call.get("function") or {}
        try:
            arguments = json.loads(function.get("arguments") or "{}")
        except json.JSONDecodeError:
            arguments = None
        calls.append(
            ToolCallRequest(
                call_id=call.get("id") or f"call_{uuid.uuid4().hex[:12]}",
                name=function.get("name", ""),
                arguments=arguments if isinstance(arguments, dict) else None,
            )
        )
    return ChatMessage(role="assistant", content=raw.get("content"), tool_calls=calls or None)


class MockProvider(ChatProvider):
    """Returns scripted responses, then canned narration.

    Queued items may be ChatMessages or exceptions (raised when dequeued).
    With tools available and an action verb in the last user message, the
    mock asks for a RollCheck the way a real DM model would.
    """

    COMBAT_WORDS = ("attack", "fight", "slash", "strike", "hit", "stab", "swing", "shoot", "cast")
    SEARCH_WORDS = ("search", "look", "examine", "inspect", "investigate")

    def __init__(self, responses: Iterable[ChatMessage | BaseException] | None = None) -> None:
        self.responses: deque[ChatMessage | BaseException] = deque(responses or [])
        self.received: list[list[ChatMessage]] = []
        self.received_tools: list[list[str]] = []

    def enqueue_text(self, text: str) -> None:
        self.responses.append(ChatMessage(role="assistant", content=text))

    def enqueue_tool_call(
        self, name: str, arguments: dict[str, Any] | None = None, call_id: str | None = None
    ) -> None:
        call = ToolCallRequest(call_id=call_id or f"mock_{uuid.uuid4().hex[:8]}", name=name, arguments=arguments)
        self.responses.append(ChatMessage(role="assistant", tool_calls=[call]))

    async def respond(
        self, messages: list[ChatMessage], tools: list[ToolSchema], deadline: Deadline
    ) -> ChatMessage:
        self.received.append([m.model_copy(deep=True) for m in messages])
        self.received_tools.append([t.name for t in tools])

        if self.responses:
            item = self.responses.popleft()
            if isinstance(item, BaseException):
                raise item
            return item

        if messages and messages[-1].role != "tool" and any(t.name == "RollCheck" for t in tools):
            last_user = next((m.content or "" for m in reversed(messages) if m.role == "user"), "")
            call = self._heuristic_call(last_user.lower())
            if call is not None:
                return ChatMessage(role="assistant", tool_calls=[call])

        return ChatMessage(
            role="assistant",
            content="[MockLLM] The story unfolds before you. What do you do?",
        )

    def _heuristic_call(self, text: str) -> ToolCallRequest | None:
        if any(w in text for w in self.COMBAT_WORDS):
            arguments = {"stat": "dexterity", "difficulty": 10, "action": "Attack with weapon"}
        elif any(w in text for w in self.SEARCH_WORDS):
            arguments = {"stat": "wisdom", "difficulty": 12, "action": "Search the area carefully"}
        else:
            return None
        return ToolCallRequest(call_id=f"mock_{uuid.uuid4().hex[:8]}", name="RollCheck", arguments=arguments)


def get_llm_provider() -> ChatProvider:
    """Factory: return the configured LLM provider."""
    provider_name = settings.llm_provider.lower()
    if provider_name == "openai":
        return OpenAIProvider(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            model=settings.llm_model,
        )
    return MockProvider()


# Module-level singleton, initialized lazily
_provider: ChatProvider | None = None


def get_provider() -> ChatProvider:
    """FastAPI dependency returning the shared provider."""
    global _provider
    if _provider is None:
        _provider = get_llm_provider()
    return _provider
