"""Server-sent-event rendition of one orchestration run.

Wire format: ``event: <name>\\ndata: <json>\\n\\n`` with the events
``tool-result``, ``text-delta``, ``state``, ``error`` and ``done``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from typing import Any

from lore_engine.domain.orchestrator import Orchestrator, Outcome
from lore_engine.infra.config import settings
from lore_engine.infra.conversation_store import ConversationStore
from lore_engine.infra.deadline import Deadline
from lore_engine.infra.state_store import StateConflictError
from lore_engine.models.chat import ChatMessage, GameEvent
from lore_engine.models.player import PlayerState

logger = logging.getLogger("lore-engine.streaming")

_TOKEN_RE = re.compile(r"\s*\S+|\s+")


def sse_event(name: str, data: Any) -> str:
    return f"event: {name}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


def chunk_text(text: str, size: int) -> list[str]:
    """Split ``text`` into word-aligned pieces of roughly ``size`` characters.

    Joining the pieces gives back ``text`` exactly. A single word longer than
    ``size`` becomes its own piece.
    """
    chunks: list[str] = []
    current = ""
    for token in _TOKEN_RE.findall(text):
        if current and len(current) + len(token) > size:
            chunks.append(current)
            current = ""
        current += token
    if current:
        chunks.append(current)
    return chunks


class StreamEmitter:
    def __init__(
        self,
        orchestrator: Orchestrator,
        conversations: ConversationStore,
        session_id: str,
        *,
        chunk_size: int | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.conversations = conversations
        self.session_id = session_id
        self.chunk_size = chunk_size or settings.stream_chunk_size

    async def emit(
        self, history: Sequence[ChatMessage], state: PlayerState | None, deadline: Deadline
    ) -> AsyncIterator[str]:
        produced: list[str] = []
        try:
            outcome: Outcome | None = None
            async with aclosing(self.orchestrator.steps(history, state, deadline)) as steps:
                async for step in steps:
                    if isinstance(step, GameEvent):
                        yield sse_event("tool-result", step.model_dump(mode="json"))
                    else:
                        outcome = step

            assert outcome is not None
            # Text is already filtered; chunking happens after filtering.
            for piece in chunk_text(outcome.text, self.chunk_size):
                produced.append(piece)
                yield sse_event("text-delta", {"text": piece})

            if outcome.state is not None:
                yield sse_event("state", outcome.state.model_dump(mode="json"))
            yield sse_event("done", {"session_id": self.session_id})

        except StateConflictError as exc:
            logger.warning("Stream save conflict: %s", exc)
            yield sse_event(
                "error",
                {"error": "The game state changed during this turn. Please retry.", "retryable": True},
            )
        except (asyncio.CancelledError, GeneratorExit):
            logger.info("Client disconnected from stream %s", self.session_id)
            raise
        except Exception:
            logger.exception("Stream failed for session %s", self.session_id)
            yield sse_event("error", {"error": "An internal error occurred"})
        finally:
            if produced:
                await self._persist("".join(produced))

    async def _persist(self, text: str) -> None:
        try:
            await asyncio.shield(
                self.conversations.append_messages(
                    self.session_id, [ChatMessage(role="assistant", content=text)]
                )
            )
        except Exception:
            logger.exception("Failed to persist streamed reply for session %s", self.session_id)
