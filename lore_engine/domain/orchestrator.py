"""Tool-calling orchestration loop.

One run alternates between asking the model for its next message and
executing the tool calls it requests, until the model answers in plain text
or the round bound is hit. Every tool result is folded into the player state
before the next model call, so the model always sees the effect of its own
calls.

``steps`` is an async generator: it yields a :class:`GameEvent` the moment a
tool result (or the achievement it unlocks) is applied, and finishes with a
single :class:`Outcome`. ``run`` drains it for the non-streaming endpoints.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from lore_engine.domain import achievements, reducer
from lore_engine.domain.memories import memory_for, narration_summary
from lore_engine.domain.catalog import ToolCatalog, ToolNotFoundError
from lore_engine.domain.game_tools import game_catalog
from lore_engine.domain.story_tools import story_catalog
from lore_engine.infra.config import settings
from lore_engine.infra.deadline import Deadline, DeadlineExceeded
from lore_engine.infra.memory_store import MemoryStore
from lore_engine.infra.state_store import StateConflictError, StateStore
from lore_engine.models.chat import ChatMessage, GameEvent, ToolCallRequest
from lore_engine.models.player import PlayerState
from lore_engine.modules.llm.client import ChatProvider
from lore_engine.security.content_filter import filter_text

logger = logging.getLogger("lore-engine.orchestrator")

GAME_LIMIT_MESSAGE = "The threads of fate grow tangled... (Tool limit reached)"
CHAT_LIMIT_MESSAGE = "Tool processing limit reached."
TIMEOUT_MESSAGE = "The request took too long and was stopped. Please try again."
MODEL_ERROR_MESSAGE = "The storyteller could not respond right now. Please try again."
TOOL_FAILURE_MESSAGE = "Tool error: the tool could not be executed."

# Outcome statuses
COMPLETED = "completed"
LIMIT_REACHED = "limit_reached"
TIMEOUT = "timeout"
MODEL_ERROR = "model_error"


@dataclass
class Outcome:
    status: str
    reply: ChatMessage
    history: list[ChatMessage]
    state: PlayerState | None
    events: list[GameEvent] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.reply.content or ""


class Orchestrator:
    """Drives one request's model/tool rounds.

    ``store`` and ``user_id`` are only needed when a player state is passed
    to :meth:`steps`; the storytelling path runs without one.
    With ``memories`` set, notable tool results and the final narration are
    remembered under ``session_id``.
    """

    def __init__(
        self,
        provider: ChatProvider,
        catalog: ToolCatalog,
        *,
        max_rounds: int,
        limit_message: str,
        max_tool_result_length: int | None = None,
        store: StateStore | None = None,
        user_id: str | None = None,
        memories: MemoryStore | None = None,
        session_id: str | None = None,
    ) -> None:
        self.provider = provider
        self.catalog = catalog
        self.max_rounds = max_rounds
        self.limit_message = limit_message
        self.max_tool_result_length = (
            max_tool_result_length
            if max_tool_result_length is not None
            else settings.max_tool_result_length
        )
        self.store = store
        self.user_id = user_id
        self.memories = memories
        self.session_id = session_id

    async def run(
        self, history: Sequence[ChatMessage], state: PlayerState | None, deadline: Deadline
    ) -> Outcome:
        outcome: Outcome | None = None
        async for step in self.steps(history, state, deadline):
            if isinstance(step, Outcome):
                outcome = step
        assert outcome is not None
        return outcome

    async def steps(
        self, history: Sequence[ChatMessage], state: PlayerState | None, deadline: Deadline
    ) -> AsyncIterator[GameEvent | Outcome]:
        messages = [m.model_copy(deep=True) for m in history]
        events: list[GameEvent] = []
        tools = self.catalog.list_tools()
        if state is not None and self.store is None:
            raise ValueError("A state store is required when running with player state")
        if state is not None:
            state = state.model_copy(deep=True)
        # Tracks whether ``state`` holds changes the store has not seen yet.
        dirty = False

        try:
            try:
                for _ in range(self.max_rounds):
                    deadline.check()
                    try:
                        reply = await deadline.run(self.provider.respond(messages, tools, deadline))
                    except DeadlineExceeded:
                        raise
                    except Exception:
                        logger.exception("Model call failed for user %s", self.user_id)
                        state = await self._save_after_failure(state, deadline)
                        dirty = False
                        yield self._finish(MODEL_ERROR, MODEL_ERROR_MESSAGE, messages, state, events)
                        return

                    if not reply.tool_calls:
                        if state is not None:
                            before = set(state.unlocked_achievements)
                            achievements.sweep(state)
                            for event in _achievement_events(before, state):
                                events.append(event)
                                yield event
                            state = await self._save(state, deadline)
                            dirty = False
                        outcome = self._finish(COMPLETED, reply.content or "", messages, state, events)
                        if outcome.text:
                            summary = narration_summary(outcome.text, settings.memory_summary_length)
                            await self._remember("event", summary, deadline)
                        yield outcome
                        return

                    messages.append(reply)
                    for call in reply.tool_calls:
                        deadline.check()
                        state, tool_message, new_events, note = self._execute(call, state)
                        messages.append(tool_message)
                        if new_events and state is not None:
                            dirty = True
                        for event in new_events:
                            events.append(event)
                            yield event
                        if note is not None:
                            await self._remember(*note, deadline)

                logger.warning("Tool round limit (%d) reached for user %s", self.max_rounds, self.user_id)
                if state is not None:
                    state = await self._save(state, deadline)
                    dirty = False
                yield self._finish(LIMIT_REACHED, self.limit_message, messages, state, events)

            except DeadlineExceeded:
                logger.warning("Request deadline exceeded for user %s", self.user_id)
                state = await self._save_after_failure(state, deadline)
                dirty = False
                yield self._finish(TIMEOUT, TIMEOUT_MESSAGE, messages, state, events)

        except (asyncio.CancelledError, GeneratorExit):
            # Client went away mid-run: keep what was already applied.
            if dirty and state is not None:
                await self._save_quietly(state, deadline)
            raise

    def _execute(
        self, call: ToolCallRequest, state: PlayerState | None
    ) -> tuple[PlayerState | None, ChatMessage, list[GameEvent], tuple[str, str] | None]:
        """Dispatch one tool call and fold its result; never raises for tool faults.

        The last element is the memory to keep for this result, if any.
        """
        try:
            result = self.catalog.dispatch(call.name, call.arguments)
            before = set(state.unlocked_achievements) if state is not None else set()
            if state is not None:
                state, view = reducer.apply(result, state)
            else:
                view = result.model_dump(mode="json")
        except ToolNotFoundError:
            logger.warning("Model requested unknown tool %r", call.name)
            return state, _tool_message(call.call_id, TOOL_FAILURE_MESSAGE), [], None
        except Exception:
            logger.exception("Tool %s failed", call.name)
            return state, _tool_message(call.call_id, TOOL_FAILURE_MESSAGE), [], None

        logger.info("Tool %s executed for user %s", call.name, self.user_id)
        events = [GameEvent(type=call.name, data=view)]
        if state is not None:
            events.extend(_achievement_events(before, state))

        payload = result.model_dump_json()
        if len(payload) > self.max_tool_result_length:
            payload = payload[: self.max_tool_result_length]
        return state, _tool_message(call.call_id, payload), events, memory_for(result)

    def _finish(
        self,
        status: str,
        text: str,
        messages: list[ChatMessage],
        state: PlayerState | None,
        events: list[GameEvent],
    ) -> Outcome:
        reply = ChatMessage(role="assistant", content=filter_text(text))
        messages.append(reply)
        return Outcome(status=status, reply=reply, history=messages, state=state, events=events)

    async def _remember(self, memory_type: str, content: str, deadline: Deadline) -> None:
        """Best-effort; a failed memory write never fails the turn."""
        if self.memories is None or self.user_id is None:
            return
        try:
            await deadline.run(
                self.memories.store(self.user_id, self.session_id, content, memory_type), cleanup=True
            )
        except Exception:
            logger.exception("Failed to store %s memory for user %s", memory_type, self.user_id)

    async def _save(self, state: PlayerState, deadline: Deadline) -> PlayerState:
        assert self.store is not None and self.user_id is not None
        return await deadline.run(self.store.save(self.user_id, state), cleanup=True)

    async def _save_after_failure(
        self, state: PlayerState | None, deadline: Deadline
    ) -> PlayerState | None:
        """Best-effort save on the degraded paths. Conflicts still surface."""
        if state is None:
            return state
        try:
            return await self._save(state, deadline)
        except StateConflictError:
            raise
        except Exception:
            logger.exception("Best-effort state save failed for user %s", self.user_id)
            return state

    async def _save_quietly(self, state: PlayerState, deadline: Deadline) -> None:
        try:
            await asyncio.shield(self._save(state, deadline))
        except Exception:
            logger.exception("State save after cancellation failed for user %s", self.user_id)


def _tool_message(call_id: str, content: str) -> ChatMessage:
    return ChatMessage(role="tool", tool_call_id=call_id, content=content)


def _achievement_events(before: set[str], state: PlayerState) -> list[GameEvent]:
    """One event per achievement unlocked since ``before``, in catalog order."""
    return [
        GameEvent(type="achievement", data=dataclasses.asdict(a))
        for a in achievements.CATALOG
        if a.id in state.unlocked_achievements and a.id not in before
    ]


def game_orchestrator(
    provider: ChatProvider,
    store: StateStore,
    user_id: str,
    *,
    memories: MemoryStore | None = None,
    session_id: str | None = None,
) -> Orchestrator:
    return Orchestrator(
        provider,
        game_catalog(),
        max_rounds=settings.game_max_rounds,
        limit_message=GAME_LIMIT_MESSAGE,
        store=store,
        user_id=user_id,
        memories=memories,
        session_id=session_id,
    )


def chat_orchestrator(provider: ChatProvider, user_id: str | None = None) -> Orchestrator:
    return Orchestrator(
        provider,
        story_catalog(),
        max_rounds=settings.chat_max_rounds,
        limit_message=CHAT_LIMIT_MESSAGE,
        user_id=user_id,
    )
