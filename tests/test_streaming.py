"""Tests for the SSE stream emitter."""

import asyncio
import json

import pytest

from lore_engine.domain.orchestrator import game_orchestrator
from lore_engine.domain.streaming import StreamEmitter, chunk_text, sse_event
from lore_engine.infra.deadline import Deadline
from lore_engine.infra.state_store import InMemoryStateStore
from lore_engine.models.chat import ChatMessage
from lore_engine.modules.llm.client import MockProvider

HISTORY = [ChatMessage(role="system", content="DM"), ChatMessage(role="user", content="Go on")]


def parse(frames: list[str]) -> list[tuple[str, dict]]:
    events = []
    for frame in frames:
        assert frame.endswith("\n\n")
        name_line, data_line = frame.strip("\n").split("\n")
        assert name_line.startswith("event: ")
        assert data_line.startswith("data: ")
        events.append((name_line[len("event: "):], json.loads(data_line[len("data: "):])))
    return events


def test_sse_event_format():
    assert sse_event("done", {"session_id": "s1"}) == 'event: done\ndata: {"session_id": "s1"}\n\n'


def test_sse_event_keeps_unicode():
    assert "🐉" in sse_event("text-delta", {"text": "🐉"})


class TestChunkText:
    def test_rejoins_exactly(self):
        text = "You step into the  ruined hall.\n\n```ascii\n /\\ \n```\nWhat do you do?"
        assert "".join(chunk_text(text, 10)) == text

    def test_respects_size_at_word_boundaries(self):
        chunks = chunk_text("alpha beta gamma delta epsilon", 12)
        assert all(len(c) <= 12 for c in chunks)
        assert len(chunks) > 1

    def test_long_word_kept_whole(self):
        assert chunk_text("supercalifragilistic", 5) == ["supercalifragilistic"]

    def test_empty(self):
        assert chunk_text("", 10) == []


@pytest.fixture
def store():
    return InMemoryStateStore()


@pytest.mark.asyncio
async def test_stream_order_and_persistence(store, conversation_store):
    provider = MockProvider()
    provider.enqueue_tool_call("ModifyGold", {"amount": 5})
    provider.enqueue_text("The merchant <script>x()</script> pays you five gold pieces for the old map.")
    session_id = await conversation_store.create_session("u1")
    state = await store.load_or_create("u1")

    emitter = StreamEmitter(game_orchestrator(provider, store, "u1"), conversation_store, session_id, chunk_size=16)
    events = parse([frame async for frame in emitter.emit(HISTORY, state, Deadline(30))])

    names = [name for name, _ in events]
    assert names[0] == "tool-result"
    assert events[0][1] == {"type": "ModifyGold", "data": {"kind": "gold", "amount": 5, "reason": ""}}
    assert names[-2:] == ["state", "done"]
    assert events[-1][1] == {"session_id": session_id}
    assert events[-2][1]["gold"] == 15

    deltas = [data["text"] for name, data in events if name == "text-delta"]
    assert len(deltas) > 1
    text = "".join(deltas)
    assert "<script" not in text
    assert "[content removed]" in text

    history = await conversation_store.get_history(session_id)
    assert history[-1].role == "assistant"
    assert history[-1].content == text


@pytest.mark.asyncio
async def test_conflict_becomes_error_event(store, conversation_store):
    provider = MockProvider()
    provider.enqueue_text("Hello.")
    session_id = await conversation_store.create_session("u1")
    state = await store.load_or_create("u1")
    await store.save("u1", await store.load_or_create("u1"))

    emitter = StreamEmitter(game_orchestrator(provider, store, "u1"), conversation_store, session_id)
    events = parse([frame async for frame in emitter.emit(HISTORY, state, Deadline(30))])

    assert events[-1][0] == "error"
    assert events[-1][1]["retryable"] is True
    assert await conversation_store.get_history(session_id) == []


@pytest.mark.asyncio
async def test_unexpected_failure_is_generic_error(store, conversation_store):
    class BrokenStore(InMemoryStateStore):
        async def save(self, user_id, state):
            raise RuntimeError("disk on fire at /var/secret")

    broken = BrokenStore()
    provider = MockProvider()
    provider.enqueue_text("Hello.")
    session_id = await conversation_store.create_session("u1")
    state = await broken.load_or_create("u1")

    emitter = StreamEmitter(game_orchestrator(provider, broken, "u1"), conversation_store, session_id)
    events = parse([frame async for frame in emitter.emit(HISTORY, state, Deadline(30))])

    assert events[-1] == ("error", {"error": "An internal error occurred"})


@pytest.mark.asyncio
async def test_disconnect_persists_partial_text(store, conversation_store):
    provider = MockProvider()
    provider.enqueue_text("one two three four five six seven eight nine ten eleven twelve")
    session_id = await conversation_store.create_session("u1")
    state = await store.load_or_create("u1")

    emitter = StreamEmitter(game_orchestrator(provider, store, "u1"), conversation_store, session_id, chunk_size=8)
    stream = emitter.emit(HISTORY, state, Deadline(30))
    received = []
    async for frame in stream:
        received.append(frame)
        if len(received) == 2:
            break
    await stream.aclose()

    sent = "".join(data["text"] for name, data in parse(received) if name == "text-delta")
    history = await conversation_store.get_history(session_id)
    assert history[-1].content == sent
    assert sent.startswith("one")

    # The turn itself was already saved before any text went out.
    assert (await store.load_or_create("u1")).version == 1


@pytest.mark.asyncio
async def test_cancelled_consumer_does_not_leak(store, conversation_store):
    class Blocking(MockProvider):
        async def respond(self, messages, tools, deadline):
            await asyncio.sleep(3600)

    session_id = await conversation_store.create_session("u1")
    state = await store.load_or_create("u1")
    emitter = StreamEmitter(game_orchestrator(Blocking(), store, "u1"), conversation_store, session_id)

    async def consume():
        return [frame async for frame in emitter.emit(HISTORY, state, Deadline(30))]

    task = asyncio.create_task(consume())
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert await conversation_store.get_history(session_id) == []
