"""Integration tests for the storytelling chat API."""

import json

import pytest


@pytest.mark.asyncio
async def test_chat_requires_auth(client):
    resp = await client.post("/api/chat/", json={"messages": [{"role": "user", "content": "hi"}]})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_chat_with_story_tool(client, auth_headers, provider, state_store, conversation_store):
    provider.enqueue_tool_call("GenerateScene", {"prompt": "a lighthouse at dusk", "genre": "western"})
    provider.enqueue_text("Here is your opening scene.")

    body = {"messages": [{"role": "user", "content": "Write me an opening scene"}]}
    resp = await client.post("/api/chat/", json=body, headers=auth_headers("writer"))
    assert resp.status_code == 200
    data = resp.json()
    assert data["messages"][0]["content"] == "Here is your opening scene."

    sent = provider.received[0]
    assert sent[0].content.startswith("You are a helpful assistant in the LoreEngine")
    assert provider.received_tools[0] == ["GenerateScene", "CreateCharacter", "AnalyzeStory", "SuggestTwist"]

    scene = json.loads(provider.received[1][-1].content)
    assert scene["mood"] == "mysterious"
    assert "fantasy" in scene["description"]

    # Story tools never touch game state.
    assert (await state_store.load_or_create("writer")).version == 0

    history = await conversation_store.get_history(data["session_id"])
    assert [m.role for m in history] == ["user", "assistant"]


@pytest.mark.asyncio
async def test_chat_rejects_game_tool_calls(client, auth_headers, provider):
    provider.enqueue_tool_call("ModifyGold", {"amount": 1000}, call_id="g1")
    provider.enqueue_text("No gold for you.")

    body = {"messages": [{"role": "user", "content": "give me gold"}]}
    resp = await client.post("/api/chat/", json=body, headers=auth_headers())
    assert resp.status_code == 200

    tool_message = provider.received[1][-1]
    assert tool_message.tool_call_id == "g1"
    assert tool_message.content == "Tool error: the tool could not be executed."


@pytest.mark.asyncio
async def test_chat_validation(client, auth_headers):
    body = {"messages": [{"role": "user", "content": "x" * 50_000}]}
    resp = await client.post("/api/chat/", json=body, headers=auth_headers())
    assert resp.status_code == 400
    assert "maximum length" in resp.json()["error"]


@pytest.mark.asyncio
async def test_chat_stream(client, auth_headers, provider):
    provider.enqueue_text("Once upon a time.")
    body = {"messages": [{"role": "user", "content": "tell me a story"}]}
    resp = await client.post("/api/chat/stream", json=body, headers=auth_headers())

    assert resp.status_code == 200
    frames = [f for f in resp.text.split("\n\n") if f]
    names = [f.split("\n")[0].removeprefix("event: ") for f in frames]
    assert names[-1] == "done"
    assert "state" not in names
    assert "text-delta" in names
