"""Integration tests for the sessions API."""

import pytest

from lore_engine.models.chat import ChatMessage


@pytest.mark.asyncio
async def test_create_and_list(client, auth_headers):
    headers = auth_headers("alice")
    created = await client.post("/api/sessions/", headers=headers)
    assert created.status_code == 200
    session_id = created.json()["session_id"]

    listed = await client.get("/api/sessions/", headers=headers)
    assert [s["id"] for s in listed.json()] == [session_id]

    others = await client.get("/api/sessions/", headers=auth_headers("bob"))
    assert others.json() == []


@pytest.mark.asyncio
async def test_history(client, auth_headers, conversation_store):
    session_id = await conversation_store.create_session("alice")
    await conversation_store.append_messages(
        session_id,
        [
            ChatMessage(role="user", content="Where am I?"),
            ChatMessage(role="assistant", content="At the crossroads."),
        ],
    )

    resp = await client.get(f"/api/sessions/{session_id}/history", headers=auth_headers("alice"))
    assert resp.status_code == 200
    assert resp.json() == {
        "session_id": session_id,
        "messages": [
            {"role": "user", "content": "Where am I?", "author_name": None},
            {"role": "assistant", "content": "At the crossroads.", "author_name": None},
        ],
    }


@pytest.mark.asyncio
async def test_history_access_rules(client, auth_headers, conversation_store):
    session_id = await conversation_store.create_session("alice")

    foreign = await client.get(f"/api/sessions/{session_id}/history", headers=auth_headers("mallory"))
    assert foreign.status_code == 403
    assert foreign.json() == {"error": "Session access denied."}

    missing = await client.get("/api/sessions/does-not-exist/history", headers=auth_headers("alice"))
    assert missing.status_code == 404

    too_long = await client.get(f"/api/sessions/{'s' * 129}/history", headers=auth_headers("alice"))
    assert too_long.status_code == 400


@pytest.mark.asyncio
async def test_play_turns_land_in_listed_session(client, auth_headers, provider):
    headers = auth_headers("alice")
    provider.enqueue_text("The road forks.")
    first = await client.post(
        "/api/play/", json={"messages": [{"role": "user", "content": "I walk north"}]}, headers=headers
    )
    session_id = first.json()["session_id"]

    [summary] = (await client.get("/api/sessions/", headers=headers)).json()
    assert summary["id"] == session_id
    assert summary["title"] == "I walk north"
