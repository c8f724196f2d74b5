"""Tests for the FastAPI server."""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from chat_library.library import Library
from chat_library.server import create_app


@pytest.fixture
def app(library):
    return create_app(library)


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def test_apps_do_not_share_state():
    first, second = create_app(), create_app()
    assert first.state.library is not second.state.library
    assert isinstance(first.state.library, Library)


@pytest.mark.asyncio
async def test_list_threads(client):
    resp = await client.get("/api/threads")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 3
    assert [t["id"] for t in data["threads"]] == ["a", "b", "c"]
    # stale group reference is reported as no group
    assert data["threads"][1]["group_id"] is None


@pytest.mark.asyncio
async def test_list_threads_with_search(client):
    resp = await client.get("/api/threads", params={"search": "KYOTO"})
    assert [t["id"] for t in resp.json()["threads"]] == ["a"]


@pytest.mark.asyncio
async def test_list_threads_by_group(client):
    resp = await client.get("/api/threads", params={"group": "g1"})
    assert [t["id"] for t in resp.json()["threads"]] == ["a"]

    resp = await client.get("/api/threads", params={"group": "uncategorized"})
    assert [t["id"] for t in resp.json()["threads"]] == ["b", "c"]


@pytest.mark.asyncio
async def test_create_and_restore_thread(client):
    resp = await client.post("/api/threads", json={"title": "Fresh"})
    assert resp.status_code == 201
    thread_id = resp.json()["id"]

    resp = await client.post(f"/api/threads/{thread_id}/messages", json={"role": "user", "content": "hi"})
    assert resp.status_code == 201

    resp = await client.get(f"/api/threads/{thread_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["title"] == "Fresh"
    assert data["messages"] == [{"role": "user", "content": "hi"}]

    resp = await client.get("/api/threads")
    assert resp.json()["threads"][0]["id"] == thread_id


@pytest.mark.asyncio
async def test_restore_missing_thread(client):
    resp = await client.get("/api/threads/nope")
    assert resp.status_code == 404
    resp = await client.post("/api/threads/nope/messages", json={"content": "x"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_thread(client, store):
    resp = await client.patch("/api/threads/c", json={"title": "Dinners", "group_id": "g1"})
    assert resp.status_code == 200
    assert resp.json()["group_id"] == "g1"
    assert store.get_thread("c").title == "Dinners"

    resp = await client.patch("/api/threads/c", json={"group_id": None})
    assert resp.json()["group_id"] is None
    assert store.get_thread("c").group_id is None


@pytest.mark.asyncio
async def test_update_thread_blank_title_changes_nothing(client, store):
    resp = await client.patch("/api/threads/c", json={"title": "  ", "group_id": "g1"})
    assert resp.status_code == 422
    assert store.get_thread("c").title == "Dinner ideas"
    assert store.get_thread("c").group_id is None


@pytest.mark.asyncio
async def test_delete_thread(client, store):
    assert (await client.delete("/api/threads/a")).status_code == 200
    assert (await client.delete("/api/threads/a")).status_code == 200
    assert store.get_thread("a") is None

    assert (await client.delete("/api/threads")).status_code == 200
    assert store.threads == []


@pytest.mark.asyncio
async def test_thread_markdown(client):
    resp = await client.get("/api/threads/a/markdown")
    assert resp.status_code == 200
    assert "text/markdown" in resp.headers.get("content-type", "")
    assert 'filename="Trip.md"' in resp.headers["content-disposition"]
    assert "**Group:** Travel" in resp.text


@pytest.mark.asyncio
async def test_library_view(client):
    resp = await client.get("/api/library")
    data = resp.json()
    assert [g["id"] for g in data["groups"]] == ["g1"]
    assert data["groups"][0]["name"] == "Travel"
    assert [t["id"] for t in data["groups"][0]["threads"]] == ["a"]
    assert [t["id"] for t in data["uncategorized"]] == ["b", "c"]


@pytest.mark.asyncio
async def test_library_view_after_group_deleted(client):
    resp = await client.delete("/api/groups/g1")
    assert resp.status_code == 200
    data = (await client.get("/api/library")).json()
    assert data["groups"] == []
    assert [t["id"] for t in data["uncategorized"]] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_library_view_keeps_group_shell_when_filtered(client):
    data = (await client.get("/api/library", params={"search": "miso"})).json()
    assert data["groups"] == [{"id": "g1", "name": "Travel", "threads": []}]
    assert [t["id"] for t in data["uncategorized"]] == ["c"]


@pytest.mark.asyncio
async def test_group_lifecycle(client):
    resp = await client.post("/api/groups", json={"name": " Work "})
    assert resp.status_code == 201
    group = resp.json()
    assert group["name"] == "Work"

    resp = await client.patch(f"/api/groups/{group['id']}", json={"name": "Office"})
    assert resp.json()["name"] == "Office"

    resp = await client.patch(f"/api/groups/{group['id']}", json={"name": "   "})
    assert resp.status_code == 422

    resp = await client.get("/api/groups")
    assert [g["name"] for g in resp.json()] == ["Travel", "Office"]

    assert (await client.delete(f"/api/groups/{group['id']}")).status_code == 200
    assert (await client.delete(f"/api/groups/{group['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_create_group_blank_name(client):
    resp = await client.post("/api/groups", json={"name": ""})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_history(client):
    resp = await client.post("/api/history", json={"title": "Kyoto map", "url": "https://maps.example.com/kyoto"})
    assert resp.status_code == 201
    resp = await client.post("/api/history", json={"title": "q", "url": "u", "type": "bookmark"})
    assert resp.status_code == 422

    resp = await client.get("/api/history", params={"search": "maps.example"})
    assert resp.json()["total"] == 1

    assert (await client.delete("/api/history")).status_code == 200
    assert (await client.get("/api/history")).json()["total"] == 0


@pytest.mark.asyncio
async def test_export(client):
    resp = await client.get("/api/export")
    assert resp.status_code == 200
    assert "application/json" in resp.headers.get("content-type", "")
    assert 'filename="chat-library-conversations.json"' in resp.headers["content-disposition"]
    data = json.loads(resp.text)
    assert [t["id"] for t in data] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_import_round_trip(client, store):
    exported = (await client.get("/api/export")).text
    await client.delete("/api/threads")

    resp = await client.post("/api/import", content=exported)
    assert resp.status_code == 200
    assert resp.json() == {"imported": 3}
    assert [t.id for t in store.threads] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_import_rejects_object(client, store):
    resp = await client.post("/api/import", content=json.dumps({"id": "x", "messages": []}))
    assert resp.status_code == 400
    assert len(store.threads) == 3
