"""Unit tests for the HTTP API using an in-process store."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from berry.api.app import create_app
from berry.core.exceptions import StorageConnectionError, ValidationError
from berry.memory.service import MemoryService
from berry.storage.memory import InMemoryMemoryStore


@pytest.fixture
def client():
    app = create_app(memory_service=MemoryService(InMemoryMemoryStore()))
    with TestClient(app) as c:
        yield c


def _create(client, content="Buy milk", **metadata):
    metadata.setdefault("owner", "alice")
    metadata.setdefault("visibility", "private")
    resp = client.post(
        "/v1/memory", json={"content": content, "type": "information", "metadata": metadata}
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestHealth:
    def test_healthy(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["services"]["chromadb"] == "connected"

    def test_degraded_returns_503(self):
        store = InMemoryMemoryStore()
        store.health_check = AsyncMock(return_value=False)
        with TestClient(create_app(memory_service=MemoryService(store))) as c:
            resp = c.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"


class TestCreateMemory:
    def test_create(self, client):
        data = _create(client)
        assert data["id"].startswith("mem_")
        assert data["content"] == "Buy milk"
        assert data["type"] == "information"
        assert data["metadata"]["owner"] == "alice"
        assert data["metadata"]["visibility"] == "private"
        assert data["metadata"]["createdBy"] == "user"
        assert data["metadata"]["createdAt"].endswith("Z")

    def test_defaults(self, client):
        resp = client.post("/v1/memory", json={"content": "What time is it?"})
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["type"] == "question"
        assert data["metadata"]["visibility"] == "public"
        assert data["metadata"]["owner"] == "user"

    @pytest.mark.parametrize(
        "payload",
        [
            {"content": ""},
            {"content": "x", "type": "note"},
            {"content": "x", "metadata": {"visibility": "team"}},
            {"content": "x", "metadata": {"owner": ""}},
        ],
    )
    def test_invalid_payload(self, client, payload):
        resp = client.post("/v1/memory", json=payload)
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"]


class TestGetMemory:
    def test_owner_reads(self, client):
        created = _create(client)
        resp = client.get(f"/v1/memory/{created['id']}", params={"asActor": "alice"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": created}

    def test_stranger_denied(self, client):
        created = _create(client)
        resp = client.get(f"/v1/memory/{created['id']}", params={"asActor": "bob"})
        assert resp.status_code == 403
        assert resp.json() == {"success": False, "error": "Access denied"}

    def test_admin_reads(self, client):
        created = _create(client)
        resp = client.get(
            f"/v1/memory/{created['id']}", params={"asActor": "human", "adminAccess": "true"}
        )
        assert resp.status_code == 200

    def test_not_found(self, client):
        resp = client.get("/v1/memory/mem_0_missing00")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Memory not found"}


class TestDeleteMemory:
    def test_non_owner_denied(self, client):
        created = _create(client, visibility="public")
        resp = client.delete(f"/v1/memory/{created['id']}", params={"asActor": "bob"})
        assert resp.status_code == 403
        assert resp.json()["error"] == "Only the owner can delete this memory"
        assert client.get(f"/v1/memory/{created['id']}").status_code == 200

    def test_owner_deletes(self, client):
        created = _create(client)
        resp = client.delete(f"/v1/memory/{created['id']}", params={"asActor": "alice"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": {"id": created["id"]}}
        assert client.get(f"/v1/memory/{created['id']}").status_code == 404

    def test_delete_missing(self, client):
        resp = client.delete("/v1/memory/mem_0_missing00", params={"asActor": "alice"})
        assert resp.status_code == 404


class TestUpdateVisibility:
    def test_owner_shares(self, client):
        created = _create(client)
        resp = client.patch(
            f"/v1/memory/{created['id']}/visibility",
            json={"asActor": "alice", "visibility": "shared", "sharedWith": ["bob"]},
        )
        assert resp.status_code == 200
        meta = resp.json()["data"]["metadata"]
        assert meta["visibility"] == "shared"
        assert meta["sharedWith"] == ["bob"]
        assert meta["createdAt"] == created["metadata"]["createdAt"]
        get = client.get(f"/v1/memory/{created['id']}", params={"asActor": "bob"})
        assert get.status_code == 200

    def test_actor_required(self, client):
        created = _create(client)
        resp = client.patch(
            f"/v1/memory/{created['id']}/visibility", json={"visibility": "public"}
        )
        assert resp.status_code == 400

    def test_non_owner_denied(self, client):
        created = _create(client)
        resp = client.patch(
            f"/v1/memory/{created['id']}/visibility",
            json={"asActor": "bob", "visibility": "public"},
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "Only the owner can modify visibility"


class TestSearch:
    def test_search_as_actor(self, client):
        _create(client, "alice private milk")
        _create(client, "public milk", visibility="public")
        resp = client.post("/v1/search", json={"query": "milk", "asActor": "bob"})
        assert resp.status_code == 200
        results = resp.json()["data"]
        assert [r["memory"]["content"] for r in results] == ["public milk"]
        assert results[0]["score"] == 1.0

    def test_search_filters(self, client):
        _create(client, "one", visibility="public", tags=["red"])
        _create(client, "two", visibility="public", tags=["blue"])
        resp = client.post(
            "/v1/search", json={"filters": {"tags": ["blue"]}, "limit": 5, "asActor": "carol"}
        )
        assert [r["memory"]["content"] for r in resp.json()["data"]] == ["two"]

    def test_invalid_limit(self, client):
        resp = client.post("/v1/search", json={"query": "milk", "limit": 0})
        assert resp.status_code == 400

    def test_storage_failure_returns_503(self):
        store = InMemoryMemoryStore()
        store.query = AsyncMock(side_effect=StorageConnectionError("down"))
        with TestClient(create_app(memory_service=MemoryService(store))) as c:
            resp = c.post("/v1/search", json={"query": "milk"})
        assert resp.status_code == 503
        assert resp.json() == {"success": False, "error": "Storage backend unavailable"}

    def test_rejected_predicate_returns_400(self):
        store = InMemoryMemoryStore()
        store.scan = AsyncMock(side_effect=ValidationError("ChromaDB rejected the request"))
        with TestClient(create_app(memory_service=MemoryService(store))) as c:
            resp = c.post("/v1/search", json={"filters": {"dateRange": {"from": "2025-01-01"}}})
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_date_range_search(self, client):
        created = _create(client, "dated", visibility="public")
        resp = client.post(
            "/v1/search",
            json={"filters": {"dateRange": {"from": "2020-01-01T00:00:00.000Z"}}, "asActor": "bob"},
        )
        assert resp.status_code == 200
        assert [r["memory"]["id"] for r in resp.json()["data"]] == [created["id"]]


def test_unknown_route(client):
    resp = client.get("/v1/nothing")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Not found"}


class TestRequestId:
    def test_caller_request_id_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"
        assert resp.headers["X-Response-Time"].endswith("ms")

    def test_request_id_generated(self, client):
        first = client.get("/health").headers["X-Request-ID"]
        second = client.get("/health").headers["X-Request-ID"]
        assert first and second and first != second
