from fastapi.testclient import TestClient
from fitchallenge.main import app
from fitchallenge.services.documents import MemoryDocumentStore, get_store

client = TestClient(app)

class BrokenStore(MemoryDocumentStore):
    async def get(self, key):
        raise ConnectionError("backend unreachable")

def test_health_ok(store):
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["storage"]["ok"] is True
    assert "request_id" in data

def test_health_degraded_when_store_fails():
    app.dependency_overrides[get_store] = lambda: BrokenStore()
    try:
        data = client.get("/health").json()
    finally:
        app.dependency_overrides.clear()
    assert data["status"] == "degraded"
    assert data["storage"]["ok"] is False

def test_request_id_is_echoed(store):
    r = client.get("/health", headers={"x-request-id": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    assert r.json()["request_id"] == "abc-123"

def test_version_ok():
    r = client.get("/version")
    assert r.status_code == 200
    data = r.json()
    assert "version" in data and "git_sha" in data
