import httpx
from httpx import AsyncClient
from fitchallenge.main import app
from fitchallenge.services.catalog import ChallengeCatalog

import pytest

def _client() -> AsyncClient:
    return AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

async def _login(ac: AsyncClient, email: str, name: str = "Test Runner") -> dict:
    r = await ac.post("/auth/register", json={"name": name, "email": email, "password": "Supersecret1", "confirm_password": "Supersecret1"})
    assert r.status_code == 201
    return {"Authorization": f"Bearer {r.json()['tokens']['access']}"}

@pytest.mark.asyncio
async def test_browse_catalog(store):
    await ChallengeCatalog(store).seed_defaults()
    async with _client() as ac:
        r = await ac.get("/challenges")
        assert r.status_code == 200
        body = r.json()
        assert [c["id"] for c in body] == ["3", "1", "2", "4", "5"]
        assert body[1]["imageUrl"] == "/static/images/placeholder-workout.jpg"
        r = await ac.get("/challenges", params={"category": "yoga"})
        assert [c["id"] for c in r.json()] == ["2"]
        r = await ac.get("/challenges", params={"sort": "newest", "q": "endurance"})
        assert [c["id"] for c in r.json()] == ["5", "1"]
        r = await ac.get("/challenges/featured")
        assert [c["id"] for c in r.json()] == ["3", "1", "2"]
        assert (await ac.get("/challenges/1")).json()["participants"] == 2453
        assert (await ac.get("/challenges/nope")).status_code == 404
        assert (await ac.get("/challenges", params={"category": "curling"})).status_code == 422

@pytest.mark.asyncio
async def test_membership_requires_login(store):
    await ChallengeCatalog(store).seed_defaults()
    async with _client() as ac:
        r = await ac.post("/challenges/1/join")
        assert r.status_code == 401
        assert r.json()["detail"] == "You must be logged in to join challenges"
        assert (await ac.post("/challenges/1/leave")).status_code == 401
        assert (await ac.post("/challenges/1/progress", json={"workoutCompleted": True})).status_code == 401
        assert (await ac.post("/challenges/1/sync")).status_code == 401
        assert (await ac.get("/challenges/joined")).status_code == 401

@pytest.mark.asyncio
async def test_join_progress_leave_flow(store):
    await ChallengeCatalog(store).seed_defaults()
    async with _client() as ac:
        auth = await _login(ac, "flow@example.com")

        r = await ac.post("/challenges/1/join", headers=auth)
        assert r.status_code == 201
        body = r.json()
        assert body["success"] is True
        assert body["message"] == "Successfully joined 30-Day Running Challenge!"
        assert body["userChallenge"]["status"] == "active"
        assert body["completionPercentage"] == 0
        assert (await ac.get("/challenges/1")).json()["participants"] == 2454

        r = await ac.post("/challenges/1/join", headers=auth)
        assert r.status_code == 409
        assert (await ac.post("/challenges/nope/join", headers=auth)).status_code == 404

        r = await ac.post("/challenges/1/progress", headers=auth, json={"distance": 25, "workoutCompleted": True})
        assert r.status_code == 200
        body = r.json()
        assert body["progress"]["currentDistance"] == 25
        assert body["progress"]["currentDay"] == 2
        assert body["completionPercentage"] == 28
        assert (await ac.post("/challenges/1/progress", headers=auth, json={"distance": -1})).status_code == 422

        r = await ac.get("/challenges/1/progress", headers=auth)
        assert r.status_code == 200
        assert r.json()["completionPercentage"] == 28
        r = await ac.get("/challenges/joined", headers=auth)
        assert [v["challenge"]["title"] for v in r.json()] == ["30-Day Running Challenge"]
        assert len((await ac.get("/challenges/active", headers=auth)).json()) == 1

        # No linked providers: soft failure, not an HTTP error
        r = await ac.post("/challenges/1/sync", headers=auth)
        assert r.status_code == 200
        assert r.json()["success"] is False
        assert r.json()["error"] == "NothingToSync"

        r = await ac.post("/challenges/1/leave", headers=auth)
        assert r.status_code == 200
        assert r.json()["userChallenge"]["status"] == "abandoned"
        assert (await ac.get("/challenges/1")).json()["participants"] == 2453
        assert (await ac.post("/challenges/1/progress", headers=auth, json={"workoutCompleted": True})).status_code == 403
        assert (await ac.get("/challenges/1/progress", headers=auth)).status_code == 403
        assert (await ac.get("/challenges/active", headers=auth)).json() == []
        assert len((await ac.get("/challenges/joined", headers=auth)).json()) == 1

@pytest.mark.asyncio
async def test_leaderboard_ranks_by_points(store):
    await ChallengeCatalog(store).seed_defaults()
    async with _client() as ac:
        alice = await _login(ac, "alice@example.com", "Alice")
        bob = await _login(ac, "bob@example.com", "Bob")

        await ac.post("/challenges/2/join", headers=alice)
        for _ in range(14):
            r = await ac.post("/challenges/2/progress", headers=alice, json={"workoutCompleted": True, "sessions": 1, "minutes": 20})
        assert r.json()["completionPercentage"] == 100
        assert r.json()["userChallenge"]["status"] == "completed"

        await ac.post("/challenges/1/join", headers=bob)
        await ac.post("/challenges/1/progress", headers=bob, json={"workoutCompleted": True})

        r = await ac.get("/leaderboard")
        assert r.status_code == 200
        rows = r.json()
        assert [(row["rank"], row["name"], row["points"], row["workouts"], row["completed"]) for row in rows] == [
            (1, "Alice", 300, 14, 1),
            (2, "Bob", 0, 1, 0),
        ]
