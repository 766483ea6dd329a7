from __future__ import annotations
import asyncio
from datetime import datetime, timezone
import fakeredis
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool
from fitchallenge.config import settings
from fitchallenge.db import Base
from fitchallenge.models.document import Document  # noqa: F401  registers the table
from fitchallenge.models.user import User
from fitchallenge.schemas.challenge import Challenge
from fitchallenge.services.catalog import ChallengeCatalog
from fitchallenge.services.documents import (
    CHALLENGES_KEY,
    LockTimeout,
    MemoryDocumentStore,
    RedisDocumentStore,
    SqlDocumentStore,
    build_store,
)
from fitchallenge.services.membership import MembershipService


@pytest.mark.asyncio
async def test_memory_store_hands_out_copies():
    store = MemoryDocumentStore()
    assert await store.get("missing") is None
    doc = {"u1": [{"id": "a"}]}
    await store.set("k", doc)
    doc["u1"].append({"id": "b"})
    fetched = await store.get("k")
    fetched["u1"].clear()
    assert await store.get("k") == {"u1": [{"id": "a"}]}


@pytest.mark.asyncio
async def test_sql_store_upserts_json_documents():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    store = SqlDocumentStore(engine)
    try:
        assert await store.get(CHALLENGES_KEY) is None
        await store.set(CHALLENGES_KEY, [{"id": "1", "participants": 1}])
        await store.set(CHALLENGES_KEY, [{"id": "1", "participants": 2}])
        assert await store.get(CHALLENGES_KEY) == [{"id": "1", "participants": 2}]
        async with store.lock(CHALLENGES_KEY):
            assert await store.get(CHALLENGES_KEY) == [{"id": "1", "participants": 2}]
    finally:
        await engine.dispose()


def test_unknown_backend_is_rejected():
    assert isinstance(build_store("memory"), MemoryDocumentStore)
    with pytest.raises(ValueError):
        build_store("cassandra")


def _redis(server: fakeredis.FakeServer) -> RedisDocumentStore:
    return RedisDocumentStore(fakeredis.FakeAsyncRedis(server=server, decode_responses=True))


@pytest.mark.asyncio
async def test_redis_store_round_trips_json():
    store = _redis(fakeredis.FakeServer())
    assert await store.get("missing") is None
    doc = {"u1": [{"id": "u1_1_1", "status": "active", "progress": {"currentDay": 1}}]}
    await store.set("fitchallenge_user_challenges", doc)
    assert await store.get("fitchallenge_user_challenges") == doc
    await store.set("fitchallenge_user_challenges", {})
    assert await store.get("fitchallenge_user_challenges") == {}


@pytest.mark.asyncio
async def test_redis_stores_on_one_server_share_data():
    server = fakeredis.FakeServer()
    await _redis(server).set(CHALLENGES_KEY, [{"id": "1"}])
    assert await _redis(server).get(CHALLENGES_KEY) == [{"id": "1"}]
    assert await _redis(fakeredis.FakeServer()).get(CHALLENGES_KEY) is None


async def _record_holders(stores, keysets) -> list[str]:
    events: list[str] = []

    async def worker(name: str, store, keys):
        async with store.lock(*keys):
            events.append(f"{name}:in")
            await asyncio.sleep(0.01)
            events.append(f"{name}:out")

    await asyncio.gather(*(worker(str(i), s, k) for i, (s, k) in enumerate(zip(stores, keysets))))
    return events


def _no_overlap(events: list[str]) -> bool:
    return all(events[i].endswith(":in") and events[i + 1] == events[i].replace(":in", ":out") for i in range(0, len(events), 2))


@pytest.mark.asyncio
async def test_memory_lock_serializes_holders_of_a_key():
    store = MemoryDocumentStore()
    events = await _record_holders([store] * 3, [("x", "y"), ("y", "x"), ("x",)])
    assert len(events) == 6
    assert _no_overlap(events)


@pytest.mark.asyncio
async def test_lock_on_disjoint_keys_does_not_block():
    store = MemoryDocumentStore()
    async with store.lock("x"):
        await asyncio.wait_for(_hold_briefly(store, "y"), timeout=1)


async def _hold_briefly(store, key: str):
    async with store.lock(key):
        pass


@pytest.mark.asyncio
async def test_redis_lock_is_shared_between_store_instances():
    server = fakeredis.FakeServer()
    stores = [_redis(server) for _ in range(3)]
    events = await _record_holders(stores, [("x", "y"), ("y", "x"), ("x",)])
    assert len(events) == 6
    assert _no_overlap(events)
    # Released afterwards
    async with stores[0].lock("x", "y"):
        pass


@pytest.mark.asyncio
async def test_lock_wait_gives_up_with_lock_timeout(monkeypatch):
    monkeypatch.setattr(settings, "lock_wait_seconds", 0.1)
    server = fakeredis.FakeServer()
    first, second = _redis(server), _redis(server)
    async with first.lock("x"):
        with pytest.raises(LockTimeout):
            async with second.lock("x"):
                pass
    memory = MemoryDocumentStore()
    async with memory.lock("x"):
        with pytest.raises(LockTimeout):
            async with memory.lock("x"):
                pass


class YieldingRedisStore(RedisDocumentStore):
    """Suspends on every read and write so two workers interleave."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key, value):
        await asyncio.sleep(0)
        await super().set(key, value)


@pytest.mark.asyncio
async def test_workers_on_separate_redis_connections_keep_every_join():
    server = fakeredis.FakeServer()
    workers = []
    for _ in range(2):
        store = YieldingRedisStore(fakeredis.FakeAsyncRedis(server=server, decode_responses=True))
        catalog = ChallengeCatalog(store)
        workers.append((catalog, MembershipService(store, catalog, max_active=5)))
    challenge = Challenge(id="c1", title="Steps", category="running", difficulty="beginner", duration=7, goals={"totalWorkouts": 7})
    await workers[0][0].save([challenge])

    now = datetime.now(timezone.utc)
    users = [User(id=f"u{i}", name=f"U{i}", email=f"u{i}@ex.com", password_hash="x", created_at=now) for i in range(10)]
    results = await asyncio.gather(*(workers[i % 2][1].join(u, "c1") for i, u in enumerate(users)))

    assert all(r.success for r in results)
    assert (await workers[1][0].get("c1")).participants == 10
    assert sorted(await workers[0][1].all_records()) == sorted(u.id for u in users)
