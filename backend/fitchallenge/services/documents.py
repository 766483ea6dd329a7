"""
Key-value document store shared by every domain service.

Each key holds one JSON document (an array or an object). Writers replace the
whole document, so a read-modify-write must run under ``store.lock(*keys)``
for the keys it touches. The lock belongs to the backend: every worker that
talks to the same Redis or Postgres shares it, not just one process.
"""
from __future__ import annotations
import asyncio
import copy
import json
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from redis.asyncio import Redis
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine
from fitchallenge.config import settings
from fitchallenge.db import get_engine, make_sessionmaker
from fitchallenge.models.document import Document

CHALLENGES_KEY = "fitchallenge_challenges"
USER_CHALLENGES_KEY = "fitchallenge_user_challenges"
USERS_KEY = "fitchallenge_users"
TOKENS_KEY = "fitchallenge_tokens"


class LockTimeout(Exception):
    """A document lock could not be taken within ``lock_wait_seconds``."""


def lock_order(keys: tuple[str, ...]) -> list[str]:
    # Everyone acquires in the same order, so multi-key holders can't deadlock
    return sorted(set(keys))


class DocumentStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> Any | None: ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def lock(self, *keys: str) -> AsyncIterator[None]:
        """Async context manager holding exclusive access to ``keys``."""


class ProcessLocks:
    """One asyncio.Lock per key; only valid while a single process owns the data."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        acquired: list[asyncio.Lock] = []
        try:
            for key in lock_order(keys):
                lock = self._locks[key]
                try:
                    await asyncio.wait_for(lock.acquire(), timeout=settings.lock_wait_seconds)
                except asyncio.TimeoutError:
                    raise LockTimeout(key) from None
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


class MemoryDocumentStore(DocumentStore):
    def __init__(self):
        self._docs: dict[str, Any] = {}
        self._locks = ProcessLocks()

    async def get(self, key: str) -> Any | None:
        # Hand out copies so callers can't mutate stored state without set()
        return copy.deepcopy(self._docs.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._docs[key] = json.loads(json.dumps(value))

    def lock(self, *keys: str):
        return self._locks.hold(*keys)


class RedisDocumentStore(DocumentStore):
    def __init__(self, client: Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisDocumentStore":
        return cls(Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        await self._client.set(key, json.dumps(value))

    @asynccontextmanager
    async def lock(self, *keys: str) -> AsyncIterator[None]:
        held = []
        try:
            for key in lock_order(keys):
                # timeout: a crashed holder's lock expires instead of wedging every worker
                lock = self._client.lock(
                    f"{key}:lock",
                    timeout=settings.lock_timeout_seconds,
                    blocking_timeout=settings.lock_wait_seconds,
                    sleep=0.05,
                )
                if not await lock.acquire():
                    raise LockTimeout(key)
                held.append(lock)
            yield
        finally:
            for lock in reversed(held):
                await lock.release()


class SqlDocumentStore(DocumentStore):
    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._sessionmaker = make_sessionmaker(engine)
        # SQLite has no advisory locks; it's the single-process test backend
        self._local = None if engine.dialect.name == "postgresql" else ProcessLocks()

    async def get(self, key: str) -> Any | None:
        async with self._sessionmaker() as session:
            doc = await session.get(Document, key)
            return doc.value if doc else None

    async def set(self, key: str, value: Any) -> None:
        async with self._sessionmaker() as session:
            doc = await session.get(Document, key)
            if doc:
                doc.value = value
            else:
                session.add(Document(key=key, value=value))
            await session.commit()

    @asynccontextmanager
    async def lock(self, *keys: str) -> AsyncIterator[None]:
        if self._local is not None:
            async with self._local.hold(*keys):
                yield
            return
        # Transaction-scoped advisory locks, released when the transaction ends
        async with self._engine.connect() as conn, conn.begin():
            await conn.execute(text(f"SET LOCAL lock_timeout = '{int(settings.lock_wait_seconds * 1000)}ms'"))
            for key in lock_order(keys):
                try:
                    await conn.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})
                except DBAPIError as e:
                    raise LockTimeout(key) from e
            yield


def build_store(backend: str | None = None) -> DocumentStore:
    backend = backend or settings.storage_backend
    if backend == "memory":
        return MemoryDocumentStore()
    if backend == "redis":
        return RedisDocumentStore.from_url(settings.redis_url)
    if backend == "sql":
        return SqlDocumentStore(get_engine())
    raise ValueError(f"Unknown storage backend: {backend}")


# Process-wide singleton (lazy), overridable in tests via dependency_overrides
_store: DocumentStore | None = None

def get_store() -> DocumentStore:
    global _store
    if _store is None:
        _store = build_store()
    return _store
