from __future__ import annotations
from functools import lru_cache
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from fitchallenge.config import settings

class Base(DeclarativeBase):
    pass

def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)

@lru_cache
def get_engine() -> AsyncEngine:
    # Built on first use so memory/redis deployments never need a database driver
    return create_async_engine(settings.database_url, future=True, echo=False)
