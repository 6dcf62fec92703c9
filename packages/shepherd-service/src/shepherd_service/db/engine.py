"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from shepherd_service.settings import settings

_engine = None
_session_factory = None


async def init_db(database_url: str | None = None) -> None:
    global _engine, _session_factory
    url = database_url or settings.database_url
    engine_kwargs = {} if url.startswith("sqlite") else {"pool_size": 10}
    _engine = create_async_engine(url, echo=False, **engine_kwargs)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)


async def close_db() -> None:
    global _engine
    if _engine:
        await _engine.dispose()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory
