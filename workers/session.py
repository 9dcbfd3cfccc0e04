"""Database sessions for Celery tasks."""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.config import settings
from database.engine import build_engine

T = TypeVar("T")


@asynccontextmanager
async def task_session():
    """
    A session on an engine owned by the current event loop.

    Each task runs under its own ``asyncio.run`` loop, so the API's shared
    engine pool cannot be reused here.
    """
    engine = build_engine(settings.database_url)
    sessionmaker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with sessionmaker() as session:
            yield session
    finally:
        await engine.dispose()


def run_with_session(fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
    """Run ``fn(session, *args, **kwargs)`` to completion from sync task code."""

    async def _runner() -> T:
        async with task_session() as session:
            return await fn(session, *args, **kwargs)

    return asyncio.run(_runner())
