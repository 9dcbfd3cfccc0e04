"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_interviews.db")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("APP_URL", "https://interviews.example.com")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("JSON_LOGS", "false")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import database.models  # noqa: F401  registers all tables
from core.lifecycle import LifecyclePolicy
from database.engine import Base
from tests.factories import T0, create_candidate, create_job


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def policy():
    return LifecyclePolicy()


@pytest.fixture
def now():
    return T0


@pytest.fixture
async def job(session):
    return await create_job(session)


@pytest.fixture
async def candidate(session):
    return await create_candidate(session)
