"""Pytest configuration and fixtures for ledger tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import select, func

from app.core.database import create_tables, get_session
from app.models import AccessEvent, AuditEntry, Resource
from main import app


@pytest.fixture(scope="function")
def engine(tmp_path):
    """
    Create a file-backed SQLite database per test.

    NullPool gives every session its own connection, so concurrent
    sessions really are separate transactions, and no connection outlives
    the event loop that opened it.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    asyncio.run(create_tables(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def make_resource(session_factory):
    """Insert a resource row directly, as the upload flow would."""
    def _make(resource_id: int, title: str = "Sample Resource", view_count: int = 0, download_count: int = 0):
        async def insert():
            async with session_factory() as session:
                session.add(Resource(
                    id=resource_id,
                    title=title,
                    view_count=view_count,
                    download_count=download_count,
                ))
                await session.commit()
        asyncio.run(insert())
        return resource_id
    return _make


@pytest.fixture
def run_with_session(session_factory):
    """Run an async callable against a fresh session and return its result."""
    def _run(func_):
        async def runner():
            async with session_factory() as session:
                return await func_(session)
        return asyncio.run(runner())
    return _run


@pytest.fixture
def table_counts(session_factory):
    """Row counts of the three ledger representations for one resource."""
    def _counts(resource_id: int):
        async def query():
            async with session_factory() as session:
                resource = await session.get(Resource, resource_id)
                events = await session.execute(
                    select(func.count(AccessEvent.id)).where(AccessEvent.resource_id == resource_id)
                )
                audits = await session.execute(
                    select(func.count(AuditEntry.id)).where(AuditEntry.resource_id == resource_id)
                )
                return {
                    "view_count": resource.view_count if resource else None,
                    "download_count": resource.download_count if resource else None,
                    "events": events.scalar(),
                    "audits": audits.scalar(),
                }
        return asyncio.run(query())
    return _counts


@pytest.fixture
def client(session_factory):
    """TestClient bound to the per-test database."""
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
