# This project was developed with assistance from AI tools.
"""Integration test fixtures -- real PostgreSQL, no mocks.

A session-scoped container provides PostgreSQL; the schema is created once from
the ORM metadata. Expiry runs commit per request, so each test starts from
truncated tables instead of a rolled-back savepoint.
"""

import pytest
import pytest_asyncio
from db import Base
from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

# ---------------------------------------------------------------------------
# Mark all tests in this directory as integration
# ---------------------------------------------------------------------------
pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Session-scoped: container + schema
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Start postgres:16 via testcontainers."""
    with PostgresContainer(
        image="postgres:16",
        username="test",
        password="test",
        dbname="test",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def db_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def _create_schema(pg_container):
    """Create tables from the ORM metadata using a sync (psycopg2) engine."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    engine = create_engine(f"postgresql://test:test@{host}:{port}/test")
    Base.metadata.create_all(engine)
    engine.dispose()


# ---------------------------------------------------------------------------
# Function-scoped: clean tables + session factory
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def session_factory(db_url, _create_schema):
    """async_sessionmaker bound to the test container, tables emptied first."""
    engine = create_async_engine(db_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.execute(
            text(
                "TRUNCATE messages, conversations, ratings, rental_requests, listings "
                "RESTART IDENTITY CASCADE"
            )
        )
    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
    yield factory
    await engine.dispose()
