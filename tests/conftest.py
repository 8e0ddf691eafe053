"""Shared fixtures: an in-memory SQLite store with the full schema."""

import pytest
import pytest_asyncio

from football_predictions.database import close_db, create_engine, create_session_factory, init_db


@pytest_asyncio.fixture
async def db_engine():
    engine = create_engine("sqlite://")
    await init_db(engine)
    yield engine
    await close_db(engine)


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session
