"""Shared fixtures: a fresh SQLite database per test and merchant helpers."""

import pytest

from paygate.config import settings
from paygate.db import create_engine_for_path, create_session_factory, initialize_database
from paygate.services import merchant_service

PASSWORD = "Secure1!aaaa"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Keep bcrypt cheap in tests; the production cost factor is checked separately."""
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)


@pytest.fixture
async def engine(tmp_path):
    """Async engine over a temporary SQLite file with the schema created."""
    db_engine = create_engine_for_path(str(tmp_path / "paygate_test.db"))
    await initialize_database(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_merchant(db):
    """Factory: register a merchant, approved unless approve=False. Returns (merchant, plain_key)."""

    async def _make(email, name="Merchant", approve=True):
        merchant, plain_key = await merchant_service.register_merchant(db, name, email, PASSWORD)
        if approve:
            await merchant_service.approve_merchant(db, merchant.id)
        return merchant, plain_key

    return _make


@pytest.fixture
async def acme(make_merchant):
    """Approved merchant "Acme"."""
    return await make_merchant("a@acme.com", "Acme")


@pytest.fixture
async def globex(make_merchant):
    """A second approved merchant."""
    return await make_merchant("ops@globex.com", "Globex")
