"""Shared fixtures: in-memory and SQLite-backed repositories, API client."""

import asyncio

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from orders.adapters import InMemoryOrderRepository
from orders.db import create_all, create_engine, create_session_factory, drop_all
from orders.domain import OrderService
from orders.main import app
from orders.providers import get_order_service


@pytest.fixture
def repo():
    return InMemoryOrderRepository()


@pytest.fixture
def service(repo):
    return OrderService(repo)


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}", use_null_pool=True)
    await create_all(eng)
    yield eng
    await drop_all(eng)
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def client(repo):
    """API client whose service runs on the in-memory repository."""
    app.dependency_overrides[get_order_service] = lambda: OrderService(repo)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sql_client(tmp_path):
    """API client wired to a real SQLite database through the default providers."""
    eng = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", use_null_pool=True)
    asyncio.run(create_all(eng))
    app.state.session_factory = create_session_factory(eng)
    yield TestClient(app)
    del app.state.session_factory
    asyncio.run(eng.dispose())
