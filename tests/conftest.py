"""Shared pytest fixtures for the Service Portal API tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from service_portal_api.app.core.config import Settings
from service_portal_api.app.main import create_app
from service_portal_api.app.services.record_service import RecordService
from service_portal_api.app.store import MemoryDocumentStore, SQLiteDocumentStore

COLLECTION = "artifacts/test-app/public/data/universal_vms"


def run(coro):
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


async def next_snapshot(feed, timeout: float = 1.0):
    """Await the next snapshot of a feed, failing the test on timeout."""
    return await asyncio.wait_for(feed.__anext__(), timeout)


async def assert_idle(feed, timeout: float = 0.05) -> None:
    """Assert that no snapshot arrives within ``timeout`` seconds."""
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(feed.__anext__(), timeout)


@pytest.fixture
def memory_store():
    return MemoryDocumentStore()


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteDocumentStore(str(tmp_path / "documents.db"))
    run(store.open())
    return store


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store implementation in turn."""
    if request.param == "memory":
        return MemoryDocumentStore()
    store = SQLiteDocumentStore(str(tmp_path / "documents.db"))
    run(store.open())
    return store


@pytest.fixture
def service(memory_store):
    return RecordService(memory_store, COLLECTION)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        secret_key="test-secret",
        app_id="test-app",
        store_backend="sqlite",
        database_url=str(tmp_path / "portal.db"),
        admin_token="",
    )


@pytest.fixture
def client(settings):
    app = create_app(settings=settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(settings):
    settings.admin_token = "admin-secret"
    app = create_app(settings=settings, store=MemoryDocumentStore())
    with TestClient(app) as test_client:
        yield test_client
