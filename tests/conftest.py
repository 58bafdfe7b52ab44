import asyncio

import pytest
from fastapi.testclient import TestClient

from core.settings import Settings
from fakes import FakePool


@pytest.fixture()
def run():
    # The service is async; drive coroutines from plain sync tests.
    return asyncio.run


@pytest.fixture()
def fake_pool():
    return FakePool()


@pytest.fixture()
def make_client():
    """
    Build a TestClient for an app whose pool factory returns `pool`.
    """
    clients = []

    def _make(pool, *, bootstrap: bool = True) -> TestClient:
        from main import create_app

        async def pool_factory(_settings):
            return pool

        app = create_app(Settings(schema_bootstrap=bootstrap), pool_factory=pool_factory)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)
