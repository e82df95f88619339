"""Shared pytest fixtures."""

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from agnys.app import App
from agnys.config import Config
from agnys.core.core import Core
from agnys.core.modules.session.models import Identity
from agnys.web.server import create_fastapi_app
from tests.fakes import FakeBlobStorage, FakeDatabase, FakePushTransport
from tests.helpers import PASSWORD


@pytest.fixture
def config():
    """Test configuration; nothing is read from the environment beyond defaults."""
    return Config(database_url="mongodb://localhost:27017/agnys_test", blob_base_url="http://testserver")


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def blob_storage():
    return FakeBlobStorage()


@pytest.fixture
def push_transport():
    return FakePushTransport()


@pytest.fixture
def core(config, database, blob_storage, push_transport):
    """Core wired to in-memory collaborators."""
    return Core(config, database=database, blob_storage=blob_storage, push_transport=push_transport)


@pytest.fixture
async def alice(core) -> Identity:
    user = await core.services.user.create_user("alice@example.com", PASSWORD)
    return Identity(user_id=user.id, email=user.email)


@pytest.fixture
async def bob(core) -> Identity:
    user = await core.services.user.create_user("bob@example.com", PASSWORD)
    return Identity(user_id=user.id, email=user.email)


@pytest.fixture
def app(config, database, blob_storage, push_transport):
    return App(config, database=database, blob_storage=blob_storage, push_transport=push_transport)


@pytest.fixture
def fastapi_app(app, config) -> FastAPI:
    return create_fastapi_app(app, config)


@pytest.fixture
def client(fastapi_app) -> Iterator[TestClient]:
    """HTTP client running the application lifespan."""
    with TestClient(fastapi_app) as test_client:
        yield test_client
