"""Shared fixtures for the web application tests."""
import pytest
from fastapi.testclient import TestClient

from app.config import AppConfig
from app.main import create_app
from auth.memory import InMemoryUserRepository, MemorySessionStore


@pytest.fixture
def config():
    """Test config: cheap bcrypt."""
    return AppConfig(bcrypt_rounds=4)


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def app(config, user_repository, session_store):
    return create_app(config, user_repository=user_repository, session_store=session_store)


@pytest.fixture
def client(app):
    """Test client that does not follow redirects, so they can be asserted."""
    return TestClient(app, follow_redirects=False)
