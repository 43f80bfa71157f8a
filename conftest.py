"""Shared fixtures: in-memory database, document store and API client."""
import pytest
from fastapi.testclient import TestClient

from config import load_settings
from database import Database
from document_store import DocumentStore
from main import create_app


def make_settings(**overrides):
    values = {
        "_env_file": None,
        "port": 8000,
        "jwt_secret": "test-secret",
        "db_user": "irrigation",
        "db_password": "secret",
        "db_name": "irrigation",
        "database_url": "sqlite://",
    }
    values.update(overrides)
    return load_settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def store(database):
    return DocumentStore(database)


@pytest.fixture
def client(settings, database):
    app = create_app(settings, database)
    with TestClient(app) as test_client:
        yield test_client
