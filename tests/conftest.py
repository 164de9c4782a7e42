"""Shared fixtures: a file-backed SQLite store per test."""
import pytest

from catalog_service.app import create_app
from catalog_service.repositories import Repositories
from catalog_service.store import RecordStore


@pytest.fixture
def store(tmp_path):
    store = RecordStore(f"sqlite:///{tmp_path / 'catalog.db'}")
    assert store.connect()
    yield store
    store.dispose()


@pytest.fixture
def repos(store):
    return Repositories(store)


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'app.db'}",
            "TESTING": True,
        }
    )
    yield app
    app.extensions["catalog"].store.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_repos(app):
    return Repositories(app.extensions["catalog"].store)
