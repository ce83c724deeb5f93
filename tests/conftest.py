"""Shared fixtures: an app wired to a temporary upload directory and an in-memory MongoDB."""
import mongomock
import pytest
from fastapi.testclient import TestClient

from catalog_api.adapters.records import MongoRecordStore
from catalog_api.adapters.storage import LocalFileStore
from catalog_api.config.settings import Settings
from catalog_api.main import create_app
from tests.fixtures.app_fixtures import TEST_DB_NAME


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def mongo_client():
    client = mongomock.MongoClient()
    yield client
    client.close()


@pytest.fixture
def mongo_db(mongo_client):
    return mongo_client[TEST_DB_NAME]


@pytest.fixture
def record_store(mongo_db):
    return MongoRecordStore(mongo_db)


@pytest.fixture
def file_store(upload_dir):
    return LocalFileStore(upload_dir)


@pytest.fixture
def settings(upload_dir):
    return Settings(
        _env_file=None,
        upload_dir=str(upload_dir),
        mongodb_uri=f"mongodb://localhost:27017/{TEST_DB_NAME}",
        log_level="DEBUG",
    )


@pytest.fixture
def app(settings, record_store, file_store):
    return create_app(settings, record_store=record_store, file_store=file_store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
