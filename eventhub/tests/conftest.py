import os

# Ensure JWT_SECRET is set before any eventhub module reads it
os.environ["JWT_SECRET"] = "test_secret"
os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest
from unittest.mock import MagicMock

from eventhub.auth_service.credentials import register_user
from eventhub.auth_service.utils import create_token
from eventhub.database.memory_store import MemoryStorage
from eventhub.gateway.server import create_app

VALID_EVENT = {
    "title": "Tech Conference 2024",
    "description": "Annual technology conference featuring the latest innovations",
    "venue": "Convention Center",
    "startDate": "2024-06-15",
    "endDate": "2024-06-17",
    "startTime": "09:00",
    "endTime": "18:00",
    "cost": "₹1500",
    "eventType": "conference",
    "location": "Mumbai",
}


@pytest.fixture
def store():
    return MemoryStorage()


@pytest.fixture
def app(store):
    app = create_app(storage=store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(store):
    def _make(email="admin@x.com", role="admin", name="Admin A", password="Passw0rd!"):
        return register_user(store, name=name, email=email, password=password, role=role)
    return _make


@pytest.fixture
def admin(make_user):
    return make_user()


@pytest.fixture
def other_admin(make_user):
    return make_user(email="admin-b@x.com", name="Admin B")


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_token(user)}"}
    return _headers


@pytest.fixture
def event_payload():
    return dict(VALID_EVENT)


@pytest.fixture
def mock_db(mocker):
    """
    Mocks the pooled database connection and cursor used by PostgresStorage.
    """
    mock_conn = MagicMock()
    mock_cursor = MagicMock()

    # Setup the context manager for connection
    mock_conn.__enter__.return_value = mock_conn
    mock_conn.__exit__.return_value = None

    # Setup the context manager for cursor
    mock_cursor.__enter__.return_value = mock_cursor
    mock_cursor.__exit__.return_value = None

    # Connect cursor to connection
    mock_conn.cursor.return_value = mock_cursor

    # Mock get_db to return our mock connection
    mocker.patch("eventhub.database.postgres_store.get_db", return_value=mock_conn)

    return mock_conn, mock_cursor
