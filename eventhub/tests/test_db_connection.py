import logging
import threading
import time

import pytest
import psycopg2
import psycopg2.errors
from unittest.mock import MagicMock

from eventhub.database import db_connection


@pytest.fixture
def pool(mocker):
    """A real ThreadedConnectionPool of two mocked connections."""
    mocker.patch("psycopg2.connect", side_effect=lambda *args, **kwargs: MagicMock(closed=False))
    mocker.patch.object(db_connection, "DATABASE_URL", "postgresql://test")
    mocker.patch.object(db_connection, "DB_POOL_MIN", 1)
    mocker.patch.object(db_connection, "DB_POOL_MAX", 2)
    mocker.patch.object(db_connection, "_pool", None)
    mocker.patch.object(db_connection, "_slots", None)

    yield db_connection.init_pool()

    db_connection.close_pool()


def test_init_pool_requires_database_url(mocker):
    mocker.patch.object(db_connection, "DATABASE_URL", None)
    mocker.patch.object(db_connection, "_pool", None)

    with pytest.raises(RuntimeError):
        db_connection.init_pool()


def test_get_db_waits_for_a_free_connection(pool):
    errors = []
    active = []
    peak = []
    lock = threading.Lock()

    def request():
        try:
            with db_connection.get_db():
                with lock:
                    active.append(1)
                    peak.append(len(active))
                time.sleep(0.05)
                with lock:
                    active.pop()
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=request) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert errors == []
    assert len(peak) == 3
    assert max(peak) <= 2


def test_connection_is_returned_after_error(pool):
    with pytest.raises(ValueError):
        with db_connection.get_db():
            raise ValueError("boom")

    # both slots are free again
    with db_connection.get_db():
        with db_connection.get_db():
            pass


def test_driver_errors_are_logged(pool, caplog):
    with caplog.at_level(logging.ERROR, logger="eventhub.database.db_connection"):
        with pytest.raises(psycopg2.OperationalError):
            with db_connection.get_db():
                raise psycopg2.OperationalError("server closed the connection unexpectedly")

    assert "Database error" in caplog.text


def test_integrity_errors_are_left_to_the_caller(pool, caplog):
    with caplog.at_level(logging.ERROR, logger="eventhub.database.db_connection"):
        with pytest.raises(psycopg2.errors.UniqueViolation):
            with db_connection.get_db():
                raise psycopg2.errors.UniqueViolation("duplicate key")

    assert "Database error" not in caplog.text
