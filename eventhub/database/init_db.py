"""
Create the EventHub tables and optionally seed sample data.

Usage:
    python -m eventhub.database.init_db           # create tables
    python -m eventhub.database.init_db --seed    # create tables + sample users/events
    python -m eventhub.database.init_db --reset --seed
"""

import argparse
import logging
import sys
from datetime import date

from eventhub.auth_service.credentials import ph
from eventhub.auth_service.models import ROLE_ADMIN, ROLE_USER
from eventhub.database.db_connection import get_db, close_pool
from eventhub.database.postgres_store import PostgresStorage

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    user_id       SERIAL PRIMARY KEY,
    name          VARCHAR(50)  NOT NULL,
    email         VARCHAR(100) NOT NULL,
    password_hash TEXT         NOT NULL,
    role          VARCHAR(10)  NOT NULL DEFAULT 'user' CHECK (role IN ('admin', 'user')),
    created_at    TIMESTAMPTZ  NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE UNIQUE INDEX IF NOT EXISTS users_email_lower_idx ON users (lower(email));

CREATE TABLE IF NOT EXISTS events (
    event_id           SERIAL PRIMARY KEY,
    title              VARCHAR(100)  NOT NULL,
    description        VARCHAR(2000) NOT NULL,
    venue              VARCHAR(200)  NOT NULL,
    start_date         DATE          NOT NULL,
    end_date           DATE          NOT NULL,
    start_time         VARCHAR(20)   NOT NULL,
    end_time           VARCHAR(20)   NOT NULL,
    cost               VARCHAR(20)   NOT NULL,
    event_type         VARCHAR(20)   NOT NULL
                       CHECK (event_type IN ('conference', 'workshop', 'networking', 'seminar')),
    location           VARCHAR(100)  NOT NULL,
    image_data         BYTEA,
    image_content_type VARCHAR(50),
    admin_id           INTEGER       NOT NULL REFERENCES users (user_id),
    is_ai_generated    BOOLEAN       NOT NULL DEFAULT FALSE,
    created_at         TIMESTAMPTZ   NOT NULL DEFAULT clock_timestamp(),
    CHECK (end_date >= start_date)
);

CREATE INDEX IF NOT EXISTS events_created_at_idx ON events (created_at DESC);
CREATE INDEX IF NOT EXISTS events_admin_id_idx ON events (admin_id);
"""

RESET_SQL = "DROP TABLE IF EXISTS events; DROP TABLE IF EXISTS users;"

SAMPLE_EVENTS = [
    {
        "title": "Tech Conference 2024",
        "description": "Annual technology conference featuring the latest innovations",
        "venue": "Convention Center",
        "start_date": date(2024, 6, 15),
        "end_date": date(2024, 6, 17),
        "start_time": "09:00",
        "end_time": "18:00",
        "cost": "₹1500",
        "event_type": "conference",
        "location": "Mumbai",
    },
    {
        "title": "Web Development Workshop",
        "description": "Hands-on workshop on modern web development",
        "venue": "Tech Hub",
        "start_date": date(2024, 7, 20),
        "end_date": date(2024, 7, 20),
        "start_time": "10:00",
        "end_time": "16:00",
        "cost": "₹800",
        "event_type": "workshop",
        "location": "Bangalore",
    },
]


def create_tables(reset: bool = False) -> None:
    with get_db() as conn:
        with conn.cursor() as cur:
            if reset:
                cur.execute(RESET_SQL)
                logger.info("Dropped existing tables")
            cur.execute(SCHEMA_SQL)
    logger.info("Tables ready: users, events")


def seed(store: PostgresStorage) -> None:
    admin = store.get_user_by_email("admin@example.com")
    if admin:
        logger.info("Sample data already present, skipping seed")
        return

    admin = store.create_user("Admin User", "admin@example.com", ph.hash("admin123"), ROLE_ADMIN)
    store.create_user("Regular User", "user@example.com", ph.hash("user123"), ROLE_USER)
    for fields in SAMPLE_EVENTS:
        store.create_event(admin.id, fields, None)

    logger.info("Seeded sample data. Admin: admin@example.com / admin123, User: user@example.com / user123")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the EventHub database.")
    parser.add_argument("--seed", action="store_true", help="insert sample users and events")
    parser.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")

    try:
        create_tables(reset=args.reset)
        if args.seed:
            seed(PostgresStorage())
    except Exception:
        logger.exception("Database initialization FAILED")
        return 1
    finally:
        close_pool()

    return 0


if __name__ == "__main__":
    sys.exit(main())
