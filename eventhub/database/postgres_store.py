"""
PostgreSQL storage backend (psycopg2, raw parameterised SQL).

Ids are SERIAL integers in the database and strings everywhere else.
An id that cannot be a row id is treated as "not found".
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import psycopg2
import psycopg2.errors

from eventhub.auth_service.models import User
from eventhub.common.errors import ConflictError
from eventhub.database.db_connection import get_db
from eventhub.database.storage import Storage
from eventhub.events_service.models import Event, EventImage, EventWithOwner
from eventhub.events_service.search import EventFilter

logger = logging.getLogger(__name__)

MAX_SERIAL_ID = 2147483647

USER_COLUMNS = "user_id, name, email, password_hash, role, created_at"

EVENT_COLUMNS = """
    e.event_id, e.title, e.description, e.venue,
    e.start_date, e.end_date, e.start_time, e.end_time,
    e.cost, e.event_type, e.location,
    e.image_data, e.image_content_type,
    e.admin_id, e.is_ai_generated, e.created_at
"""

# Inner join: events whose owner row is gone never appear in enriched reads
EVENT_WITH_OWNER_SQL = f"""
    SELECT {EVENT_COLUMNS},
           u.user_id AS owner_user_id, u.name AS owner_name, u.email AS owner_email,
           u.role AS owner_role, u.created_at AS owner_created_at
    FROM events e
    JOIN users u ON u.user_id = e.admin_id
"""

NEWEST_FIRST = " ORDER BY e.created_at DESC, e.event_id DESC"

# attribute -> column for fields an update may touch
UPDATABLE_COLUMNS = {
    "title": "title",
    "description": "description",
    "venue": "venue",
    "start_date": "start_date",
    "end_date": "end_date",
    "start_time": "start_time",
    "end_time": "end_time",
    "cost": "cost",
    "event_type": "event_type",
    "location": "location",
    "is_ai_generated": "is_ai_generated",
}


def parse_row_id(val: str) -> Optional[int]:
    if not isinstance(val, str) or not val.isdigit():
        return None
    row_id = int(val)
    if row_id < 1 or row_id > MAX_SERIAL_ID:
        return None
    return row_id


def row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=str(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=row["role"],
        created_at=row["created_at"],
    )


def row_to_event(row: Mapping[str, Any]) -> Event:
    image = None
    if row["image_data"] is not None:
        image = EventImage(data=bytes(row["image_data"]), content_type=row["image_content_type"])

    return Event(
        id=str(row["event_id"]),
        title=row["title"],
        description=row["description"],
        venue=row["venue"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        cost=row["cost"],
        event_type=row["event_type"],
        location=row["location"],
        owner_id=str(row["admin_id"]),
        is_ai_generated=bool(row["is_ai_generated"]),
        image=image,
        created_at=row["created_at"],
    )


def row_to_event_with_owner(row: Mapping[str, Any]) -> EventWithOwner:
    owner = User(
        id=str(row["owner_user_id"]),
        name=row["owner_name"],
        email=row["owner_email"],
        password_hash="",
        role=row["owner_role"],
        created_at=row["owner_created_at"],
    )
    return EventWithOwner(event=row_to_event(row), owner=owner)


class PostgresStorage(Storage):

    # --- users ---
    def get_user(self, user_id: str) -> Optional[User]:
        row_id = parse_row_id(user_id)
        if row_id is None:
            return None

        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {USER_COLUMNS} FROM users WHERE user_id = %s;", (row_id,))
                row = cur.fetchone()
        return row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {USER_COLUMNS} FROM users WHERE lower(email) = lower(%s);",
                    (email.strip(),),
                )
                row = cur.fetchone()
        return row_to_user(row) if row else None

    def create_user(self, name: str, email: str, password_hash: str, role: str) -> User:
        sql = f"""
            INSERT INTO users (name, email, password_hash, role)
            VALUES (%s, %s, %s, %s)
            RETURNING {USER_COLUMNS};
        """
        try:
            with get_db() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (name, email.strip().lower(), password_hash, role))
                    row = cur.fetchone()
        except psycopg2.errors.UniqueViolation:
            raise ConflictError("User already exists with this email")
        return row_to_user(row)

    # --- events ---
    def create_event(self, owner_id: str, fields: Dict[str, Any], image: Optional[EventImage]) -> Event:
        sql = f"""
            INSERT INTO events AS e (
                title, description, venue,
                start_date, end_date, start_time, end_time,
                cost, event_type, location,
                image_data, image_content_type,
                admin_id, is_ai_generated
            ) VALUES (
                %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s, %s,
                %s, %s,
                %s, %s
            )
            RETURNING {EVENT_COLUMNS};
        """
        params = (
            fields["title"], fields["description"], fields["venue"],
            fields["start_date"], fields["end_date"], fields["start_time"], fields["end_time"],
            fields["cost"], fields["event_type"], fields["location"],
            psycopg2.Binary(image.data) if image else None,
            image.content_type if image else None,
            int(owner_id), fields.get("is_ai_generated", False),
        )

        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                row = cur.fetchone()
        return row_to_event(row)

    def get_event(self, event_id: str) -> Optional[EventWithOwner]:
        row_id = parse_row_id(event_id)
        if row_id is None:
            return None

        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(EVENT_WITH_OWNER_SQL + " WHERE e.event_id = %s;", (row_id,))
                row = cur.fetchone()
        return row_to_event_with_owner(row) if row else None

    def list_events(self) -> List[EventWithOwner]:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(EVENT_WITH_OWNER_SQL + NEWEST_FIRST + ";")
                rows = cur.fetchall()
        return [row_to_event_with_owner(r) for r in rows]

    def search_events(self, event_filter: EventFilter) -> List[EventWithOwner]:
        where, params = event_filter.to_sql()
        sql = EVENT_WITH_OWNER_SQL
        if where:
            sql += " WHERE " + where
        sql += NEWEST_FIRST + ";"

        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
        return [row_to_event_with_owner(r) for r in rows]

    def get_events_by_owner(self, owner_id: str) -> List[Event]:
        row_id = parse_row_id(owner_id)
        if row_id is None:
            return []

        sql = f"SELECT {EVENT_COLUMNS} FROM events e WHERE e.admin_id = %s" + NEWEST_FIRST + ";"
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (row_id,))
                rows = cur.fetchall()
        return [row_to_event(r) for r in rows]

    def update_event(self, event_id: str, owner_id: str, changes: Dict[str, Any],
                     image: Optional[EventImage]) -> Optional[Event]:
        row_id = parse_row_id(event_id)
        owner_row_id = parse_row_id(owner_id)
        if row_id is None or owner_row_id is None:
            return None

        fields = []
        values: List[Any] = []
        for attr, column in UPDATABLE_COLUMNS.items():
            if attr in changes:
                fields.append(f"{column} = %s")
                values.append(changes[attr])

        if image is not None:
            fields.append("image_data = %s")
            values.append(psycopg2.Binary(image.data))
            fields.append("image_content_type = %s")
            values.append(image.content_type)

        if not fields:
            return None

        sql = f"""
            UPDATE events e SET {', '.join(fields)}
            WHERE e.event_id = %s AND e.admin_id = %s
            RETURNING {EVENT_COLUMNS};
        """
        values.extend([row_id, owner_row_id])

        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, values)
                row = cur.fetchone()
        return row_to_event(row) if row else None

    def delete_event(self, event_id: str, owner_id: str) -> bool:
        row_id = parse_row_id(event_id)
        owner_row_id = parse_row_id(owner_id)
        if row_id is None or owner_row_id is None:
            return False

        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM events WHERE event_id = %s AND admin_id = %s;",
                    (row_id, owner_row_id),
                )
                return cur.rowcount > 0
