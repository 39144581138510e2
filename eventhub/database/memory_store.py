"""
In-memory storage backend.

Used for local runs without Postgres and by the test suite. A single lock
guards both tables so the (id, owner) delete and update are atomic, the
same way a single SQL statement is.
"""

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from itertools import count
from typing import Any, Dict, List, Optional

from eventhub.auth_service.models import User
from eventhub.common.errors import ConflictError
from eventhub.database.storage import Storage
from eventhub.events_service.models import Event, EventImage, EventWithOwner
from eventhub.events_service.search import EventFilter


class MemoryStorage(Storage):

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[str, User] = {}
        self._events: Dict[str, Event] = {}
        # insertion sequence breaks created_at ties
        self._seq = count()
        self._order: Dict[str, int] = {}

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    # --- users ---
    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user
        return None

    def create_user(self, name: str, email: str, password_hash: str, role: str) -> User:
        email = email.strip().lower()
        with self._lock:
            if any(u.email == email for u in self._users.values()):
                raise ConflictError("User already exists with this email")
            user = User(
                id=self._new_id(),
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                created_at=datetime.now(timezone.utc),
            )
            self._users[user.id] = user
            return user

    # --- events ---
    def _with_owner(self, event: Event) -> Optional[EventWithOwner]:
        owner = self._users.get(event.owner_id)
        if owner is None:
            return None
        return EventWithOwner(event=event, owner=owner)

    def _newest_first(self, events: List[Event]) -> List[Event]:
        return sorted(events, key=lambda e: (e.created_at, self._order[e.id]), reverse=True)

    def create_event(self, owner_id: str, fields: Dict[str, Any], image: Optional[EventImage]) -> Event:
        with self._lock:
            event = Event(
                id=self._new_id(),
                owner_id=owner_id,
                image=image,
                created_at=datetime.now(timezone.utc),
                **fields,
            )
            self._events[event.id] = event
            self._order[event.id] = next(self._seq)
            return event

    def get_event(self, event_id: str) -> Optional[EventWithOwner]:
        with self._lock:
            event = self._events.get(event_id)
            return self._with_owner(event) if event else None

    def list_events(self) -> List[EventWithOwner]:
        return self.search_events(EventFilter())

    def search_events(self, event_filter: EventFilter) -> List[EventWithOwner]:
        with self._lock:
            matched = [e for e in self._events.values() if event_filter.matches(e)]
            results = []
            for event in self._newest_first(matched):
                enriched = self._with_owner(event)
                if enriched:
                    results.append(enriched)
            return results

    def get_events_by_owner(self, owner_id: str) -> List[Event]:
        with self._lock:
            return self._newest_first([e for e in self._events.values() if e.owner_id == owner_id])

    def update_event(self, event_id: str, owner_id: str, changes: Dict[str, Any],
                     image: Optional[EventImage]) -> Optional[Event]:
        with self._lock:
            event = self._events.get(event_id)
            if event is None or event.owner_id != owner_id:
                return None
            if image is not None:
                changes = dict(changes, image=image)
            updated = replace(event, **changes)
            self._events[event_id] = updated
            return updated

    def delete_event(self, event_id: str, owner_id: str) -> bool:
        with self._lock:
            event = self._events.get(event_id)
            if event is None or event.owner_id != owner_id:
                return False
            del self._events[event_id]
            del self._order[event_id]
            return True
