"""
Storage interface shared by the Postgres and in-memory backends.

Services talk to a `Storage` instance and never to a driver directly, so
entity ids are opaque strings regardless of which backend produced them.
The process-wide instance is created once by `init_storage()`.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from eventhub.auth_service.models import User
from eventhub.events_service.models import Event, EventImage, EventWithOwner
from eventhub.events_service.search import EventFilter

load_dotenv()

logger = logging.getLogger(__name__)

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "postgres")

_storage: Optional["Storage"] = None


class Storage(ABC):

    # --- users ---
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup."""

    @abstractmethod
    def create_user(self, name: str, email: str, password_hash: str, role: str) -> User:
        """Raises ConflictError if the email is already registered."""

    # --- events ---
    @abstractmethod
    def create_event(self, owner_id: str, fields: Dict[str, Any], image: Optional[EventImage]) -> Event: ...

    @abstractmethod
    def get_event(self, event_id: str) -> Optional[EventWithOwner]:
        """Returns None for unknown ids and for events whose owner is gone."""

    @abstractmethod
    def list_events(self) -> List[EventWithOwner]:
        """All events with a live owner, newest first."""

    @abstractmethod
    def search_events(self, event_filter: EventFilter) -> List[EventWithOwner]:
        """Events matching the filter with a live owner, newest first."""

    @abstractmethod
    def get_events_by_owner(self, owner_id: str) -> List[Event]:
        """Newest first, no owner enrichment."""

    @abstractmethod
    def update_event(self, event_id: str, owner_id: str, changes: Dict[str, Any],
                     image: Optional[EventImage]) -> Optional[Event]:
        """
        Apply `changes` to the event only if it is owned by `owner_id`.
        Returns None when nothing matched.
        """

    @abstractmethod
    def delete_event(self, event_id: str, owner_id: str) -> bool:
        """Single-statement delete on (id, owner). True if a row was removed."""


def init_storage(backend: Optional[str] = None) -> Storage:
    """Create the process-wide storage. Called once by the gateway."""
    global _storage
    backend = (backend or STORAGE_BACKEND).lower()

    if backend == "memory":
        from eventhub.database.memory_store import MemoryStorage
        _storage = MemoryStorage()
    elif backend == "postgres":
        from eventhub.database.postgres_store import PostgresStorage
        _storage = PostgresStorage()
    else:
        raise RuntimeError(f"Unknown STORAGE_BACKEND '{backend}'. Use 'postgres' or 'memory'.")

    logger.info(f"Storage backend initialized: {backend}")
    return _storage


def set_storage(storage: Storage) -> None:
    global _storage
    _storage = storage


def get_storage() -> Storage:
    if _storage is None:
        raise RuntimeError("Storage is not initialized. Call init_storage() first.")
    return _storage
