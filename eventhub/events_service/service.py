"""
Event lifecycle: create, read, update and delete with role and ownership rules.

Every mutating call takes the caller's Identity explicitly. Role checks run
before any storage access. Ownership is enforced by the storage layer's
compound (id, owner) predicates so a concurrent request can never act on
stale state.
"""

import logging
from typing import Any, List, Mapping, Optional

from eventhub.auth_service.models import Identity, ROLE_ADMIN
from eventhub.auth_service.utils import require_role
from eventhub.common.errors import Forbidden, NotFound, ValidationError
from eventhub.database.storage import Storage
from eventhub.events_service.images import UploadedImage, validate_image
from eventhub.events_service.models import Event, EventWithOwner, validate_event_fields
from eventhub.events_service.search import EventFilter

logger = logging.getLogger(__name__)

EVENT_NOT_FOUND = "Event not found"


def create_event(store: Storage, identity: Identity, payload: Mapping[str, Any],
                 image: Optional[UploadedImage] = None) -> EventWithOwner:
    """
    Create an event owned by the caller.

    Any owner id in the payload is ignored; the owner is always the caller.

    Raises:
        Forbidden: caller is not an admin.
        ValidationError: payload or image is invalid.
        NotFound: the caller's account no longer exists.
    """
    require_role(identity, ROLE_ADMIN)

    fields = validate_event_fields(payload)
    event_image = validate_image(image) if image else None

    owner = store.get_user(identity.id)
    if owner is None:
        raise NotFound("User not found")

    event = store.create_event(owner.id, fields, event_image)
    logger.info(f"Event {event.id} created by {owner.id}")
    return EventWithOwner(event=event, owner=owner)


def list_public_events(store: Storage, event_filter: Optional[EventFilter] = None) -> List[EventWithOwner]:
    """Public catalog, newest first. An empty filter skips filtering entirely."""
    if event_filter is None or event_filter.is_empty():
        return store.list_events()
    return store.search_events(event_filter)


def list_owned_events(store: Storage, identity: Identity) -> List[Event]:
    require_role(identity, ROLE_ADMIN)
    return store.get_events_by_owner(identity.id)


def get_event_by_id(store: Storage, event_id: str) -> EventWithOwner:
    event = store.get_event(event_id)
    if event is None:
        raise NotFound(EVENT_NOT_FOUND)
    return event


def update_event(store: Storage, identity: Identity, event_id: str, payload: Mapping[str, Any],
                 image: Optional[UploadedImage] = None) -> Event:
    """
    Apply a partial update to one of the caller's events.

    Raises:
        Forbidden: caller is not an admin, or does not own the event.
        NotFound: no such event.
        ValidationError: a supplied field is invalid, or nothing was supplied.
    """
    require_role(identity, ROLE_ADMIN)

    current = store.get_event(event_id)
    if current is None:
        raise NotFound(EVENT_NOT_FOUND)
    if current.event.owner_id != identity.id:
        raise Forbidden("You can only update your own events")

    changes = validate_event_fields(payload, current=current.event)
    event_image = validate_image(image) if image else None
    if not changes and event_image is None:
        raise ValidationError("No update data provided")

    updated = store.update_event(event_id, identity.id, changes, event_image)
    if updated is None:
        # deleted between the read and the write
        raise NotFound(EVENT_NOT_FOUND)

    logger.info(f"Event {event_id} updated by {identity.id}: {sorted(changes)}")
    return updated


def delete_event(store: Storage, identity: Identity, event_id: str) -> None:
    """
    Delete one of the caller's events.

    "Does not exist" and "not yours" both raise NotFound.
    """
    require_role(identity, ROLE_ADMIN)

    if not store.delete_event(event_id, identity.id):
        raise NotFound("Event not found or you don't have permission to delete it")

    logger.info(f"Event {event_id} deleted by {identity.id}")
