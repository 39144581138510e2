"""
Events service routes: public catalog, event details, and admin CRUD.
Request parsing lives here; rules live in `events_service.service`.
"""

from typing import Tuple, Dict, Any

from flask import Blueprint, request, jsonify, Response

from eventhub.auth_service.utils import verify_token_from_request
from eventhub.database.storage import get_storage
from eventhub.events_service import service
from eventhub.events_service.images import read_upload
from eventhub.events_service.search import EventFilter

events_bp = Blueprint("events", __name__)


def event_payload() -> Dict[str, Any]:
    """Fields from a multipart form, or from a JSON body."""
    if request.form:
        return request.form.to_dict()
    return request.get_json(silent=True) or {}


@events_bp.route("", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    Public event catalog, newest first.

    Query params (all optional): search, eventType ("all" = any), location, date (YYYY-MM-DD).

    Returns:
        200: {"events": [...]} with each event's admin profile attached.
        400: Invalid filter.
    """
    event_filter = EventFilter.from_args(request.args)
    events = service.list_public_events(get_storage(), event_filter)
    return jsonify({"events": [e.to_dict() for e in events]}), 200


@events_bp.route("/my", methods=["GET"])
def list_my_events() -> Tuple[Response, int]:
    """Events owned by the calling admin, newest first."""
    identity = verify_token_from_request()
    events = service.list_owned_events(get_storage(), identity)
    return jsonify({"events": [e.to_dict() for e in events]}), 200


@events_bp.route("/<event_id>", methods=["GET"])
def get_event(event_id: str) -> Tuple[Response, int]:
    """
    Get a single event by ID.

    Returns:
        200: {"event": ...}
        404: Event not found.
    """
    event = service.get_event_by_id(get_storage(), event_id)
    return jsonify({"event": event.to_dict()}), 200


@events_bp.route("", methods=["POST"])
def create_event() -> Tuple[Response, int]:
    """
    Create an event (admin only). Multipart fields plus an optional `image` file.

    Returns:
        200: {"message": ..., "event": ...}
        400: Validation error.
        401/403: Missing token, bad token, or not an admin.
    """
    identity = verify_token_from_request()

    event = service.create_event(
        get_storage(), identity, event_payload(), read_upload(request.files.get("image"))
    )

    return jsonify({"message": "Event created successfully", "event": event.to_dict()}), 200


@events_bp.route("/<event_id>", methods=["PUT"])
def update_event(event_id: str) -> Tuple[Response, int]:
    """
    Partially update an event. Only the owning admin may do this.

    Returns:
        200: {"event": ...}
        400: Validation error.
        403: Not an admin, or not the owner.
        404: Event not found.
    """
    identity = verify_token_from_request()

    event = service.update_event(
        get_storage(), identity, event_id, event_payload(), read_upload(request.files.get("image"))
    )

    return jsonify({"event": event.to_dict()}), 200


@events_bp.route("/<event_id>", methods=["DELETE"])
def delete_event(event_id: str) -> Tuple[Response, int]:
    """
    Delete an event if the caller is the admin who owns it.

    Returns:
        200: {"message": ...}
        404: Not found, or not the caller's event.
    """
    identity = verify_token_from_request()

    service.delete_event(get_storage(), identity, event_id)

    return jsonify({"message": "Event deleted successfully"}), 200
