"""
Event model and field validation for the events service.

Events travel over the wire in camelCase (startDate, eventType, ...) and are
held in snake_case dataclasses in Python. `validate_event_fields` is the one
place that knows the length bounds, the enum of event types and the
end >= start rule, and it reports every violated field at once.
"""

import base64
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from eventhub.auth_service.models import User
from eventhub.common.errors import ValidationError

# --- CONSTANTS FOR VALIDATION ---
VALID_EVENT_TYPES = ["conference", "workshop", "networking", "seminar"]

TEXT_BOUNDS = {
    # field: (min, max) measured after trimming
    "title": (3, 100),
    "description": (10, 2000),
    "venue": (3, 200),
    "location": (2, 100),
    "cost": (1, 20),
    "start_time": (1, 20),
    "end_time": (1, 20),
}

# wire name -> attribute name
FIELD_NAMES = {
    "title": "title",
    "description": "description",
    "venue": "venue",
    "startDate": "start_date",
    "endDate": "end_date",
    "startTime": "start_time",
    "endTime": "end_time",
    "cost": "cost",
    "eventType": "event_type",
    "location": "location",
    "isAiGenerated": "is_ai_generated",
}
REQUIRED_FIELDS = [name for name in FIELD_NAMES if name != "isAiGenerated"]

# a calendar date, optionally followed by an ISO-8601 time and offset
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$")

TRUE_STRINGS = ("true", "1", "yes", "on")
FALSE_STRINGS = ("false", "0", "no", "off", "")


@dataclass
class EventImage:
    data: bytes
    content_type: str

    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


@dataclass
class Event:
    id: str
    title: str
    description: str
    venue: str
    start_date: date
    end_date: date
    start_time: str
    end_time: str
    cost: str
    event_type: str
    location: str
    owner_id: str
    is_ai_generated: bool = False
    image: Optional[EventImage] = None
    created_at: Optional[datetime] = None

    @property
    def image_url(self) -> Optional[str]:
        return self.image.data_uri() if self.image else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "venue": self.venue,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "cost": self.cost,
            "eventType": self.event_type,
            "location": self.location,
            "imageUrl": self.image_url,
            "adminId": self.owner_id,
            "isAiGenerated": self.is_ai_generated,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class EventWithOwner:
    """Read projection: an event joined with its owner's public profile."""

    event: Event
    owner: User = field(repr=False)

    @property
    def id(self) -> str:
        return self.event.id

    def to_dict(self) -> Dict[str, Any]:
        data = self.event.to_dict()
        data["admin"] = self.owner.public_profile()
        return data


def parse_date(val: Any) -> Optional[date]:
    """
    Parse a calendar date from a date, datetime or ISO-8601 string.

    Only the date part of a datetime string is kept, so
    '2024-06-15T00:00:00.000Z' parses to 2024-06-15.
    """
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if not isinstance(val, str) or not val.strip():
        return None
    val = val.strip()
    if not ISO_DATE_RE.match(val):
        return None
    try:
        return date.fromisoformat(val[:10])
    except ValueError:
        return None


def parse_bool(val: Any) -> Optional[bool]:
    if isinstance(val, bool):
        return val
    if isinstance(val, str) and val.strip().lower() in TRUE_STRINGS + FALSE_STRINGS:
        return val.strip().lower() in TRUE_STRINGS
    return None


def _check_text(attr: str, label: str, val: Any, errors: Dict[str, str]) -> Optional[str]:
    if val is None or (isinstance(val, str) and not val.strip()):
        errors[label] = f"{label} is required"
        return None
    if not isinstance(val, str):
        errors[label] = f"{label} must be a string"
        return None
    text = val.strip()
    low, high = TEXT_BOUNDS[attr]
    if not low <= len(text) <= high:
        if low == 1:
            errors[label] = f"{label} must be {high} characters or less"
        else:
            errors[label] = f"{label} must be between {low} and {high} characters"
        return None
    return text


def validate_event_fields(data: Mapping[str, Any], current: Optional[Event] = None) -> Dict[str, Any]:
    """
    Validate an event payload and return the cleaned attributes.

    With `current` set the payload is treated as a partial update: only the
    supplied fields are checked, and the date order is re-checked against the
    stored value of whichever date was not supplied.

    Unknown keys (including any owner id) are ignored.

    Raises:
        ValidationError: listing every violated field.
    """
    partial = current is not None
    errors: Dict[str, str] = {}
    cleaned: Dict[str, Any] = {}

    for label, attr in FIELD_NAMES.items():
        if label not in data:
            if not partial and label in REQUIRED_FIELDS:
                errors[label] = f"{label} is required"
            continue

        val = data[label]
        if attr in TEXT_BOUNDS:
            text = _check_text(attr, label, val, errors)
            if text is not None:
                cleaned[attr] = text
        elif attr in ("start_date", "end_date"):
            parsed = parse_date(val)
            if parsed is None:
                errors[label] = f"{label} must be a date (YYYY-MM-DD)"
            else:
                cleaned[attr] = parsed
        elif attr == "event_type":
            if val not in VALID_EVENT_TYPES:
                errors[label] = f"{label} must be one of: {', '.join(VALID_EVENT_TYPES)}"
            else:
                cleaned[attr] = val
        elif attr == "is_ai_generated":
            flag = parse_bool(val)
            if flag is None:
                errors[label] = f"{label} must be a boolean"
            else:
                cleaned[attr] = flag

    touched_dates = "start_date" in cleaned or "end_date" in cleaned
    if touched_dates and "startDate" not in errors and "endDate" not in errors:
        start = cleaned.get("start_date", current.start_date if current else None)
        end = cleaned.get("end_date", current.end_date if current else None)
        if start and end and end < start:
            errors["endDate"] = "endDate must be on or after startDate"

    if errors:
        raise ValidationError("Invalid event data", fields=errors)

    return cleaned
