"""
Search filter for the public event catalog.

A filter is built from untrusted query parameters and then either rendered
as a parameterised SQL predicate (Postgres) or applied directly to events
(in-memory store). Both paths share the same semantics:

- search:    case-insensitive substring of title, description, venue or location
- eventType: exact match; "all" or empty means no constraint
- location:  case-insensitive substring, surrounding whitespace ignored
- date:      startDate falls on that calendar day
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, List, Mapping, Optional, Tuple

from eventhub.common.errors import ValidationError
from eventhub.events_service.models import Event, VALID_EVENT_TYPES, parse_date

ALL_EVENT_TYPES = "all"
SEARCH_COLUMNS = ["e.title", "e.description", "e.venue", "e.location"]


def _clean(val: Any) -> Optional[str]:
    if not isinstance(val, str):
        return None
    val = val.strip()
    return val or None


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class EventFilter:
    search: Optional[str] = None
    event_type: Optional[str] = None
    location: Optional[str] = None
    on_date: Optional[date] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "EventFilter":
        """
        Build a filter from query parameters.

        Raises:
            ValidationError: unknown eventType or malformed date.
        """
        errors = {}

        event_type = _clean(args.get("eventType"))
        event_type = event_type.lower() if event_type else None
        if event_type == ALL_EVENT_TYPES:
            event_type = None
        if event_type and event_type not in VALID_EVENT_TYPES:
            errors["eventType"] = f"eventType must be one of: {', '.join(VALID_EVENT_TYPES)}"

        raw_date = _clean(args.get("date"))
        on_date = parse_date(raw_date) if raw_date else None
        if raw_date and on_date is None:
            errors["date"] = "date must be a date (YYYY-MM-DD)"

        if errors:
            raise ValidationError("Invalid search filter", fields=errors)

        return cls(
            search=_clean(args.get("search")),
            event_type=event_type,
            location=_clean(args.get("location")),
            on_date=on_date,
        )

    def is_empty(self) -> bool:
        return not (self.search or self.event_type or self.location or self.on_date)

    def matches(self, event: Event) -> bool:
        if self.search:
            needle = self.search.lower()
            haystack = (event.title, event.description, event.venue, event.location)
            if not any(needle in text.lower() for text in haystack):
                return False
        if self.event_type and event.event_type != self.event_type:
            return False
        if self.location and self.location.lower() not in event.location.lower():
            return False
        if self.on_date and event.start_date != self.on_date:
            return False
        return True

    def to_sql(self) -> Tuple[str, List[Any]]:
        """
        Render the filter as a WHERE fragment over the `events e` alias.

        Returns an empty clause for an empty filter.
        """
        clauses: List[str] = []
        params: List[Any] = []

        if self.search:
            pattern = _like_pattern(self.search)
            clauses.append("(" + " OR ".join(f"{col} ILIKE %s" for col in SEARCH_COLUMNS) + ")")
            params.extend([pattern] * len(SEARCH_COLUMNS))

        if self.event_type:
            clauses.append("e.event_type = %s")
            params.append(self.event_type)

        if self.location:
            clauses.append("e.location ILIKE %s")
            params.append(_like_pattern(self.location))

        if self.on_date:
            # inclusive day start, exclusive next-day boundary
            clauses.append("e.start_date >= %s AND e.start_date < %s::date + 1")
            params.extend([self.on_date, self.on_date])

        return " AND ".join(clauses), params
