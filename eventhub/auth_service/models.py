"""
User model for the authentication service.

A user is an identity record: name, email, role and a password hash.
The hash never leaves this module's callers; `public_profile()` and
`to_dict()` are the only shapes that get serialized.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional

ROLE_ADMIN = "admin"
ROLE_USER = "user"
VALID_ROLES = [ROLE_ADMIN, ROLE_USER]


@dataclass
class User:
    id: str
    name: str
    email: str
    password_hash: str
    role: str = ROLE_USER
    created_at: Optional[datetime] = None

    def public_profile(self) -> Dict[str, Any]:
        """Owner projection attached to events: id, name, email."""
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Identity:
    """Caller identity resolved from a bearer token."""

    id: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
