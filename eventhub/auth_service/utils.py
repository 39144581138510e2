"""
Shared authentication helpers.
Provides token creation, verification, and role enforcement.
"""

import os
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence
from flask import request
from dotenv import load_dotenv

from eventhub.auth_service.models import Identity, User
from eventhub.common.errors import Forbidden, Unauthorized

# Load .env only once here
load_dotenv()

# Load secrets & configs
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET is missing. Set it in .env")

TOKEN_EXPIRATION_MINUTES = int(os.getenv("TOKEN_EXPIRATION_MINUTES", 1440))  # Default 24 hours
JWT_ALGORITHM = "HS256"


# --- JWT CREATION ---
def create_token(user: User) -> str:
    """
    Generates a new JWT for a given user.

    The token embeds id, email and role so that later requests can be
    authorized without a database lookup.

    Args:
        user (User): The authenticated user.

    Returns:
        str: Encoded JWT string.
    """
    now = datetime.now(timezone.utc)

    payload = {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "exp": now + timedelta(minutes=TOKEN_EXPIRATION_MINUTES),
        "iat": now
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


# --- JWT VALIDATION ---
def authenticate(token: Optional[str]) -> Identity:
    """
    Resolve a bearer token into the caller's identity.

    Raises:
        Unauthorized: no token was presented.
        Forbidden: the signature is invalid or the token has expired.
    """
    if not token:
        raise Unauthorized("Access token required")

    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Forbidden("Token expired")
    except jwt.InvalidTokenError:
        raise Forbidden("Invalid token")

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        raise Forbidden("Invalid token")

    return Identity(id=str(user_id), email=payload.get("email", ""), role=role)


def require_role(identity: Identity, role: str) -> None:
    """Raise Forbidden unless the identity holds exactly `role`."""
    if identity.role != role:
        raise Forbidden(f"{role.capitalize()} access required")


def bearer_token_from_request() -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def verify_token_from_request(required_roles: Optional[Sequence[str]] = None) -> Identity:
    """
    Verify the JWT in the Authorization header.

    Args:
        required_roles (list, optional): List of allowed roles.

    Returns:
        Identity: the caller.
    """
    identity = authenticate(bearer_token_from_request())

    if required_roles and identity.role not in required_roles:
        raise Forbidden("Permission denied")

    return identity
