"""
Account registration and credential checks.

Passwords are hashed with Argon2 (salted, adaptive); only the hash is
stored. Login failures for an unknown email and for a wrong password are
reported identically, and an unknown email still pays for one hash
verification so the two cases also take the same time.
"""

import os
import re
from typing import Dict, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from dotenv import load_dotenv

from eventhub.auth_service.models import User, VALID_ROLES, ROLE_USER
from eventhub.common.errors import AuthError, ConflictError, ValidationError
from eventhub.database.storage import Storage

load_dotenv()

ph = PasswordHasher()

# "basic" = length only, "strict" = also upper, lower, digit and special character
PASSWORD_POLICY = os.getenv("PASSWORD_POLICY", "basic").lower()
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 100
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 100

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
STRICT_RULES = [
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[^A-Za-z0-9]"), "a special character"),
]

INVALID_CREDENTIALS = "Invalid email or password"

_dummy_hash: Optional[str] = None


def _timing_dummy_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = ph.hash("not-a-real-password")
    return _dummy_hash


def password_problem(password: str, policy: Optional[str] = None) -> Optional[str]:
    """Return a description of why the password fails policy, or None."""
    policy = policy or PASSWORD_POLICY
    if len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    if len(password) > PASSWORD_MAX_LENGTH:
        return f"Password must be {PASSWORD_MAX_LENGTH} characters or less"
    if policy == "strict":
        missing = [label for rule, label in STRICT_RULES if not rule.search(password)]
        if missing:
            return "Password must contain " + ", ".join(missing)
    return None


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def register_user(store: Storage, name: Optional[str], email: Optional[str],
                  password: Optional[str], role: Optional[str] = None) -> User:
    """
    Create an account.

    Raises:
        ValidationError: any field is malformed (all problems are listed).
        ConflictError: the email is already registered (case-insensitive).
    """
    name = (name or "").strip() if isinstance(name, str) else ""
    email = normalize_email(email) if isinstance(email, str) else ""
    password = password if isinstance(password, str) else ""
    role = role or ROLE_USER

    errors: Dict[str, str] = {}
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        errors["name"] = f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
    if not EMAIL_RE.match(email) or len(email) > EMAIL_MAX_LENGTH:
        errors["email"] = "Invalid email format"
    problem = password_problem(password)
    if problem:
        errors["password"] = problem
    if role not in VALID_ROLES:
        errors["role"] = f"role must be one of: {', '.join(VALID_ROLES)}"

    if errors:
        raise ValidationError("Invalid registration data", fields=errors)

    if store.get_user_by_email(email):
        raise ConflictError("User already exists with this email")

    return store.create_user(name=name, email=email, password_hash=ph.hash(password), role=role)


def verify_credentials(store: Storage, email: Optional[str], password: Optional[str]) -> User:
    """
    Look up a user by email and check the password.

    Raises:
        ValidationError: email or password missing.
        AuthError: unknown email or wrong password (indistinguishable).
    """
    email = normalize_email(email) if isinstance(email, str) else ""
    if not email or not password or not isinstance(password, str):
        raise ValidationError("Email and password required")

    user = store.get_user_by_email(email)
    stored_hash = user.password_hash if user else _timing_dummy_hash()

    try:
        ph.verify(stored_hash, password)
    except (VerificationError, InvalidHashError):
        raise AuthError(INVALID_CREDENTIALS)

    if user is None:
        raise AuthError(INVALID_CREDENTIALS)

    return user
