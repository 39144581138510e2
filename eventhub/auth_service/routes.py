"""
Authentication service route handlers.

Provides routes for:
- User registration
- User login
- Profile retrieval (/me)

Hashing and credential checks live in `auth_service.credentials`;
JWT logic is delegated to `auth_service.utils`.
"""

from typing import Tuple, Dict, Any

from flask import Blueprint, request, jsonify, Response

from eventhub.auth_service.credentials import register_user, verify_credentials
from eventhub.auth_service.utils import create_token, verify_token_from_request
from eventhub.common.errors import NotFound
from eventhub.database.storage import get_storage

auth_bp = Blueprint("auth", __name__)


# --- REGISTER ---
@auth_bp.route("/register", methods=["POST"])
def register() -> Tuple[Response, int]:
    """
    Register a new user in the system.

    Expects a JSON body with:
    - name (str): 2-50 characters.
    - email (str): Unique email address (case-insensitive).
    - password (str): Minimum 8 characters, stricter rules with PASSWORD_POLICY=strict.
    - role (str, optional): "admin" or "user" (default).

    Returns:
        200: JSON with the public user and a new JWT token.
        400: Invalid input.
        409: Email already exists.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}

    user = register_user(
        get_storage(),
        name=data.get("name"),
        email=data.get("email"),
        password=data.get("password"),
        role=data.get("role"),
    )

    # Generate initial token for immediate login
    token = create_token(user)

    return jsonify({
        "message": "User registered successfully",
        "user": user.to_dict(),
        "token": token
    }), 200


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        200: JSON with the public user and JWT token.
        400: Missing credentials.
        401: Invalid credentials (wrong password or email).
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}

    user = verify_credentials(get_storage(), data.get("email"), data.get("password"))
    token = create_token(user)

    return jsonify({
        "message": "Login successful",
        "user": user.to_dict(),
        "token": token
    }), 200


# --- GET CURRENT USER ---
@auth_bp.route("/me", methods=["GET"])
def get_current_user() -> Tuple[Response, int]:
    """
    Retrieve the current user's profile.

    Requires Authorization header: Bearer <token>

    Returns:
        200: {"user": ...}
        401/403: Authentication failure.
        404: User not found in DB (edge case).
    """
    identity = verify_token_from_request()

    user = get_storage().get_user(identity.id)
    if not user:
        raise NotFound("User not found")

    return jsonify({"user": user.to_dict()}), 200
