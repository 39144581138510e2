from typing import Dict, Any, Tuple

from flask import Blueprint, request, jsonify, Response

from eventhub.ai_service.describer import get_describer
from eventhub.ai_service.service import generate_description
from eventhub.auth_service.utils import verify_token_from_request

# --- BLUEPRINT SETUP ---
ai_blueprint = Blueprint('ai', __name__)


@ai_blueprint.route('/generate-description', methods=['POST'])
def handle_generate_description() -> Tuple[Response, int]:
    """
    Generate an event description for the admin's create-event form.

    Expects:
    - title (str)
    - venue (str)
    - eventType (str, optional)
    - location (str, optional)

    Returns:
        200: {"description": str, "isAiGenerated": true}
        400: Missing title or venue.
        401/403: Not an authenticated admin.
        429: Still rate limited after retries (with retryAfter).
        503: AI service not configured or failed.
    """
    identity = verify_token_from_request()
    data: Dict[str, Any] = request.get_json(silent=True) or {}

    result = generate_description(identity, data, get_describer())
    return jsonify(result), 200
