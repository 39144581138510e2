"""
API gateway: combines the auth, events, and AI blueprints.
This is the local entrypoint for development.
"""

import logging
import os
import time
from typing import Optional

from flask import Flask, Response, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
from dotenv import load_dotenv

from eventhub.common.errors import EventHubError, RateLimited, ValidationError
from eventhub.database.storage import Storage, init_storage, set_storage

load_dotenv()

logger = logging.getLogger("eventhub")

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",  # Vite dev server
    "http://localhost:5500",  # Local development (some editors)
    "http://localhost:5050",  # Local development gateway (if served from same host)
    "http://localhost:8080",  # Local static server
]
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()] or DEFAULT_CORS_ORIGINS

# multipart bodies carry one image of at most 5 MiB plus form fields
MAX_CONTENT_LENGTH = 6 * 1024 * 1024


def configure_logging() -> None:
    # Basic console logging during API requests
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def register_request_logging(app: Flask) -> None:
    @app.before_request
    def before_request() -> None:
        """Log method and path only; headers carry bearer tokens."""
        g.request_started = time.perf_counter()
        logger.info(f"Incoming {request.method} {request.path}")

    @app.after_request
    def after_request(response: Response) -> Response:
        started = g.get("request_started")
        elapsed = (time.perf_counter() - started) * 1000 if started else 0.0
        logger.info(f"Response {response.status} in {elapsed:.0f}ms")
        return response


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(EventHubError)
    def handle_domain_error(error: EventHubError):
        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        if isinstance(error, RateLimited):
            response.headers["Retry-After"] = str(error.retry_after)
        return response

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(error: RequestEntityTooLarge):
        return handle_domain_error(
            ValidationError("Upload too large", fields={"image": "Image must be 5MB or smaller"})
        )

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description, "category": error.name.lower().replace(" ", "_")}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return jsonify({"error": "Internal server error", "category": "internal_error"}), 500


def create_app(storage: Optional[Storage] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        storage: storage to use; defaults to the STORAGE_BACKEND from the environment.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH

    CORS(app, resources={
        r"/api/*": {
            "origins": CORS_ORIGINS,
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "expose_headers": ["Content-Type", "Authorization", "Retry-After"],
            "supports_credentials": True
        }
    })

    if storage is None:
        init_storage()
    else:
        set_storage(storage)

    # --- REGISTER BLUEPRINTS ---
    from eventhub.auth_service.routes import auth_bp
    from eventhub.events_service.routes import events_bp
    from eventhub.ai_service.routes import ai_blueprint

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(events_bp, url_prefix="/api/events")
    app.register_blueprint(ai_blueprint, url_prefix="/api/ai")

    register_request_logging(app)
    register_error_handlers(app)

    logger.info("All blueprints registered successfully.")

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"status": "gateway_ok"}), 200

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    return app


def main() -> None:
    configure_logging()
    app = create_app()
    port = int(os.getenv("GATEWAY_PORT", 5050))
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_DEBUG") == "1")


if __name__ == "__main__":
    main()
