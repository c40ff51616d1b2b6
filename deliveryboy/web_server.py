"""Web server for queuing feed entries and triggering digests."""

import hmac
import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import settings
from .delivery import DigestDelivery
from .models import EntryValidationError
from .notifiers.base import DispatchError

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when a request carries no key or the wrong one."""

    pass


def create_web_server(delivery: DigestDelivery, api_key: Optional[str] = None) -> Flask:
    """Create Flask web server around a digest delivery pipeline."""

    app = Flask(__name__)
    expected_key = api_key if api_key is not None else settings.key

    def check_key() -> None:
        """Match the bearer token against the configured key."""
        header = request.headers.get("Authorization")
        if not header:
            raise AuthError("No key!")

        parts = header.split(" ", 1)
        token = parts[1].strip() if len(parts) == 2 else ""
        if not expected_key or not hmac.compare_digest(
            token.encode(), expected_key.encode()
        ):
            raise AuthError("Wrong key!")

    def require_key(view: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            check_key()
            return view(*args, **kwargs)

        return wrapper

    @app.errorhandler(AuthError)
    def handle_auth_error(e: AuthError) -> Any:
        logger.warning(f"Rejected {request.method} {request.path}: {e}")
        return str(e), 403

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception) -> Any:
        if isinstance(e, HTTPException):
            return e
        logger.exception(f"Error handling {request.method} {request.path}")
        return "Internal error", 500

    @app.route("/", methods=["GET"])
    def root() -> Any:
        """Root endpoint."""
        return jsonify(
            {
                "service": "delivery-boy",
                "status": "running",
                "period": delivery.resolver.period,
            }
        )

    @app.route("/health", methods=["GET"])
    def health_check() -> Any:
        """Health check endpoint."""
        return jsonify({"status": "healthy", "service": "delivery-boy"})

    @app.route("/ingest", methods=["GET"])
    @require_key
    def pending_entries() -> Any:
        """Entries queued for the next digest."""
        bucket, entries = delivery.pending_entries()
        if entries is None:
            logger.info(f"No entries queued for {bucket.key}")
            return jsonify([]), 404
        return jsonify([entry.to_dict() for entry in entries])

    @app.route("/ingest", methods=["PUT"])
    @require_key
    def add_entry() -> Any:
        """Queue a feed entry for the next digest."""
        payload = request.get_json(silent=True)
        try:
            delivery.add_entry(payload)
        except EntryValidationError as e:
            return f"Cannot parse feed JSON: {e}", 400
        return "Saved feed entry!"

    @app.route("/ingest", methods=["POST"])
    @require_key
    def send_digest() -> Any:
        """Send the digest now. Does not disturb the schedule."""
        try:
            return delivery.send_digest()
        except DispatchError as e:
            logger.error(f"Manual digest failed: {e}")
            return f"Could not send digest: {e}", 502

    return app
