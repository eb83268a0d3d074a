"""JSON error handlers for the API."""

from flask import Blueprint, current_app, jsonify
from werkzeug.exceptions import HTTPException

from .errors import AppError

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(kind, message, status_code):
    return (
        jsonify({"success": False, "error": kind, "message": message}),
        status_code,
    )


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles application errors raised by services and routes."""
    if error.status_code >= 500:
        current_app.logger.error(f"{type(error).__name__}: {error.message}")
    else:
        current_app.logger.warning(f"{type(error).__name__}: {error.message}")
    return _error_response(error.kind, error.message, error.status_code)


@error_handlers_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    """Handles werkzeug errors such as unknown routes or bad methods."""
    kind = (e.name or "error").lower().replace(" ", "_")
    return _error_response(kind, e.description, e.code)


@error_handlers_bp.app_errorhandler(Exception)
def handle_unexpected_error(e):
    """Handles unexpected server errors."""
    current_app.logger.exception(f"Internal Server Error: {e}")
    return _error_response("server_error", "An unexpected error occurred.", 500)
