"""The messages blueprint."""

from flask import Blueprint

bp = Blueprint("messages", __name__, url_prefix="/api/messages")

from . import routes  # noqa: E402

__all__ = ["routes"]
