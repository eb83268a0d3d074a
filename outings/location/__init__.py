"""The location blueprint."""

from flask import Blueprint

bp = Blueprint("location", __name__, url_prefix="/api/location")

from . import routes  # noqa: E402

__all__ = ["routes"]
