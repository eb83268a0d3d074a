"""The outings blueprint."""

from flask import Blueprint

bp = Blueprint("outings", __name__, url_prefix="/api/outings")

from . import routes  # noqa: E402

__all__ = ["routes"]
