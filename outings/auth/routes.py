"""Routes for the auth blueprint."""

from flask import g, jsonify

from . import bp
from .decorators import login_required


@bp.route("/me", methods=["GET"])
@login_required
def me():
    """Return the profile of the authenticated caller."""
    user = {k: v for k, v in g.user.items() if k != "pushToken"}
    return jsonify({"success": True, "user": user})
