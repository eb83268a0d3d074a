"""Routes for the location blueprint."""

from firebase_admin import firestore
from flask import g, jsonify

from outings.auth.decorators import login_required
from outings.extensions import get_config, get_fanout

from . import bp
from .forms import LocationForm
from .models import serialize_event
from .services import GateService


def _service() -> GateService:
    db = firestore.client()
    return GateService(db, get_config(), get_fanout(db))


@bp.route("/checkin", methods=["POST"])
@login_required
def check_in():
    """Record that the caller arrived at the gate."""
    form = LocationForm().validate_or_raise()
    event, verified, distance = _service().check_in(
        form.groupId.data, g.user["uid"], form.latitude.data, form.longitude.data
    )
    message = (
        "Check-in successful"
        if verified
        else "Check-in recorded but location not verified"
    )
    return (
        jsonify(
            {
                "success": True,
                "message": message,
                "location": serialize_event(event),
                "verified": verified,
                "distance": distance,
            }
        ),
        201,
    )


@bp.route("/checkout", methods=["POST"])
@login_required
def check_out():
    form = LocationForm().validate_or_raise()
    event = _service().check_out(
        form.groupId.data, g.user["uid"], form.latitude.data, form.longitude.data
    )
    return (
        jsonify(
            {
                "success": True,
                "message": "Check-out successful",
                "location": serialize_event(event),
                "verified": True,
            }
        ),
        201,
    )


@bp.route("/gate-status/<target_id>", methods=["GET"])
@login_required
def gate_status(target_id):
    status = _service().gate_status(target_id, g.user["uid"])
    return jsonify({"success": True, **status})
