"""Routes for the outings blueprint."""

from firebase_admin import firestore
from flask import g, jsonify, request

from outings.auth.decorators import login_required
from outings.extensions import get_config, get_fanout
from outings.user.services import UserDirectory

from . import bp
from .forms import CreateRequestForm, ListRequestsForm
from .lifecycle import LifecycleService


def _matching():
    # outings.matching imports this package, so resolve it at call time.
    from outings.matching.services import MatchingService

    db = firestore.client()
    return MatchingService(db, get_config(), get_fanout(db))


def _lifecycle() -> LifecycleService:
    db = firestore.client()
    return LifecycleService(db, get_config(), get_fanout(db))


@bp.route("", methods=["POST"])
@login_required
def create_request():
    """Open a new outing request."""
    form = CreateRequestForm().validate_or_raise()
    body = request.get_json(silent=True) or {}
    outing_request = _matching().create_request(
        g.user["uid"], form.date.data, form.time.data, body.get("preferences")
    )
    return (
        jsonify(
            {
                "success": True,
                "message": "Outing request created successfully",
                "request": outing_request.to_dict(),
            }
        ),
        201,
    )


@bp.route("", methods=["GET"])
@login_required
def list_requests():
    """Browse open outing requests."""
    form = ListRequestsForm(request.args).validate_or_raise()
    requests = _matching().list_requests(
        g.user["uid"],
        status=form.status.data or None,
        date=form.date.data or None,
        year=form.year.data,
        semester=form.semester.data,
        exclude_own=form.excludeOwn.data,
    )
    return jsonify(
        {
            "success": True,
            "count": len(requests),
            "requests": [r.to_dict() for r in requests],
        }
    )


@bp.route("/my-requests", methods=["GET"])
@login_required
def my_requests():
    requests = _matching().my_requests(g.user["uid"])
    return jsonify(
        {
            "success": True,
            "count": len(requests),
            "requests": [r.to_dict() for r in requests],
        }
    )


@bp.route("/<request_id>", methods=["GET"])
@login_required
def get_request(request_id):
    """Return one request with its members' public profiles."""
    outing_request = _matching().get_request(request_id)
    data = outing_request.to_dict()
    data["memberDetails"] = UserDirectory(firestore.client()).summaries(
        outing_request.members
    )
    return jsonify({"success": True, "request": data})


@bp.route("/<request_id>/cancel", methods=["PUT"])
@login_required
def cancel_request(request_id):
    """Cancel a request as its creator, or leave it as a member."""
    result = _lifecycle().cancel(request_id, g.user["uid"])
    message = (
        "Outing request cancelled successfully"
        if result.was_creator
        else "You have left the outing group"
    )
    return jsonify({"success": True, "message": message, **result.to_dict()})


@bp.route("/<request_id>/start", methods=["PUT"])
@login_required
def start_request(request_id):
    result = _lifecycle().start(request_id, g.user["uid"])
    return jsonify({"success": True, "message": "Outing started", **result.to_dict()})


@bp.route("/<request_id>/complete", methods=["PUT"])
@login_required
def complete_request(request_id):
    result = _lifecycle().complete(request_id, g.user["uid"])
    return jsonify(
        {"success": True, "message": "Outing completed", **result.to_dict()}
    )
