"""Routes for the matching blueprint."""

from firebase_admin import firestore
from flask import g, jsonify

from outings.auth.decorators import login_required
from outings.extensions import get_config, get_fanout
from outings.user.services import UserDirectory

from . import bp
from .services import MatchingService


def _service() -> MatchingService:
    db = firestore.client()
    return MatchingService(db, get_config(), get_fanout(db))


@bp.route("/join/<request_id>", methods=["POST"])
@login_required
def join_request(request_id):
    """Join someone else's outing request."""
    result = _service().join(request_id, g.user["uid"])
    count = result.request.member_count
    if result.group_ready:
        message = f"Group ready! You now have {count} members."
    else:
        needed = max(get_config().quorum_size - count, 0)
        message = f"Joined successfully. {needed} more member(s) needed."
    return jsonify({"success": True, "message": message, **result.to_dict()})


@bp.route("/suggestions", methods=["GET"])
@login_required
def suggestions():
    requests = _service().suggestions(g.user["uid"])
    return jsonify(
        {
            "success": True,
            "count": len(requests),
            "suggestions": [r.to_dict() for r in requests],
        }
    )


@bp.route("/auto-match", methods=["POST"])
@login_required
def auto_match():
    """Join every compatible request for the caller's open request."""
    result = _service().auto_match(g.user["uid"])
    count = result.request.member_count
    if result.group_ready:
        message = f"Auto-matched successfully! Group ready with {count} members."
    else:
        needed = max(get_config().quorum_size - count, 0)
        message = (
            f"Auto-matched with {len(result.joined_requests)} request(s). "
            f"{needed} more member(s) needed."
        )
    return jsonify({"success": True, "message": message, **result.to_dict()})


@bp.route("/active-group", methods=["GET"])
@login_required
def active_group():
    """Return the caller's active group, or their open request shaped like one."""
    target = _service().get_active_group(g.user["uid"])
    group = target.to_dict()
    group["memberDetails"] = UserDirectory(firestore.client()).summaries(
        target.members
    )
    return jsonify({"success": True, "group": group, "type": target.kind})


@bp.route("/history", methods=["GET"])
@login_required
def history():
    """The caller's finished outings, newest first."""
    groups = _service().history(g.user["uid"])
    return jsonify(
        {
            "success": True,
            "count": len(groups),
            "history": [group.to_dict() for group in groups],
        }
    )


@bp.route("/statistics", methods=["GET"])
@login_required
def statistics():
    stats = _service().statistics(g.user["uid"])
    return jsonify({"success": True, "statistics": stats})
