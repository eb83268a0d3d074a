"""Routes for the messages blueprint."""

from firebase_admin import firestore
from flask import g, jsonify

from outings.auth.decorators import login_required
from outings.extensions import get_config, get_fanout

from . import bp
from .forms import MessageForm
from .models import serialize_message
from .services import MessageService


def _service() -> MessageService:
    db = firestore.client()
    return MessageService(db, get_config(), get_fanout(db))


@bp.route("/<target_id>", methods=["GET"])
@login_required
def list_messages(target_id):
    messages = _service().list(target_id, g.user["uid"])
    return jsonify(
        {
            "success": True,
            "count": len(messages),
            "messages": [serialize_message(m) for m in messages],
        }
    )


@bp.route("", methods=["POST"])
@login_required
def send_message():
    form = MessageForm().validate_or_raise()
    message = _service().send(form.groupId.data, g.user["uid"], form.text.data)
    return jsonify({"success": True, "message": serialize_message(message)}), 201
