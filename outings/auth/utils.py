"""Bearer-token authentication helpers."""

from firebase_admin import auth, firestore
from flask import current_app, g, request

from outings.core.constants import USERS_COLLECTION

BEARER_PREFIX = "Bearer "


def bearer_token():
    """Return the bearer token of the current request, if any."""
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX) :].strip() or None


def load_user_from_token():
    """Verify the Firebase ID token and attach the caller's profile to ``g``."""
    g.user = None
    id_token = bearer_token()
    if id_token is None:
        return

    try:
        decoded_token = auth.verify_id_token(id_token)
    except (
        auth.InvalidIdTokenError,
        auth.RevokedIdTokenError,
        auth.UserDisabledError,
        auth.CertificateFetchError,
        ValueError,
    ) as e:
        current_app.logger.warning(f"Rejected ID token: {e}")
        return

    uid = decoded_token["uid"]
    db = firestore.client()
    user_doc = db.collection(USERS_COLLECTION).document(uid).get()
    if not user_doc.exists:
        current_app.logger.warning(f"Token for {uid} has no user profile.")
        return
    g.user = user_doc.to_dict() or {}
    g.user["uid"] = uid
