"""Read-only access to user profiles."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional, cast

from outings.core.constants import USERS_COLLECTION
from outings.utils import dedupe

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

    from outings.core.types import UserProfile


def smart_display_name(user: Optional[UserProfile]) -> str:
    """Return a display name for a user profile."""
    if not user:
        return "Someone"
    name = (user.get("name") or "").strip()
    return name or "Someone"


class UserDirectory:
    """Looks up profiles, display names and push tokens."""

    def __init__(self, db: Client) -> None:
        self.db = db

    def get(self, user_id: str) -> Optional[UserProfile]:
        """Fetch a user by their ID."""
        if not user_id:
            return None
        doc = cast(
            "DocumentSnapshot", self.db.collection(USERS_COLLECTION).document(user_id).get()
        )
        if not doc.exists:
            return None
        data = doc.to_dict()
        if data is None:
            return None
        data["uid"] = user_id
        return cast("UserProfile", data)

    def get_many(self, user_ids: Iterable[str]) -> dict[str, UserProfile]:
        profiles = {}
        for user_id in dedupe(user_ids):
            profile = self.get(user_id)
            if profile is not None:
                profiles[user_id] = profile
        return profiles

    def display_name(self, user_id: str) -> str:
        return smart_display_name(self.get(user_id))

    def push_tokens(self, user_ids: Iterable[str]) -> dict[str, str]:
        """Return the push token of each user that has one."""
        return {
            user_id: profile["pushToken"]
            for user_id, profile in self.get_many(user_ids).items()
            if profile.get("pushToken")
        }

    def summaries(self, user_ids: Iterable[str]) -> list[dict]:
        """Return public profile fields for each id, in the given order."""
        user_ids = dedupe(user_ids)
        profiles = self.get_many(user_ids)
        return [
            {
                "id": user_id,
                "name": smart_display_name(profiles.get(user_id)),
                "year": (profiles.get(user_id) or {}).get("year"),
                "semester": (profiles.get(user_id) or {}).get("semester"),
            }
            for user_id in user_ids
        ]
