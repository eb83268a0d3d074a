"""Service layer for group chat."""

from __future__ import annotations

import datetime
from collections.abc import Callable
from typing import TYPE_CHECKING, Optional, cast

from firebase_admin import firestore
from flask import current_app

from outings.core.constants import (
    EVENT_NEW_MESSAGE,
    MESSAGE_MAX_LENGTH,
    MESSAGES_COLLECTION,
)
from outings.errors import AuthorizationError, PolicyError, ValidationError
from outings.group.resolver import OutingTarget, resolve_target
from outings.group.store import GroupStore
from outings.notifications.fanout import Outbox
from outings.request.store import RequestStore
from outings.user.services import UserDirectory, smart_display_name
from outings.utils import utc_now

from .models import Message, serialize_message

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from outings.config import OutingConfig
    from outings.notifications.fanout import EventFanout


class MessageService:
    """Sends and lists messages scoped to the members of a group or request."""

    def __init__(
        self,
        db: Client,
        config: OutingConfig,
        fanout: EventFanout,
        clock: Callable[[], datetime.datetime] = utc_now,
    ) -> None:
        self.db = db
        self.config = config
        self.fanout = fanout
        self.clock = clock
        self.requests = RequestStore(db)
        self.groups = GroupStore(db)
        self.users = UserDirectory(db)

    def _member_target(self, target_id: str, user_id: str) -> OutingTarget:
        if not target_id:
            raise ValidationError("Please provide groupId.")
        target = resolve_target(self.groups, self.requests, target_id)
        if not target.is_member(user_id):
            raise AuthorizationError("Not authorized to access messages for this group.")
        return target

    def send(self, target_id: str, user_id: str, text: Optional[str]) -> Message:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Please provide message text.")
        if len(text) > MESSAGE_MAX_LENGTH:
            raise ValidationError(
                f"Messages are limited to {MESSAGE_MAX_LENGTH} characters."
            )

        target = self._member_target(target_id, user_id)
        if len(target.members) < self.config.chat_min_members:
            raise PolicyError("Chat opens once someone else joins the outing.")

        sender = self.users.get(user_id)
        data = {
            "targetId": target.id,
            "senderId": user_id,
            "senderName": smart_display_name(sender),
            "text": text,
            "timestamp": self.clock(),
        }
        ref = self.db.collection(MESSAGES_COLLECTION).document()
        ref.set(data)
        message = cast(Message, {"id": ref.id, **data})
        current_app.logger.debug(f"Message {ref.id} sent to {target.id} by {user_id}")

        outbox = Outbox()
        outbox.publish(target.id, EVENT_NEW_MESSAGE, serialize_message(message))
        self.fanout.dispatch(outbox)
        return message

    def list(self, target_id: str, user_id: str) -> list[Message]:
        """Messages for a group or request, oldest first."""
        target = self._member_target(target_id, user_id)
        query = self.db.collection(MESSAGES_COLLECTION).where(
            filter=firestore.FieldFilter("targetId", "==", target.id)
        )
        messages = [
            cast(Message, {"id": snapshot.id, **(snapshot.to_dict() or {})})
            for snapshot in query.stream()
        ]
        messages.sort(key=lambda m: m.get("timestamp") or self.clock())
        return messages[: self.config.message_history_limit]
