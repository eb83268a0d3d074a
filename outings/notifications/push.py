"""Push notifications through Firebase Cloud Messaging."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import firebase_admin
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from outings.utils import utc_now

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)

EXTENSION_KEY = "outings.push"


@dataclass(frozen=True)
class PushResult:
    """Outcome of a single push delivery."""

    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None


class PushNotifier:
    """Flask extension that sends push notifications to device tokens."""

    def __init__(self, app: Optional[Flask] = None) -> None:
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        app.extensions[EXTENSION_KEY] = self

    def send(
        self,
        push_token: Optional[str],
        title: str,
        body: str,
        data: Optional[dict[str, Any]] = None,
    ) -> PushResult:
        """Send one notification.

        A missing token is a no-op. When Firebase has not been initialized the
        notification is only logged.
        """
        if not push_token:
            return PushResult(True)

        if not firebase_admin._apps:
            logger.info(f"[Push Notification] {title}: {body} {data or {}}")
            return PushResult(True)

        # FCM data payloads only carry strings.
        payload = {k: str(v) for k, v in (data or {}).items()}
        payload["timestamp"] = utc_now().isoformat()
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=payload,
            token=push_token,
        )
        try:
            message_id = messaging.send(message)
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            return PushResult(False, error=str(e))
        return PushResult(True, message_id=message_id)
