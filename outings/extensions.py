"""Flask extensions for the application."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import current_app

from .config import CONFIG_EXTENSION_KEY, OutingConfig
from .notifications import EventFanout, PushNotifier, RealtimePublisher
from .notifications.push import EXTENSION_KEY as PUSH_KEY
from .notifications.realtime import EXTENSION_KEY as REALTIME_KEY
from .user.services import UserDirectory

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

realtime = RealtimePublisher()
push = PushNotifier()


def get_config() -> OutingConfig:
    """Return the frozen outing config of the current app."""
    return current_app.extensions[CONFIG_EXTENSION_KEY]


def get_fanout(db: Client) -> EventFanout:
    """Build the notification fan-out for the current app."""
    return EventFanout(
        publisher=current_app.extensions[REALTIME_KEY],
        pusher=current_app.extensions[PUSH_KEY],
        directory=UserDirectory(db),
        app=current_app._get_current_object(),
        background=current_app.config.get("NOTIFY_IN_BACKGROUND", True),
    )
