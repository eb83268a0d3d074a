"""Real-time events over Redis pub/sub.

Socket gateways subscribe to ``group-<id>`` channels and forward each JSON
envelope to the clients in that room.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Optional

import redis

from outings.core.constants import CHANNEL_PREFIX
from outings.errors import ExternalServiceError
from outings.utils import utc_now

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)

EXTENSION_KEY = "outings.realtime"


def channel_name(target_id: str) -> str:
    return f"{CHANNEL_PREFIX}{target_id}"


class RealtimePublisher:
    """Flask extension wrapping a Redis client used only for ``PUBLISH``."""

    def __init__(self, app: Optional[Flask] = None) -> None:
        self.client: Optional[redis.Redis] = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        timeout = float(app.config.get("REDIS_SOCKET_TIMEOUT", 2.0))
        self.client = redis.Redis.from_url(
            app.config.get("REDIS_URL", "redis://localhost:6379/0"),
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            decode_responses=True,
        )
        app.extensions[EXTENSION_KEY] = self

    def publish(self, target_id: str, event: str, payload: dict[str, Any]) -> int:
        """Publish ``event`` to the channel of ``target_id``.

        Returns the number of subscribers that received it.
        """
        if self.client is None:
            raise ExternalServiceError("Realtime publisher is not configured.")
        envelope = {
            "type": event,
            "targetId": target_id,
            "payload": payload,
            "ts": utc_now().isoformat(),
        }
        try:
            receivers = self.client.publish(
                channel_name(target_id), json.dumps(envelope, default=str)
            )
        except redis.RedisError as e:
            raise ExternalServiceError(f"Realtime publish failed: {e}") from e
        logger.debug(f"Published {event} to {channel_name(target_id)} ({receivers})")
        return receivers
