"""Best-effort delivery of real-time events and pushes after a commit."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from flask import Flask

    from outings.user.services import UserDirectory

    from .push import PushNotifier
    from .realtime import RealtimePublisher

logger = logging.getLogger(__name__)


def plural(count: int, noun: str = "member") -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


@dataclass(frozen=True)
class ChannelEvent:
    """An event published to the channel of a group or request."""

    target_id: str
    event: str
    payload: dict[str, Any]


@dataclass(frozen=True)
class PushMessage:
    """A push notification addressed to a user id."""

    user_id: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class Outbox:
    """Side effects collected while a mutation runs, sent once it commits."""

    events: list[ChannelEvent] = field(default_factory=list)
    pushes: list[PushMessage] = field(default_factory=list)

    def publish(self, target_id: str, event: str, payload: dict[str, Any]) -> None:
        self.events.append(ChannelEvent(target_id, event, payload))

    def push(
        self,
        user_ids,
        title: str,
        body: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        if isinstance(user_ids, str):
            user_ids = [user_ids]
        for user_id in user_ids:
            self.pushes.append(PushMessage(user_id, title, body, dict(data or {})))

    def __bool__(self) -> bool:
        return bool(self.events or self.pushes)


class EventFanout:
    """Delivers an ``Outbox`` through the real-time publisher and push notifier.

    Every delivery failure is logged and swallowed; a committed mutation is
    never failed by its notifications.
    """

    def __init__(
        self,
        publisher: RealtimePublisher,
        pusher: PushNotifier,
        directory: UserDirectory,
        app: Optional[Flask] = None,
        background: bool = True,
    ) -> None:
        self.publisher = publisher
        self.pusher = pusher
        self.directory = directory
        self.app = app
        self.background = background

    def dispatch(self, outbox: Outbox) -> Optional[threading.Thread]:
        """Send everything in ``outbox``, on a background thread if enabled."""
        if not outbox:
            return None
        if self.background and self.app is not None:
            thread = threading.Thread(
                target=self._deliver_in_context, args=(outbox,), daemon=True
            )
            thread.start()
            return thread
        self.deliver(outbox)
        return None

    def _deliver_in_context(self, outbox: Outbox) -> None:
        with self.app.app_context():
            self.deliver(outbox)

    def deliver(self, outbox: Outbox) -> None:
        for event in outbox.events:
            try:
                self.publisher.publish(event.target_id, event.event, event.payload)
            except Exception as e:
                logger.error(
                    f"Failed to publish {event.event} to {event.target_id}: {e}"
                )

        if not outbox.pushes:
            return

        try:
            tokens = self.directory.push_tokens(p.user_id for p in outbox.pushes)
        except Exception as e:
            logger.error(f"Failed to load push tokens: {e}")
            return

        for message in outbox.pushes:
            token = tokens.get(message.user_id)
            if not token:
                continue
            try:
                result = self.pusher.send(
                    token, message.title, message.body, message.data
                )
            except Exception as e:
                logger.error(f"Push to {message.user_id} failed: {e}")
                continue
            if not result.success:
                logger.warning(f"Push to {message.user_id} failed: {result.error}")
