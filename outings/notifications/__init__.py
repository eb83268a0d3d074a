"""Push and real-time notification delivery."""

from .fanout import EventFanout, Outbox
from .push import PushNotifier, PushResult
from .realtime import RealtimePublisher

__all__ = ["EventFanout", "Outbox", "PushNotifier", "PushResult", "RealtimePublisher"]
