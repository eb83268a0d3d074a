"""Data models for chat messages."""

from __future__ import annotations

import datetime
from typing import Any

from outings.core.types import FirestoreDocument


class Message(FirestoreDocument, total=False):
    """A chat message document in Firestore."""

    senderId: str
    senderName: str
    text: str


def serialize_message(message: Message) -> dict[str, Any]:
    data = dict(message)
    timestamp = data.get("timestamp")
    if isinstance(timestamp, datetime.datetime):
        data["timestamp"] = timestamp.isoformat()
    return data
