"""Shared fixtures for service tests."""

from __future__ import annotations

import datetime
import unittest
from typing import Any, Optional
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

from mockfirestore import MockFirestore

from outings import create_app
from outings.config import OutingConfig
from outings.request.schedule import compute_expiry, local_midnight
from tests.conftest import MockTransaction, patch_mockfirestore

TZ = ZoneInfo("Asia/Kolkata")
# A Monday morning, before that day's outing window closes.
NOW = datetime.datetime(2026, 10, 19, 9, 0, tzinfo=TZ)
MONDAY = datetime.date(2026, 10, 19)

USERS = {
    "alice": {"name": "Alice", "year": 2, "semester": 3, "pushToken": "tok-alice"},
    "bob": {"name": "Bob", "year": 2, "semester": 4, "pushToken": "tok-bob"},
    "carol": {"name": "Carol", "year": 3, "semester": 5, "pushToken": "tok-carol"},
    "dave": {"name": "Dave", "year": 1, "semester": 1, "pushToken": None},
    "erin": {"name": "Erin", "year": 4, "semester": 7, "pushToken": "tok-erin"},
}


class ServiceTestCase(unittest.TestCase):
    """Base case wiring a MockFirestore, a fixed clock and a mocked fan-out."""

    def setUp(self) -> None:
        self.app = create_app({"TESTING": True})
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)

        patch_mockfirestore()
        self.db = MockFirestore()
        self.db.transaction = lambda **kwargs: MockTransaction(self.db, **kwargs)

        patcher = patch(
            "outings.core.transactions.firestore.transactional",
            side_effect=lambda fn: fn,
        )
        self.mock_transactional = patcher.start()
        self.addCleanup(patcher.stop)

        self.config = OutingConfig()
        self.fanout = MagicMock()
        self.now = NOW

        for uid, profile in USERS.items():
            self.db.collection("users").document(uid).set(dict(profile))

    def clock(self) -> datetime.datetime:
        return self.now

    def seed_request(
        self,
        request_id: str,
        creator: str,
        members: Optional[list[str]] = None,
        status: Optional[str] = None,
        date: datetime.date = MONDAY,
        time: str = "17:30",
        **extra: Any,
    ) -> None:
        """Write a request document directly, bypassing the create checks."""
        members = members or [creator]
        if status is None:
            status = {1: "pending", 2: "matched"}.get(len(members), "ready")
        data = {
            "creatorId": creator,
            "date": local_midnight(date, TZ),
            "dateKey": date.isoformat(),
            "time": time,
            "members": members,
            "status": status,
            "preferences": {"year": [], "semester": []},
            "expiresAt": compute_expiry(date, TZ),
            "createdAt": self.now,
            "updatedAt": self.now,
            "version": 1,
        }
        data.update(extra)
        self.db.collection("outing_requests").document(request_id).set(data)

    def seed_group(
        self, group_id: str, members: list[str], status: str = "active"
    ) -> None:
        self.db.collection("groups").document(group_id).set(
            {
                "requestId": group_id,
                "members": members,
                "status": status,
                "outingDate": local_midnight(MONDAY, TZ),
                "outingDateKey": MONDAY.isoformat(),
                "outingTime": "17:30",
                "createdAt": self.now,
                "updatedAt": self.now,
                "completedAt": None,
                "version": 1,
            }
        )

    def doc(self, collection: str, doc_id: str) -> dict[str, Any]:
        snapshot = self.db.collection(collection).document(doc_id).get()
        return snapshot.to_dict() if snapshot.exists else {}

    # Fan-out inspection

    def outboxes(self) -> list[Any]:
        return [c.args[0] for c in self.fanout.dispatch.call_args_list]

    def events(self, name: Optional[str] = None) -> list[Any]:
        return [
            event
            for outbox in self.outboxes()
            for event in outbox.events
            if name is None or event.event == name
        ]

    def pushes(self, title: Optional[str] = None) -> list[Any]:
        return [
            message
            for outbox in self.outboxes()
            for message in outbox.pushes
            if title is None or message.title == title
        ]
