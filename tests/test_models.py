"""Tests for the request and group models."""

from __future__ import annotations

import datetime
import unittest
from zoneinfo import ZoneInfo

from outings.core.transitions import (
    GROUP_TRANSITIONS,
    check_status_transition,
)
from outings.errors import ValidationError
from outings.group.models import Group
from outings.request.models import OutingRequest, Preferences, derive_status

TZ = ZoneInfo("Asia/Kolkata")
MIDNIGHT = datetime.datetime(2026, 10, 19, tzinfo=TZ)
EXPIRY = datetime.datetime(2026, 10, 19, 19, 0, tzinfo=TZ)


def make_request(members, status="pending", creator="alice") -> OutingRequest:
    return OutingRequest(
        id="req1",
        creator_id=creator,
        date=MIDNIGHT,
        date_key="2026-10-19",
        time="17:30",
        expires_at=EXPIRY,
        members=list(members),
        status=status,
    )


class DeriveStatusTestCase(unittest.TestCase):
    def test_thresholds(self) -> None:
        self.assertEqual(derive_status(0), "pending")
        self.assertEqual(derive_status(1), "pending")
        self.assertEqual(derive_status(2), "matched")
        self.assertEqual(derive_status(3), "ready")
        self.assertEqual(derive_status(7), "ready")

    def test_custom_quorum(self) -> None:
        self.assertEqual(derive_status(3, quorum=4), "matched")
        self.assertEqual(derive_status(4, quorum=4), "ready")


class OutingRequestTestCase(unittest.TestCase):
    def test_with_members_recomputes_status(self) -> None:
        request = make_request(["alice"])
        grown = request.with_members(["alice", "bob", "carol"], 3)
        self.assertEqual(grown.status, "ready")
        self.assertEqual(grown.member_count, 3)
        shrunk = grown.with_members(["alice"], 3)
        self.assertEqual(shrunk.status, "pending")
        # The original is untouched.
        self.assertEqual(request.members, ["alice"])

    def test_with_members_dedupes(self) -> None:
        request = make_request(["alice"]).with_members(["alice", "bob", "bob"], 3)
        self.assertEqual(request.members, ["alice", "bob"])
        self.assertEqual(request.status, "matched")

    def test_in_progress_keeps_status(self) -> None:
        request = make_request(["alice", "bob", "carol"], status="in_progress")
        self.assertEqual(request.with_members(["alice"], 3).status, "in_progress")

    def test_from_dict_accepts_legacy_shapes(self) -> None:
        request = OutingRequest.from_dict(
            "req9",
            {
                "userId": "alice",
                "date": MIDNIGHT,
                "time": "18:00",
                "expiresAt": EXPIRY,
                "members": [{"id": "bob"}],
                "status": "matched",
            },
        )
        self.assertEqual(request.creator_id, "alice")
        self.assertEqual(request.members, ["alice", "bob"])
        self.assertEqual(request.date_key, "2026-10-19")
        self.assertTrue(request.preferences.is_empty())

    def test_is_expired_at_window_close(self) -> None:
        request = make_request(["alice"])
        self.assertFalse(request.is_expired(EXPIRY - datetime.timedelta(seconds=1)))
        self.assertTrue(request.is_expired(EXPIRY))

    def test_to_dict_is_json_friendly(self) -> None:
        data = make_request(["alice", "bob"], status="matched").to_dict()
        self.assertEqual(data["id"], "req1")
        self.assertEqual(data["creatorId"], "alice")
        self.assertEqual(data["memberCount"], 2)
        self.assertEqual(data["expiresAt"], EXPIRY.isoformat())


class PreferencesTestCase(unittest.TestCase):
    def test_allows(self) -> None:
        prefs = Preferences.from_dict({"year": [2, 3]})
        self.assertTrue(prefs.allows({"year": 2, "semester": 4}))
        self.assertFalse(prefs.allows({"year": 1}))
        self.assertFalse(prefs.allows(None))
        self.assertTrue(Preferences().allows(None))

    def test_scalar_is_wrapped(self) -> None:
        self.assertEqual(Preferences.from_dict({"semester": "5"}).semester, [5])

    def test_rejects_non_numbers(self) -> None:
        with self.assertRaises(ValidationError):
            Preferences.from_dict({"year": ["second"]})


class TransitionTestCase(unittest.TestCase):
    def test_same_status_is_allowed(self) -> None:
        self.assertIsNone(check_status_transition("ready", "ready"))

    def test_allowed_request_transitions(self) -> None:
        self.assertIsNone(check_status_transition("ready", "in_progress"))
        self.assertIsNone(check_status_transition("in_progress", "completed"))
        self.assertIsNone(check_status_transition("matched", "pending"))

    def test_terminal_request_statuses(self) -> None:
        message = check_status_transition("cancelled", "pending")
        self.assertEqual(
            message,
            "Transition from cancelled to pending is not allowed. "
            "From cancelled only allowed: none.",
        )
        self.assertIsNotNone(check_status_transition("pending", "in_progress"))

    def test_group_transitions(self) -> None:
        self.assertIsNone(
            check_status_transition("cancelled", "active", GROUP_TRANSITIONS)
        )
        self.assertIsNotNone(
            check_status_transition("completed", "active", GROUP_TRANSITIONS)
        )


class GroupModelTestCase(unittest.TestCase):
    def test_round_trip_through_firestore_shape(self) -> None:
        group = Group(
            id="req1",
            request_id="req1",
            members=["alice", "bob", "carol"],
            outing_date=MIDNIGHT,
            outing_date_key="2026-10-19",
            outing_time="17:30",
        )
        restored = Group.from_dict("req1", group.to_firestore())
        self.assertEqual(restored, group)
        self.assertTrue(restored.is_active)
        self.assertEqual(group.to_dict()["outingDate"], MIDNIGHT.isoformat())


if __name__ == "__main__":
    unittest.main()
