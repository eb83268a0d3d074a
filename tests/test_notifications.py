"""Tests for the notification fan-out, push notifier and realtime publisher."""

from __future__ import annotations

import json
import unittest
from unittest.mock import MagicMock, patch

import redis
from firebase_admin import exceptions as firebase_exceptions

from outings import create_app
from outings.errors import ExternalServiceError
from outings.notifications.fanout import EventFanout, Outbox, plural
from outings.notifications.push import PushNotifier, PushResult
from outings.notifications.realtime import RealtimePublisher, channel_name


class OutboxTestCase(unittest.TestCase):
    def test_collects_events_and_pushes(self):
        outbox = Outbox()
        self.assertFalse(outbox)
        outbox.publish("req1", "member-joined", {"memberCount": 2})
        outbox.push("alice", "Title", "Body", {"type": "member-joined"})
        outbox.push(["bob", "carol"], "Title", "Body")
        self.assertTrue(outbox)
        self.assertEqual([e.event for e in outbox.events], ["member-joined"])
        self.assertEqual([p.user_id for p in outbox.pushes], ["alice", "bob", "carol"])

    def test_plural(self):
        self.assertEqual(plural(1), "1 member")
        self.assertEqual(plural(3), "3 members")


class EventFanoutTestCase(unittest.TestCase):
    """Delivery failures never escape the fan-out."""

    def setUp(self):
        self.publisher = MagicMock()
        self.pusher = MagicMock()
        self.pusher.send.return_value = PushResult(True)
        self.directory = MagicMock()
        self.directory.push_tokens.return_value = {"alice": "tok-alice"}
        self.fanout = EventFanout(
            self.publisher, self.pusher, self.directory, background=False
        )
        self.outbox = Outbox()
        self.outbox.publish("req1", "member-left", {"remainingMembers": 2})
        self.outbox.push(["alice", "dave"], "Member Left Outing", "Bob left")

    def test_delivers_events_and_pushes(self):
        self.fanout.dispatch(self.outbox)
        self.publisher.publish.assert_called_once_with(
            "req1", "member-left", {"remainingMembers": 2}
        )
        # dave has no token and is skipped.
        self.pusher.send.assert_called_once_with(
            "tok-alice", "Member Left Outing", "Bob left", {}
        )

    def test_publish_failure_is_swallowed(self):
        self.publisher.publish.side_effect = ExternalServiceError("redis down")
        self.fanout.dispatch(self.outbox)
        self.pusher.send.assert_called_once()

    def test_push_failure_is_swallowed(self):
        self.pusher.send.side_effect = RuntimeError("boom")
        self.fanout.dispatch(self.outbox)
        self.publisher.publish.assert_called_once()

    def test_token_lookup_failure_is_swallowed(self):
        self.directory.push_tokens.side_effect = RuntimeError("firestore down")
        self.fanout.dispatch(self.outbox)
        self.pusher.send.assert_not_called()

    def test_empty_outbox_is_skipped(self):
        self.assertIsNone(self.fanout.dispatch(Outbox()))
        self.directory.push_tokens.assert_not_called()

    def test_background_dispatch_runs_in_app_context(self):
        app = create_app({"TESTING": True})
        fanout = EventFanout(
            self.publisher, self.pusher, self.directory, app=app, background=True
        )
        thread = fanout.dispatch(self.outbox)
        thread.join(timeout=5)
        self.assertFalse(thread.is_alive())
        self.publisher.publish.assert_called_once()
        self.pusher.send.assert_called_once()


class PushNotifierTestCase(unittest.TestCase):
    def setUp(self):
        self.notifier = PushNotifier()

    @patch("outings.notifications.push.messaging")
    def test_missing_token_is_a_no_op(self, mock_messaging):
        result = self.notifier.send(None, "Title", "Body")
        self.assertTrue(result.success)
        mock_messaging.send.assert_not_called()

    @patch("outings.notifications.push.messaging")
    @patch("outings.notifications.push.firebase_admin._apps", {})
    def test_logs_only_without_firebase(self, mock_messaging):
        result = self.notifier.send("tok", "Title", "Body")
        self.assertTrue(result.success)
        mock_messaging.send.assert_not_called()

    @patch("outings.notifications.push.messaging")
    @patch("outings.notifications.push.firebase_admin._apps", {"[DEFAULT]": object()})
    def test_sends_string_payload(self, mock_messaging):
        mock_messaging.send.return_value = "projects/x/messages/1"
        result = self.notifier.send("tok", "Title", "Body", {"memberCount": 3})
        self.assertEqual(result, PushResult(True, message_id="projects/x/messages/1"))
        data = mock_messaging.Message.call_args.kwargs["data"]
        self.assertEqual(data["memberCount"], "3")
        self.assertIn("timestamp", data)

    @patch("outings.notifications.push.messaging")
    @patch("outings.notifications.push.firebase_admin._apps", {"[DEFAULT]": object()})
    def test_send_failure_is_reported(self, mock_messaging):
        mock_messaging.send.side_effect = firebase_exceptions.UnavailableError(
            "unavailable"
        )
        result = self.notifier.send("tok", "Title", "Body")
        self.assertFalse(result.success)
        self.assertIn("unavailable", result.error)


class RealtimePublisherTestCase(unittest.TestCase):
    def setUp(self):
        self.publisher = RealtimePublisher()
        self.publisher.client = MagicMock()

    def test_publish_envelope(self):
        self.publisher.client.publish.return_value = 2
        receivers = self.publisher.publish("req1", "group-ready", {"groupId": "req1"})
        self.assertEqual(receivers, 2)
        channel, raw = self.publisher.client.publish.call_args.args
        self.assertEqual(channel, "group-req1")
        envelope = json.loads(raw)
        self.assertEqual(envelope["type"], "group-ready")
        self.assertEqual(envelope["targetId"], "req1")
        self.assertEqual(envelope["payload"], {"groupId": "req1"})
        self.assertIn("ts", envelope)

    def test_redis_error_is_wrapped(self):
        self.publisher.client.publish.side_effect = redis.ConnectionError("refused")
        with self.assertRaises(ExternalServiceError):
            self.publisher.publish("req1", "group-ready", {})

    def test_unconfigured_publisher(self):
        with self.assertRaises(ExternalServiceError):
            RealtimePublisher().publish("req1", "group-ready", {})

    def test_init_app_registers_extension(self):
        app = create_app({"TESTING": True, "REDIS_URL": "redis://cache:6380/1"})
        publisher = app.extensions["outings.realtime"]
        self.assertIsInstance(publisher, RealtimePublisher)
        self.assertEqual(channel_name("abc"), "group-abc")


if __name__ == "__main__":
    unittest.main()
