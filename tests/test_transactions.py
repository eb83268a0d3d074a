"""Tests for the transaction runner."""

import unittest
from unittest.mock import MagicMock, patch

from google.api_core import exceptions as gcp_exceptions

from outings import create_app
from outings.core.transactions import run_in_transaction
from outings.errors import ConflictError


@patch("outings.core.transactions.firestore.transactional", side_effect=lambda fn: fn)
class RunInTransactionTestCase(unittest.TestCase):
    """Test case for run_in_transaction."""

    def setUp(self):
        self.db = MagicMock()
        self.app = create_app({"TESTING": True})
        ctx = self.app.app_context()
        ctx.push()
        self.addCleanup(ctx.pop)

    def test_passes_transaction_and_args(self, mock_transactional):
        fn = MagicMock(return_value="done")
        result = run_in_transaction(self.db, fn, "req1", "alice", max_attempts=3)
        self.assertEqual(result, "done")
        self.db.transaction.assert_called_once_with(max_attempts=3)
        fn.assert_called_once_with(self.db.transaction.return_value, "req1", "alice")

    def test_exhausted_retries_become_conflict(self, mock_transactional):
        fn = MagicMock(
            side_effect=ValueError("Failed to commit transaction in 5 attempts.")
        )
        with self.assertRaises(ConflictError) as ctx:
            run_in_transaction(self.db, fn)
        self.assertEqual(ctx.exception.status_code, 409)

    def test_aborted_becomes_conflict(self, mock_transactional):
        fn = MagicMock(side_effect=gcp_exceptions.Aborted("contention"))
        with self.assertRaises(ConflictError):
            run_in_transaction(self.db, fn)

    def test_conflicts_are_logged_on_the_app_logger(self, mock_transactional):
        fn = MagicMock(side_effect=gcp_exceptions.Conflict("contention"))
        with self.assertLogs(self.app.logger, level="WARNING") as logs:
            with self.assertRaises(ConflictError):
                run_in_transaction(self.db, fn, description="join req1")
        self.assertIn("join req1 aborted after 5 attempts", logs.output[0])

    def test_other_value_errors_propagate(self, mock_transactional):
        fn = MagicMock(side_effect=ValueError("bad input"))
        with self.assertRaises(ValueError):
            run_in_transaction(self.db, fn)

    def test_app_errors_propagate(self, mock_transactional):
        fn = MagicMock(side_effect=ConflictError("This request is full."))
        with self.assertRaises(ConflictError) as ctx:
            run_in_transaction(self.db, fn)
        self.assertEqual(ctx.exception.message, "This request is full.")


if __name__ == "__main__":
    unittest.main()
