"""Helpers for running optimistic Firestore transactions."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from firebase_admin import firestore
from flask import current_app
from google.api_core import exceptions as gcp_exceptions

from outings.errors import ConflictError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

T = TypeVar("T")

# google-cloud-firestore raises a plain ValueError once every attempt has
# been rejected by the backend.
EXHAUSTED_PREFIX = "Failed to commit transaction"


def run_in_transaction(
    db: Client,
    fn: Callable[..., T],
    *args: Any,
    max_attempts: int = 5,
    description: str = "transaction",
) -> T:
    """Run ``fn(transaction, *args)`` inside a retried Firestore transaction.

    ``fn`` must only read through ``ref.get(transaction=transaction)`` and only
    write through the transaction, so that the whole body can be replayed when
    a concurrent writer invalidates one of its reads. Exhausted retries are
    reported as a ``ConflictError``.
    """
    transaction = db.transaction(max_attempts=max_attempts)
    try:
        return firestore.transactional(fn)(transaction, *args)
    except (gcp_exceptions.Aborted, gcp_exceptions.Conflict) as e:
        current_app.logger.warning(
            f"{description} aborted after {max_attempts} attempts: {e}"
        )
        raise ConflictError(
            "The outing was modified concurrently. Please try again."
        ) from e
    except ValueError as e:
        if not str(e).startswith(EXHAUSTED_PREFIX):
            raise
        current_app.logger.warning(f"{description} exhausted retries: {e}")
        raise ConflictError(
            "The outing was modified concurrently. Please try again."
        ) from e
