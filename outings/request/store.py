"""Firestore persistence for outing requests."""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from firebase_admin import firestore

from outings.core.constants import REQUESTS_COLLECTION

from .models import OutingRequest

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


def _newest_first(requests: list[OutingRequest]) -> list[OutingRequest]:
    return sorted(
        requests,
        key=lambda r: r.created_at or datetime.datetime.min.replace(
            tzinfo=datetime.timezone.utc
        ),
        reverse=True,
    )


class RequestStore:
    """Reads and writes ``outing_requests`` documents."""

    def __init__(self, db: Client) -> None:
        self.db = db

    @property
    def collection(self):
        return self.db.collection(REQUESTS_COLLECTION)

    def ref(self, request_id: str) -> DocumentReference:
        return self.collection.document(request_id)

    def get(self, request_id: str) -> Optional[OutingRequest]:
        if not request_id:
            return None
        return OutingRequest.from_snapshot(self.ref(request_id).get())

    def get_for_update(
        self, transaction: Transaction, request_id: str
    ) -> Optional[OutingRequest]:
        """Read a request through ``transaction`` so the commit is guarded."""
        snapshot = self.ref(request_id).get(transaction=transaction)
        return OutingRequest.from_snapshot(snapshot)

    def create(self, request: OutingRequest) -> OutingRequest:
        ref = self.collection.document()
        created = replace(request, id=ref.id, version=1)
        ref.set(created.to_firestore())
        return created

    def write(
        self, transaction: Transaction, request: OutingRequest, now: datetime.datetime
    ) -> OutingRequest:
        """Stage a full overwrite of ``request`` and bump its version."""
        updated = replace(request, updated_at=now, version=request.version + 1)
        transaction.set(self.ref(request.id), updated.to_firestore())
        return updated

    def _stream(self, query) -> list[OutingRequest]:
        requests = []
        for snapshot in query.stream():
            request = OutingRequest.from_snapshot(snapshot)
            if request is not None:
                requests.append(request)
        return requests

    def find_by_statuses(self, statuses: Iterable[str]) -> list[OutingRequest]:
        query = self.collection.where(
            filter=firestore.FieldFilter("status", "in", list(statuses))
        )
        return _newest_first(self._stream(query))

    def find_by_creator(
        self, user_id: str, statuses: Optional[Iterable[str]] = None
    ) -> list[OutingRequest]:
        query = self.collection.where(
            filter=firestore.FieldFilter("creatorId", "==", user_id)
        )
        requests = self._stream(query)
        if statuses is not None:
            allowed = set(statuses)
            requests = [r for r in requests if r.status in allowed]
        return _newest_first(requests)

    def find_by_member(
        self, user_id: str, statuses: Optional[Iterable[str]] = None
    ) -> list[OutingRequest]:
        query = self.collection.where(
            filter=firestore.FieldFilter("members", "array_contains", user_id)
        )
        requests = self._stream(query)
        if statuses is not None:
            allowed = set(statuses)
            requests = [r for r in requests if r.status in allowed]
        return _newest_first(requests)
