"""Firestore persistence for groups."""

from __future__ import annotations

import datetime
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from firebase_admin import firestore

from outings.core.constants import GROUPS_COLLECTION

from .models import Group

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


class GroupStore:
    """Reads and writes ``groups`` documents, keyed by request id."""

    def __init__(self, db: Client) -> None:
        self.db = db

    @property
    def collection(self):
        return self.db.collection(GROUPS_COLLECTION)

    def ref(self, request_id: str) -> DocumentReference:
        return self.collection.document(request_id)

    def get(self, group_id: str) -> Optional[Group]:
        if not group_id:
            return None
        return Group.from_snapshot(self.ref(group_id).get())

    def get_for_update(
        self, transaction: Transaction, request_id: str
    ) -> Optional[Group]:
        snapshot = self.ref(request_id).get(transaction=transaction)
        return Group.from_snapshot(snapshot)

    def write(
        self, transaction: Transaction, group: Group, now: datetime.datetime
    ) -> Group:
        """Stage an upsert of ``group`` and bump its version."""
        updated = replace(group, updated_at=now, version=group.version + 1)
        transaction.set(self.ref(group.id), updated.to_firestore())
        return updated

    def find_by_member(
        self, user_id: str, status: Optional[str] = None
    ) -> list[Group]:
        query = self.collection.where(
            filter=firestore.FieldFilter("members", "array_contains", user_id)
        )
        groups = []
        for snapshot in query.stream():
            group = Group.from_snapshot(snapshot)
            if group is None:
                continue
            if status is not None and group.status != status:
                continue
            groups.append(group)
        return groups
