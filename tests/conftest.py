"""Common utilities for tests."""

from typing import Any, Optional

from mockfirestore import CollectionReference, Query
from mockfirestore.document import DocumentReference


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter and transactions."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:  # noqa: E501
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where

    def doc_ref_eq(self: Any, other: Any) -> bool:
        if not isinstance(other, DocumentReference):
            return False
        return self._path == other._path

    if not hasattr(DocumentReference, "_orig_eq"):
        DocumentReference._orig_eq = DocumentReference.__eq__
        DocumentReference.__eq__ = doc_ref_eq
        DocumentReference.__hash__ = lambda self: hash(tuple(self._path))

    # Reads inside a transaction pass ``transaction=``.
    if not hasattr(DocumentReference, "_orig_get"):
        DocumentReference._orig_get = DocumentReference.get

        def doc_ref_get(self: Any, transaction: Any = None) -> Any:
            return self._orig_get()

        DocumentReference.get = doc_ref_get

    # document() on a missing id leaves an empty placeholder behind.
    if not hasattr(CollectionReference, "_orig_stream"):
        CollectionReference._orig_stream = CollectionReference.stream

        def collection_stream(self: Any, transaction: Any = None) -> Any:
            for snapshot in self._orig_stream():
                if snapshot.exists:
                    yield snapshot

        CollectionReference.stream = collection_stream


class MockTransaction:
    """A transaction stand-in that applies every write immediately."""

    def __init__(self, db: Any, max_attempts: int = 5) -> None:
        self.db = db
        self.max_attempts = max_attempts
        self.writes: list[tuple[str, Any, Any]] = []

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append(("set", ref, data))
        ref.set(data, merge=merge)

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append(("update", ref, data))
        ref.update(data)

    def delete(self, ref: Any) -> None:
        self.writes.append(("delete", ref, None))
        ref.delete()
