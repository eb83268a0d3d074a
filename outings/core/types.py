"""Core data types for the outings application."""

from typing import Any, List, Optional, TypedDict  # noqa: UP035


class _FirestoreDocumentBase(TypedDict):
    id: str
    timestamp: Any


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic append-only Firestore document structure."""

    targetId: str


class UserProfile(TypedDict, total=False):
    """A user profile as read from the users collection."""

    uid: str
    name: str
    year: int
    semester: int
    pushToken: Optional[str]


MemberIds = List[str]  # noqa: UP006
