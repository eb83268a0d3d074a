"""Data models for outing requests."""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Optional

from outings.core.constants import (
    OPEN_STATUSES,
    STATUS_MATCHED,
    STATUS_PENDING,
    STATUS_READY,
    TERMINAL_STATUSES,
)
from outings.errors import ValidationError
from outings.utils import dedupe, normalize_member_ids

from .schedule import parse_time_of_day

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot

    from outings.core.types import UserProfile


def derive_status(member_count: int, quorum: int = 3) -> str:
    """Map a member count onto pending, matched or ready."""
    if member_count < 2:
        return STATUS_PENDING
    if member_count < quorum:
        return STATUS_MATCHED
    return STATUS_READY


def _int_list(values: Any, name: str) -> list[int]:
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        values = [values]
    try:
        return [int(v) for v in values]
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Preference '{name}' must be a list of numbers.") from e


@dataclass(frozen=True)
class Preferences:
    """Creator year/semester filter used when searching for candidates."""

    year: list[int] = field(default_factory=list)
    semester: list[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Preferences:
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValidationError("Preferences must be an object.")
        return cls(
            year=_int_list(data.get("year"), "year"),
            semester=_int_list(data.get("semester"), "semester"),
        )

    def is_empty(self) -> bool:
        return not self.year and not self.semester

    def allows(self, profile: Optional[UserProfile]) -> bool:
        """Return True if a creator profile passes this filter."""
        if self.is_empty():
            return True
        profile = profile or {}
        if self.year and profile.get("year") not in self.year:
            return False
        if self.semester and profile.get("semester") not in self.semester:
            return False
        return True

    def to_dict(self) -> dict[str, list[int]]:
        return {"year": list(self.year), "semester": list(self.semester)}


@dataclass
class OutingRequest:
    """An outing request document."""

    id: str
    creator_id: str
    date: datetime.datetime
    date_key: str
    time: str
    expires_at: datetime.datetime
    members: list[str] = field(default_factory=list)
    status: str = STATUS_PENDING
    preferences: Preferences = field(default_factory=Preferences)
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    version: int = 0

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def minutes(self) -> int:
        return parse_time_of_day(self.time)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_member(self, user_id: str) -> bool:
        return user_id in self.members

    def is_creator(self, user_id: str) -> bool:
        return user_id == self.creator_id

    def is_expired(self, now: datetime.datetime) -> bool:
        return self.expires_at <= now

    def with_members(self, members: Iterable[str], quorum: int) -> OutingRequest:
        """Return a copy with new membership and a recomputed status.

        ``in_progress`` and terminal requests keep their status.
        """
        members = dedupe(members)
        status = self.status
        if status in OPEN_STATUSES:
            status = derive_status(len(members), quorum)
        return replace(self, members=members, status=status)

    @classmethod
    def from_dict(cls, request_id: str, data: dict[str, Any]) -> OutingRequest:
        """Build a request from its stored camelCase representation."""
        creator_id = data.get("creatorId") or data.get("userId")
        members = normalize_member_ids(data.get("members"))
        if creator_id and creator_id not in members:
            members.insert(0, creator_id)
        date = data.get("date")
        date_key = data.get("dateKey")
        if not date_key and isinstance(date, datetime.datetime):
            date_key = date.date().isoformat()
        return cls(
            id=request_id,
            creator_id=creator_id,
            date=date,
            date_key=date_key,
            time=data.get("time", ""),
            expires_at=data.get("expiresAt"),
            members=members,
            status=data.get("status", STATUS_PENDING),
            preferences=Preferences.from_dict(data.get("preferences")),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            version=int(data.get("version") or 0),
        )

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> Optional[OutingRequest]:
        if not snapshot.exists:
            return None
        return cls.from_dict(snapshot.id, snapshot.to_dict() or {})

    def to_firestore(self) -> dict[str, Any]:
        return {
            "creatorId": self.creator_id,
            "date": self.date,
            "dateKey": self.date_key,
            "time": self.time,
            "members": list(self.members),
            "status": self.status,
            "preferences": self.preferences.to_dict(),
            "expiresAt": self.expires_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "version": self.version,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the request for a JSON response."""
        data = self.to_firestore()
        data["id"] = self.id
        data["memberCount"] = self.member_count
        for key in ("date", "expiresAt", "createdAt", "updatedAt"):
            value = data.get(key)
            if isinstance(value, datetime.datetime):
                data[key] = value.isoformat()
        return data
