"""Data models for outing groups."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from outings.core.constants import GROUP_ACTIVE
from outings.utils import normalize_member_ids

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot


@dataclass
class Group:
    """A group materialized from a request that reached quorum.

    The document id is the id of the originating request.
    """

    id: str
    request_id: str
    members: list[str]
    outing_date: Optional[datetime.datetime]
    outing_time: str
    status: str = GROUP_ACTIVE
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
    version: int = 0
    outing_date_key: Optional[str] = field(default=None)

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def is_active(self) -> bool:
        return self.status == GROUP_ACTIVE

    def is_member(self, user_id: str) -> bool:
        return user_id in self.members

    @classmethod
    def from_dict(cls, group_id: str, data: dict[str, Any]) -> Group:
        return cls(
            id=group_id,
            request_id=data.get("requestId") or group_id,
            members=normalize_member_ids(data.get("members")),
            outing_date=data.get("outingDate"),
            outing_date_key=data.get("outingDateKey"),
            outing_time=data.get("outingTime", ""),
            status=data.get("status", GROUP_ACTIVE),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            completed_at=data.get("completedAt"),
            version=int(data.get("version") or 0),
        )

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> Optional[Group]:
        if not snapshot.exists:
            return None
        return cls.from_dict(snapshot.id, snapshot.to_dict() or {})

    def to_firestore(self) -> dict[str, Any]:
        return {
            "requestId": self.request_id,
            "members": list(self.members),
            "status": self.status,
            "outingDate": self.outing_date,
            "outingDateKey": self.outing_date_key,
            "outingTime": self.outing_time,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "completedAt": self.completed_at,
            "version": self.version,
        }

    def to_dict(self) -> dict[str, Any]:
        data = self.to_firestore()
        data["id"] = self.id
        data["memberCount"] = self.member_count
        for key in ("outingDate", "createdAt", "updatedAt", "completedAt"):
            value = data.get(key)
            if isinstance(value, datetime.datetime):
                data[key] = value.isoformat()
        return data
