"""Resolve what a user's "active group" is and what a target id refers to."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Union

from outings.core.constants import GROUP_ACTIVE, OPEN_STATUSES
from outings.errors import NotFoundError

from .models import Group

if TYPE_CHECKING:
    from outings.request.models import OutingRequest
    from outings.request.store import RequestStore

    from .store import GroupStore


@dataclass(frozen=True)
class GroupView:
    """A materialized group."""

    group: Group
    kind: Literal["group"] = "group"

    @property
    def id(self) -> str:
        return self.group.id

    @property
    def members(self) -> list[str]:
        return self.group.members

    @property
    def status(self) -> str:
        return self.group.status

    def is_member(self, user_id: str) -> bool:
        return self.group.is_member(user_id)

    def to_dict(self) -> dict[str, Any]:
        return self.group.to_dict()


@dataclass(frozen=True)
class RequestProjection:
    """A request shown in the shape of a group, before one exists."""

    request: OutingRequest
    kind: Literal["request"] = "request"

    @property
    def id(self) -> str:
        return self.request.id

    @property
    def members(self) -> list[str]:
        return self.request.members

    @property
    def status(self) -> str:
        return self.request.status

    def is_member(self, user_id: str) -> bool:
        return self.request.is_member(user_id)

    def to_dict(self) -> dict[str, Any]:
        date = self.request.date
        return {
            "id": self.request.id,
            "requestId": self.request.id,
            "members": list(self.request.members),
            "memberCount": self.request.member_count,
            "outingDate": date.isoformat()
            if isinstance(date, datetime.datetime)
            else date,
            "outingTime": self.request.time,
            "status": self.request.status,
        }


OutingTarget = Union[GroupView, RequestProjection]


def resolve_active_group(
    groups: GroupStore,
    requests: RequestStore,
    user_id: str,
    now: datetime.datetime,
    min_members: int = 2,
) -> OutingTarget:
    """Return the caller's active group, or a projection of their open request."""
    for group in groups.find_by_member(user_id, status=GROUP_ACTIVE):
        return GroupView(group)

    for request in requests.find_by_member(user_id, statuses=OPEN_STATUSES):
        if request.is_expired(now):
            continue
        if request.member_count >= min_members and request.is_member(user_id):
            return RequestProjection(request)

    raise NotFoundError("No active group or request found.")


def resolve_target(
    groups: GroupStore,
    requests: RequestStore,
    target_id: str,
    active_groups_only: bool = False,
) -> OutingTarget:
    """Resolve a group-or-request id used by check-in and chat."""
    group = groups.get(target_id)
    if group is not None and (group.is_active or not active_groups_only):
        return GroupView(group)

    request = requests.get(target_id)
    if request is not None:
        return RequestProjection(request)

    raise NotFoundError("Group not found.")
