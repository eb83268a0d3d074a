"""Keep a request's group in step with the request's membership."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

from outings.core.constants import (
    GROUP_ACTIVE,
    GROUP_CANCELLED,
    GROUP_COMPLETED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
)
from outings.core.transitions import GROUP_TRANSITIONS, check_status_transition

from .models import Group

if TYPE_CHECKING:
    from outings.config import OutingConfig
    from outings.request.models import OutingRequest


@dataclass(frozen=True)
class GroupSync:
    """The group state to write, if any, and whether it was just created."""

    group: Optional[Group]
    created: bool = False
    changed: bool = False


def _move(group: Group, status: str, now: datetime.datetime) -> Group:
    if check_status_transition(group.status, status, GROUP_TRANSITIONS):
        return group
    completed_at = now if status == GROUP_COMPLETED else group.completed_at
    return replace(group, status=status, completed_at=completed_at)


def sync_group(
    request: OutingRequest,
    group: Optional[Group],
    config: OutingConfig,
    now: datetime.datetime,
) -> GroupSync:
    """Work out how ``group`` must look after ``request`` changed.

    Creates the group the first time membership reaches quorum, mirrors
    members afterwards, cancels it when it drops below the active minimum or
    the request is cancelled, and re-activates it when an open request
    regains quorum. Completed groups are left alone.
    """
    if group is None:
        if request.is_terminal or request.member_count < config.quorum_size:
            return GroupSync(None)
        created = Group(
            id=request.id,
            request_id=request.id,
            members=list(request.members),
            outing_date=request.date,
            outing_date_key=request.date_key,
            outing_time=request.time,
            status=GROUP_ACTIVE,
            created_at=now,
        )
        return GroupSync(created, created=True, changed=True)

    if group.status == GROUP_COMPLETED:
        return GroupSync(group)

    if request.status == STATUS_CANCELLED:
        updated = _move(group, GROUP_CANCELLED, now)
    elif request.status == STATUS_COMPLETED:
        updated = _move(group, GROUP_COMPLETED, now)
    else:
        updated = replace(group, members=list(request.members))
        if updated.member_count < config.group_min_active_members:
            updated = _move(updated, GROUP_CANCELLED, now)
        elif updated.member_count >= config.quorum_size:
            updated = _move(updated, GROUP_ACTIVE, now)

    return GroupSync(updated, changed=updated != group)
