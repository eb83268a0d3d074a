"""Allowed status transitions for requests and groups."""

from __future__ import annotations

from typing import Optional

from .constants import (
    GROUP_ACTIVE,
    GROUP_CANCELLED,
    GROUP_COMPLETED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_MATCHED,
    STATUS_PENDING,
    STATUS_READY,
)

REQUEST_TRANSITIONS: dict[str, set[str]] = {
    STATUS_PENDING: {STATUS_MATCHED, STATUS_READY, STATUS_CANCELLED},
    STATUS_MATCHED: {STATUS_PENDING, STATUS_READY, STATUS_CANCELLED},
    STATUS_READY: {
        STATUS_PENDING,
        STATUS_MATCHED,
        STATUS_IN_PROGRESS,
        STATUS_COMPLETED,
        STATUS_CANCELLED,
    },
    STATUS_IN_PROGRESS: {STATUS_COMPLETED, STATUS_CANCELLED},
    STATUS_COMPLETED: set(),
    STATUS_CANCELLED: set(),
}

GROUP_TRANSITIONS: dict[str, set[str]] = {
    GROUP_ACTIVE: {GROUP_COMPLETED, GROUP_CANCELLED},
    GROUP_CANCELLED: {GROUP_ACTIVE},
    GROUP_COMPLETED: set(),
}


def check_status_transition(
    current: str, target: str, table: dict[str, set[str]] = REQUEST_TRANSITIONS
) -> Optional[str]:
    """Validate a status transition.

    Returns None if allowed, else a message suitable for a 409 response.
    Staying in the same status is always allowed.
    """
    if current == target:
        return None
    allowed = table.get(current, set())
    if target not in allowed:
        allowed_str = ", ".join(sorted(allowed)) if allowed else "none"
        return (
            f"Transition from {current} to {target} is not allowed. "
            f"From {current} only allowed: {allowed_str}."
        )
    return None
