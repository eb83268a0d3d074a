"""Outing statistics for a single user."""

from __future__ import annotations

from collections import Counter
from typing import Any

from outings.core.constants import (
    FREQUENT_PARTNERS_LIMIT,
    GROUP_ACTIVE,
    GROUP_COMPLETED,
)

from .models import Group


class GroupStats:
    """Counts a user's outings and the people they go out with most."""

    @staticmethod
    def frequent_partners(
        groups: list[Group], user_id: str, limit: int = FREQUENT_PARTNERS_LIMIT
    ) -> list[tuple[str, int]]:
        """Other members of the user's completed outings, most shared first.

        Ties keep the order in which partners were first seen.
        """
        counts: Counter[str] = Counter()
        for group in groups:
            if group.status != GROUP_COMPLETED or not group.is_member(user_id):
                continue
            counts.update(m for m in group.members if m != user_id)
        return counts.most_common(limit)

    @staticmethod
    def calculate(groups: list[Group], user_id: str) -> dict[str, Any]:
        mine = [group for group in groups if group.is_member(user_id)]
        return {
            "totalOutings": sum(1 for g in mine if g.status == GROUP_COMPLETED),
            "activeOutings": sum(1 for g in mine if g.status == GROUP_ACTIVE),
            "frequentPartners": GroupStats.frequent_partners(mine, user_id),
        }
