"""Utility functions for the application."""

from __future__ import annotations

import datetime
import math

from .errors import ValidationError

EARTH_RADIUS_M = 6371000


def utc_now() -> datetime.datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def dedupe(values):
    """Return the values in first-seen order without duplicates."""
    seen = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def _member_id(value):
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        member_id = value.get("id") or value.get("uid") or value.get("_id")
        if member_id:
            return str(member_id)
    # DocumentReference and populated user objects both expose ``id``.
    member_id = getattr(value, "id", None)
    if member_id:
        return str(member_id)
    raise ValidationError(f"Unrecognized member entry: {value!r}")


def normalize_member_ids(values):
    """Normalize stored membership into a duplicate-free list of user ids."""
    if not values:
        return []
    return dedupe(_member_id(value) for value in values)
