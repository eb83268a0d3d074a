"""Data models for gate location events."""

from __future__ import annotations

import datetime
from typing import Any, Optional

from outings.core.types import FirestoreDocument
from outings.errors import ValidationError


class LocationEvent(FirestoreDocument, total=False):
    """A check-in or check-out document in Firestore."""

    userId: str
    latitude: float
    longitude: float
    type: str
    verified: bool
    distance: Optional[float]


def validate_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    """Coerce and range-check a coordinate pair."""
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as e:
        raise ValidationError("Please provide numeric latitude and longitude.") from e
    if not -90 <= lat <= 90:
        raise ValidationError("Latitude must be between -90 and 90.")
    if not -180 <= lon <= 180:
        raise ValidationError("Longitude must be between -180 and 180.")
    return lat, lon


def serialize_event(event: LocationEvent) -> dict[str, Any]:
    data = dict(event)
    timestamp = data.get("timestamp")
    if isinstance(timestamp, datetime.datetime):
        data["timestamp"] = timestamp.isoformat()
    return data
