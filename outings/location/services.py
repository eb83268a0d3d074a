"""Service layer for gate check-in and check-out."""

from __future__ import annotations

import datetime
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore
from flask import current_app

from outings.core.constants import (
    CHECKIN,
    CHECKOUT,
    EVENT_MEMBER_CHECKIN,
    EVENT_MEMBER_CHECKOUT,
    LOCATION_EVENTS_COLLECTION,
)
from outings.errors import (
    AuthorizationError,
    ConflictError,
    PolicyError,
    ValidationError,
)
from outings.group.resolver import OutingTarget, RequestProjection, resolve_target
from outings.group.store import GroupStore
from outings.notifications.fanout import Outbox
from outings.request.store import RequestStore
from outings.user.services import UserDirectory, smart_display_name
from outings.utils import haversine_distance, utc_now

from .models import LocationEvent, serialize_event, validate_coordinates

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from outings.config import OutingConfig
    from outings.notifications.fanout import EventFanout


class GateService:
    """Records check-ins and check-outs against the configured gate."""

    def __init__(
        self,
        db: Client,
        config: OutingConfig,
        fanout: EventFanout,
        clock: Callable[[], datetime.datetime] = utc_now,
    ) -> None:
        self.db = db
        self.config = config
        self.fanout = fanout
        self.clock = clock
        self.requests = RequestStore(db)
        self.groups = GroupStore(db)
        self.users = UserDirectory(db)

    def _member_target(self, target_id: str, user_id: str) -> OutingTarget:
        if not target_id:
            raise ValidationError("Please provide groupId.")
        target = resolve_target(
            self.groups, self.requests, target_id, active_groups_only=True
        )
        if not target.is_member(user_id):
            raise AuthorizationError("Not authorized for this group.")
        # A cancelled or completed request can outlive its group.
        if isinstance(target, RequestProjection) and target.request.is_terminal:
            raise ConflictError("This outing is no longer active.")
        minimum = self.config.group_min_active_members
        if len(target.members) < minimum:
            raise PolicyError(
                f"Gate check-in needs at least {minimum} members in the group."
            )
        return target

    def _record(self, event: dict[str, Any]) -> LocationEvent:
        ref = self.db.collection(LOCATION_EVENTS_COLLECTION).document()
        ref.set(event)
        return cast(LocationEvent, {"id": ref.id, **event})

    def check_in(
        self, target_id: str, user_id: str, latitude: Any, longitude: Any
    ) -> tuple[LocationEvent, bool, int]:
        """Record an arrival. Returns the event, whether it was verified and the
        distance to the gate in whole meters.
        """
        lat, lon = validate_coordinates(latitude, longitude)
        target = self._member_target(target_id, user_id)

        gate = self.config.gate
        distance = haversine_distance(lat, lon, gate.latitude, gate.longitude)
        verified = distance <= gate.radius

        event = self._record(
            {
                "userId": user_id,
                "targetId": target.id,
                "latitude": lat,
                "longitude": lon,
                "type": CHECKIN,
                "verified": verified,
                "distance": distance,
                "timestamp": self.clock(),
            }
        )
        current_app.logger.info(
            f"User {user_id} checked in for {target.id} "
            f"({round(distance)} m, verified={verified})"
        )

        name = self.users.display_name(user_id)
        outbox = Outbox()
        outbox.publish(
            target.id,
            EVENT_MEMBER_CHECKIN,
            {
                "userId": user_id,
                "userName": name,
                "location": serialize_event(event),
                "verified": verified,
            },
        )
        outbox.push(
            [m for m in target.members if m != user_id],
            "Group Member at Gate",
            f"{name} has arrived at the gate",
            {"type": EVENT_MEMBER_CHECKIN, "groupId": target.id},
        )
        self.fanout.dispatch(outbox)
        return event, verified, round(distance)

    def check_out(
        self, target_id: str, user_id: str, latitude: Any, longitude: Any
    ) -> LocationEvent:
        lat, lon = validate_coordinates(latitude, longitude)
        target = self._member_target(target_id, user_id)

        event = self._record(
            {
                "userId": user_id,
                "targetId": target.id,
                "latitude": lat,
                "longitude": lon,
                "type": CHECKOUT,
                "verified": True,
                "distance": None,
                "timestamp": self.clock(),
            }
        )
        current_app.logger.info(f"User {user_id} checked out of {target.id}")

        outbox = Outbox()
        outbox.publish(
            target.id,
            EVENT_MEMBER_CHECKOUT,
            {
                "userId": user_id,
                "userName": self.users.display_name(user_id),
                "location": serialize_event(event),
            },
        )
        self.fanout.dispatch(outbox)
        return event

    def gate_status(self, target_id: str, user_id: str) -> dict[str, Any]:
        """Latest check-in per member plus the gate location."""
        target = resolve_target(self.groups, self.requests, target_id)
        if not target.is_member(user_id):
            raise AuthorizationError("Not authorized for this group.")

        query = self.db.collection(LOCATION_EVENTS_COLLECTION).where(
            filter=firestore.FieldFilter("targetId", "==", target.id)
        )
        latest: dict[str, dict[str, Any]] = {}
        for snapshot in query.stream():
            data = snapshot.to_dict() or {}
            if data.get("type") != CHECKIN:
                continue
            member_id = data.get("userId")
            current = latest.get(member_id)
            if current is None or _later(
                data.get("timestamp"), current.get("timestamp")
            ):
                latest[member_id] = data

        profiles = self.users.get_many(latest.keys())
        status = [
            {
                "userId": member_id,
                "userName": smart_display_name(profiles.get(member_id)),
                "latitude": data.get("latitude"),
                "longitude": data.get("longitude"),
                "verified": data.get("verified", False),
                "timestamp": _iso(data.get("timestamp")),
            }
            for member_id, data in latest.items()
        ]
        status.sort(key=lambda s: s["timestamp"] or "", reverse=True)
        return {"gateStatus": status, "gateLocation": self.config.gate.to_dict()}


def _later(a: Optional[datetime.datetime], b: Optional[datetime.datetime]) -> bool:
    if a is None:
        return False
    return b is None or a > b


def _iso(value: Any) -> Any:
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    return value

