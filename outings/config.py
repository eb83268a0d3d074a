"""Immutable runtime configuration for the outing services."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import ValidationError

CONFIG_EXTENSION_KEY = "outings.config"

TRUTHY = ["true", "1", "t", "yes"]


def env_flag(name: str, default: str) -> bool:
    """Read a boolean flag from the environment."""
    return (os.environ.get(name) or default).lower() in TRUTHY


def default_settings() -> dict[str, Any]:
    """Return the settings loaded into ``app.config`` from the environment."""
    join_cap = os.environ.get("JOIN_MEMBER_CAP")
    return dict(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        OUTING_TIMEZONE=os.environ.get("OUTING_TIMEZONE") or "Asia/Kolkata",
        GATE_LATITUDE=float(os.environ.get("GATE_LATITUDE") or 28.123456),
        GATE_LONGITUDE=float(os.environ.get("GATE_LONGITUDE") or 77.123456),
        GATE_RADIUS=float(os.environ.get("GATE_RADIUS") or 100),
        QUORUM_SIZE=int(os.environ.get("QUORUM_SIZE") or 3),
        GROUP_MIN_ACTIVE_MEMBERS=int(os.environ.get("GROUP_MIN_ACTIVE_MEMBERS") or 3),
        CHAT_MIN_MEMBERS=int(os.environ.get("CHAT_MIN_MEMBERS") or 2),
        AUTO_MATCH_MEMBER_CAP=int(os.environ.get("AUTO_MATCH_MEMBER_CAP") or 5),
        JOIN_MEMBER_CAP=int(join_cap) if join_cap else None,
        MATCH_TIME_WINDOW_MINUTES=int(
            os.environ.get("MATCH_TIME_WINDOW_MINUTES") or 30
        ),
        TRANSACTION_MAX_ATTEMPTS=int(os.environ.get("TRANSACTION_MAX_ATTEMPTS") or 5),
        MESSAGE_HISTORY_LIMIT=int(os.environ.get("MESSAGE_HISTORY_LIMIT") or 100),
        REDIS_URL=os.environ.get("REDIS_URL") or "redis://localhost:6379/0",
        REDIS_SOCKET_TIMEOUT=float(os.environ.get("REDIS_SOCKET_TIMEOUT") or 2.0),
        NOTIFY_IN_BACKGROUND=env_flag("NOTIFY_IN_BACKGROUND", "true"),
    )


@dataclass(frozen=True)
class GateConfig:
    """The fixed check-in point."""

    latitude: float = 28.123456
    longitude: float = 77.123456
    radius: float = 100.0

    def to_dict(self) -> dict[str, float]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius": self.radius,
        }


@dataclass(frozen=True)
class OutingConfig:
    """Policy knobs shared by the matching, lifecycle, gate and chat services."""

    timezone: str = "Asia/Kolkata"
    gate: GateConfig = field(default_factory=GateConfig)
    quorum_size: int = 3
    group_min_active_members: int = 3
    chat_min_members: int = 2
    auto_match_member_cap: int = 5
    join_member_cap: Optional[int] = None
    match_time_window_minutes: int = 30
    transaction_max_attempts: int = 5
    message_history_limit: int = 100

    def __post_init__(self) -> None:
        if self.quorum_size < 2:
            raise ValidationError("QUORUM_SIZE must be at least 2.")
        if self.transaction_max_attempts < 1:
            raise ValidationError("TRANSACTION_MAX_ATTEMPTS must be positive.")
        if self.gate.radius <= 0:
            raise ValidationError("GATE_RADIUS must be positive.")

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> OutingConfig:
        """Build a config from a Flask ``app.config``-like mapping."""
        defaults = cls()
        join_cap = settings.get("JOIN_MEMBER_CAP")
        gate = GateConfig(
            latitude=float(settings.get("GATE_LATITUDE", defaults.gate.latitude)),
            longitude=float(settings.get("GATE_LONGITUDE", defaults.gate.longitude)),
            radius=float(settings.get("GATE_RADIUS", defaults.gate.radius)),
        )
        return cls(
            timezone=settings.get("OUTING_TIMEZONE", defaults.timezone),
            gate=gate,
            quorum_size=int(settings.get("QUORUM_SIZE", defaults.quorum_size)),
            group_min_active_members=int(
                settings.get(
                    "GROUP_MIN_ACTIVE_MEMBERS", defaults.group_min_active_members
                )
            ),
            chat_min_members=int(
                settings.get("CHAT_MIN_MEMBERS", defaults.chat_min_members)
            ),
            auto_match_member_cap=int(
                settings.get("AUTO_MATCH_MEMBER_CAP", defaults.auto_match_member_cap)
            ),
            join_member_cap=int(join_cap) if join_cap else None,
            match_time_window_minutes=int(
                settings.get(
                    "MATCH_TIME_WINDOW_MINUTES", defaults.match_time_window_minutes
                )
            ),
            transaction_max_attempts=int(
                settings.get(
                    "TRANSACTION_MAX_ATTEMPTS", defaults.transaction_max_attempts
                )
            ),
            message_history_limit=int(
                settings.get("MESSAGE_HISTORY_LIMIT", defaults.message_history_limit)
            ),
        )
