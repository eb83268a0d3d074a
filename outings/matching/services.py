"""Service layer for creating, browsing, joining and auto-matching requests."""

from __future__ import annotations

import datetime
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Union

from flask import current_app

from outings.core.constants import (
    BROWSABLE_STATUSES,
    EVENT_GROUP_READY,
    EVENT_MEMBER_JOINED,
    GROUP_ACTIVE,
    HISTORY_LIMIT,
    OPEN_STATUSES,
    PAST_GROUP_STATUSES,
    REQUEST_STATUSES,
    STATUS_CANCELLED,
    STATUS_PENDING,
)
from outings.core.transactions import run_in_transaction
from outings.errors import ConflictError, NotFoundError, PolicyError, ValidationError
from outings.group.resolver import OutingTarget, resolve_active_group
from outings.group.stats import GroupStats
from outings.group.store import GroupStore
from outings.group.sync import sync_group
from outings.notifications.fanout import Outbox, plural
from outings.request.models import OutingRequest, Preferences
from outings.request.schedule import (
    compute_expiry,
    ensure_outing_time,
    format_time_of_day,
    get_zone,
    local_midnight,
    local_today,
    parse_outing_date,
    parse_time_of_day,
)
from outings.request.store import RequestStore
from outings.user.services import UserDirectory
from outings.utils import utc_now

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

    from outings.config import OutingConfig
    from outings.group.models import Group
    from outings.notifications.fanout import EventFanout

READY_TITLE = "Ready for Outing! 🎉"
OLDEST = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


def _newest_first(groups: list[Group]) -> list[Group]:
    return sorted(groups, key=lambda g: g.created_at or OLDEST, reverse=True)


@dataclass
class JoinResult:
    """Outcome of joining a request."""

    request: OutingRequest
    group_ready: bool
    group: Optional[Group] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "request": self.request.to_dict(),
            "groupReady": self.group_ready,
        }
        if self.group is not None:
            data["group"] = self.group.to_dict()
        return data


@dataclass
class AutoMatchResult:
    """Outcome of an auto-match run."""

    request: OutingRequest
    joined_requests: list[OutingRequest] = field(default_factory=list)
    group_ready: bool = False
    group: Optional[Group] = None
    failed: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "request": self.request.to_dict(),
            "joinedRequests": [r.to_dict() for r in self.joined_requests],
            "groupReady": self.group_ready,
            "failed": list(self.failed),
        }
        if self.group is not None:
            data["group"] = self.group.to_dict()
        return data


@dataclass
class _PairOutcome:
    own: OutingRequest
    own_group: Optional[Group]
    candidate: OutingRequest
    candidate_group: Optional[Group]


class MatchingService:
    """Creates requests, lists them and moves members into them."""

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
        self.tz = get_zone(config.timezone)
        self.requests = RequestStore(db)
        self.groups = GroupStore(db)
        self.users = UserDirectory(db)

    # Create and read

    def create_request(
        self,
        user_id: str,
        date: Union[str, datetime.date],
        time: str,
        preferences: Optional[dict[str, Any]] = None,
    ) -> OutingRequest:
        """Open a new outing request owned by ``user_id``."""
        if not date or not time:
            raise ValidationError("Please provide date and time.")
        if isinstance(date, datetime.date):
            outing_date = date
        else:
            outing_date = parse_outing_date(date, self.tz)
        time = format_time_of_day(parse_time_of_day(time))
        prefs = Preferences.from_dict(preferences)
        ensure_outing_time(outing_date, time)

        now = self.clock()
        expires_at = compute_expiry(outing_date, self.tz)
        if expires_at <= now:
            raise PolicyError("The outing window for that date has already closed.")

        self._ensure_not_engaged(user_id, now)

        request = OutingRequest(
            id="",
            creator_id=user_id,
            date=local_midnight(outing_date, self.tz),
            date_key=outing_date.isoformat(),
            time=time,
            expires_at=expires_at,
            members=[user_id],
            status=STATUS_PENDING,
            preferences=prefs,
            created_at=now,
            updated_at=now,
        )
        created = self.requests.create(request)
        current_app.logger.info(f"User {user_id} created outing request {created.id}")
        return created

    def _ensure_not_engaged(self, user_id: str, now: datetime.datetime) -> None:
        for request in self.requests.find_by_creator(user_id, OPEN_STATUSES):
            if not request.is_expired(now):
                raise ConflictError("You already have an active outing request.")
        for request in self.requests.find_by_member(user_id, OPEN_STATUSES):
            if not request.is_expired(now):
                raise ConflictError(
                    "You are already part of an active outing request. "
                    "Please complete or cancel it first."
                )
        if self.groups.find_by_member(user_id, status=GROUP_ACTIVE):
            raise ConflictError(
                "You are already part of an active outing group. "
                "Please complete or cancel it first."
            )

    def get_request(self, request_id: str) -> OutingRequest:
        request = self.requests.get(request_id)
        if request is None:
            raise NotFoundError("Outing request not found.")
        return request

    def list_requests(  # noqa: PLR0913
        self,
        user_id: str,
        status: Optional[str] = None,
        date: Optional[str] = None,
        year: Optional[int] = None,
        semester: Optional[int] = None,
        exclude_own: bool = False,
    ) -> list[OutingRequest]:
        """Browse open requests dated today or later, newest first."""
        if status and status not in REQUEST_STATUSES:
            raise ValidationError(f"Unknown status: {status}")
        statuses = [status] if status else list(BROWSABLE_STATUSES)

        now = self.clock()
        today = local_today(now, self.tz).isoformat()
        date_key = parse_outing_date(date, self.tz).isoformat() if date else None

        results = []
        for request in self.requests.find_by_statuses(statuses):
            if request.is_expired(now) or request.date_key < today:
                continue
            if date_key and request.date_key != date_key:
                continue
            if exclude_own and request.creator_id == user_id:
                continue
            results.append(request)

        if year is not None or semester is not None:
            profiles = self.users.get_many(r.creator_id for r in results)
            results = [
                r
                for r in results
                if (year is None or profiles.get(r.creator_id, {}).get("year") == year)
                and (
                    semester is None
                    or profiles.get(r.creator_id, {}).get("semester") == semester
                )
            ]
        return results

    def my_requests(self, user_id: str) -> list[OutingRequest]:
        """Requests the user created or still belongs to, except cancelled ones."""
        seen = {}
        for request in self.requests.find_by_creator(
            user_id
        ) + self.requests.find_by_member(user_id):
            if request.status == STATUS_CANCELLED:
                continue
            if request.is_creator(user_id) or request.is_member(user_id):
                seen.setdefault(request.id, request)
        return sorted(
            seen.values(),
            key=lambda r: r.created_at or datetime.datetime.min.replace(
                tzinfo=datetime.timezone.utc
            ),
            reverse=True,
        )

    def get_active_group(self, user_id: str) -> OutingTarget:
        return resolve_active_group(
            self.groups,
            self.requests,
            user_id,
            self.clock(),
            min_members=self.config.chat_min_members,
        )

    def history(self, user_id: str) -> list[Group]:
        """Completed and cancelled groups the user belongs to, newest first."""
        groups = [
            group
            for group in self.groups.find_by_member(user_id)
            if group.status in PAST_GROUP_STATUSES
        ]
        return _newest_first(groups)[:HISTORY_LIMIT]

    def statistics(self, user_id: str) -> dict[str, Any]:
        """Outing counts and the user's most frequent outing partners."""
        groups = _newest_first(self.groups.find_by_member(user_id))
        stats = GroupStats.calculate(groups, user_id)
        partners = stats["frequentPartners"]
        summaries = self.users.summaries(partner for partner, _ in partners)
        stats["frequentPartners"] = [
            {"user": summary, "outings": count}
            for summary, (_, count) in zip(summaries, partners)
        ]
        return stats

    # Candidate search

    def _own_open_request(
        self, user_id: str, now: datetime.datetime
    ) -> Optional[OutingRequest]:
        for request in self.requests.find_by_creator(user_id, BROWSABLE_STATUSES):
            if not request.is_expired(now):
                return request
        return None

    def find_candidates(
        self, own: OutingRequest, user_id: str, now: datetime.datetime
    ) -> list[OutingRequest]:
        """Compatible requests for ``own``, fewest members first."""
        window = self.config.match_time_window_minutes
        own_minutes = own.minutes
        candidates = []
        for request in self.requests.find_by_statuses(BROWSABLE_STATUSES):
            if request.id == own.id or request.creator_id == user_id:
                continue
            if request.date_key != own.date_key or request.is_expired(now):
                continue
            if abs(request.minutes - own_minutes) > window:
                continue
            candidates.append(request)

        if not own.preferences.is_empty():
            profiles = self.users.get_many(r.creator_id for r in candidates)
            candidates = [
                r for r in candidates if own.preferences.allows(profiles.get(r.creator_id))
            ]

        candidates.sort(key=lambda r: r.member_count)
        return candidates

    def suggestions(self, user_id: str) -> list[OutingRequest]:
        now = self.clock()
        own = self._own_open_request(user_id, now)
        if own is None:
            raise NotFoundError("You do not have an active outing request.")
        return [
            r for r in self.find_candidates(own, user_id, now) if not r.is_member(user_id)
        ]

    # Join

    def _check_joinable(
        self, request: OutingRequest, user_id: str, now: datetime.datetime
    ) -> None:
        if request.is_creator(user_id):
            raise ConflictError("Cannot join your own request.")
        if request.is_member(user_id):
            raise ConflictError("You are already a member of this request.")
        if request.is_terminal:
            raise ConflictError("This request is no longer active.")
        if request.is_expired(now):
            raise ConflictError("This request has expired.")
        cap = self.config.join_member_cap
        if cap is not None and request.member_count >= cap:
            raise ConflictError("This request is full.")

    def join(self, request_id: str, user_id: str) -> JoinResult:
        """Add ``user_id`` to a request and materialize its group at quorum."""
        now = self.clock()

        def _join(transaction: Transaction) -> tuple[OutingRequest, Optional[Group]]:
            request = self.requests.get_for_update(transaction, request_id)
            if request is None:
                raise NotFoundError("Outing request not found.")
            group = self.groups.get_for_update(transaction, request_id)

            self._check_joinable(request, user_id, now)
            updated = request.with_members(
                [*request.members, user_id], self.config.quorum_size
            )
            return self._write_with_group(transaction, updated, group, now)

        request, group = run_in_transaction(
            self.db,
            _join,
            max_attempts=self.config.transaction_max_attempts,
            description=f"join {request_id}",
        )
        current_app.logger.info(
            f"User {user_id} joined request {request_id} "
            f"({request.member_count} members, {request.status})"
        )

        group_ready = self._is_ready(request, group)
        outbox = Outbox()
        self._announce_join(outbox, request, user_id, self.users.display_name(user_id))
        if group_ready:
            self._announce_ready(outbox, request, group)
        self.fanout.dispatch(outbox)
        return JoinResult(request, group_ready, group)

    def _write_with_group(
        self,
        transaction: Transaction,
        request: OutingRequest,
        group: Optional[Group],
        now: datetime.datetime,
    ) -> tuple[OutingRequest, Optional[Group]]:
        sync = sync_group(request, group, self.config, now)
        request = self.requests.write(transaction, request, now)
        group = sync.group
        if sync.changed:
            group = self.groups.write(transaction, group, now)
            if sync.created:
                current_app.logger.info(
                    f"Group {group.id} created with {group.member_count} members"
                )
        return request, group

    def _is_ready(self, request: OutingRequest, group: Optional[Group]) -> bool:
        return (
            request.member_count >= self.config.quorum_size
            and group is not None
            and group.is_active
        )

    def _announce_join(
        self,
        outbox: Outbox,
        request: OutingRequest,
        joiner_id: str,
        joiner_name: str,
    ) -> None:
        count = request.member_count
        outbox.publish(
            request.id,
            EVENT_MEMBER_JOINED,
            {
                "requestId": request.id,
                "joinedBy": joiner_name,
                "joinedById": joiner_id,
                "memberCount": count,
                "members": list(request.members),
            },
        )
        data = {"type": EVENT_MEMBER_JOINED, "requestId": request.id}
        if request.creator_id != joiner_id:
            outbox.push(
                request.creator_id,
                "Someone Joined Your Request",
                f"{joiner_name} joined your outing request. "
                f"You now have {plural(count)}.",
                data,
            )
        others = [m for m in request.members if m not in (joiner_id, request.creator_id)]
        outbox.push(
            others,
            "New Member Joined",
            f"{joiner_name} joined the outing group. You now have {plural(count)}.",
            data,
        )

    def _announce_ready(
        self, outbox: Outbox, request: OutingRequest, group: Group
    ) -> None:
        outbox.publish(
            request.id,
            EVENT_GROUP_READY,
            {
                "requestId": request.id,
                "groupId": group.id,
                "members": list(request.members),
                "message": "Group is ready for outing!",
            },
        )
        outbox.push(
            request.members,
            READY_TITLE,
            f"Your group now has {request.member_count} members. "
            "You're ready to go out!",
            {"type": EVENT_GROUP_READY, "groupId": group.id},
        )

    # Auto-match

    def auto_match(self, user_id: str) -> AutoMatchResult:
        """Pair the caller's open request with compatible requests.

        Each pair is committed in its own transaction, so a failed pair leaves
        both sides untouched while earlier pairs stay applied.
        """
        now = self.clock()
        own = self._own_open_request(user_id, now)
        if own is None:
            raise NotFoundError("You do not have an active outing request.")

        cap = self.config.auto_match_member_cap
        result = AutoMatchResult(request=own)
        outbox = Outbox()
        user_name = self.users.display_name(user_id)
        last_error: Optional[ConflictError] = None

        for candidate in self.find_candidates(own, user_id, now):
            if result.request.member_count >= cap:
                break
            if candidate.member_count >= cap or candidate.is_member(user_id):
                continue
            try:
                outcome = run_in_transaction(
                    self.db,
                    self._pair,
                    own.id,
                    candidate.id,
                    user_id,
                    now,
                    max_attempts=self.config.transaction_max_attempts,
                    description=f"auto-match {own.id}+{candidate.id}",
                )
            except (ConflictError, NotFoundError) as e:
                current_app.logger.warning(
                    f"Auto-match of {own.id} with {candidate.id} failed: {e}"
                )
                result.failed.append({"requestId": candidate.id, "reason": e.message})
                last_error = ConflictError(e.message)
                continue
            if outcome is None:
                continue

            result.request = outcome.own
            result.group = outcome.own_group
            result.joined_requests.append(outcome.candidate)
            self._announce_join(outbox, outcome.candidate, user_id, user_name)
            if self._is_ready(outcome.candidate, outcome.candidate_group):
                self._announce_ready(outbox, outcome.candidate, outcome.candidate_group)

        if last_error is not None and not result.joined_requests:
            raise last_error

        result.group_ready = self._is_ready(result.request, result.group)
        if result.group_ready:
            self._announce_ready(outbox, result.request, result.group)
        self.fanout.dispatch(outbox)
        current_app.logger.info(
            f"Auto-match for {user_id}: joined {len(result.joined_requests)}, "
            f"failed {len(result.failed)}"
        )
        return result

    def _pair(
        self,
        transaction: Transaction,
        own_id: str,
        candidate_id: str,
        user_id: str,
        now: datetime.datetime,
    ) -> Optional[_PairOutcome]:
        own = self.requests.get_for_update(transaction, own_id)
        candidate = self.requests.get_for_update(transaction, candidate_id)
        own_group = self.groups.get_for_update(transaction, own_id)
        candidate_group = self.groups.get_for_update(transaction, candidate_id)

        cap = self.config.auto_match_member_cap
        if own is None or own.status not in BROWSABLE_STATUSES or own.is_expired(now):
            raise ConflictError("Your outing request is no longer open.")
        if candidate is None:
            raise NotFoundError("Outing request not found.")
        if candidate.is_member(user_id):
            return None
        if candidate.status not in BROWSABLE_STATUSES or candidate.is_expired(now):
            raise ConflictError("This request is no longer active.")
        if candidate.member_count >= cap or own.member_count >= cap:
            raise ConflictError("This request is full.")

        quorum = self.config.quorum_size
        candidate = candidate.with_members([*candidate.members, user_id], quorum)
        own = own.with_members([*own.members, candidate.creator_id], quorum)

        # All reads happen before the first write.
        own_sync = sync_group(own, own_group, self.config, now)
        candidate_sync = sync_group(candidate, candidate_group, self.config, now)
        own = self.requests.write(transaction, own, now)
        candidate = self.requests.write(transaction, candidate, now)
        if own_sync.changed:
            own_group = self.groups.write(transaction, own_sync.group, now)
        else:
            own_group = own_sync.group
        if candidate_sync.changed:
            candidate_group = self.groups.write(transaction, candidate_sync.group, now)
        else:
            candidate_group = candidate_sync.group
        return _PairOutcome(own, own_group, candidate, candidate_group)
