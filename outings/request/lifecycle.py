"""Cancel, leave, start and complete outing requests."""

from __future__ import annotations

import datetime
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Optional

from flask import current_app

from outings.core.constants import (
    EVENT_MEMBER_LEFT,
    EVENT_OUTING_COMPLETED,
    EVENT_OUTING_STARTED,
    EVENT_REQUEST_CANCELLED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
)
from outings.core.transactions import run_in_transaction
from outings.core.transitions import check_status_transition
from outings.errors import AuthorizationError, ConflictError, NotFoundError
from outings.group.store import GroupStore
from outings.group.sync import sync_group
from outings.notifications.fanout import Outbox, plural
from outings.user.services import UserDirectory
from outings.utils import utc_now

from .store import RequestStore

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

    from outings.config import OutingConfig
    from outings.group.models import Group
    from outings.notifications.fanout import EventFanout

    from .models import OutingRequest


@dataclass
class LifecycleResult:
    """A request and its group after a lifecycle change."""

    request: OutingRequest
    group: Optional[Group] = None
    was_creator: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"request": self.request.to_dict()}
        if self.group is not None:
            data["group"] = self.group.to_dict()
        return data


class LifecycleService:
    """Moves a request (and its group) through the later parts of its life."""

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

    def _load(
        self, transaction: Transaction, request_id: str
    ) -> tuple[OutingRequest, Optional[Group]]:
        request = self.requests.get_for_update(transaction, request_id)
        if request is None:
            raise NotFoundError("Outing request not found.")
        group = self.groups.get_for_update(transaction, request_id)
        return request, group

    def _commit(
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
        return request, group

    def cancel(self, request_id: str, user_id: str) -> LifecycleResult:
        """Cancel a request as its creator, or leave it as a member."""
        now = self.clock()

        def _cancel(transaction: Transaction) -> LifecycleResult:
            request, group = self._load(transaction, request_id)
            is_creator = request.is_creator(user_id)
            if not is_creator and not request.is_member(user_id):
                raise AuthorizationError("Not authorized to cancel this request.")
            if request.is_terminal:
                raise ConflictError("This request is no longer active.")

            if is_creator:
                updated = replace(request, status=STATUS_CANCELLED)
            else:
                remaining = [m for m in request.members if m != user_id]
                updated = request.with_members(remaining, self.config.quorum_size)
            request, group = self._commit(transaction, updated, group, now)
            return LifecycleResult(request, group, was_creator=is_creator)

        result = run_in_transaction(
            self.db,
            _cancel,
            max_attempts=self.config.transaction_max_attempts,
            description=f"cancel {request_id}",
        )
        request = result.request
        if result.was_creator:
            current_app.logger.info(f"Creator {user_id} cancelled request {request_id}")
        else:
            current_app.logger.info(
                f"User {user_id} left request {request_id} "
                f"({request.member_count} remaining, {request.status})"
            )

        self.fanout.dispatch(self._cancel_outbox(result, user_id))
        return result

    def _cancel_outbox(self, result: LifecycleResult, actor_id: str) -> Outbox:
        request = result.request
        actor_name = self.users.display_name(actor_id)
        remaining = request.member_count
        outbox = Outbox()
        outbox.publish(
            request.id,
            EVENT_MEMBER_LEFT,
            {
                "requestId": request.id,
                "leftBy": actor_name,
                "leftById": actor_id,
                "isCreator": result.was_creator,
                "remainingMembers": remaining,
                "status": request.status,
            },
        )
        recipients = [m for m in request.members if m != actor_id]
        if result.was_creator:
            outbox.publish(
                request.id,
                EVENT_REQUEST_CANCELLED,
                {
                    "requestId": request.id,
                    "cancelledBy": actor_name,
                    "isCreator": True,
                },
            )
            outbox.push(
                recipients,
                "Outing Cancelled",
                f"{actor_name} cancelled the outing",
                {"type": EVENT_REQUEST_CANCELLED, "requestId": request.id},
            )
        else:
            # The creator is always among the remaining members, so this
            # covers both the creator's notice and everyone else's.
            outbox.push(
                recipients,
                "Member Left Outing",
                f"{actor_name} left the outing group. "
                f"{plural(remaining)} remaining.",
                {"type": EVENT_MEMBER_LEFT, "requestId": request.id},
            )
        return outbox

    def _advance(
        self, request_id: str, user_id: str, target: str, event: str
    ) -> LifecycleResult:
        now = self.clock()

        def _move(transaction: Transaction) -> LifecycleResult:
            request, group = self._load(transaction, request_id)
            if not request.is_creator(user_id):
                raise AuthorizationError("Only the creator can do that.")
            problem = check_status_transition(request.status, target)
            if problem or request.status == target:
                raise ConflictError(problem or f"The outing is already {target}.")
            updated = replace(request, status=target)
            request, group = self._commit(transaction, updated, group, now)
            return LifecycleResult(request, group, was_creator=True)

        result = run_in_transaction(
            self.db,
            _move,
            max_attempts=self.config.transaction_max_attempts,
            description=f"{target} {request_id}",
        )
        current_app.logger.info(f"Request {request_id} moved to {target} by {user_id}")

        outbox = Outbox()
        payload: dict[str, Any] = {
            "requestId": result.request.id,
            "status": result.request.status,
        }
        if result.group is not None:
            payload["groupId"] = result.group.id
        outbox.publish(result.request.id, event, payload)
        self.fanout.dispatch(outbox)
        return result

    def start(self, request_id: str, user_id: str) -> LifecycleResult:
        """Move a ready request to in_progress."""
        return self._advance(request_id, user_id, STATUS_IN_PROGRESS, EVENT_OUTING_STARTED)

    def complete(self, request_id: str, user_id: str) -> LifecycleResult:
        """Complete a ready or in-progress request and its group."""
        return self._advance(request_id, user_id, STATUS_COMPLETED, EVENT_OUTING_COMPLETED)
