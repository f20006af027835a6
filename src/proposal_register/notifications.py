"""
Outward notifications and the recent activity feed

Each stored event maps to one notification with a fixed field set. Clients
subscribe to these; they never see the raw event log. The VoteCast
notification omits the ballot direction even though the stored event keeps
it for replay.
"""

from collections import deque
from datetime import datetime

from pydantic import BaseModel

from proposal_register.kernel.events import Event


class ProposalCreated(BaseModel):
    proposal_id: int
    description: str
    end_time: datetime

    model_config = {"frozen": True}


class VoteCast(BaseModel):
    proposal_id: int
    voter_id: str

    model_config = {"frozen": True}


class ProposalClosed(BaseModel):
    proposal_id: int
    approved: bool

    model_config = {"frozen": True}


class AllowlistGranted(BaseModel):
    identity: str

    model_config = {"frozen": True}


class AllowlistRevoked(BaseModel):
    identity: str

    model_config = {"frozen": True}


Notification = ProposalCreated | VoteCast | ProposalClosed | AllowlistGranted | AllowlistRevoked

NOTIFICATION_TYPES: dict[str, type[BaseModel]] = {
    "ProposalCreated": ProposalCreated,
    "VoteCast": VoteCast,
    "ProposalClosed": ProposalClosed,
    "AllowlistGranted": AllowlistGranted,
    "AllowlistRevoked": AllowlistRevoked,
}


def to_notification(event: Event) -> Notification | None:
    """
    Notification for an event, or None for internal events

    Payload fields outside the notification's field set are dropped.
    """
    model = NOTIFICATION_TYPES.get(event.event_type)
    if model is None:
        return None
    return model.model_validate(
        {name: event.payload[name] for name in model.model_fields}
    )


class ActivityEntry(BaseModel):
    """One line of the activity feed"""

    kind: str
    occurred_at: datetime
    notification: Notification

    model_config = {"frozen": True}

    def summary(self) -> str:
        """Short human-readable description"""
        n = self.notification
        if isinstance(n, ProposalCreated):
            return f"Proposal #{n.proposal_id} created: {n.description}"
        if isinstance(n, VoteCast):
            return f"Vote on #{n.proposal_id} by {n.voter_id}"
        if isinstance(n, ProposalClosed):
            return f"Proposal #{n.proposal_id} closed: {'approved' if n.approved else 'not approved'}"
        if isinstance(n, AllowlistGranted):
            return f"Proposer granted: {n.identity}"
        if isinstance(n, AllowlistRevoked):
            return f"Proposer revoked: {n.identity}"
        return self.kind


class ActivityFeed:
    """
    Projection: the most recent notifications, newest first

    Bounded; older entries fall off the end.
    """

    def __init__(self, max_entries: int = 50) -> None:
        self.max_entries = max_entries
        self._entries: deque[ActivityEntry] = deque(maxlen=max_entries)

    def apply_event(self, event: Event) -> None:
        notification = to_notification(event)
        if notification is None:
            return
        self._entries.appendleft(
            ActivityEntry(
                kind=event.event_type,
                occurred_at=event.occurred_at,
                notification=notification,
            )
        )

    def recent(self, limit: int | None = None) -> list[ActivityEntry]:
        entries = list(self._entries)
        return entries if limit is None else entries[:limit]
