"""
Base Event model for the register's append-only log

Events are immutable facts: an administrator was installed, an identity was
allowlisted, a proposal was created, a ballot was cast, a proposal was closed.
Replaying them in append order rebuilds the exact register state.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Event(BaseModel):
    """
    Base event class - every state change in the register is one of these

    Events are:
    - Immutable (never modified after creation)
    - Append-only (never deleted)
    - Versioned per stream (one stream per proposal, one for access control)
    - Globally ordered by their store position (replay order)

    stream_id + version gives optimistic locking, command_id gives idempotency.
    """

    event_id: str = Field(
        ...,
        description="Unique event identifier (UUIDv7 for time-ordering)",
    )

    stream_id: str = Field(
        ...,
        description="Aggregate identifier: 'access-control' or 'proposal-<id>'",
    )

    stream_type: str = Field(
        ...,
        description="Type of aggregate: 'access' or 'proposal'",
    )

    event_type: str = Field(
        ...,
        description="Specific event type: 'ProposalCreated', 'VoteCast', etc.",
    )

    occurred_at: datetime = Field(
        ...,
        description="UTC timestamp when event occurred",
    )

    actor_id: str | None = Field(
        default=None,
        description="Identity that triggered this event",
    )

    command_id: str = Field(
        ...,
        description="ID of command that caused this event (idempotency key)",
    )

    payload: dict = Field(
        default_factory=dict,
        description="Event-specific data (must be JSON-serializable)",
    )

    version: int = Field(
        ...,
        description="Stream version after this event (monotonically increasing)",
        ge=1,
    )

    position: int | None = Field(
        default=None,
        description="Global append position, assigned by the event store",
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "event_id": "01908e9a-3b87-7000-8000-123456789abc",
                    "stream_id": "proposal-0",
                    "stream_type": "proposal",
                    "event_type": "ProposalCreated",
                    "occurred_at": "2025-01-15T10:30:00Z",
                    "actor_id": "0xadmin",
                    "command_id": "01908e9a-3b87-7000-8000-123456789abd",
                    "payload": {
                        "proposal_id": 0,
                        "description": "Fund the community garden",
                        "end_time": "2025-01-15T11:30:00Z",
                    },
                    "version": 1,
                    "position": 2,
                }
            ]
        },
    }


def create_event(
    *,
    event_id: str,
    stream_id: str,
    stream_type: str,
    event_type: str,
    occurred_at: datetime,
    command_id: str,
    version: int,
    actor_id: str | None = None,
    payload: dict | None = None,
) -> Event:
    """
    Factory function for creating events with all required fields

    Position is left unset; the event store assigns it on append.
    """
    return Event(
        event_id=event_id,
        stream_id=stream_id,
        stream_type=stream_type,
        event_type=event_type,
        occurred_at=occurred_at,
        actor_id=actor_id,
        command_id=command_id,
        payload=payload or {},
        version=version,
    )
