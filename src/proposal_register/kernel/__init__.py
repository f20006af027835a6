"""
Kernel - event log, clock, errors and ambient infrastructure

Domain modules (access control, voting) build on these pieces: an
append-only SQLite event store, an injectable clock, a notification bus and
a single error hierarchy.
"""

from proposal_register.kernel.bus import ALL_NOTIFICATIONS, NotificationBus
from proposal_register.kernel.config import RegisterConfig
from proposal_register.kernel.errors import (
    AlreadyClosed,
    AlreadyInitialized,
    AlreadyVoted,
    EventStoreError,
    InvalidArgument,
    InvalidDuration,
    InvariantViolation,
    NotInitialized,
    NotYetExpired,
    ProposalNotActive,
    ProposalNotFound,
    RegisterError,
    StreamVersionConflict,
    Unauthorized,
    VotingExpired,
)
from proposal_register.kernel.events import Event
from proposal_register.kernel.ids import generate_id
from proposal_register.kernel.time import RealTimeProvider, TestTimeProvider, TimeProvider

__all__ = [
    # IDs
    "generate_id",
    # Time
    "TimeProvider",
    "RealTimeProvider",
    "TestTimeProvider",
    # Events & notifications
    "Event",
    "NotificationBus",
    "ALL_NOTIFICATIONS",
    # Config
    "RegisterConfig",
    # Errors
    "RegisterError",
    "EventStoreError",
    "StreamVersionConflict",
    "InvariantViolation",
    "NotInitialized",
    "AlreadyInitialized",
    "Unauthorized",
    "InvalidArgument",
    "InvalidDuration",
    "ProposalNotFound",
    "ProposalNotActive",
    "AlreadyClosed",
    "AlreadyVoted",
    "VotingExpired",
    "NotYetExpired",
]
