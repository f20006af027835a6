"""
Custom exceptions for the proposal register

Every rejected operation maps to exactly one exception class so callers can
branch on the kind of failure. Domain rejections are local validation
failures: none of them are retryable and none leave partial state behind.
"""

from datetime import datetime


class RegisterError(Exception):
    """Base exception for all proposal register errors"""

    pass


class EventStoreError(RegisterError):
    """Base class for event store errors"""

    pass


class StreamVersionConflict(EventStoreError):
    """
    Raised when stream version doesn't match expected (optimistic locking)

    Another writer touched the same proposal or the allowlist first.
    The caller should reopen the register and retry.
    """

    def __init__(
        self, stream_id: str, expected_version: int, actual_version: int
    ) -> None:
        self.stream_id = stream_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Stream {stream_id} version mismatch: "
            f"expected {expected_version}, got {actual_version}"
        )


class InvariantViolation(RegisterError):
    """Raised when an operation would break a register invariant"""

    pass


class InvalidArgument(InvariantViolation):
    """Raised when an argument is malformed (blank identity, unknown choice)"""

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


# Lifecycle


class NotInitialized(InvariantViolation):
    """Raised when a mutating operation runs before initialize()"""

    def __init__(self) -> None:
        super().__init__("Register has not been initialized - call initialize() first")


class AlreadyInitialized(InvariantViolation):
    """Raised when initialize() is called a second time"""

    def __init__(self, administrator: str) -> None:
        self.administrator = administrator
        super().__init__(f"Register already initialized with administrator {administrator}")


# Access control


class Unauthorized(InvariantViolation):
    """Raised when the caller lacks the role the operation requires"""

    def __init__(self, caller_id: str, action: str) -> None:
        self.caller_id = caller_id
        self.action = action
        super().__init__(f"{caller_id} is not authorized to {action}")


# Proposal lifecycle


class InvalidDuration(InvariantViolation):
    """Raised when a proposal is created with a non-positive or unrepresentable duration"""

    def __init__(self, duration: int, message: str = "") -> None:
        self.duration = duration
        super().__init__(
            message or f"Voting duration must be positive, got {duration} seconds"
        )


class ProposalNotFound(InvariantViolation):
    """Raised when a proposal id is outside 0..count-1"""

    def __init__(self, proposal_id: int, count: int) -> None:
        self.proposal_id = proposal_id
        self.count = count
        super().__init__(
            f"Proposal {proposal_id} not found ({count} proposals exist)"
        )


class ProposalNotActive(InvariantViolation):
    """Raised when voting on a proposal that has already been closed"""

    def __init__(self, proposal_id: int, message: str = "") -> None:
        self.proposal_id = proposal_id
        super().__init__(message or f"Proposal {proposal_id} is not active")


class AlreadyClosed(ProposalNotActive):
    """Raised when closing a proposal that has already been closed"""

    def __init__(self, proposal_id: int) -> None:
        super().__init__(proposal_id, f"Proposal {proposal_id} is already closed")


class AlreadyVoted(InvariantViolation):
    """Raised when an identity casts a second ballot on the same proposal"""

    def __init__(self, proposal_id: int, voter_id: str) -> None:
        self.proposal_id = proposal_id
        self.voter_id = voter_id
        super().__init__(f"{voter_id} has already voted on proposal {proposal_id}")


class VotingExpired(InvariantViolation):
    """Raised when a ballot arrives at or after the proposal's end time"""

    def __init__(self, proposal_id: int, end_time: datetime, now: datetime) -> None:
        self.proposal_id = proposal_id
        self.end_time = end_time
        self.now = now
        super().__init__(
            f"Voting on proposal {proposal_id} ended at {end_time.isoformat()} "
            f"(now {now.isoformat()})"
        )


class NotYetExpired(InvariantViolation):
    """Raised when closing a proposal at or before its end time"""

    def __init__(self, proposal_id: int, end_time: datetime, now: datetime) -> None:
        self.proposal_id = proposal_id
        self.end_time = end_time
        self.now = now
        super().__init__(
            f"Proposal {proposal_id} cannot be closed until after "
            f"{end_time.isoformat()} (now {now.isoformat()})"
        )


# Short names matching the error taxonomy used by clients
NotFound = ProposalNotFound
NotActive = ProposalNotActive
Expired = VotingExpired
