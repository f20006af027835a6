"""
Voting Invariants - the checks that gate every proposal transition

Each validator raises the first failing condition in a fixed order; clients
branch on which error they get, so the order is part of the contract.

Both time checks compare one "now" snapshot against the same immutable end
time: ballots need now < end_time, closing needs now > end_time. At
now == end_time neither succeeds.
"""

from datetime import datetime
from typing import Any

from proposal_register.kernel.errors import (
    AlreadyClosed,
    AlreadyVoted,
    InvalidDuration,
    NotYetExpired,
    ProposalNotActive,
    ProposalNotFound,
    Unauthorized,
    VotingExpired,
)


def validate_may_create(caller_id: str, is_allowed: bool) -> None:
    """
    Raises:
        Unauthorized: If the caller is not on the allowlist
    """
    if not is_allowed:
        raise Unauthorized(caller_id, "create proposals")


def validate_duration(duration_seconds: int) -> None:
    """
    Raises:
        InvalidDuration: If duration is zero or negative
    """
    if duration_seconds <= 0:
        raise InvalidDuration(duration_seconds)


def validate_exists(proposal: dict[str, Any] | None, proposal_id: int, count: int) -> dict[str, Any]:
    """
    Raises:
        ProposalNotFound: If the id is out of range
    """
    if proposal is None:
        raise ProposalNotFound(proposal_id, count)
    return proposal


def validate_can_vote(
    proposal: dict[str, Any],
    voter_id: str,
    already_voted: bool,
    now: datetime,
) -> None:
    """
    Check a ballot against an existing proposal

    Order: active, not yet voted, before end time.

    Raises:
        ProposalNotActive: If the proposal has been closed
        AlreadyVoted: If voter already has a ballot on this proposal
        VotingExpired: If now >= end_time
    """
    if not proposal["active"]:
        raise ProposalNotActive(proposal["proposal_id"])
    if already_voted:
        raise AlreadyVoted(proposal["proposal_id"], voter_id)
    if not now < proposal["end_time"]:
        raise VotingExpired(proposal["proposal_id"], proposal["end_time"], now)


def validate_can_close(proposal: dict[str, Any], now: datetime) -> None:
    """
    Check that an existing proposal may be finalized

    Order: active, after end time.

    Raises:
        AlreadyClosed: If the proposal has been closed
        NotYetExpired: If now <= end_time
    """
    if not proposal["active"]:
        raise AlreadyClosed(proposal["proposal_id"])
    if not now > proposal["end_time"]:
        raise NotYetExpired(proposal["proposal_id"], proposal["end_time"], now)


def decide_approval(yes_votes: int, no_votes: int) -> bool:
    """Strict majority of cast ballots; a tie is not approved"""
    return yes_votes > no_votes
