"""
Voting Commands - intentions to create, vote on and close proposals

Duration is unconstrained at the schema level; a non-positive duration is
rejected with InvalidDuration after the allowlist check.
"""

from pydantic import BaseModel

from proposal_register.voting.models import VoteChoice


class CreateProposal(BaseModel):
    """
    Open a new proposal for voting

    Requires the caller to be allowlisted and duration > 0 seconds.
    """

    description: str
    duration_seconds: int


class CastVote(BaseModel):
    """Cast one ballot on a proposal"""

    proposal_id: int
    choice: VoteChoice


class CloseProposal(BaseModel):
    """Finalize a proposal whose voting window has ended"""

    proposal_id: int
