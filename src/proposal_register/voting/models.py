"""
Voting Domain Models - proposals and ballot choices

A proposal is open for ballots from creation until its end time, and can be
finalized by anyone strictly after its end time. At exactly the end time
neither is possible.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class VoteChoice(str, Enum):
    """Direction of a ballot"""

    YES = "yes"
    NO = "no"

    @classmethod
    def from_bool(cls, value: bool) -> "VoteChoice":
        return cls.YES if value else cls.NO


class ProposalStatus(str, Enum):
    """
    Display state of a proposal at a given moment

    ACTIVE → ENDED (clock passed end time, not yet closed) → APPROVED | REJECTED
    Only the transition out of ENDED is a recorded state change; ACTIVE → ENDED
    is the clock alone.
    """

    ACTIVE = "ACTIVE"
    ENDED = "ENDED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Proposal(BaseModel):
    """
    Snapshot of a proposal

    Attributes:
        proposal_id: Dense zero-based id, assigned in creation order
        description: Opaque text, stored verbatim
        yes_votes: Ballots in favour
        no_votes: Ballots against
        active: True until the proposal is closed
        end_time: Creation time plus duration; fixed at creation
        approved: Set at close when yes_votes > no_votes
    """

    proposal_id: int = Field(..., ge=0)
    description: str
    yes_votes: int = Field(default=0, ge=0)
    no_votes: int = Field(default=0, ge=0)
    active: bool = True
    end_time: datetime
    approved: bool = False

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "proposal_id": 0,
                    "description": "Fund the community garden",
                    "yes_votes": 2,
                    "no_votes": 1,
                    "active": True,
                    "end_time": "2025-01-15T13:00:00Z",
                    "approved": False,
                }
            ]
        },
    }

    def status(self, now: datetime) -> ProposalStatus:
        if not self.active:
            return ProposalStatus.APPROVED if self.approved else ProposalStatus.REJECTED
        if now >= self.end_time:
            return ProposalStatus.ENDED
        return ProposalStatus.ACTIVE

    def as_tuple(self) -> tuple[str, int, int, bool, datetime, bool]:
        """(description, yes_votes, no_votes, active, end_time, approved)"""
        return (
            self.description,
            self.yes_votes,
            self.no_votes,
            self.active,
            self.end_time,
            self.approved,
        )
