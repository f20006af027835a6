"""
Voting Events - facts about proposals and ballots

VoteCast records the ballot direction so tallies can be rebuilt on replay.
The outward VoteCast notification carries only the proposal and the voter.
"""

from datetime import datetime

from pydantic import BaseModel

from proposal_register.voting.models import VoteChoice


class ProposalCreated(BaseModel):
    """A proposal was opened for voting"""

    proposal_id: int
    description: str
    end_time: datetime


class VoteCast(BaseModel):
    """A ballot was accepted"""

    proposal_id: int
    voter_id: str
    choice: VoteChoice


class ProposalClosed(BaseModel):
    """A proposal was finalized; approved is permanent from here on"""

    proposal_id: int
    approved: bool
    yes_votes: int
    no_votes: int
