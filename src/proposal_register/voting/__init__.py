"""
Voting - proposals, ballots and finalization

Allowlisted identities open proposals with a fixed voting window; any
identity casts at most one ballot per proposal before the window ends; any
identity closes a proposal after the window ends, fixing its outcome by
strict majority.
"""

from proposal_register.voting.handlers import VotingCommandHandlers
from proposal_register.voting.models import Proposal, ProposalStatus, VoteChoice
from proposal_register.voting.projections import ProposalRegistry

__all__ = [
    "Proposal",
    "ProposalRegistry",
    "ProposalStatus",
    "VoteChoice",
    "VotingCommandHandlers",
]
