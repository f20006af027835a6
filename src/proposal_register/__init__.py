"""
Proposal Register - allowlisted proposals, one ballot per identity,
time-boxed voting and majority-rule finalization.

Every state change is an event in an append-only SQLite log; reopening the
same file replays the log and restores the register exactly.
"""

from proposal_register.register import ProposalRegister
from proposal_register.voting.models import Proposal, ProposalStatus, VoteChoice

__version__ = "0.1.0"
__all__ = ["ProposalRegister", "Proposal", "ProposalStatus", "VoteChoice", "__version__"]
