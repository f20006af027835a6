"""
Voting Projection - proposals and ballot records built from events

The registry is the only place tallies and ballots live in memory. It is
rebuilt from the event log on startup and updated as events are appended.
"""

from datetime import datetime
from typing import Any

from proposal_register.kernel.errors import ProposalNotFound
from proposal_register.kernel.events import Event
from proposal_register.voting.models import Proposal, VoteChoice


class ProposalRegistry:
    """
    Projection: every proposal in id order, plus the ballot record

    proposals[i] holds proposal i; ids are dense, so the list length is both
    the proposal count and the next id to assign. The ballot record is a set
    of (proposal_id, identity) pairs; membership means "has voted".
    """

    def __init__(self) -> None:
        self.proposals: list[dict[str, Any]] = []
        self.ballots: set[tuple[int, str]] = set()

    def apply_event(self, event: Event) -> None:
        """Apply an event to update projection state"""
        if event.event_type == "ProposalCreated":
            proposal_id = event.payload["proposal_id"]
            if proposal_id != len(self.proposals):
                raise ValueError(
                    f"ProposalCreated for id {proposal_id} out of sequence "
                    f"(expected {len(self.proposals)})"
                )
            end_time = event.payload["end_time"]
            self.proposals.append(
                {
                    "proposal_id": proposal_id,
                    "description": event.payload["description"],
                    "yes_votes": 0,
                    "no_votes": 0,
                    "active": True,
                    "end_time": datetime.fromisoformat(end_time)
                    if isinstance(end_time, str)
                    else end_time,
                    "approved": False,
                    "version": event.version,
                }
            )

        elif event.event_type == "VoteCast":
            proposal = self.proposals[event.payload["proposal_id"]]
            if VoteChoice(event.payload["choice"]) is VoteChoice.YES:
                proposal["yes_votes"] += 1
            else:
                proposal["no_votes"] += 1
            self.ballots.add((proposal["proposal_id"], event.payload["voter_id"]))
            proposal["version"] = event.version

        elif event.event_type == "ProposalClosed":
            proposal = self.proposals[event.payload["proposal_id"]]
            proposal["active"] = False
            if event.payload["approved"]:
                proposal["approved"] = True
            proposal["version"] = event.version

    def count(self) -> int:
        return len(self.proposals)

    def get(self, proposal_id: int) -> dict[str, Any] | None:
        """Raw proposal state by id, or None when out of range"""
        if 0 <= proposal_id < len(self.proposals):
            return self.proposals[proposal_id]
        return None

    def require(self, proposal_id: int) -> dict[str, Any]:
        """
        Raw proposal state by id

        Raises:
            ProposalNotFound: If the id is out of range
        """
        proposal = self.get(proposal_id)
        if proposal is None:
            raise ProposalNotFound(proposal_id, len(self.proposals))
        return proposal

    def snapshot(self, proposal_id: int) -> Proposal:
        """Immutable copy of one proposal"""
        proposal = self.require(proposal_id)
        return Proposal(**{k: v for k, v in proposal.items() if k != "version"})

    def list_all(self) -> list[Proposal]:
        """All proposals in id order"""
        return [self.snapshot(i) for i in range(len(self.proposals))]

    def has_voted(self, proposal_id: int, identity: str) -> bool:
        return (proposal_id, identity) in self.ballots
