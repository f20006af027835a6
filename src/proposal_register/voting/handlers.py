"""
Voting Handlers - Command→Event transformation

Handlers are the decision-making layer:
1. Read the clock once
2. Validate invariants against the registry projection
3. Return events for the register to append and apply

They never touch projections themselves, so a rejected command leaves no
trace anywhere.
"""

from datetime import timedelta

from proposal_register.kernel.errors import InvalidDuration
from proposal_register.kernel.events import Event, create_event
from proposal_register.kernel.ids import generate_id, stream_id_for_proposal
from proposal_register.kernel.time import TimeProvider
from proposal_register.voting.commands import CastVote, CloseProposal, CreateProposal
from proposal_register.voting.events import ProposalClosed, ProposalCreated, VoteCast
from proposal_register.voting.invariants import (
    decide_approval,
    validate_can_close,
    validate_can_vote,
    validate_duration,
    validate_exists,
    validate_may_create,
)
from proposal_register.voting.projections import ProposalRegistry


class VotingCommandHandlers:
    """Command handlers for the proposal lifecycle"""

    def __init__(self, time_provider: TimeProvider) -> None:
        self.time_provider = time_provider

    def handle_create_proposal(
        self,
        command: CreateProposal,
        command_id: str,
        caller_id: str,
        registry: ProposalRegistry,
        caller_allowed: bool,
    ) -> list[Event]:
        """
        Handle CreateProposal command

        The new proposal takes the next dense id and ends exactly
        duration_seconds after now.

        Raises:
            Unauthorized: If caller is not allowlisted
            InvalidDuration: If duration_seconds <= 0 or the end time overflows
        """
        now = self.time_provider.now()

        validate_may_create(caller_id, caller_allowed)
        validate_duration(command.duration_seconds)

        proposal_id = registry.count()
        try:
            end_time = now + timedelta(seconds=command.duration_seconds)
        except OverflowError:
            raise InvalidDuration(
                command.duration_seconds,
                f"Voting duration of {command.duration_seconds} seconds "
                "ends beyond the representable date range",
            ) from None

        event_payload = ProposalCreated(
            proposal_id=proposal_id,
            description=command.description,
            end_time=end_time,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=generate_id(),
                stream_id=stream_id_for_proposal(proposal_id),
                stream_type="proposal",
                event_type="ProposalCreated",
                occurred_at=now,
                command_id=command_id,
                actor_id=caller_id,
                payload=event_payload,
                version=1,
            )
        ]

    def handle_cast_vote(
        self,
        command: CastVote,
        command_id: str,
        voter_id: str,
        registry: ProposalRegistry,
    ) -> list[Event]:
        """
        Handle CastVote command

        Raises:
            ProposalNotFound: If the proposal does not exist
            ProposalNotActive: If the proposal has been closed
            AlreadyVoted: If voter already voted on it
            VotingExpired: If now >= end_time
        """
        now = self.time_provider.now()

        proposal = validate_exists(
            registry.get(command.proposal_id), command.proposal_id, registry.count()
        )
        validate_can_vote(
            proposal,
            voter_id,
            registry.has_voted(command.proposal_id, voter_id),
            now,
        )

        event_payload = VoteCast(
            proposal_id=command.proposal_id,
            voter_id=voter_id,
            choice=command.choice,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=generate_id(),
                stream_id=stream_id_for_proposal(command.proposal_id),
                stream_type="proposal",
                event_type="VoteCast",
                occurred_at=now,
                command_id=command_id,
                actor_id=voter_id,
                payload=event_payload,
                version=proposal["version"] + 1,
            )
        ]

    def handle_close_proposal(
        self,
        command: CloseProposal,
        command_id: str,
        caller_id: str,
        registry: ProposalRegistry,
    ) -> list[Event]:
        """
        Handle CloseProposal command

        Any identity may close. Approval is decided here, once, from the
        tallies as they stand.

        Raises:
            ProposalNotFound: If the proposal does not exist
            AlreadyClosed: If the proposal has been closed
            NotYetExpired: If now <= end_time
        """
        now = self.time_provider.now()

        proposal = validate_exists(
            registry.get(command.proposal_id), command.proposal_id, registry.count()
        )
        validate_can_close(proposal, now)

        event_payload = ProposalClosed(
            proposal_id=command.proposal_id,
            approved=decide_approval(proposal["yes_votes"], proposal["no_votes"]),
            yes_votes=proposal["yes_votes"],
            no_votes=proposal["no_votes"],
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=generate_id(),
                stream_id=stream_id_for_proposal(command.proposal_id),
                stream_type="proposal",
                event_type="ProposalClosed",
                occurred_at=now,
                command_id=command_id,
                actor_id=caller_id,
                payload=event_payload,
                version=proposal["version"] + 1,
            )
        ]
