"""
Access Control Handlers - Command→Event transformation

Each handler reads the clock once, validates against the allowlist
projection, and returns the events to append. Handlers never mutate
projections; the register applies events after they are stored.
"""

from proposal_register.access.commands import GrantProposer, InitializeRegister, RevokeProposer
from proposal_register.access.events import AllowlistGranted, AllowlistRevoked, RegisterInitialized
from proposal_register.access.invariants import validate_administrator, validate_not_initialized
from proposal_register.access.projections import Allowlist
from proposal_register.kernel.events import Event, create_event
from proposal_register.kernel.ids import ACCESS_STREAM_ID, generate_id
from proposal_register.kernel.time import TimeProvider


class AccessCommandHandlers:
    """Command handlers for the administrator and allowlist"""

    def __init__(self, time_provider: TimeProvider) -> None:
        self.time_provider = time_provider

    def handle_initialize(
        self,
        command: InitializeRegister,
        command_id: str,
        allowlist: Allowlist,
    ) -> list[Event]:
        """
        Handle InitializeRegister command

        Raises:
            AlreadyInitialized: If an administrator already exists
        """
        now = self.time_provider.now()

        validate_not_initialized(allowlist)

        event_payload = RegisterInitialized(
            administrator=command.administrator,
            initialized_at=now,
        ).model_dump(mode="json")

        return [
            create_event(
                event_id=generate_id(),
                stream_id=ACCESS_STREAM_ID,
                stream_type="access",
                event_type="RegisterInitialized",
                occurred_at=now,
                command_id=command_id,
                actor_id=command.administrator,
                payload=event_payload,
                version=allowlist.version + 1,
            )
        ]

    def handle_grant(
        self,
        command: GrantProposer,
        command_id: str,
        requester_id: str,
        allowlist: Allowlist,
    ) -> list[Event]:
        """
        Handle GrantProposer command

        Granting an identity that is already allowed still records an event;
        the flag itself does not change.

        Raises:
            NotInitialized: If there is no administrator yet
            Unauthorized: If requester is not the administrator
        """
        now = self.time_provider.now()

        validate_administrator(requester_id, allowlist, "grant proposer rights")

        return [
            create_event(
                event_id=generate_id(),
                stream_id=ACCESS_STREAM_ID,
                stream_type="access",
                event_type="AllowlistGranted",
                occurred_at=now,
                command_id=command_id,
                actor_id=requester_id,
                payload=AllowlistGranted(identity=command.target_id).model_dump(mode="json"),
                version=allowlist.version + 1,
            )
        ]

    def handle_revoke(
        self,
        command: RevokeProposer,
        command_id: str,
        requester_id: str,
        allowlist: Allowlist,
    ) -> list[Event]:
        """
        Handle RevokeProposer command

        The administrator may revoke its own entry.

        Raises:
            NotInitialized: If there is no administrator yet
            Unauthorized: If requester is not the administrator
        """
        now = self.time_provider.now()

        validate_administrator(requester_id, allowlist, "revoke proposer rights")

        return [
            create_event(
                event_id=generate_id(),
                stream_id=ACCESS_STREAM_ID,
                stream_type="access",
                event_type="AllowlistRevoked",
                occurred_at=now,
                command_id=command_id,
                actor_id=requester_id,
                payload=AllowlistRevoked(identity=command.target_id).model_dump(mode="json"),
                version=allowlist.version + 1,
            )
        ]
