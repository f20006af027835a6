"""
ProposalRegister - main façade

The one object clients hold. It owns the event store, the projections, the
notification bus and the lock that makes every operation atomic: a
mutating call either appends its events, applies them and notifies
subscribers, or raises and changes nothing.

Example:
    >>> from proposal_register import ProposalRegister, VoteChoice
    >>> register = ProposalRegister("proposals.db")
    >>> register.initialize("0xadmin")
    >>> pid = register.create_proposal("0xadmin", "Fund the garden", duration=3600)
    >>> register.vote("0xalice", pid, VoteChoice.YES)
    >>> # ... an hour later
    >>> approved = register.close_proposal("0xanyone", pid)
    >>> register.get_proposal(pid).approved
    True
"""

import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from proposal_register.access.commands import GrantProposer, InitializeRegister, RevokeProposer
from proposal_register.access.handlers import AccessCommandHandlers
from proposal_register.access.invariants import validate_initialized
from proposal_register.access.projections import Allowlist
from proposal_register.kernel.bus import NotificationBus
from proposal_register.kernel.errors import InvalidArgument
from proposal_register.kernel.event_store import SQLiteEventStore
from proposal_register.kernel.events import Event
from proposal_register.kernel.ids import generate_id, validate_identity
from proposal_register.kernel.logging import LogOperation, get_logger
from proposal_register.kernel.metrics import (
    proposals_closed_total,
    proposals_total,
    track_command_duration,
    votes_cast_total,
)
from proposal_register.kernel.time import RealTimeProvider, TimeProvider
from proposal_register.notifications import ActivityEntry, ActivityFeed, to_notification
from proposal_register.voting.commands import CastVote, CloseProposal, CreateProposal
from proposal_register.voting.handlers import VotingCommandHandlers
from proposal_register.voting.models import Proposal, VoteChoice
from proposal_register.voting.projections import ProposalRegistry

logger = get_logger(__name__)

C = TypeVar("C", bound=BaseModel)


def build_command(command_type: type[C], **fields: Any) -> C:
    """
    Construct a command model, reporting schema failures as InvalidArgument

    Raises:
        InvalidArgument: For the first field pydantic rejects
    """
    try:
        return command_type(**fields)
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or command_type.__name__
        raise InvalidArgument(field, error.get("input"), error["msg"]) from None


class ProposalRegister:
    """
    Proposal register façade

    Write entry points take the acting identity as their first argument;
    the register never infers who is calling. Reads are safe from any
    thread.
    """

    def __init__(
        self,
        sqlite_path: str | Path,
        time_provider: TimeProvider | None = None,
        activity_feed_size: int = 50,
    ) -> None:
        """
        Open (or create) a register backed by a SQLite event log

        Args:
            sqlite_path: Path to SQLite database
            time_provider: Clock (uses real time if None)
            activity_feed_size: Number of recent notifications to keep
        """
        self.sqlite_path = Path(sqlite_path)
        self.time_provider = time_provider or RealTimeProvider()

        self._lock = threading.RLock()

        self.event_store = SQLiteEventStore(self.sqlite_path)
        self.bus = NotificationBus()
        self.access_handlers = AccessCommandHandlers(self.time_provider)
        self.voting_handlers = VotingCommandHandlers(self.time_provider)

        self.allowlist = Allowlist()
        self.proposal_registry = ProposalRegistry()
        self.activity_feed = ActivityFeed(activity_feed_size)

        # Store position of the last event applied to the projections
        self._position = 0

        self._rebuild_projections()

    def _rebuild_projections(self) -> None:
        """Replay the event log into fresh projections"""
        replayed = self._catch_up()
        logger.info(
            "Register opened",
            db_path=str(self.sqlite_path),
            events_replayed=replayed,
            proposals=self.proposal_registry.count(),
            initialized=self.allowlist.administrator is not None,
        )

    def _catch_up(self) -> int:
        """
        Apply events appended to the log since this handle last read it

        Other handles (another process, another CLI invocation) may share the
        file, so every operation and read starts here. Must be called with
        the lock held.

        Returns:
            Number of events applied
        """
        events = self.event_store.load_all_events(after_position=self._position)
        for event in events:
            self._apply(event)
        if events:
            proposals_total.set(self.proposal_registry.count())
        return len(events)

    def _apply(self, event: Event) -> None:
        if event.stream_type == "access":
            self.allowlist.apply_event(event)
        elif event.stream_type == "proposal":
            self.proposal_registry.apply_event(event)
        self.activity_feed.apply_event(event)
        if event.position is not None:
            self._position = event.position

    def _commit(self, events: list[Event]) -> list[Event]:
        """
        Append events, apply them, then notify subscribers

        Must be called with the lock held. If the append fails nothing has
        been applied yet. Applying goes through _catch_up so that events
        another handle slipped in before ours are applied in log order too.
        """
        stored: list[Event] = []
        for event in events:
            stored.extend(
                self.event_store.append(event.stream_id, event.version - 1, [event])
            )

        self._catch_up()

        for event in stored:
            notification = to_notification(event)
            if notification is not None:
                self.bus.publish(event.event_type, notification)

        return stored

    # Lifecycle

    @track_command_duration("InitializeRegister")
    def initialize(self, caller_id: str) -> None:
        """
        Install caller_id as administrator and allowlist it

        Raises:
            AlreadyInitialized: If called a second time
        """
        validate_identity(caller_id, "caller_id")
        with self._lock, LogOperation(logger, "initialize", caller_id=caller_id):
            self._catch_up()
            command = build_command(InitializeRegister, administrator=caller_id)
            events = self.access_handlers.handle_initialize(
                command, generate_id(), self.allowlist
            )
            self._commit(events)

    @property
    def administrator(self) -> str | None:
        with self._lock:
            self._catch_up()
            return self.allowlist.administrator

    @property
    def is_initialized(self) -> bool:
        return self.administrator is not None

    # Access control

    @track_command_duration("GrantProposer")
    def grant(self, requester_id: str, target_id: str) -> None:
        """
        Allow target_id to create proposals

        Raises:
            NotInitialized: Before initialize()
            Unauthorized: If requester is not the administrator
        """
        validate_identity(requester_id, "requester_id")
        validate_identity(target_id, "target_id")
        with self._lock, LogOperation(
            logger, "grant", requester_id=requester_id, target_id=target_id
        ):
            self._catch_up()
            command = build_command(GrantProposer, target_id=target_id)
            events = self.access_handlers.handle_grant(
                command, generate_id(), requester_id, self.allowlist
            )
            self._commit(events)

    @track_command_duration("RevokeProposer")
    def revoke(self, requester_id: str, target_id: str) -> None:
        """
        Withdraw target_id's permission to create proposals

        Proposals it already created are unaffected.

        Raises:
            NotInitialized: Before initialize()
            Unauthorized: If requester is not the administrator
        """
        validate_identity(requester_id, "requester_id")
        validate_identity(target_id, "target_id")
        with self._lock, LogOperation(
            logger, "revoke", requester_id=requester_id, target_id=target_id
        ):
            self._catch_up()
            command = build_command(RevokeProposer, target_id=target_id)
            events = self.access_handlers.handle_revoke(
                command, generate_id(), requester_id, self.allowlist
            )
            self._commit(events)

    def is_allowed(self, identity: str) -> bool:
        with self._lock:
            self._catch_up()
            return self.allowlist.is_allowed(identity)

    def list_allowed(self) -> list[str]:
        with self._lock:
            self._catch_up()
            return self.allowlist.list_allowed()

    # Proposals

    @track_command_duration("CreateProposal")
    def create_proposal(self, caller_id: str, description: str, duration: int) -> int:
        """
        Open a new proposal

        Args:
            caller_id: Allowlisted identity creating the proposal
            description: Stored verbatim
            duration: Voting window length in seconds

        Returns:
            The new proposal's id

        Raises:
            NotInitialized: Before initialize()
            Unauthorized: If caller is not allowlisted
            InvalidArgument: If caller_id is blank
            InvalidDuration: If duration <= 0 or ends out of date range
        """
        validate_identity(caller_id, "caller_id")
        with self._lock, LogOperation(
            logger, "create_proposal", caller_id=caller_id, duration=duration
        ):
            self._catch_up()
            validate_initialized(self.allowlist)
            command = build_command(
                CreateProposal, description=description, duration_seconds=duration
            )
            events = self.voting_handlers.handle_create_proposal(
                command,
                generate_id(),
                caller_id,
                self.proposal_registry,
                self.allowlist.is_allowed(caller_id),
            )
            stored = self._commit(events)
            proposals_total.set(self.proposal_registry.count())
            return stored[0].payload["proposal_id"]

    @track_command_duration("CastVote")
    def vote(self, caller_id: str, proposal_id: int, choice: VoteChoice | bool | str) -> None:
        """
        Cast caller_id's single ballot on a proposal

        Args:
            caller_id: Any identity
            proposal_id: Proposal to vote on
            choice: VoteChoice, "yes"/"no", or True (yes) / False (no)

        Raises:
            NotInitialized: Before initialize()
            InvalidArgument: If caller_id is blank or choice is not yes/no
            ProposalNotFound: If the proposal does not exist
            ProposalNotActive: If it has been closed
            AlreadyVoted: If caller already voted on it
            VotingExpired: If its end time has been reached
        """
        validate_identity(caller_id, "caller_id")
        if isinstance(choice, bool):
            choice = VoteChoice.from_bool(choice)

        with self._lock, LogOperation(
            logger, "vote", caller_id=caller_id, proposal_id=proposal_id
        ):
            self._catch_up()
            validate_initialized(self.allowlist)
            command = build_command(CastVote, proposal_id=proposal_id, choice=choice)
            events = self.voting_handlers.handle_cast_vote(
                command, generate_id(), caller_id, self.proposal_registry
            )
            self._commit(events)
            votes_cast_total.inc()

    @track_command_duration("CloseProposal")
    def close_proposal(self, caller_id: str, proposal_id: int) -> bool:
        """
        Finalize a proposal after its end time

        Returns:
            Whether the proposal was approved

        Raises:
            NotInitialized: Before initialize()
            ProposalNotFound: If the proposal does not exist
            AlreadyClosed: If it has been closed
            NotYetExpired: If its end time has not passed
        """
        validate_identity(caller_id, "caller_id")
        with self._lock, LogOperation(
            logger, "close_proposal", caller_id=caller_id, proposal_id=proposal_id
        ):
            self._catch_up()
            validate_initialized(self.allowlist)
            command = build_command(CloseProposal, proposal_id=proposal_id)
            events = self.voting_handlers.handle_close_proposal(
                command, generate_id(), caller_id, self.proposal_registry
            )
            stored = self._commit(events)
            approved = stored[0].payload["approved"]
            proposals_closed_total.labels(
                outcome="approved" if approved else "rejected"
            ).inc()
            return approved

    def get_proposal(self, proposal_id: int) -> Proposal:
        """
        Raises:
            ProposalNotFound: If the id is out of range
        """
        with self._lock:
            self._catch_up()
            return self.proposal_registry.snapshot(proposal_id)

    def get_proposal_count(self) -> int:
        with self._lock:
            self._catch_up()
            return self.proposal_registry.count()

    def has_voted(self, proposal_id: int, identity: str) -> bool:
        with self._lock:
            self._catch_up()
            return self.proposal_registry.has_voted(proposal_id, identity)

    def list_proposals(self) -> list[Proposal]:
        """All proposals in id order"""
        with self._lock:
            self._catch_up()
            return self.proposal_registry.list_all()

    # Notifications

    def subscribe(
        self, kind: str, callback: Callable[[str, BaseModel], None]
    ) -> Callable[[], None]:
        """
        Receive notifications of one kind ("*" for all)

        Callbacks run synchronously inside the operation that produced the
        notification, after its state change is visible.

        Returns:
            Callable that cancels the subscription
        """
        return self.bus.subscribe(kind, callback)

    def recent_activity(self, limit: int | None = None) -> list[ActivityEntry]:
        """Most recent notifications, newest first"""
        with self._lock:
            self._catch_up()
            return self.activity_feed.recent(limit)

    def close(self) -> None:
        """Drop all subscribers; the event log stays on disk for the next open"""
        with self._lock:
            self.bus.clear()
            logger.info("Register closed", db_path=str(self.sqlite_path))
