"""
Proposal Register CLI

Command-line client for a register stored in a local SQLite file. Every
write command names the acting identity explicitly with --as.

Usage:
    proposals init --db proposals.db --admin 0xadmin
    proposals allowlist grant --as 0xadmin --identity 0xalice
    proposals proposal create --as 0xalice --description "Fund the garden" --duration 3600
    proposals proposal vote --as 0xbob --id 0 --choice yes
    proposals proposal close --as 0xbob --id 0
    proposals proposal list
    proposals events
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from proposal_register.kernel.config import RegisterConfig
from proposal_register.kernel.errors import RegisterError
from proposal_register.kernel.ids import validate_identity
from proposal_register.kernel.logging import configure_logging
from proposal_register.register import ProposalRegister
from proposal_register.voting.models import Proposal, VoteChoice

app = typer.Typer(
    name="proposals",
    help="Proposal Register - allowlisted proposals with time-boxed voting",
    add_completion=False,
)

allowlist_app = typer.Typer(help="Proposer allowlist commands")
proposal_app = typer.Typer(help="Proposal lifecycle commands")

app.add_typer(allowlist_app, name="allowlist")
app.add_typer(proposal_app, name="proposal")

DbOption = Annotated[Optional[Path], typer.Option("--db", help="Database path")]
ActorOption = Annotated[str, typer.Option("--as", help="Acting identity")]


@app.callback()
def main_callback(
    log_level: Annotated[
        str,
        typer.Option("--log-level", envvar="PROPOSAL_REGISTER_LOG_LEVEL", help="Logging level"),
    ] = "WARNING",
    json_logs: Annotated[
        Optional[bool], typer.Option("--json-logs/--console-logs", help="Log format")
    ] = None,
) -> None:
    """Configure logging before any command runs"""
    config = RegisterConfig.from_env(log_level=log_level, json_logs=json_logs)
    configure_logging(json_output=config.json_logs, log_level=config.log_level)


def resolve_db(db: Optional[Path]) -> Path:
    return db or RegisterConfig.from_env().db_path


def get_register(db: Optional[Path] = None) -> ProposalRegister:
    """Open an existing register"""
    config = RegisterConfig.from_env(db_path=db)
    path = config.db_path
    if not path.exists():
        typer.echo(f"Error: Database not found: {path}", err=True)
        typer.echo(f"Run 'proposals init --db {path} --admin <identity>' to initialize", err=True)
        raise typer.Exit(1)
    return ProposalRegister(path, activity_feed_size=config.activity_feed_size)


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn register rejections into a one-line error and exit code 1"""
    try:
        yield
    except RegisterError as e:
        typer.echo(f"Error ({type(e).__name__}): {e}", err=True)
        raise typer.Exit(1)


def remove_database(path: Path) -> None:
    for candidate in (path, Path(f"{path}-wal"), Path(f"{path}-shm")):
        candidate.unlink(missing_ok=True)


def format_time(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_remaining(proposal: Proposal, now: datetime) -> str:
    """Whole minutes of voting left, or "Ended" once end_time is reached"""
    if now >= proposal.end_time:
        return "Ended"
    minutes = int((proposal.end_time - now).total_seconds() // 60)
    return f"{minutes}m left"


def proposal_to_dict(proposal: Proposal, now: datetime) -> dict:
    data = proposal.model_dump(mode="json")
    data["status"] = proposal.status(now).value
    data["remaining"] = format_remaining(proposal, now)
    return data


# Initialization


@app.command()
def init(
    admin: Annotated[str, typer.Option("--admin", help="Administrator identity")],
    db: DbOption = None,
) -> None:
    """Create a new register with the given administrator"""
    path = resolve_db(db)
    if path.exists():
        typer.echo(f"Error: Database already exists: {path}", err=True)
        raise typer.Exit(1)

    with reported_errors():
        validate_identity(admin, "admin")

    register = ProposalRegister(path)
    try:
        with reported_errors():
            register.initialize(admin)
    except typer.Exit:
        # An uninitialized file would block every later init
        remove_database(path)
        raise
    typer.echo(f"✓ Initialized register: {path}")
    typer.echo(f"  Administrator: {admin}")


# Allowlist commands


@allowlist_app.command("grant")
def allowlist_grant(
    actor: ActorOption,
    identity: Annotated[str, typer.Option("--identity", help="Identity to allow")],
    db: DbOption = None,
) -> None:
    """Allow an identity to create proposals (administrator only)"""
    register = get_register(db)
    with reported_errors():
        register.grant(actor, identity)
    typer.echo(f"✓ Granted proposer rights: {identity}")


@allowlist_app.command("revoke")
def allowlist_revoke(
    actor: ActorOption,
    identity: Annotated[str, typer.Option("--identity", help="Identity to revoke")],
    db: DbOption = None,
) -> None:
    """Withdraw an identity's permission to create proposals (administrator only)"""
    register = get_register(db)
    with reported_errors():
        register.revoke(actor, identity)
    typer.echo(f"✓ Revoked proposer rights: {identity}")


@allowlist_app.command("check")
def allowlist_check(
    identity: Annotated[str, typer.Option("--identity", help="Identity to check")],
    db: DbOption = None,
) -> None:
    """Show whether an identity may create proposals"""
    register = get_register(db)
    allowed = register.is_allowed(identity)
    typer.echo(f"{identity}: {'allowed' if allowed else 'not allowed'}")


@allowlist_app.command("list")
def allowlist_list(db: DbOption = None) -> None:
    """List the administrator and allowlisted identities"""
    register = get_register(db)
    typer.echo(f"Administrator: {register.administrator or '(not initialized)'}")
    allowed = register.list_allowed()
    if not allowed:
        typer.echo("No allowlisted identities")
        return
    typer.echo(f"Allowlisted ({len(allowed)}):")
    for identity in allowed:
        typer.echo(f"  {identity}")


# Proposal commands


@proposal_app.command("create")
def proposal_create(
    actor: ActorOption,
    description: Annotated[str, typer.Option("--description", help="Proposal text")],
    duration: Annotated[
        int, typer.Option("--duration", help="Voting window in seconds")
    ] = 3600,
    db: DbOption = None,
) -> None:
    """Open a new proposal (allowlisted identities only)"""
    register = get_register(db)
    with reported_errors():
        proposal_id = register.create_proposal(actor, description, duration)
    proposal = register.get_proposal(proposal_id)
    typer.echo(f"✓ Created proposal #{proposal_id}")
    typer.echo(f"  Description: {proposal.description}")
    typer.echo(f"  Voting ends: {format_time(proposal.end_time)}")


@proposal_app.command("vote")
def proposal_vote(
    actor: ActorOption,
    proposal_id: Annotated[int, typer.Option("--id", help="Proposal ID")],
    choice: Annotated[VoteChoice, typer.Option("--choice", help="yes or no")],
    db: DbOption = None,
) -> None:
    """Cast a ballot"""
    register = get_register(db)
    with reported_errors():
        register.vote(actor, proposal_id, choice)
    proposal = register.get_proposal(proposal_id)
    typer.echo(f"✓ Vote recorded on proposal #{proposal_id}")
    typer.echo(f"  Yes: {proposal.yes_votes}  No: {proposal.no_votes}")


@proposal_app.command("close")
def proposal_close(
    actor: ActorOption,
    proposal_id: Annotated[int, typer.Option("--id", help="Proposal ID")],
    db: DbOption = None,
) -> None:
    """Finalize a proposal whose voting window has ended"""
    register = get_register(db)
    with reported_errors():
        approved = register.close_proposal(actor, proposal_id)
    typer.echo(f"✓ Closed proposal #{proposal_id}: {'APPROVED' if approved else 'REJECTED'}")


@proposal_app.command("show")
def proposal_show(
    proposal_id: Annotated[int, typer.Option("--id", help="Proposal ID")],
    voter: Annotated[
        Optional[str], typer.Option("--voter", help="Also show whether this identity voted")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    db: DbOption = None,
) -> None:
    """Show one proposal"""
    register = get_register(db)
    with reported_errors():
        proposal = register.get_proposal(proposal_id)
    now = register.time_provider.now()

    if json_output:
        data = proposal_to_dict(proposal, now)
        if voter:
            data["has_voted"] = register.has_voted(proposal_id, voter)
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(f"Proposal #{proposal.proposal_id}: {proposal.description}")
    typer.echo(f"  Status: {proposal.status(now).value}")
    typer.echo(f"  Yes: {proposal.yes_votes}  No: {proposal.no_votes}")
    typer.echo(
        f"  Voting ends: {format_time(proposal.end_time)} "
        f"({format_remaining(proposal, now)})"
    )
    if voter:
        voted = register.has_voted(proposal_id, voter)
        typer.echo(f"  {voter} has {'voted' if voted else 'not voted'}")


@proposal_app.command("list")
def proposal_list(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    db: DbOption = None,
) -> None:
    """List all proposals, newest first"""
    register = get_register(db)
    proposals = list(reversed(register.list_proposals()))
    now = register.time_provider.now()

    if json_output:
        typer.echo(json.dumps([proposal_to_dict(p, now) for p in proposals], indent=2))
        return

    if not proposals:
        typer.echo("No proposals yet")
        return

    typer.echo(f"Proposals ({len(proposals)}):")
    for p in proposals:
        typer.echo(
            f"  #{p.proposal_id} [{p.status(now).value}] {p.description} "
            f"(yes {p.yes_votes} / no {p.no_votes}) - {format_remaining(p, now)}"
        )


# Activity


@app.command()
def events(
    limit: Annotated[int, typer.Option("--limit", help="Maximum entries")] = 20,
    db: DbOption = None,
) -> None:
    """Show recent register activity, newest first"""
    register = get_register(db)
    entries = register.recent_activity(limit)

    if not entries:
        typer.echo("No activity yet")
        return

    for entry in entries:
        typer.echo(f"  {format_time(entry.occurred_at)}  {entry.summary()}")


def main() -> None:
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
