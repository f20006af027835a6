"""
CLI integration tests

Drives the `proposals` command through typer's CliRunner against a real
database file in a temporary directory.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
from typer.testing import CliRunner

from proposal_register import ProposalRegister, VoteChoice
from proposal_register.cli.main import app
from proposal_register.kernel.errors import AlreadyInitialized
from proposal_register.kernel.time import TestTimeProvider


@pytest.fixture
def runner() -> CliRunner:
    """Typer CLI test runner"""
    return CliRunner()


@pytest.fixture
def db(runner: CliRunner, tmp_path: Path) -> Path:
    """Initialized register database with 0xadmin as administrator"""
    db_path = tmp_path / "proposals.db"
    result = runner.invoke(app, ["init", "--db", str(db_path), "--admin", "0xadmin"])
    assert result.exit_code == 0
    return db_path


def invoke(runner: CliRunner, db: Path, *args: str):
    return runner.invoke(app, [*args, "--db", str(db)])


# =============================================================================
# Initialization
# =============================================================================


def test_init_creates_database(runner: CliRunner, tmp_path: Path) -> None:
    db_path = tmp_path / "test.db"

    result = runner.invoke(app, ["init", "--db", str(db_path), "--admin", "0xadmin"])

    assert result.exit_code == 0
    assert db_path.exists()
    assert "Initialized register" in result.stdout
    assert "0xadmin" in result.stdout
    assert ProposalRegister(db_path).administrator == "0xadmin"


def test_init_with_existing_database(runner: CliRunner, db: Path) -> None:
    result = runner.invoke(app, ["init", "--db", str(db), "--admin", "0xother"])

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_init_with_blank_admin_leaves_no_database(runner: CliRunner, tmp_path: Path) -> None:
    db_path = tmp_path / "test.db"

    result = runner.invoke(app, ["init", "--db", str(db_path), "--admin", " "])

    assert result.exit_code == 1
    assert "InvalidArgument" in result.output
    assert not db_path.exists()

    result = runner.invoke(app, ["init", "--db", str(db_path), "--admin", "0xadmin"])
    assert result.exit_code == 0
    assert ProposalRegister(db_path).administrator == "0xadmin"


def test_init_failure_removes_partial_database(
    runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test a failed initialize does not leave a schema-only file behind"""
    db_path = tmp_path / "test.db"

    def failing_initialize(self: ProposalRegister, caller_id: str) -> None:
        raise AlreadyInitialized("0xsomeone")

    monkeypatch.setattr(ProposalRegister, "initialize", failing_initialize)

    result = runner.invoke(app, ["init", "--db", str(db_path), "--admin", "0xadmin"])

    assert result.exit_code == 1
    assert "AlreadyInitialized" in result.output
    assert not db_path.exists()


def test_commands_require_database(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["proposal", "list", "--db", str(tmp_path / "missing.db")])

    assert result.exit_code == 1
    assert "Database not found" in result.output


def test_db_path_from_environment(runner: CliRunner, tmp_path: Path) -> None:
    """Test PROPOSAL_REGISTER_DB is used when --db is omitted"""
    db_path = tmp_path / "env.db"

    result = runner.invoke(
        app, ["init", "--admin", "0xadmin"], env={"PROPOSAL_REGISTER_DB": str(db_path)}
    )

    assert result.exit_code == 0
    assert db_path.exists()


# =============================================================================
# Allowlist
# =============================================================================


def test_allowlist_grant_check_list(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "allowlist", "grant", "--as", "0xadmin", "--identity", "0xalice")
    assert result.exit_code == 0
    assert "Granted proposer rights: 0xalice" in result.stdout

    result = invoke(runner, db, "allowlist", "check", "--identity", "0xalice")
    assert result.exit_code == 0
    assert "0xalice: allowed" in result.stdout

    result = invoke(runner, db, "allowlist", "list")
    assert result.exit_code == 0
    assert "Administrator: 0xadmin" in result.stdout
    assert "Allowlisted (2)" in result.stdout


def test_allowlist_grant_by_non_admin_fails(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "allowlist", "grant", "--as", "0xalice", "--identity", "0xbob")

    assert result.exit_code == 1
    assert "Unauthorized" in result.output


def test_allowlist_revoke(runner: CliRunner, db: Path) -> None:
    invoke(runner, db, "allowlist", "grant", "--as", "0xadmin", "--identity", "0xalice")

    result = invoke(runner, db, "allowlist", "revoke", "--as", "0xadmin", "--identity", "0xalice")
    assert result.exit_code == 0

    result = invoke(runner, db, "allowlist", "check", "--identity", "0xalice")
    assert "0xalice: not allowed" in result.stdout


# =============================================================================
# Proposals
# =============================================================================


def test_proposal_create_vote_show(runner: CliRunner, db: Path) -> None:
    result = invoke(
        runner, db, "proposal", "create", "--as", "0xadmin",
        "--description", "Fund the garden", "--duration", "3600",
    )
    assert result.exit_code == 0
    assert "Created proposal #0" in result.stdout

    result = invoke(runner, db, "proposal", "vote", "--as", "0xbob", "--id", "0", "--choice", "yes")
    assert result.exit_code == 0
    assert "Yes: 1  No: 0" in result.stdout

    result = invoke(runner, db, "proposal", "show", "--id", "0", "--voter", "0xbob", "--json")
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["description"] == "Fund the garden"
    assert data["yes_votes"] == 1
    assert data["status"] == "ACTIVE"
    assert data["has_voted"] is True
    assert data["remaining"].endswith("m left")

    result = invoke(runner, db, "proposal", "show", "--id", "0")
    assert "m left)" in result.stdout


def test_proposal_create_unauthorized(runner: CliRunner, db: Path) -> None:
    result = invoke(
        runner, db, "proposal", "create", "--as", "0xstranger", "--description", "x",
    )

    assert result.exit_code == 1
    assert "Unauthorized" in result.output


def test_proposal_create_invalid_duration(runner: CliRunner, db: Path) -> None:
    result = invoke(
        runner, db, "proposal", "create", "--as", "0xadmin",
        "--description", "x", "--duration", "0",
    )

    assert result.exit_code == 1
    assert "InvalidDuration" in result.output


def test_proposal_vote_twice_fails(runner: CliRunner, db: Path) -> None:
    invoke(runner, db, "proposal", "create", "--as", "0xadmin", "--description", "x")
    invoke(runner, db, "proposal", "vote", "--as", "0xbob", "--id", "0", "--choice", "yes")

    result = invoke(runner, db, "proposal", "vote", "--as", "0xbob", "--id", "0", "--choice", "no")

    assert result.exit_code == 1
    assert "AlreadyVoted" in result.output


def test_proposal_vote_rejects_unknown_choice(runner: CliRunner, db: Path) -> None:
    invoke(runner, db, "proposal", "create", "--as", "0xadmin", "--description", "x")

    result = invoke(runner, db, "proposal", "vote", "--as", "0xbob", "--id", "0", "--choice", "maybe")

    assert result.exit_code != 0


def test_proposal_show_missing(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "proposal", "show", "--id", "7")

    assert result.exit_code == 1
    assert "ProposalNotFound" in result.output


def test_proposal_close_after_deadline(runner: CliRunner, db: Path) -> None:
    """Test closing a proposal whose window ended in the past"""
    past = TestTimeProvider(datetime(2020, 1, 1, tzinfo=timezone.utc))
    register = ProposalRegister(db, time_provider=past)
    pid = register.create_proposal("0xadmin", "Old business", 60)
    register.vote("0xa", pid, VoteChoice.YES)

    result = invoke(runner, db, "proposal", "list")
    assert "Ended" in result.stdout

    result = invoke(runner, db, "proposal", "close", "--as", "0xanyone", "--id", str(pid))
    assert result.exit_code == 0
    assert "APPROVED" in result.stdout

    result = invoke(runner, db, "proposal", "close", "--as", "0xanyone", "--id", str(pid))
    assert result.exit_code == 1
    assert "AlreadyClosed" in result.output


def test_proposal_close_before_deadline_fails(runner: CliRunner, db: Path) -> None:
    invoke(runner, db, "proposal", "create", "--as", "0xadmin", "--description", "x")

    result = invoke(runner, db, "proposal", "close", "--as", "0xanyone", "--id", "0")

    assert result.exit_code == 1
    assert "NotYetExpired" in result.output


def test_proposal_list_newest_first(runner: CliRunner, db: Path) -> None:
    for text in ["first", "second"]:
        invoke(runner, db, "proposal", "create", "--as", "0xadmin", "--description", text)

    result = invoke(runner, db, "proposal", "list")
    assert result.exit_code == 0
    assert "Proposals (2)" in result.stdout
    assert result.stdout.index("second") < result.stdout.index("first")

    result = invoke(runner, db, "proposal", "list", "--json")
    assert [p["proposal_id"] for p in json.loads(result.stdout)] == [1, 0]


def test_proposal_list_empty(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "proposal", "list")

    assert result.exit_code == 0
    assert "No proposals yet" in result.stdout


# =============================================================================
# Activity
# =============================================================================


def test_events_shows_recent_activity(runner: CliRunner, db: Path) -> None:
    invoke(runner, db, "allowlist", "grant", "--as", "0xadmin", "--identity", "0xalice")
    invoke(runner, db, "proposal", "create", "--as", "0xalice", "--description", "Fund the garden")

    result = invoke(runner, db, "events")

    assert result.exit_code == 0
    assert result.stdout.index("Proposal #0 created") < result.stdout.index("Proposer granted")


def test_events_empty(runner: CliRunner, db: Path) -> None:
    result = invoke(runner, db, "events")

    assert result.exit_code == 0
    assert "No activity yet" in result.stdout
