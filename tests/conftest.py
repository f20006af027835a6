"""
Pytest configuration and shared fixtures

Every test gets its own temporary SQLite file and a frozen clock, so
deadlines can be hit exactly and nothing leaks between tests.
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import pytest

from proposal_register.access.handlers import AccessCommandHandlers
from proposal_register.access.projections import Allowlist
from proposal_register.kernel.event_store import SQLiteEventStore
from proposal_register.kernel.time import TestTimeProvider
from proposal_register.register import ProposalRegister
from proposal_register.voting.handlers import VotingCommandHandlers
from proposal_register.voting.projections import ProposalRegistry


@pytest.fixture
def temp_db() -> Iterator[Path]:
    """Provide a temporary database file that's cleaned up after test"""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # SQLite WAL mode leaves -wal and -shm files next to the database
    for path in (db_path, Path(f"{db_path}-wal"), Path(f"{db_path}-shm")):
        if path.exists():
            path.unlink()


@pytest.fixture
def event_store(temp_db: Path) -> SQLiteEventStore:
    """Provide a fresh event store for each test"""
    return SQLiteEventStore(temp_db)


@pytest.fixture
def test_time() -> TestTimeProvider:
    """
    Provide a controllable time provider for deterministic tests

    Default time: 2025-01-15 12:00:00 UTC
    """
    return TestTimeProvider(datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def register(temp_db: Path, test_time: TestTimeProvider) -> Iterator[ProposalRegister]:
    """Register with 0xadmin installed as administrator"""
    reg = ProposalRegister(temp_db, time_provider=test_time)
    reg.initialize("0xadmin")
    yield reg
    reg.close()


@pytest.fixture
def uninitialized_register(
    temp_db: Path, test_time: TestTimeProvider
) -> Iterator[ProposalRegister]:
    """Register that has never been initialized"""
    reg = ProposalRegister(temp_db, time_provider=test_time)
    yield reg
    reg.close()


# =============================================================================
# Handler and projection fixtures
# =============================================================================


@pytest.fixture
def access_handlers(test_time: TestTimeProvider) -> AccessCommandHandlers:
    """Access handlers are stateless; projections are passed per call"""
    return AccessCommandHandlers(test_time)


@pytest.fixture
def voting_handlers(test_time: TestTimeProvider) -> VotingCommandHandlers:
    return VotingCommandHandlers(test_time)


@pytest.fixture
def allowlist() -> Allowlist:
    """Fresh, uninitialized allowlist projection"""
    return Allowlist()


@pytest.fixture
def proposal_registry() -> ProposalRegistry:
    return ProposalRegistry()
