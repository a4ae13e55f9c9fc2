"""Shared pytest fixtures for tideledger tests."""

import tempfile
import os
from datetime import UTC, date, datetime, timedelta
import pytest

from tideledger.database.factories import create_sqlite_database
from tideledger.domain.account import AccountService
from tideledger.domain.amount import Amount
from tideledger.domain.entities import Position
from tideledger.domain.entry import EntryService
from tideledger.domain.template import TemplateService

# A Friday; every test runs against this date
TODAY = date(2024, 6, 14)

SAMPLE_ACCOUNTS = [
    "Aufwand",
    "Aufwand : Büro",
    "Aufwand : Reise",
    "Erlöse",
    "Erlöse : Beratung",
    "Steuern",
    "Steuern : Vorsteuer",
    "Vermögen",
    "Vermögen : Bank",
    "Vermögen : Kasse",
]


class FixedClock:
    """Clock pinned to a given day that tests can move forward."""

    def __init__(self, today: date = TODAY):
        self.current = datetime(today.year, today.month, today.day, 9, 30, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Create a clock fixed at TODAY."""
    return FixedClock()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db, clock):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, clock)


@pytest.fixture
def entry_service(temp_db, clock):
    """Create an EntryService with a temporary database."""
    return EntryService(temp_db, clock)


@pytest.fixture
def template_service(temp_db, entry_service, clock):
    """Create a TemplateService with a temporary database."""
    return TemplateService(temp_db, entry_service, clock)


@pytest.fixture
def sample_accounts(account_service):
    """Create a small German chart of accounts and return the account paths."""
    return [account_service.create_account(path).path for path in SAMPLE_ACCOUNTS]


@pytest.fixture
def office_purchase():
    """Positions for buying 50.00 of office supplies from the bank account."""
    return [
        Position("Aufwand : Büro", Amount.new("50.00"), tax_relevant=True),
        Position("Vermögen : Bank", Amount.new("-50.00")),
    ]


@pytest.fixture
def posted_entry(entry_service, sample_accounts, office_purchase):
    """Create and post the office purchase entry."""
    entry = entry_service.create(
        date=TODAY,
        description="Büromaterial",
        positions=office_purchase,
        actor="alice",
        reference="RE-2024-001",
    )
    return entry_service.post(entry, actor="alice")
