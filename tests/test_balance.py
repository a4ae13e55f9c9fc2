"""Tests for balance calculations."""

from datetime import date

from tideledger.domain.account_path import AccountPath
from tideledger.domain.amount import Amount
from tideledger.domain.balance import account_balances, rollup_balances, totals, trial_balance
from tideledger.domain.entities import Entry, EntryStatus, Position


def _entry(status, day, *pairs):
    return Entry(
        date=date(2024, 6, day),
        description="Buchung",
        status=status,
        positions=[Position(path, Amount.new(value)) for path, value in pairs],
    )


ENTRIES = [
    _entry(EntryStatus.POSTED, 1, ("Aufwand : Büro", "40.00"), ("Steuern : Vorsteuer", "7.60"), ("Vermögen : Bank", "-47.60")),
    _entry(EntryStatus.POSTED, 5, ("Vermögen : Bank", "1000.00"), ("Erlöse : Beratung", "-1000.00")),
    _entry(EntryStatus.POSTED, 10, ("Aufwand : Reise", "120.00"), ("Vermögen : Bank", "-120.00")),
    _entry(EntryStatus.DRAFT, 12, ("Aufwand : Reise", "999.00"), ("Vermögen : Bank", "-999.00")),
]


def test_account_balances_skip_drafts():
    """Test summing booked positions per account."""
    balances = account_balances(ENTRIES)
    assert balances[AccountPath.parse("Vermögen : Bank")] == Amount.new("832.40")
    assert balances[AccountPath.parse("Aufwand : Reise")] == Amount.new("120.00")
    assert AccountPath.parse("Aufwand") not in balances


def test_account_balances_as_of():
    """Test the cut-off date is inclusive."""
    balances = account_balances(ENTRIES, as_of=date(2024, 6, 5))
    assert balances[AccountPath.parse("Vermögen : Bank")] == Amount.new("952.40")
    assert AccountPath.parse("Aufwand : Reise") not in balances


def test_void_and_reversal_cancel():
    """Test that a voided entry and its reversal net to zero."""
    voided = _entry(EntryStatus.VOID, 1, ("Aufwand : Büro", "40.00"), ("Vermögen : Bank", "-40.00"))
    reversal = _entry(EntryStatus.POSTED, 1, ("Aufwand : Büro", "-40.00"), ("Vermögen : Bank", "40.00"))
    balances = account_balances([voided, reversal])
    assert all(amount.is_zero() for amount in balances.values())
    assert trial_balance([voided, reversal]) == []


def test_rollup_balances():
    """Test that balances add up into every ancestor."""
    rolled = rollup_balances(account_balances(ENTRIES))
    assert rolled[AccountPath.parse("Aufwand")] == Amount.new("160.00")
    assert rolled[AccountPath.parse("Aufwand : Büro")] == Amount.new("40.00")
    assert rolled[AccountPath.parse("Erlöse")] == Amount.new("-1000.00")


def test_trial_balance():
    """Test gross debit and credit columns and that the totals agree."""
    rows = trial_balance(ENTRIES)
    assert [str(row.account_path) for row in rows] == [
        "Aufwand : Büro",
        "Aufwand : Reise",
        "Erlöse : Beratung",
        "Steuern : Vorsteuer",
        "Vermögen : Bank",
    ]

    bank = rows[-1]
    assert bank.debit == Amount.new("1000.00")
    assert bank.credit == Amount.new("167.60")
    assert bank.balance == Amount.new("832.40")

    debit, credit = totals(rows)
    assert debit == credit == Amount.new("1167.60")
