"""Account balances and trial balance.

Balances count posted and voided entries. A voided entry stays in the ledger
next to its posted reversal, so together they contribute nothing; drafts are
ignored.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional

from tideledger.domain.account_path import AccountPath
from tideledger.domain.amount import Amount
from tideledger.domain.entities import Entry, EntryStatus

_BOOKED = (EntryStatus.POSTED, EntryStatus.VOID)


@dataclass(frozen=True)
class TrialBalanceRow:
    """Debit and credit totals of one account.

    ``debit`` sums the positive positions, ``credit`` the magnitude of the
    negative ones, and ``balance`` is debit minus credit.
    """

    account_path: AccountPath
    debit: Amount
    credit: Amount
    balance: Amount


def _booked_positions(entries: Iterable[Entry], as_of: Optional[date]):
    for entry in entries:
        if entry.status not in _BOOKED:
            continue
        if as_of is not None and entry.date > as_of:
            continue
        yield from entry.positions


def _add(totals: dict[AccountPath, Amount], path: AccountPath, amount: Amount) -> None:
    current = totals.get(path)
    totals[path] = amount if current is None else current.add(amount)


def account_balances(entries: Iterable[Entry], as_of: Optional[date] = None) -> dict[AccountPath, Amount]:
    """Sum booked positions per account.

    Args:
        entries: Entries to consider; drafts are skipped
        as_of: Only count entries dated on or before this date

    Returns:
        Mapping of account path to balance, for accounts with positions
    """
    balances: dict[AccountPath, Amount] = {}
    for position in _booked_positions(entries, as_of):
        _add(balances, position.account_path, position.amount)
    return balances


def rollup_balances(balances: Mapping[AccountPath, Amount]) -> dict[AccountPath, Amount]:
    """Add every balance into the account itself and all of its ancestors."""
    rolled: dict[AccountPath, Amount] = {}
    for path, amount in balances.items():
        for ancestor in path.ancestors():
            _add(rolled, ancestor, amount)
    return rolled


def trial_balance(entries: Iterable[Entry], as_of: Optional[date] = None) -> list[TrialBalanceRow]:
    """Build the trial balance, one row per account with a non-zero balance, sorted by path."""
    debits: dict[AccountPath, Amount] = {}
    credits: dict[AccountPath, Amount] = {}
    for position in _booked_positions(entries, as_of):
        zero = Amount.zero(position.amount.currency)
        debits.setdefault(position.account_path, zero)
        credits.setdefault(position.account_path, zero)
        if position.amount.is_positive():
            _add(debits, position.account_path, position.amount)
        else:
            _add(credits, position.account_path, position.amount.abs())

    rows = []
    for path in sorted(debits):
        row_balance = debits[path].subtract(credits[path])
        if row_balance.is_zero():
            continue
        rows.append(TrialBalanceRow(path, debits[path], credits[path], row_balance))
    return rows


def totals(rows: Iterable[TrialBalanceRow], currency: Optional[str] = None) -> tuple[Amount, Amount]:
    """Return (total debit, total credit) of trial balance rows."""
    rows = list(rows)
    return (
        Amount.sum((row.debit for row in rows), currency),
        Amount.sum((row.credit for row in rows), currency),
    )
