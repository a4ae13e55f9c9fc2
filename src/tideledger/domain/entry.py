"""Ledger entry domain service.

Entries move through draft -> posted -> void. Drafts can be edited and
deleted; posting freezes an entry; voiding a posted entry stores a posted
reversal with negated positions next to it, so a posted entry never
disappears from the ledger.
"""

from dataclasses import replace
from datetime import date
import logging
from typing import Any, Iterable, Optional, Union

from tideledger.config import DEFAULT_CONFIG, LedgerConfig
from tideledger.database.base import Database
from tideledger.domain import balance
from tideledger.domain.account_path import AccountPath, PathLike
from tideledger.domain.amount import Amount
from tideledger.domain.clock import Clock, SystemClock
from tideledger.domain.entities import Entry, EntryStatus, Position
from tideledger.domain.errors import (
    AccountsNotFoundOrInactive,
    AlreadyPosted,
    EntryNotDeletable,
    EntryNotEditable,
    EntryNotFound,
    EntryValidationError,
    InvalidVoidReason,
    NotPosted,
    VoidReasonRequired,
)
from tideledger.domain.validation import (
    ValidationContext,
    entry_steps,
    entry_structure_steps,
    finish,
    run,
)

logger = logging.getLogger(__name__)

REVERSAL_PREFIX = "Reversal: "

_EDITABLE_FIELDS = frozenset({"date", "description", "reference", "positions"})


class EntryService:
    """Service for creating, posting and voiding ledger entries."""

    def __init__(
        self,
        db: Database,
        clock: Optional[Clock] = None,
        config: LedgerConfig = DEFAULT_CONFIG,
    ):
        """Initialize entry service.

        Args:
            db: Database instance, also used as the account lookup
            clock: Clock for date checks and timestamps (defaults to system time)
            config: Ledger limits
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.config = config

    def _validate(self, data: dict[str, Any]) -> dict[str, Any]:
        positions = list(data.get("positions") or ())
        active = self.db.find_active_accounts({p.account_path for p in positions})
        steps = entry_steps(self.config, self.clock.today(), active)
        return finish(run(ValidationContext(data=data), steps), EntryValidationError)

    def _current(self, entry: Union[Entry, int]) -> Entry:
        """Reload an entry so state checks see the stored status."""
        entry_id = entry if isinstance(entry, int) else entry.id
        if entry_id is None:
            return entry
        stored = self.db.get_entry(entry_id)
        if stored is None:
            raise EntryNotFound(entry_id)
        return stored

    def create(
        self,
        date: Union[date, str],
        description: str,
        positions: Iterable[Position],
        actor: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> Entry:
        """Validate and store a new draft entry.

        All checks run before anything is reported, so the raised error holds
        every problem found.

        Args:
            date: Entry date, as a date or a string like "2024-01-15",
                "15.01.2024" or "yesterday"
            description: What the entry records
            positions: Position data; ordinals are assigned when missing
            actor: Who creates the entry, stored verbatim
            reference: Optional external reference (invoice number, ...)

        Returns:
            The stored draft entry

        Raises:
            EntryValidationError: With every failed check in ``errors``
        """
        fields = self._validate(
            {
                "date": date,
                "description": description,
                "reference": reference,
                "positions": list(positions or ()),
            }
        )
        entry = Entry(
            date=fields["date"],
            description=fields["description"],
            reference=fields["reference"],
            positions=fields["positions"],
            created_by=actor,
            created_at=self.clock.now(),
        )
        entry = self.db.save_entry(entry)
        logger.info("Created draft entry %s dated %s", entry.id, entry.date.isoformat())
        return entry

    def get_entry(self, entry_id: int) -> Optional[Entry]:
        """Get entry by ID.

        Returns:
            Entry or None if not found
        """
        return self.db.get_entry(entry_id)

    def list_entries(
        self,
        status: Optional[EntryStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_path: Optional[PathLike] = None,
    ) -> list[Entry]:
        """List entries ordered by date with optional filters."""
        path = AccountPath.coerce(account_path) if account_path is not None else None
        return self.db.list_entries(
            status=status, start_date=start_date, end_date=end_date, account_path=path
        )

    def update(self, entry: Union[Entry, int], **changes: Any) -> Entry:
        """Change a draft entry.

        Args:
            entry: Entry or entry ID
            **changes: Any of date, description, reference, positions

        Returns:
            The updated entry

        Raises:
            EntryNotEditable: If the entry is not a draft
            EntryValidationError: If the changed entry fails validation
            TypeError: If an unknown field is passed
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"Cannot update entry fields: {', '.join(sorted(unknown))}")

        current = self._current(entry)
        if not current.is_editable:
            logger.warning("Refusing to edit entry %s with status %s", current.id, current.status.value)
            raise EntryNotEditable(current.status.value)

        data = {
            "date": current.date,
            "description": current.description,
            "reference": current.reference,
            "positions": list(current.positions),
            **changes,
        }
        if "positions" in changes:
            data["positions"] = list(changes["positions"] or ())
        fields = self._validate(data)

        updated = self.db.save_entry(replace(current, **fields))
        logger.info("Updated draft entry %s", updated.id)
        return updated

    def post(self, entry: Union[Entry, int], actor: Optional[str] = None) -> Entry:
        """Post a draft entry, freezing it.

        Raises:
            AlreadyPosted: If the entry is not a draft (posted or void)
            AccountsNotFoundOrInactive: If accounts were deactivated since
                the draft was created; lists every such path
        """
        current = self._current(entry)
        if not current.can_post:
            logger.warning("Refusing to post entry %s with status %s", current.id, current.status.value)
            raise AlreadyPosted(current.status.value)

        paths = set(current.account_paths)
        missing = sorted(paths - self.db.find_active_accounts(paths))
        if missing:
            logger.warning("Refusing to post entry %s: inactive accounts", current.id)
            raise AccountsNotFoundOrInactive(missing)

        posted = replace(
            current,
            status=EntryStatus.POSTED,
            posted_at=self.clock.now(),
            posted_by=actor,
        )
        posted = self.db.save_entry(posted)
        logger.info("Posted entry %s", posted.id)
        return posted

    def _check_void_reason(self, reason: Optional[str]) -> str:
        text = (reason or "").strip()
        if not text:
            raise VoidReasonRequired()
        min_length = self.config.void_reason_min_length
        max_length = self.config.void_reason_max_length
        if not min_length <= len(text) <= max_length:
            raise InvalidVoidReason(min_length, max_length, len(text))
        return text

    def build_reversal(self, original: Entry, actor: Optional[str] = None) -> Entry:
        """Build the posted counter-entry for a voided entry.

        The reversal keeps the original date and reference, negates every
        position and prefixes the description. It passes the structural
        entry checks only: its date may lie beyond the backdate window and
        its accounts may have been deactivated since.
        """
        now = self.clock.now()
        description = f"{REVERSAL_PREFIX}{original.description}"[: self.config.description_max_length]
        context = ValidationContext(
            data={
                "description": description,
                "reference": original.reference,
                "positions": [position.negated() for position in original.positions],
            }
        )
        fields = finish(run(context, entry_structure_steps(self.config)), EntryValidationError)
        return Entry(
            date=original.date,
            description=fields["description"],
            reference=fields["reference"],
            positions=fields["positions"],
            status=EntryStatus.POSTED,
            created_by=actor,
            created_at=now,
            posted_at=now,
            posted_by=actor,
            reversal_of=original.id,
        )

    def void(
        self, entry: Union[Entry, int], actor: Optional[str], reason: Optional[str]
    ) -> tuple[Entry, Entry]:
        """Void a posted entry.

        The voided original and its reversal are stored in one transaction.

        Args:
            entry: Entry or entry ID
            actor: Who voids the entry
            reason: Why; required, 5 to 500 characters by default

        Returns:
            Tuple of (voided original, posted reversal)

        Raises:
            NotPosted: If the entry is not posted (draft or already void)
            VoidReasonRequired: If no reason is given
            InvalidVoidReason: If the reason is too short or too long
        """
        current = self._current(entry)
        if not current.can_void:
            logger.warning("Refusing to void entry %s with status %s", current.id, current.status.value)
            raise NotPosted(current.status.value)
        text = self._check_void_reason(reason)

        voided = replace(
            current,
            status=EntryStatus.VOID,
            voided_at=self.clock.now(),
            voided_by=actor,
            void_reason=text,
        )
        reversal = self.build_reversal(current, actor)
        voided, reversal = self.db.save_entries([voided, reversal])
        logger.info("Voided entry %s with reversal %s", voided.id, reversal.id)
        return voided, reversal

    def delete(self, entry: Union[Entry, int]) -> None:
        """Delete a draft entry.

        Raises:
            EntryNotDeletable: If the entry is posted or void
        """
        current = self._current(entry)
        if not current.can_delete:
            logger.warning("Refusing to delete entry %s with status %s", current.id, current.status.value)
            raise EntryNotDeletable(current.status.value)
        if current.id is not None:
            self.db.delete_entry(current.id)
            logger.info("Deleted draft entry %s", current.id)

    def account_balance(
        self,
        path: PathLike,
        as_of: Optional[date] = None,
        include_children: bool = False,
    ) -> Amount:
        """Balance of an account over posted and voided entries.

        Args:
            path: Account path
            as_of: Only count entries dated on or before this date
            include_children: Add the balances of all descendant accounts
        """
        account_path = AccountPath.coerce(path)
        balances = balance.account_balances(self.db.list_entries(end_date=as_of), as_of)
        if include_children:
            balances = balance.rollup_balances(balances)
        return balances.get(account_path, Amount.zero(self.config.default_currency))

    def trial_balance(self, as_of: Optional[date] = None) -> list[balance.TrialBalanceRow]:
        """Trial balance over all posted and voided entries up to ``as_of``."""
        return balance.trial_balance(self.db.list_entries(end_date=as_of), as_of)
