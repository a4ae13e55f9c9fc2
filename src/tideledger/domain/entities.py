"""Domain model entities for tideledger.

These are immutable data classes representing the ledger's business
concepts, independent of how they are stored. Services never mutate an
entity; state transitions return a new instance built with
``dataclasses.replace``.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from tideledger.domain.account_path import AccountPath
from tideledger.domain.amount import Amount


class EntryStatus(str, Enum):
    DRAFT = "draft"
    POSTED = "posted"
    VOID = "void"


class AmountType(str, Enum):
    """How a template line expresses its amount."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"
    FRACTION = "fraction"


@dataclass(frozen=True)
class Account:
    """Account in the hierarchical chart of accounts."""

    path: AccountPath
    description: Optional[str] = None
    active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "path", AccountPath.coerce(self.path))

    @property
    def name(self) -> Optional[str]:
        return self.path.leaf

    @property
    def parent_path(self) -> Optional[AccountPath]:
        return self.path.parent

    @property
    def depth(self) -> int:
        return self.path.depth


@dataclass(frozen=True)
class Position:
    """A single movement on one account within an entry."""

    account_path: AccountPath
    amount: Amount
    description: Optional[str] = None
    tax_relevant: bool = False
    ordinal: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "account_path", AccountPath.coerce(self.account_path))

    def negated(self) -> "Position":
        return replace(self, amount=self.amount.negate())

    def is_positive(self) -> bool:
        return self.amount.is_positive()


@dataclass(frozen=True)
class Entry:
    """Ledger entry: a dated, balanced set of positions."""

    date: date
    description: str
    positions: tuple[Position, ...]
    status: EntryStatus = EntryStatus.DRAFT
    reference: Optional[str] = None
    id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    posted_at: Optional[datetime] = None
    posted_by: Optional[str] = None
    voided_at: Optional[datetime] = None
    voided_by: Optional[str] = None
    void_reason: Optional[str] = None
    reversal_of: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "positions", tuple(self.positions))

    @property
    def is_editable(self) -> bool:
        return self.status is EntryStatus.DRAFT

    @property
    def can_post(self) -> bool:
        return self.status is EntryStatus.DRAFT

    @property
    def can_void(self) -> bool:
        return self.status is EntryStatus.POSTED

    @property
    def can_delete(self) -> bool:
        return self.status is EntryStatus.DRAFT

    @property
    def account_paths(self) -> list[AccountPath]:
        return [position.account_path for position in self.positions]

    def total_amount(self) -> Amount:
        """Sum of the positive positions, i.e. the amount moved."""
        currency = self.positions[0].amount.currency if self.positions else None
        return Amount.sum(
            (p.amount for p in self.positions if p.is_positive()),
            currency=currency,
        )

    def is_balanced(self) -> bool:
        return Amount.sum(p.amount for p in self.positions).is_zero()


@dataclass(frozen=True)
class TemplateLine:
    """One line of a template.

    FIXED lines carry an ``amount``; PERCENTAGE lines carry a ``share`` in
    percent (e.g. ``Decimal("19")``); FRACTION lines carry a ``share`` as a
    fraction of the total (e.g. ``Decimal("0.7")``).
    """

    account_path: AccountPath
    amount_type: AmountType
    amount: Optional[Amount] = None
    share: Optional[Decimal] = None
    description: Optional[str] = None
    tax_relevant: bool = False
    ordinal: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "account_path", AccountPath.coerce(self.account_path))
        object.__setattr__(self, "amount_type", AmountType(self.amount_type))
        if isinstance(self.share, int) and not isinstance(self.share, bool):
            object.__setattr__(self, "share", Decimal(self.share))
        elif isinstance(self.share, str):
            # Unparseable text stays as given and is reported as InvalidShare
            try:
                object.__setattr__(self, "share", Decimal(self.share.strip()))
            except InvalidOperation:
                pass


@dataclass(frozen=True)
class Template:
    """Versioned, reusable blueprint for entries."""

    name: str
    lines: tuple[TemplateLine, ...]
    version: int = 1
    description: Optional[str] = None
    default_total: Optional[Amount] = None
    active: bool = True
    id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def amount_type(self) -> Optional[AmountType]:
        return self.lines[0].amount_type if self.lines else None

    @property
    def needs_total(self) -> bool:
        return self.amount_type in (AmountType.PERCENTAGE, AmountType.FRACTION)
