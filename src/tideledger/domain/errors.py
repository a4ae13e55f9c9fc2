"""Domain error types.

Every failure the ledger can report is a distinct exception class carrying
its details as attributes, so callers (and a translation layer) can match on
the type and read the payload instead of parsing messages.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

if TYPE_CHECKING:
    from tideledger.domain.account_path import AccountPath
    from tideledger.domain.amount import Amount


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class InvalidStateError(DomainError):
    """Operation not allowed in the entity's current lifecycle state."""


class AggregateValidationError(ValidationError):
    """Several validation failures collected in one pass."""

    def __init__(self, errors: Iterable[DomainError]):
        self.errors: tuple[DomainError, ...] = tuple(errors)
        super().__init__("; ".join(str(error) for error in self.errors))

    @property
    def first(self) -> DomainError:
        """The first collected error."""
        return self.errors[0]

    def has(self, kind: type[DomainError]) -> bool:
        """Return True if an error of the given type was collected."""
        return any(isinstance(error, kind) for error in self.errors)

    def of_kind(self, kind: type[DomainError]) -> list[DomainError]:
        """Return all collected errors of the given type."""
        return [error for error in self.errors if isinstance(error, kind)]


def _join_paths(paths: Sequence[AccountPath]) -> str:
    return ", ".join(f"'{path}'" for path in paths)


# Amount errors


class InvalidFormat(ValidationError):
    def __init__(self, value: object, detail: str = ""):
        self.value = value
        suffix = f": {detail}" if detail else ""
        super().__init__(f"Invalid amount '{value}'{suffix}")


class UnsupportedCurrency(ValidationError):
    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Unsupported currency: {currency}")


class CurrencyMismatch(ValidationError):
    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(f"Cannot combine amounts in different currencies: {left} and {right}")


class DivisionByZero(ValidationError):
    def __init__(self):
        super().__init__("Cannot divide an amount by zero")


class InvalidPartCount(ValidationError):
    def __init__(self, parts: int):
        self.parts = parts
        super().__init__(f"Cannot split an amount into {parts} parts")


# Account path errors


class EmptyPath(ValidationError):
    def __init__(self):
        super().__init__("Account path is empty")


class ExceedsMaxDepth(ValidationError):
    def __init__(self, max_depth: int, depth: int):
        self.max_depth = max_depth
        self.depth = depth
        super().__init__(f"Account path depth {depth} exceeds the maximum of {max_depth}")


class InvalidSegment(ValidationError):
    def __init__(self, segment: str):
        self.segment = segment
        super().__init__(f"Invalid account path segment '{segment}'")


# Account errors


class AccountNotFound(NotFoundError):
    def __init__(self, path: AccountPath):
        self.path = path
        super().__init__(f"Account '{path}' not found")


class AccountAlreadyExists(ConflictError):
    def __init__(self, path: AccountPath):
        self.path = path
        super().__init__(f"Account '{path}' already exists")


class ParentAccountNotFound(NotFoundError):
    def __init__(self, parent_path: AccountPath):
        self.parent_path = parent_path
        super().__init__(f"Parent account '{parent_path}' not found")


class ParentAccountInactive(DependencyError):
    def __init__(self, parent_path: AccountPath):
        self.parent_path = parent_path
        super().__init__(f"Parent account '{parent_path}' is inactive")


class HasActiveChildren(DependencyError):
    def __init__(self, path: AccountPath, children: Sequence[AccountPath]):
        self.path = path
        self.children = tuple(children)
        super().__init__(
            f"Cannot deactivate account '{path}': it has active children {_join_paths(self.children)}"
        )


class HasRecentTransactions(DependencyError):
    def __init__(self, path: AccountPath, days: int):
        self.path = path
        self.days = days
        super().__init__(
            f"Cannot deactivate account '{path}': it has postings within the last {days} days"
        )


class AccountHasChildren(DependencyError):
    def __init__(self, path: AccountPath, children: Sequence[AccountPath]):
        self.path = path
        self.children = tuple(children)
        super().__init__(f"Cannot delete account '{path}': it has children {_join_paths(self.children)}")


class AccountHasEntries(DependencyError):
    def __init__(self, path: AccountPath):
        self.path = path
        super().__init__(f"Cannot delete account '{path}': entries reference it")


# Entry errors


class InvalidDescription(ValidationError):
    def __init__(self, min_length: int, max_length: int):
        self.min_length = min_length
        self.max_length = max_length
        super().__init__(f"Description must be between {min_length} and {max_length} characters")


class InvalidReference(ValidationError):
    def __init__(self, max_length: int):
        self.max_length = max_length
        super().__init__(f"Reference must be at most {max_length} characters")


class InvalidDate(ValidationError):
    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Could not parse date '{value}'")


class FutureDateNotAllowed(ValidationError):
    def __init__(self, entry_date: date, today: date):
        self.entry_date = entry_date
        self.today = today
        super().__init__(f"Entry date {entry_date.isoformat()} is after {today.isoformat()}")


class ExceedsBackdateLimit(ValidationError):
    def __init__(self, days: int):
        self.days = days
        super().__init__(f"Entry date is more than {days} days in the past")


class InsufficientPositions(ValidationError):
    def __init__(self, count: int, minimum: int = 2):
        self.count = count
        self.minimum = minimum
        super().__init__(f"An entry needs at least {minimum} positions, got {count}")


class ExceedsMaxPositions(ValidationError):
    def __init__(self, max_positions: int, count: int):
        self.max_positions = max_positions
        self.count = count
        super().__init__(f"An entry allows at most {max_positions} positions, got {count}")


class ZeroAmountNotAllowed(ValidationError):
    def __init__(self, ordinal: Optional[int]):
        self.ordinal = ordinal
        super().__init__(f"Position {ordinal} has a zero amount")


class DuplicateOrdinals(ValidationError):
    def __init__(self, ordinals: Sequence[int]):
        self.ordinals = tuple(ordinals)
        super().__init__(f"Duplicate position ordinals: {', '.join(map(str, self.ordinals))}")


class TransactionNotBalanced(ValidationError):
    def __init__(self, difference: Optional[Amount] = None):
        self.difference = difference
        detail = f" (off by {difference})" if difference is not None else ""
        super().__init__(f"Positions do not sum to zero{detail}")


class DuplicateAccounts(ValidationError):
    def __init__(self, paths: Sequence[AccountPath]):
        self.paths = tuple(paths)
        super().__init__(f"Accounts used more than once: {_join_paths(self.paths)}")


class AccountsNotFoundOrInactive(NotFoundError):
    def __init__(self, paths: Sequence[AccountPath]):
        self.paths = tuple(paths)
        super().__init__(f"Accounts not found or inactive: {_join_paths(self.paths)}")


class EntryNotFound(NotFoundError):
    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"Entry {entry_id} not found")


class AlreadyPosted(InvalidStateError):
    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Entry cannot be posted from status '{status}'")


class NotPosted(InvalidStateError):
    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Entry cannot be voided from status '{status}'")


class EntryNotEditable(InvalidStateError):
    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Entry with status '{status}' cannot be edited")


class EntryNotDeletable(InvalidStateError):
    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Entry with status '{status}' cannot be deleted")


class VoidReasonRequired(ValidationError):
    def __init__(self):
        super().__init__("A reason is required to void an entry")


class InvalidVoidReason(ValidationError):
    def __init__(self, min_length: int, max_length: int, length: int):
        self.min_length = min_length
        self.max_length = max_length
        self.length = length
        super().__init__(
            f"Void reason must be between {min_length} and {max_length} characters, got {length}"
        )


class EntryValidationError(AggregateValidationError):
    """Raised when entry data fails one or more validation rules."""


# Template errors


class InvalidTemplateName(ValidationError):
    def __init__(self, min_length: int, max_length: int):
        self.min_length = min_length
        self.max_length = max_length
        super().__init__(f"Template name must be between {min_length} and {max_length} characters")


class InsufficientLines(ValidationError):
    def __init__(self, count: int, minimum: int = 2):
        self.count = count
        self.minimum = minimum
        super().__init__(f"A template needs at least {minimum} lines, got {count}")


class IncompleteLine(ValidationError):
    def __init__(self, ordinal: Optional[int], amount_type: str):
        self.ordinal = ordinal
        self.amount_type = amount_type
        super().__init__(f"Template line {ordinal} is missing its {amount_type} value")


class InvalidShare(ValidationError):
    def __init__(self, ordinal: Optional[int], share: object):
        self.ordinal = ordinal
        self.share = share
        super().__init__(f"Template line {ordinal} has an invalid share {share}")


class MixedAmountTypes(ValidationError):
    def __init__(self, amount_types: Sequence[str]):
        self.amount_types = tuple(amount_types)
        super().__init__(f"Template mixes amount types: {', '.join(self.amount_types)}")


class LinesNotBalanced(ValidationError):
    def __init__(self, total: object):
        self.total = total
        super().__init__(f"Template lines do not sum to zero (sum is {total})")


class TotalRequired(ValidationError):
    def __init__(self, template_name: str):
        self.template_name = template_name
        super().__init__(f"Template '{template_name}' needs a total amount to be applied")


class VersionNotIncreasing(ConflictError):
    def __init__(self, current: int, requested: int):
        self.current = current
        self.requested = requested
        super().__init__(f"Template version {requested} must be greater than {current}")


class DuplicateTemplateVersion(ConflictError):
    def __init__(self, name: str, version: int):
        self.name = name
        self.version = version
        super().__init__(f"Template '{name}' version {version} already exists")


class TemplateNotFound(NotFoundError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Template '{name}' not found")


class VersionNotFound(NotFoundError):
    def __init__(self, name: str, version: int):
        self.name = name
        self.version = version
        super().__init__(f"Template '{name}' has no version {version}")


class TemplateInactive(InvalidStateError):
    def __init__(self, name: str, version: int):
        self.name = name
        self.version = version
        super().__init__(f"Template '{name}' version {version} is inactive")


class TemplateValidationError(AggregateValidationError):
    """Raised when template data fails one or more validation rules."""
