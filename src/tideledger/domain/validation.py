"""Validation pipelines for entries and templates.

A pipeline is a list of steps. Each step is a pure function taking a
ValidationContext and returning a new one with either accepted field values
or collected errors added. Every step runs even after earlier failures, so a
caller gets all problems at once. ``finish`` turns the final context into the
accepted fields or raises the aggregate error.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from functools import reduce
import logging
from typing import Any, Callable, Iterable, Mapping, Optional

from tideledger.domain.account_path import AccountPath
from tideledger.domain.amount import Amount
from tideledger.domain.entities import AmountType
from tideledger.domain.errors import (
    AccountsNotFoundOrInactive,
    AggregateValidationError,
    CurrencyMismatch,
    DomainError,
    DuplicateAccounts,
    DuplicateOrdinals,
    EmptyPath,
    ExceedsBackdateLimit,
    ExceedsMaxDepth,
    ExceedsMaxPositions,
    FutureDateNotAllowed,
    IncompleteLine,
    InsufficientLines,
    InsufficientPositions,
    InvalidDate,
    InvalidDescription,
    InvalidReference,
    InvalidShare,
    InvalidTemplateName,
    LinesNotBalanced,
    MixedAmountTypes,
    TransactionNotBalanced,
    ZeroAmountNotAllowed,
)
from tideledger.utils.date_parser import parse_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationContext:
    """Raw input plus the fields accepted and errors collected so far."""

    data: Mapping[str, Any]
    fields: Mapping[str, Any] = field(default_factory=dict)
    errors: tuple[DomainError, ...] = ()

    def accept(self, **values: Any) -> "ValidationContext":
        return replace(self, fields={**self.fields, **values})

    def reject(self, *errors: DomainError) -> "ValidationContext":
        return replace(self, errors=self.errors + errors)

    def current(self, name: str) -> Any:
        """Accepted value of a field, falling back to the raw input."""
        if name in self.fields:
            return self.fields[name]
        return self.data.get(name)

    @property
    def is_valid(self) -> bool:
        return not self.errors


Step = Callable[[ValidationContext], ValidationContext]


def run(context: ValidationContext, steps: Iterable[Step]) -> ValidationContext:
    return reduce(lambda ctx, step: step(ctx), steps, context)


def finish(context: ValidationContext, error_type: type[AggregateValidationError]) -> dict[str, Any]:
    """Return the accepted fields or raise every collected error at once.

    Raises:
        AggregateValidationError: Of the given subtype, if any step failed
    """
    if context.errors:
        logger.debug(
            "Validation failed with %d error(s): %s",
            len(context.errors),
            ", ".join(type(error).__name__ for error in context.errors),
        )
        raise error_type(context.errors)
    return dict(context.fields)


# Shared steps


def _text_length(value: Optional[str]) -> tuple[str, int]:
    text = (value or "").strip()
    return text, len(text)


def number_items(name: str) -> Step:
    """Give items without an ordinal the next free numbers and sort by ordinal.

    Items are dataclasses with an ``ordinal`` attribute. When no item has an
    ordinal they are numbered 1..n in input order.
    """

    def step(ctx: ValidationContext) -> ValidationContext:
        items = list(ctx.data.get(name) or ())
        given = [item.ordinal for item in items if item.ordinal is not None]
        duplicates = sorted(ordinal for ordinal, count in Counter(given).items() if count > 1)
        if duplicates:
            return ctx.reject(DuplicateOrdinals(duplicates))

        next_ordinal = max(given, default=0) + 1
        numbered = []
        for item in items:
            if item.ordinal is None:
                item = replace(item, ordinal=next_ordinal)
                next_ordinal += 1
            numbered.append(item)
        return ctx.accept(**{name: tuple(sorted(numbered, key=lambda item: item.ordinal))})

    return step


def check_account_paths(name: str, max_depth: int) -> Step:
    def step(ctx: ValidationContext) -> ValidationContext:
        errors = []
        seen = set()
        for item in ctx.current(name) or ():
            path = item.account_path
            if path in seen:
                continue
            seen.add(path)
            try:
                path.validate(max_depth)
            except (EmptyPath, ExceedsMaxDepth) as e:
                errors.append(e)
        return ctx.reject(*errors)

    return step


# Entry steps


def check_description(min_length: int, max_length: int) -> Step:
    def step(ctx: ValidationContext) -> ValidationContext:
        text, length = _text_length(ctx.data.get("description"))
        if not min_length <= length <= max_length:
            return ctx.reject(InvalidDescription(min_length, max_length))
        return ctx.accept(description=text)

    return step


def check_reference(max_length: int) -> Step:
    def step(ctx: ValidationContext) -> ValidationContext:
        text, length = _text_length(ctx.data.get("reference"))
        if length > max_length:
            return ctx.reject(InvalidReference(max_length))
        return ctx.accept(reference=text or None)

    return step


def check_date(today: date, max_backdate_days: int) -> Step:
    """Entry date must parse, not lie in the future, and respect the backdate limit."""

    def step(ctx: ValidationContext) -> ValidationContext:
        raw = ctx.data.get("date")
        try:
            entry_date = parse_date(raw, today)
        except ValueError:
            return ctx.reject(InvalidDate(raw))

        if entry_date > today:
            return ctx.reject(FutureDateNotAllowed(entry_date, today))
        if (today - entry_date).days > max_backdate_days:
            return ctx.reject(ExceedsBackdateLimit(max_backdate_days))
        return ctx.accept(date=entry_date)

    return step


def check_position_count(max_positions: int) -> Step:
    def step(ctx: ValidationContext) -> ValidationContext:
        count = len(ctx.current("positions") or ())
        if count < 2:
            return ctx.reject(InsufficientPositions(count))
        if count > max_positions:
            return ctx.reject(ExceedsMaxPositions(max_positions, count))
        return ctx

    return step


def check_nonzero_amounts(ctx: ValidationContext) -> ValidationContext:
    errors = [
        ZeroAmountNotAllowed(position.ordinal)
        for position in ctx.current("positions") or ()
        if position.amount.is_zero()
    ]
    return ctx.reject(*errors)


def check_balance(ctx: ValidationContext) -> ValidationContext:
    """Positions must sum to exactly zero in a single currency."""
    try:
        total = Amount.sum(position.amount for position in ctx.current("positions") or ())
    except CurrencyMismatch as e:
        return ctx.reject(e)
    if not total.is_zero():
        return ctx.reject(TransactionNotBalanced(total))
    return ctx


def check_unique_accounts(ctx: ValidationContext) -> ValidationContext:
    counts = Counter(position.account_path for position in ctx.current("positions") or ())
    duplicates = sorted(path for path, count in counts.items() if count > 1)
    if duplicates:
        return ctx.reject(DuplicateAccounts(duplicates))
    return ctx


def check_accounts_active(active_paths: set[AccountPath]) -> Step:
    """Every referenced account must be among ``active_paths``.

    All offending paths are reported in a single error.
    """

    def step(ctx: ValidationContext) -> ValidationContext:
        missing = sorted(
            {
                position.account_path
                for position in ctx.current("positions") or ()
                if not position.account_path.is_empty and position.account_path not in active_paths
            }
        )
        if missing:
            return ctx.reject(AccountsNotFoundOrInactive(missing))
        return ctx

    return step


def entry_structure_steps(config) -> list[Step]:
    """Checks that depend only on the entry's own data."""
    return [
        check_description(config.description_min_length, config.description_max_length),
        check_reference(config.reference_max_length),
        number_items("positions"),
        check_position_count(config.max_positions),
        check_account_paths("positions", config.max_account_depth),
        check_nonzero_amounts,
        check_balance,
        check_unique_accounts,
    ]


def entry_steps(config, today: date, active_paths: set[AccountPath]) -> list[Step]:
    """Full entry validation: structure, date window and account activity."""
    return [
        check_date(today, config.max_backdate_days),
        *entry_structure_steps(config),
        check_accounts_active(active_paths),
    ]


# Template steps


def check_template_name(min_length: int, max_length: int) -> Step:
    def step(ctx: ValidationContext) -> ValidationContext:
        text, length = _text_length(ctx.data.get("name"))
        if not min_length <= length <= max_length:
            return ctx.reject(InvalidTemplateName(min_length, max_length))
        return ctx.accept(name=text)

    return step


def check_template_description(max_length: int) -> Step:
    def step(ctx: ValidationContext) -> ValidationContext:
        text, length = _text_length(ctx.data.get("description"))
        if length > max_length:
            return ctx.reject(InvalidDescription(0, max_length))
        return ctx.accept(description=text or None)

    return step


def check_line_count(ctx: ValidationContext) -> ValidationContext:
    count = len(ctx.current("lines") or ())
    if count < 2:
        return ctx.reject(InsufficientLines(count))
    return ctx


_SHARE_LIMITS = {
    AmountType.PERCENTAGE: Decimal(100),
    AmountType.FRACTION: Decimal(1),
}


def check_line_values(ctx: ValidationContext) -> ValidationContext:
    """Each line carries the value its type needs, within range."""
    errors = []
    for line in ctx.current("lines") or ():
        if line.amount_type is AmountType.FIXED:
            if line.amount is None:
                errors.append(IncompleteLine(line.ordinal, line.amount_type.value))
            continue

        share = line.share
        if share is None:
            errors.append(IncompleteLine(line.ordinal, line.amount_type.value))
        elif not isinstance(share, Decimal) or not share.is_finite():
            errors.append(InvalidShare(line.ordinal, share))
        elif abs(share) > _SHARE_LIMITS[line.amount_type]:
            errors.append(InvalidShare(line.ordinal, share))
    return ctx.reject(*errors)


def check_homogeneous_lines(ctx: ValidationContext) -> ValidationContext:
    amount_types = sorted({line.amount_type.value for line in ctx.current("lines") or ()})
    if len(amount_types) > 1:
        return ctx.reject(MixedAmountTypes(amount_types))
    return ctx


def check_lines_balance(ctx: ValidationContext) -> ValidationContext:
    """Fixed amounts, percentages or fractions must each sum to zero.

    Skipped for mixed or incomplete lines, which are reported elsewhere.
    """
    lines = list(ctx.current("lines") or ())
    if not lines or len({line.amount_type for line in lines}) > 1:
        return ctx

    if lines[0].amount_type is AmountType.FIXED:
        if any(line.amount is None for line in lines):
            return ctx
        try:
            total = Amount.sum(line.amount for line in lines)
        except CurrencyMismatch as e:
            return ctx.reject(e)
        if not total.is_zero():
            return ctx.reject(LinesNotBalanced(total))
        return ctx

    shares = [line.share for line in lines]
    if any(not isinstance(share, Decimal) or not share.is_finite() for share in shares):
        return ctx
    total = sum(shares, Decimal(0))
    if total != 0:
        return ctx.reject(LinesNotBalanced(total))
    return ctx


def template_steps(config) -> list[Step]:
    return [
        check_template_name(config.template_name_min_length, config.template_name_max_length),
        check_template_description(config.description_max_length),
        number_items("lines"),
        check_line_count,
        check_account_paths("lines", config.max_account_depth),
        check_line_values,
        check_homogeneous_lines,
        check_lines_balance,
    ]
