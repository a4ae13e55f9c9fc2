"""Mapper functions to convert between domain models and SQLAlchemy models.

Paths are stored in their normalized string form, amounts as integer minor
units plus currency code, and template shares as decimal text so no value
passes through a float on the way in or out.
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from tideledger.domain import entities as domain
from tideledger.domain.account_path import AccountPath
from tideledger.domain.amount import Amount
from tideledger.database.models import (
    Account as ORMAccount,
    Entry as ORMEntry,
    Position as ORMPosition,
    Template as ORMTemplate,
    TemplateLine as ORMTemplateLine,
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; every stored timestamp is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _amount(minor_units: Optional[int], currency: Optional[str]) -> Optional[Amount]:
    if minor_units is None or currency is None:
        return None
    return Amount.from_minor_units(minor_units, currency)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        path=AccountPath.parse(orm_account.path),
        description=orm_account.description,
        active=orm_account.active,
        created_at=_as_utc(orm_account.created_at),
    )


def account_to_orm(account: domain.Account) -> ORMAccount:
    parent = account.parent_path
    return ORMAccount(
        path=str(account.path),
        parent_path=str(parent) if parent is not None else None,
        description=account.description,
        active=account.active,
    )


def position_to_domain(orm_position: ORMPosition) -> domain.Position:
    return domain.Position(
        account_path=AccountPath.parse(orm_position.account_path),
        amount=Amount.from_minor_units(orm_position.amount_minor, orm_position.currency),
        description=orm_position.description,
        tax_relevant=orm_position.tax_relevant,
        ordinal=orm_position.ordinal,
    )


def position_to_orm(position: domain.Position) -> ORMPosition:
    return ORMPosition(
        ordinal=position.ordinal,
        account_path=str(position.account_path),
        amount_minor=position.amount.minor_units,
        currency=position.amount.currency,
        description=position.description,
        tax_relevant=position.tax_relevant,
    )


def entry_to_domain(orm_entry: ORMEntry) -> domain.Entry:
    """Convert SQLAlchemy Entry model (with positions) to domain Entry entity."""
    return domain.Entry(
        id=orm_entry.id,
        date=orm_entry.date,
        description=orm_entry.description,
        reference=orm_entry.reference,
        status=domain.EntryStatus(orm_entry.status),
        positions=tuple(position_to_domain(p) for p in orm_entry.positions),
        created_by=orm_entry.created_by,
        created_at=_as_utc(orm_entry.created_at),
        posted_at=_as_utc(orm_entry.posted_at),
        posted_by=orm_entry.posted_by,
        voided_at=_as_utc(orm_entry.voided_at),
        voided_by=orm_entry.voided_by,
        void_reason=orm_entry.void_reason,
        reversal_of=orm_entry.reversal_of,
    )


def update_orm_entry(orm_entry: ORMEntry, entry: domain.Entry) -> None:
    """Copy scalar entry fields onto a SQLAlchemy Entry (positions excluded)."""
    orm_entry.date = entry.date
    orm_entry.description = entry.description
    orm_entry.reference = entry.reference
    orm_entry.status = entry.status.value
    orm_entry.created_by = entry.created_by
    orm_entry.posted_at = entry.posted_at
    orm_entry.posted_by = entry.posted_by
    orm_entry.voided_at = entry.voided_at
    orm_entry.voided_by = entry.voided_by
    orm_entry.void_reason = entry.void_reason
    orm_entry.reversal_of = entry.reversal_of
    if entry.created_at is not None:
        orm_entry.created_at = entry.created_at


def template_line_to_domain(orm_line: ORMTemplateLine) -> domain.TemplateLine:
    return domain.TemplateLine(
        account_path=AccountPath.parse(orm_line.account_path),
        amount_type=domain.AmountType(orm_line.amount_type),
        amount=_amount(orm_line.amount_minor, orm_line.currency),
        share=Decimal(orm_line.share) if orm_line.share is not None else None,
        description=orm_line.description,
        tax_relevant=orm_line.tax_relevant,
        ordinal=orm_line.ordinal,
    )


def template_line_to_orm(line: domain.TemplateLine) -> ORMTemplateLine:
    return ORMTemplateLine(
        ordinal=line.ordinal,
        account_path=str(line.account_path),
        amount_type=line.amount_type.value,
        amount_minor=line.amount.minor_units if line.amount is not None else None,
        currency=line.amount.currency if line.amount is not None else None,
        share=str(line.share) if line.share is not None else None,
        description=line.description,
        tax_relevant=line.tax_relevant,
    )


def template_to_domain(orm_template: ORMTemplate) -> domain.Template:
    """Convert SQLAlchemy Template model (with lines) to domain Template entity."""
    return domain.Template(
        id=orm_template.id,
        name=orm_template.name,
        version=orm_template.version,
        description=orm_template.description,
        default_total=_amount(orm_template.default_total_minor, orm_template.default_total_currency),
        active=orm_template.active,
        lines=tuple(template_line_to_domain(line) for line in orm_template.lines),
        created_by=orm_template.created_by,
        created_at=_as_utc(orm_template.created_at),
    )


def template_to_orm(template: domain.Template) -> ORMTemplate:
    total = template.default_total
    orm_template = ORMTemplate(
        name=template.name,
        version=template.version,
        description=template.description,
        default_total_minor=total.minor_units if total is not None else None,
        default_total_currency=total.currency if total is not None else None,
        active=template.active,
        created_by=template.created_by,
        lines=[template_line_to_orm(line) for line in template.lines],
    )
    if template.created_at is not None:
        orm_template.created_at = template.created_at
    return orm_template
