"""Template domain service.

A template is a named, versioned blueprint for entries. Its lines are all of
one kind:

- FIXED lines carry amounts that are booked as they are.
- PERCENTAGE lines carry percentages of a total. Each line is rounded on its
  own, so 50% / 50% / -100% of 0.01 does not balance and is then
  rejected by entry validation.
- FRACTION lines carry fractions of a total. They are allocated together so
  that fractions summing to zero always give positions summing to zero.

Templates are never changed in place; editing stores version N+1.
"""

from dataclasses import replace
from datetime import date
from fractions import Fraction
import logging
from typing import Any, Iterable, Optional, Union

from tideledger.config import DEFAULT_CONFIG, LedgerConfig
from tideledger.database.base import Database
from tideledger.domain.amount import Amount
from tideledger.domain.clock import Clock, SystemClock
from tideledger.domain.entities import AmountType, Entry, Position, Template, TemplateLine
from tideledger.domain.entry import EntryService
from tideledger.domain.errors import (
    TemplateInactive,
    TemplateNotFound,
    TemplateValidationError,
    TotalRequired,
    VersionNotFound,
    VersionNotIncreasing,
)
from tideledger.domain.validation import ValidationContext, finish, run, template_steps

logger = logging.getLogger(__name__)

_UNCHANGED: Any = object()


def expand_lines(template: Template, total: Optional[Amount]) -> list[Position]:
    """Turn template lines into positions for the given total.

    Args:
        template: Template to expand
        total: Amount to split; ignored for fixed templates

    Returns:
        Positions in line order

    Raises:
        TotalRequired: If a percentage or fraction template gets no total
    """
    lines = template.lines
    if template.amount_type is AmountType.FIXED:
        amounts = [line.amount for line in lines]
    elif total is None:
        raise TotalRequired(template.name)
    elif template.amount_type is AmountType.PERCENTAGE:
        amounts = [total.multiply(Fraction(line.share) / 100) for line in lines]
    else:
        amounts = total.allocate([line.share for line in lines])

    return [
        Position(
            account_path=line.account_path,
            amount=amount,
            description=line.description,
            tax_relevant=line.tax_relevant,
            ordinal=line.ordinal,
        )
        for line, amount in zip(lines, amounts)
    ]


class TemplateService:
    """Service for managing templates and turning them into entries."""

    def __init__(
        self,
        db: Database,
        entry_service: EntryService,
        clock: Optional[Clock] = None,
        config: LedgerConfig = DEFAULT_CONFIG,
    ):
        """Initialize template service.

        Args:
            db: Database instance
            entry_service: Service that validates and stores applied entries
            clock: Clock for timestamps and the default entry date
            config: Ledger limits
        """
        self.db = db
        self.entry_service = entry_service
        self.clock = clock or SystemClock()
        self.config = config

    def _validate(self, name: str, lines: Iterable[TemplateLine], description: Optional[str]) -> dict[str, Any]:
        context = ValidationContext(
            data={"name": name, "lines": list(lines or ()), "description": description}
        )
        return finish(run(context, template_steps(self.config)), TemplateValidationError)

    def create(
        self,
        name: str,
        lines: Iterable[TemplateLine],
        default_total: Optional[Amount] = None,
        description: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Template:
        """Create version 1 of a template.

        Args:
            name: Template name, 3 to 100 characters
            lines: Template lines, all of the same amount type
            default_total: Total used by apply() when none is given
            description: Optional description, also the default entry description
            actor: Who creates the template

        Returns:
            The stored template

        Raises:
            TemplateValidationError: With every failed check in ``errors``
            DuplicateTemplateVersion: If a template with this name exists
        """
        fields = self._validate(name, lines, description)
        template = Template(
            name=fields["name"],
            lines=fields["lines"],
            version=1,
            description=fields["description"],
            default_total=default_total,
            created_by=actor,
            created_at=self.clock.now(),
        )
        template = self.db.save_template(template)
        logger.info("Created template '%s' version 1", template.name)
        return template

    def new_version(
        self,
        existing: Union[Template, str],
        lines: Optional[Iterable[TemplateLine]] = None,
        version: Optional[int] = None,
        default_total: Optional[Amount] = _UNCHANGED,
        description: Optional[str] = _UNCHANGED,
        actor: Optional[str] = None,
    ) -> Template:
        """Store an edited copy of a template as the next version.

        Unchanged fields are copied from the latest stored version.

        Args:
            existing: Template or template name
            lines: New lines (defaults to the current lines)
            version: Explicit version number; must exceed the current one
            default_total: New default total (None clears it)
            description: New description
            actor: Who edits the template

        Returns:
            The stored new version

        Raises:
            TemplateNotFound: If no template has this name
            VersionNotIncreasing: If version is not above the current version
            TemplateValidationError: If the new lines fail validation
        """
        name = existing if isinstance(existing, str) else existing.name
        current = self.get_latest(name)

        if version is None:
            version = current.version + 1
        elif version <= current.version:
            raise VersionNotIncreasing(current.version, version)

        fields = self._validate(
            current.name,
            current.lines if lines is None else lines,
            current.description if description is _UNCHANGED else description,
        )
        template = Template(
            name=fields["name"],
            lines=fields["lines"],
            version=version,
            description=fields["description"],
            default_total=current.default_total if default_total is _UNCHANGED else default_total,
            active=current.active,
            created_by=actor,
            created_at=self.clock.now(),
        )
        template = self.db.save_template(template)
        logger.info("Created template '%s' version %d", template.name, template.version)
        return template

    def set_active(self, template: Template, active: bool) -> Template:
        """Enable or disable a template version for apply()."""
        stored = self.get_version(template.name, template.version)
        updated = self.db.save_template(replace(stored, active=active))
        logger.info(
            "%s template '%s' version %d",
            "Activated" if active else "Deactivated",
            updated.name,
            updated.version,
        )
        return updated

    def get_latest(self, name: str) -> Template:
        """Get the highest version of a template.

        Raises:
            TemplateNotFound: If no template has this name
        """
        template = self.db.get_template(name)
        if template is None:
            raise TemplateNotFound(name)
        return template

    def get_version(self, name: str, version: int) -> Template:
        """Get a specific template version.

        Raises:
            TemplateNotFound: If no template has this name
            VersionNotFound: If the template exists but not in this version
        """
        template = self.db.get_template(name, version)
        if template is None:
            self.get_latest(name)
            raise VersionNotFound(name, version)
        return template

    def list_versions(self, name: str) -> list[Template]:
        versions = self.db.list_template_versions(name)
        if not versions:
            raise TemplateNotFound(name)
        return versions

    def list_latest(self) -> list[Template]:
        return self.db.list_latest_templates()

    def apply(
        self,
        template: Union[Template, str],
        total: Optional[Amount] = None,
        date: Optional[Union[date, str]] = None,
        description: Optional[str] = None,
        actor: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> Entry:
        """Create a draft entry from a template.

        Args:
            template: Template or name of a template (latest version)
            total: Amount to split; falls back to the template's default total
            date: Entry date (defaults to today)
            description: Entry description (defaults to the template's
                description, then its name)
            actor: Who creates the entry
            reference: Optional entry reference

        Returns:
            The stored draft entry

        Raises:
            TemplateInactive: If the template version is disabled
            TotalRequired: If a percentage or fraction template has no total
            EntryValidationError: If the resulting entry is invalid
        """
        if isinstance(template, str):
            template = self.get_latest(template)
        if not template.active:
            raise TemplateInactive(template.name, template.version)

        positions = expand_lines(template, total if total is not None else template.default_total)
        entry = self.entry_service.create(
            date=date if date is not None else self.clock.today(),
            description=description or template.description or template.name,
            positions=positions,
            actor=actor,
            reference=reference,
        )
        logger.info(
            "Applied template '%s' version %d as entry %s",
            template.name,
            template.version,
            entry.id,
        )
        return entry
