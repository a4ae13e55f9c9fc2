"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional

from tideledger.domain.account_path import AccountPath
from tideledger.domain.entities import Account, Entry, EntryStatus, Template


class Database(ABC):
    """Repository contract the ledger services depend on.

    Implementations store accounts, entries and templates. They must commit
    ``save_entries`` atomically and enforce that a template name/version pair
    is stored at most once.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, account: Account) -> Account:
        """Store a new account. Returns it with its ID assigned.

        Raises AccountAlreadyExists if the path is taken.
        """
        pass

    @abstractmethod
    def get_account(self, path: AccountPath) -> Optional[Account]:
        """Get account by path."""
        pass

    @abstractmethod
    def list_accounts(self, active_only: bool = False) -> list[Account]:
        """List accounts ordered by path."""
        pass

    @abstractmethod
    def list_child_accounts(self, path: AccountPath) -> list[Account]:
        """List the direct children of an account."""
        pass

    @abstractmethod
    def set_account_active(self, path: AccountPath, active: bool) -> Account:
        """Flip an account's active flag. Raises AccountNotFound."""
        pass

    @abstractmethod
    def find_active_accounts(self, paths: Iterable[AccountPath]) -> set[AccountPath]:
        """Return the subset of paths naming existing, active accounts."""
        pass

    @abstractmethod
    def delete_account(self, path: AccountPath) -> None:
        """Delete an account. Raises AccountNotFound."""
        pass

    @abstractmethod
    def account_has_entries(self, path: AccountPath) -> bool:
        """True if any entry, drafts included, has a position on the account."""
        pass

    @abstractmethod
    def account_has_postings_since(self, path: AccountPath, since: date) -> bool:
        """True if a posted or voided entry dated on/after ``since`` uses the account."""
        pass

    # Entry operations
    @abstractmethod
    def save_entry(self, entry: Entry) -> Entry:
        """Insert (no ID) or replace (with ID) an entry and its positions."""
        pass

    @abstractmethod
    def save_entries(self, entries: Iterable[Entry]) -> list[Entry]:
        """Save several entries in one transaction; all or nothing."""
        pass

    @abstractmethod
    def get_entry(self, entry_id: int) -> Optional[Entry]:
        """Get entry by ID."""
        pass

    @abstractmethod
    def delete_entry(self, entry_id: int) -> None:
        """Delete an entry and its positions. Raises NotFoundError."""
        pass

    @abstractmethod
    def list_entries(
        self,
        status: Optional[EntryStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_path: Optional[AccountPath] = None,
    ) -> list[Entry]:
        """List entries ordered by date, then ID, with optional filters."""
        pass

    # Template operations
    @abstractmethod
    def save_template(self, template: Template) -> Template:
        """Insert a new template version (no ID) or update its active flag (with ID).

        Raises DuplicateTemplateVersion if the name/version pair exists.
        """
        pass

    @abstractmethod
    def get_template(self, name: str, version: Optional[int] = None) -> Optional[Template]:
        """Get a template version, or the latest version when version is None."""
        pass

    @abstractmethod
    def list_template_versions(self, name: str) -> list[Template]:
        """List all versions of a template, oldest first."""
        pass

    @abstractmethod
    def list_latest_templates(self) -> list[Template]:
        """List the latest version of every template, ordered by name."""
        pass
