"""Account domain service."""

from datetime import timedelta
from itertools import count
import logging
from typing import Any, Iterable, Optional

from tideledger.config import DEFAULT_CONFIG, LedgerConfig
from tideledger.database.base import Database
from tideledger.domain.account_path import AccountPath, PathLike
from tideledger.domain.clock import Clock, SystemClock
from tideledger.domain.entities import Account
from tideledger.domain.errors import (
    AccountAlreadyExists,
    AccountHasChildren,
    AccountHasEntries,
    AccountNotFound,
    HasActiveChildren,
    HasRecentTransactions,
    ParentAccountInactive,
    ParentAccountNotFound,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Service for managing the hierarchical chart of accounts."""

    def __init__(
        self,
        db: Database,
        clock: Optional[Clock] = None,
        config: LedgerConfig = DEFAULT_CONFIG,
    ):
        """Initialize account service.

        Args:
            db: Database instance
            clock: Clock used for the recent-postings check (defaults to system time)
            config: Ledger limits
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.config = config

    def create_account(self, path: PathLike, description: Optional[str] = None) -> Account:
        """Create a new account.

        Args:
            path: Account path (e.g., "Aufwand : Büro"), normalized before use
            description: Optional free-text description

        Returns:
            The stored account

        Raises:
            EmptyPath: If the path has no segments
            ExceedsMaxDepth: If the path is too deep
            ParentAccountNotFound: If the parent account doesn't exist
            ParentAccountInactive: If the parent account is inactive
            AccountAlreadyExists: If an account with this path exists
        """
        account_path = AccountPath.coerce(path).validate(self.config.max_account_depth)

        parent_path = account_path.parent
        if parent_path is not None:
            parent = self.db.get_account(parent_path)
            if parent is None:
                raise ParentAccountNotFound(parent_path)
            if not parent.active:
                raise ParentAccountInactive(parent_path)

        if self.db.get_account(account_path) is not None:
            raise AccountAlreadyExists(account_path)

        account = self.db.create_account(Account(path=account_path, description=description))
        logger.info("Created account '%s'", account_path)
        return account

    def get_account(self, path: PathLike) -> Optional[Account]:
        """Get account by path.

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(AccountPath.coerce(path))

    def require_account(self, path: PathLike) -> Account:
        account = self.get_account(path)
        if account is None:
            raise AccountNotFound(AccountPath.coerce(path))
        return account

    def list_accounts(self, active_only: bool = False) -> list[Account]:
        """List accounts ordered by path."""
        return self.db.list_accounts(active_only=active_only)

    def find_active(self, paths: Iterable[PathLike]) -> set[AccountPath]:
        """Return which of the given paths name existing, active accounts."""
        return self.db.find_active_accounts({AccountPath.coerce(p) for p in paths})

    def deactivate_account(self, path: PathLike) -> Account:
        """Mark an account inactive so new entries can no longer use it.

        Args:
            path: Account path

        Returns:
            The updated account

        Raises:
            AccountNotFound: If the account doesn't exist
            HasActiveChildren: If any direct child account is still active
            HasRecentTransactions: If the account has postings within the
                configured number of days
        """
        account = self.require_account(path)
        if not account.active:
            return account

        active_children = [child.path for child in self.db.list_child_accounts(account.path) if child.active]
        if active_children:
            logger.warning("Refusing to deactivate '%s': active children", account.path)
            raise HasActiveChildren(account.path, active_children)

        days = self.config.recent_transaction_days
        since = self.clock.today() - timedelta(days=days)
        if self.db.account_has_postings_since(account.path, since):
            logger.warning("Refusing to deactivate '%s': postings since %s", account.path, since)
            raise HasRecentTransactions(account.path, days)

        account = self.db.set_account_active(account.path, False)
        logger.info("Deactivated account '%s'", account.path)
        return account

    def reactivate_account(self, path: PathLike) -> Account:
        """Mark an inactive account active again.

        Raises:
            AccountNotFound: If the account doesn't exist
            ParentAccountInactive: If any ancestor account is inactive
        """
        account = self.require_account(path)
        for ancestor_path in account.path.ancestors_without_self():
            ancestor = self.db.get_account(ancestor_path)
            if ancestor is None or not ancestor.active:
                raise ParentAccountInactive(ancestor_path)

        account = self.db.set_account_active(account.path, True)
        logger.info("Reactivated account '%s'", account.path)
        return account

    def delete_account(self, path: PathLike) -> None:
        """Delete an account that nothing depends on.

        Deactivating is usually preferable since it keeps the audit trail.

        Raises:
            AccountNotFound: If the account doesn't exist
            AccountHasChildren: If the account has any child accounts
            AccountHasEntries: If any entry, drafts included, uses the account
        """
        account = self.require_account(path)

        children = [child.path for child in self.db.list_child_accounts(account.path)]
        if children:
            raise AccountHasChildren(account.path, children)
        if self.db.account_has_entries(account.path):
            raise AccountHasEntries(account.path)

        self.db.delete_account(account.path)
        logger.info("Deleted account '%s'", account.path)

    # Hierarchy queries

    def list_children(self, path: PathLike, active_only: bool = False) -> list[Account]:
        """List the direct children of an account, ordered by path."""
        children = self.db.list_child_accounts(AccountPath.coerce(path))
        return [child for child in children if child.active or not active_only]

    def list_descendants(self, path: PathLike, active_only: bool = False) -> list[Account]:
        """List children, grandchildren and so on, without the account itself."""
        root = AccountPath.coerce(path)
        return [
            account
            for account in self.list_accounts(active_only=active_only)
            if account.path.is_descendant_of(root)
        ]

    def list_ancestors(self, path: PathLike) -> list[Account]:
        """List the existing ancestors of an account, top-level account first."""
        ancestors = []
        for ancestor_path in AccountPath.coerce(path).ancestors_without_self():
            ancestor = self.db.get_account(ancestor_path)
            if ancestor is not None:
                ancestors.append(ancestor)
        return ancestors

    def list_siblings(self, path: PathLike) -> list[Account]:
        """List the other accounts sharing this account's parent.

        Top-level accounts are siblings of each other.
        """
        account_path = AccountPath.coerce(path)
        parent_path = account_path.parent
        if parent_path is None:
            candidates = [a for a in self.list_accounts() if a.parent_path is None]
        else:
            candidates = self.db.list_child_accounts(parent_path)
        return [a for a in candidates if a.path != account_path]

    @staticmethod
    def _build_tree(accounts: Iterable[Account]) -> list[dict[str, Any]]:
        nodes: dict[AccountPath, dict[str, Any]] = {}
        roots = []
        for account in accounts:
            node = {"account": account, "children": []}
            nodes[account.path] = node
            parent = nodes.get(account.parent_path) if account.parent_path else None
            if parent is None:
                roots.append(node)
            else:
                parent["children"].append(node)
        return roots

    def build_account_tree(self, active_only: bool = False) -> list[dict[str, Any]]:
        """Get the full account tree.

        Returns:
            List of root nodes; each node is a dict with the ``account`` and
            its nested ``children`` nodes, ordered by path
        """
        return self._build_tree(self.list_accounts(active_only=active_only))

    def build_account_subtree(self, path: PathLike, active_only: bool = False) -> Optional[dict[str, Any]]:
        """Get the tree below one account.

        Returns:
            The node for the account, or None if it doesn't exist
        """
        root = self.get_account(path)
        if root is None:
            return None
        tree = self._build_tree([root] + self.list_descendants(root.path, active_only=active_only))
        return tree[0]

    # Path helpers

    def path_available(self, path: PathLike) -> bool:
        """True if the path is valid and no account uses it yet."""
        account_path = AccountPath.coerce(path)
        if not account_path.is_valid(self.config.max_account_depth):
            return False
        return self.db.get_account(account_path) is None

    def suggest_available_path(self, path: PathLike) -> AccountPath:
        """Return the path itself if free, otherwise the first free "<path> N" for N >= 2.

        Raises:
            EmptyPath: If the path has no segments
            ExceedsMaxDepth: If the path is too deep
        """
        account_path = AccountPath.coerce(path).validate(self.config.max_account_depth)
        if self.path_available(account_path):
            return account_path
        for suffix in count(2):
            candidate = AccountPath.parse(f"{account_path} {suffix}")
            if self.path_available(candidate):
                return candidate

    def account_statistics(self) -> dict[str, Any]:
        """Summarize the chart of accounts.

        Returns:
            Dict with ``total_accounts``, ``active_accounts``,
            ``inactive_accounts``, ``root_accounts``, ``max_depth`` and
            ``average_depth``
        """
        accounts = self.list_accounts()
        depths = [account.depth for account in accounts]
        active = sum(1 for account in accounts if account.active)
        return {
            "total_accounts": len(accounts),
            "active_accounts": active,
            "inactive_accounts": len(accounts) - active,
            "root_accounts": sum(1 for depth in depths if depth == 1),
            "max_depth": max(depths, default=0),
            "average_depth": sum(depths) / len(depths) if depths else 0.0,
        }
