"""Tests for the chart of accounts."""

from datetime import timedelta

import pytest

from tideledger.config import LedgerConfig
from tideledger.domain.account import AccountService
from tideledger.domain.account_path import AccountPath
from tideledger.domain.amount import Amount
from tideledger.domain.entities import Position
from tideledger.domain.errors import (
    AccountAlreadyExists,
    AccountHasChildren,
    AccountHasEntries,
    AccountNotFound,
    EmptyPath,
    ExceedsMaxDepth,
    HasActiveChildren,
    HasRecentTransactions,
    ParentAccountInactive,
    ParentAccountNotFound,
)


class TestCreateAccount:
    """Tests for creating accounts."""

    def test_create_top_level(self, account_service):
        """Test creating a root account."""
        account = account_service.create_account("Aufwand", description="Alle Ausgaben")
        assert account.id is not None
        assert account.path == AccountPath.parse("Aufwand")
        assert account.description == "Alle Ausgaben"
        assert account.active is True

    def test_create_child(self, account_service):
        """Test creating a child under an existing parent."""
        account_service.create_account("Aufwand")
        child = account_service.create_account(" Aufwand:Büro ")
        assert str(child.path) == "Aufwand : Büro"
        assert account_service.get_account("Aufwand : Büro") == child

    def test_parent_must_exist(self, account_service):
        """Test that the parent account is required."""
        with pytest.raises(ParentAccountNotFound) as exc_info:
            account_service.create_account("Aufwand : Büro")
        assert exc_info.value.parent_path == AccountPath.parse("Aufwand")

    def test_parent_must_be_active(self, account_service, sample_accounts):
        """Test that children cannot be added under inactive accounts."""
        account_service.deactivate_account("Erlöse : Beratung")
        with pytest.raises(ParentAccountInactive):
            account_service.create_account("Erlöse : Beratung : Workshops")

    def test_duplicate(self, account_service):
        """Test that paths are unique after normalization."""
        account_service.create_account("Aufwand")
        with pytest.raises(AccountAlreadyExists):
            account_service.create_account("  Aufwand ")

    def test_invalid_paths(self, account_service):
        """Test empty and too deep paths."""
        with pytest.raises(EmptyPath):
            account_service.create_account(" : ")
        shallow = AccountService(account_service.db, account_service.clock, LedgerConfig(max_account_depth=1))
        shallow.create_account("Aufwand")
        with pytest.raises(ExceedsMaxDepth):
            shallow.create_account("Aufwand : Büro")

    def test_require_account(self, account_service):
        """Test lookups of missing accounts."""
        assert account_service.get_account("Nirgendwo") is None
        with pytest.raises(AccountNotFound):
            account_service.require_account("Nirgendwo")


class TestActivation:
    """Tests for deactivating and reactivating accounts."""

    def test_deactivate_leaf(self, account_service, sample_accounts):
        """Test deactivating an unused leaf."""
        account = account_service.deactivate_account("Vermögen : Kasse")
        assert account.active is False
        assert AccountPath.parse("Vermögen : Kasse") not in account_service.find_active(["Vermögen : Kasse"])

    def test_deactivate_is_idempotent(self, account_service, sample_accounts):
        """Test deactivating an inactive account again."""
        account_service.deactivate_account("Vermögen : Kasse")
        assert account_service.deactivate_account("Vermögen : Kasse").active is False

    def test_deactivate_with_active_children(self, account_service, sample_accounts):
        """Test that parents with active children stay active."""
        with pytest.raises(HasActiveChildren) as exc_info:
            account_service.deactivate_account("Vermögen")
        assert exc_info.value.children == (
            AccountPath.parse("Vermögen : Bank"),
            AccountPath.parse("Vermögen : Kasse"),
        )

    def test_deactivate_parent_after_children(self, account_service, sample_accounts):
        """Test bottom-up deactivation."""
        account_service.deactivate_account("Erlöse : Beratung")
        assert account_service.deactivate_account("Erlöse").active is False

    def test_deactivate_with_recent_postings(self, account_service, posted_entry, clock):
        """Test that recently used accounts stay active until the window passes."""
        with pytest.raises(HasRecentTransactions) as exc_info:
            account_service.deactivate_account("Aufwand : Büro")
        assert exc_info.value.days == 30

        clock.advance(days=31)
        assert account_service.deactivate_account("Aufwand : Büro").active is False

    def test_drafts_do_not_block_deactivation(self, account_service, entry_service, sample_accounts, clock):
        """Test that only booked entries count as recent postings."""
        entry_service.create(
            clock.today() - timedelta(days=1),
            "Entwurf",
            [
                Position("Vermögen : Kasse", Amount.new("5.00")),
                Position("Vermögen : Bank", Amount.new("-5.00")),
            ],
        )
        assert account_service.deactivate_account("Vermögen : Kasse").active is False

    def test_reactivate(self, account_service, sample_accounts):
        """Test reactivating an account."""
        account_service.deactivate_account("Vermögen : Kasse")
        assert account_service.reactivate_account("Vermögen : Kasse").active is True

    def test_reactivate_under_inactive_parent(self, account_service, sample_accounts):
        """Test that ancestors must be active first."""
        account_service.deactivate_account("Erlöse : Beratung")
        account_service.deactivate_account("Erlöse")
        with pytest.raises(ParentAccountInactive) as exc_info:
            account_service.reactivate_account("Erlöse : Beratung")
        assert exc_info.value.parent_path == AccountPath.parse("Erlöse")


class TestListing:
    """Tests for listing accounts and the account tree."""

    def test_list_accounts(self, account_service, sample_accounts):
        """Test listing sorted by path with an active filter."""
        account_service.deactivate_account("Vermögen : Kasse")
        all_paths = [str(a.path) for a in account_service.list_accounts()]
        active_paths = [str(a.path) for a in account_service.list_accounts(active_only=True)]

        assert all_paths == sorted(all_paths)
        assert len(all_paths) == len(sample_accounts)
        assert "Vermögen : Kasse" not in active_paths
        assert len(active_paths) == len(sample_accounts) - 1

    def test_find_active(self, account_service, sample_accounts):
        """Test the active subset lookup."""
        found = account_service.find_active(["Aufwand:Büro", "Nirgendwo"])
        assert found == {AccountPath.parse("Aufwand : Büro")}

    def test_build_account_tree(self, account_service, sample_accounts):
        """Test nesting accounts under their parents."""
        tree = account_service.build_account_tree()
        roots = [str(node["account"].path) for node in tree]
        assert roots == ["Aufwand", "Erlöse", "Steuern", "Vermögen"]

        expenses = tree[0]
        assert [node["account"].name for node in expenses["children"]] == ["Büro", "Reise"]
        assert expenses["children"][0]["children"] == []


class TestDeleteAccount:
    """Tests for deleting unused accounts."""

    def test_delete_unused_leaf(self, account_service, sample_accounts):
        """Test deleting a leaf that no entry uses."""
        account_service.delete_account("Vermögen : Kasse")
        assert account_service.get_account("Vermögen : Kasse") is None
        assert len(account_service.list_accounts()) == len(sample_accounts) - 1

    def test_delete_missing(self, account_service):
        """Test deleting an unknown account."""
        with pytest.raises(AccountNotFound):
            account_service.delete_account("Nirgendwo")

    def test_delete_with_children(self, account_service, sample_accounts):
        """Test that inactive children still block deletion."""
        account_service.deactivate_account("Erlöse : Beratung")
        with pytest.raises(AccountHasChildren) as exc_info:
            account_service.delete_account("Erlöse")
        assert exc_info.value.children == (AccountPath.parse("Erlöse : Beratung"),)
        assert account_service.get_account("Erlöse") is not None

    def test_delete_with_posted_entry(self, account_service, posted_entry):
        """Test that booked accounts cannot be deleted."""
        with pytest.raises(AccountHasEntries):
            account_service.delete_account("Aufwand : Büro")

    def test_delete_with_draft(self, account_service, entry_service, sample_accounts, clock):
        """Test that drafts also block deletion."""
        entry_service.create(
            clock.today(),
            "Entwurf",
            [
                Position("Vermögen : Kasse", Amount.new("5.00")),
                Position("Vermögen : Bank", Amount.new("-5.00")),
            ],
        )
        with pytest.raises(AccountHasEntries):
            account_service.delete_account("Vermögen : Kasse")


class TestHierarchy:
    """Tests for hierarchy queries."""

    @pytest.fixture
    def deep_accounts(self, account_service, sample_accounts):
        account_service.create_account("Aufwand : Büro : Papier")
        account_service.create_account("Aufwand : Büro : Toner")
        return sample_accounts

    def test_list_children(self, account_service, deep_accounts):
        """Test direct children with an active filter."""
        account_service.deactivate_account("Aufwand : Reise")
        assert [a.name for a in account_service.list_children("Aufwand")] == ["Büro", "Reise"]
        assert [a.name for a in account_service.list_children("Aufwand", active_only=True)] == ["Büro"]
        assert account_service.list_children("Aufwand : Büro : Papier") == []

    def test_list_descendants(self, account_service, deep_accounts):
        """Test all levels below an account, excluding the account."""
        paths = [str(a.path) for a in account_service.list_descendants("Aufwand")]
        assert paths == [
            "Aufwand : Büro",
            "Aufwand : Büro : Papier",
            "Aufwand : Büro : Toner",
            "Aufwand : Reise",
        ]
        assert account_service.list_descendants("Steuern : Vorsteuer") == []

    def test_list_ancestors(self, account_service, deep_accounts):
        """Test ancestors from the top-level account down."""
        paths = [str(a.path) for a in account_service.list_ancestors("Aufwand : Büro : Papier")]
        assert paths == ["Aufwand", "Aufwand : Büro"]
        assert account_service.list_ancestors("Aufwand") == []

    def test_list_siblings(self, account_service, deep_accounts):
        """Test siblings below a parent and at the top level."""
        assert [a.name for a in account_service.list_siblings("Aufwand : Büro : Papier")] == ["Toner"]
        assert [a.name for a in account_service.list_siblings("Steuern")] == ["Aufwand", "Erlöse", "Vermögen"]
        assert account_service.list_siblings("Steuern : Vorsteuer") == []

    def test_build_account_subtree(self, account_service, deep_accounts):
        """Test building the tree below one account."""
        subtree = account_service.build_account_subtree("Aufwand : Büro")
        assert str(subtree["account"].path) == "Aufwand : Büro"
        assert [node["account"].name for node in subtree["children"]] == ["Papier", "Toner"]
        assert account_service.build_account_subtree("Nirgendwo") is None


class TestPathHelpers:
    """Tests for path availability and suggestions."""

    def test_path_available(self, account_service, sample_accounts):
        """Test free, taken and invalid paths."""
        assert account_service.path_available("Aufwand : Miete") is True
        assert account_service.path_available("aufwand : büro") is True
        assert account_service.path_available(" Aufwand:Büro ") is False
        assert account_service.path_available(" : ") is False

    def test_path_too_deep_is_unavailable(self, account_service):
        """Test that the depth limit applies."""
        shallow = AccountService(account_service.db, account_service.clock, LedgerConfig(max_account_depth=1))
        assert shallow.path_available("Aufwand : Büro") is False

    def test_suggest_available_path(self, account_service, sample_accounts):
        """Test numbered suggestions for taken paths."""
        assert account_service.suggest_available_path("Aufwand : Miete") == AccountPath.parse("Aufwand : Miete")
        assert account_service.suggest_available_path("Aufwand : Büro") == AccountPath.parse("Aufwand : Büro 2")

        account_service.create_account("Aufwand : Büro 2")
        assert account_service.suggest_available_path("Aufwand:Büro") == AccountPath.parse("Aufwand : Büro 3")

    def test_suggest_invalid_path(self, account_service):
        """Test that invalid paths are reported instead of suggested."""
        with pytest.raises(EmptyPath):
            account_service.suggest_available_path("")


def test_account_statistics(account_service, sample_accounts):
    """Test counts and depths of the chart of accounts."""
    account_service.deactivate_account("Vermögen : Kasse")
    stats = account_service.account_statistics()
    assert stats == {
        "total_accounts": 10,
        "active_accounts": 9,
        "inactive_accounts": 1,
        "root_accounts": 4,
        "max_depth": 2,
        "average_depth": 1.6,
    }


def test_account_statistics_empty(account_service):
    """Test statistics without any accounts."""
    stats = account_service.account_statistics()
    assert stats["total_accounts"] == 0
    assert stats["max_depth"] == 0
    assert stats["average_depth"] == 0.0
