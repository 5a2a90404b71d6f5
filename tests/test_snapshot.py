"""
Test suite for snapshot persistence

Tests saving and loading accounts and transactions as JSON snapshots and
restoring them into a fresh service.
"""

import json
import pytest
from decimal import Decimal

from bank_ledger.accounts import CheckingAccount, SavingsAccount
from bank_ledger.banking import BankingService
from bank_ledger.config import LedgerConfig
from bank_ledger.customers import CustomerRegistry
from bank_ledger.exceptions import CapacityExceededError
from bank_ledger.seed import seed_demo_data
from bank_ledger.snapshot import SnapshotStore


class TestSnapshotStore:
    """Test SnapshotStore functionality"""

    def setup_method(self):
        """Set up test fixtures"""
        self.service = BankingService(config=LedgerConfig())
        self.accounts = seed_demo_data(self.service, CustomerRegistry())
        checking = self.accounts[2]
        self.service.confirm(checking, self.service.process_withdrawal(checking, Decimal("1000")))
        self.service.apply_monthly_fee(checking)

    def test_missing_files_load_empty(self, tmp_path):
        store = SnapshotStore(tmp_path / "nothing-here")

        assert store.load_accounts() == {}
        assert store.load_transactions() == {}

    def test_amounts_stored_as_strings(self, tmp_path):
        store = SnapshotStore(tmp_path)
        store.save(self.service)

        document = json.loads(store.accounts_path.read_text())
        assert document["version"] == 1
        assert document["records"][0]["balance"] == "1200.00"

        document = json.loads(store.transactions_path.read_text())
        assert len(document["records"]) == 7
        assert all(isinstance(r["amount"], str) for r in document["records"])

    def test_round_trip_accounts(self, tmp_path):
        store = SnapshotStore(tmp_path)
        store.save(self.service)

        loaded = store.load_accounts()

        assert list(loaded) == ["ACC001", "ACC002", "ACC003", "ACC004", "ACC005"]
        assert isinstance(loaded["ACC001"], SavingsAccount)
        assert isinstance(loaded["ACC003"], CheckingAccount)
        assert loaded["ACC003"].balance == Decimal("-160.00")
        assert loaded["ACC002"].fee_waived

    def test_transactions_grouped_by_account(self, tmp_path):
        store = SnapshotStore(tmp_path)
        store.save(self.service)

        loaded = store.load_transactions()

        assert [t.transaction_id for t in loaded["ACC003"]] == ["TXN003", "TXN006", "TXN007"]
        assert loaded["ACC003"][0].amount == Decimal("850.00")

    def test_load_into_fresh_service(self, tmp_path):
        """Test a restored ledger is consistent and continues numbering"""
        store = SnapshotStore(tmp_path)
        store.save(self.service)

        restored = BankingService(config=LedgerConfig())
        store.load_into(restored)

        assert restored.get_account_count() == 5
        assert restored.get_transaction_count() == 7
        assert restored.get_total_bank_balance() == self.service.get_total_bank_balance()
        assert restored.verify_integrity()["valid"]

        account = restored.get_account_by_number("ACC001")
        transaction = restored.process_deposit(account, Decimal("1"))
        assert transaction.transaction_id == "TXN008"

    def test_unsupported_version(self, tmp_path):
        store = SnapshotStore(tmp_path)
        store.accounts_path.write_text(json.dumps({"version": 99, "records": []}))

        with pytest.raises(ValueError, match="Unsupported snapshot version"):
            store.load_accounts()

    def test_no_temp_files_left_behind(self, tmp_path):
        store = SnapshotStore(tmp_path)
        store.save(self.service)

        assert sorted(p.name for p in tmp_path.iterdir()) == ["accounts.json", "transactions.json"]

    def test_history_keeps_confirmation_order(self, tmp_path):
        """Test a round trip keeps the order transactions were confirmed in"""
        account = self.accounts[0]
        first = self.service.process_deposit(account, Decimal("10"))
        second = self.service.process_deposit(account, Decimal("20"))
        self.service.confirm(account, second)
        self.service.confirm(account, first)
        before = [t.transaction_id for t in self.service.get_transactions_by_account("ACC001")]

        store = SnapshotStore(tmp_path)
        store.save(self.service)
        restored = BankingService(config=LedgerConfig())
        store.load_into(restored)

        after = [t.transaction_id for t in restored.get_transactions_by_account("ACC001")]
        assert before == after == ["TXN001", "TXN009", "TXN008"]
        assert restored.verify_integrity()["valid"]

    def test_load_into_restores_customers(self, tmp_path):
        """Test customers registered after a restore get fresh ids"""
        store = SnapshotStore(tmp_path)
        store.save(self.service)

        restored = BankingService(config=LedgerConfig())
        registry = CustomerRegistry()
        store.load_into(restored, registry)

        assert len(registry) == 5
        assert registry.get("CUS002").name == "Michael Mensah"
        customer = registry.register("Ama Owusu", 31, "0606060606", "Ho")
        assert customer.customer_id == "CUS006"

    def test_load_into_non_empty_registry_changes_nothing(self, tmp_path):
        store = SnapshotStore(tmp_path)
        store.save(self.service)

        restored = BankingService(config=LedgerConfig())
        registry = CustomerRegistry()
        registry.register("Ama Owusu", 31, "0606060606", "Ho")

        with pytest.raises(ValueError, match="empty registry"):
            store.load_into(restored, registry)
        assert restored.get_account_count() == 0
        assert len(registry) == 1

    def test_failed_load_leaves_service_empty(self, tmp_path):
        store = SnapshotStore(tmp_path)
        store.save(self.service)

        restored = BankingService(config=LedgerConfig(max_transactions=3))
        with pytest.raises(CapacityExceededError):
            store.load_into(restored)

        assert restored.get_account_count() == 0
        assert restored.get_transaction_count() == 0
        assert restored.verify_integrity()["valid"]
