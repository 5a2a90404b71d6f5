"""
Test suite for batch execution

Tests concurrent confirmation, per-task error isolation, per-account
ordering, the error collector and pool shutdown.
"""

import pytest
import threading
from decimal import Decimal

from bank_ledger.banking import BankingService
from bank_ledger.config import LedgerConfig
from bank_ledger.customers import CustomerRegistry
from bank_ledger.error_collector import ErrorCollector
from bank_ledger.executor import BatchExecutor, BatchResult
from bank_ledger.transactions import Transaction, TransactionType


class TestErrorCollector:
    """Test ErrorCollector functionality"""

    def test_add_and_drain(self):
        collector = ErrorCollector()
        collector.add_error("first")
        collector.add_error("second")

        assert collector.has_errors()
        assert collector.errors == ["first", "second"]
        assert collector.drain() == ["first", "second"]
        assert not collector.has_errors()
        assert collector.lifetime_count == 2

    def test_clear_keeps_lifetime_count(self):
        """Test message clearing and count reset are independent"""
        collector = ErrorCollector()
        collector.add_error("boom")
        collector.clear()

        assert len(collector) == 0
        assert collector.lifetime_count == 1

        collector.add_error("again")
        collector.reset_lifetime_count()
        assert collector.lifetime_count == 0
        assert collector.errors == ["again"]

    def test_concurrent_writers(self):
        """Test no entry is lost under concurrent add_error calls"""
        collector = ErrorCollector()

        def add_many(n):
            for i in range(200):
                collector.add_error(f"worker {n} error {i}")

        threads = [threading.Thread(target=add_many, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(collector.errors) == 1600
        assert collector.lifetime_count == 1600


class TestBatchExecutor:
    """Test BatchExecutor functionality"""

    def setup_method(self):
        """Set up test fixtures"""
        self.service = BankingService(config=LedgerConfig())
        self.registry = CustomerRegistry()
        customer = self.registry.register("Alice Johnson", 28, "0101010101", "Accra")
        self.checking = [self.service.create_checking_account(customer) for _ in range(4)]
        self.executor = BatchExecutor(self.service, pool_size=3)

    def teardown_method(self):
        self.executor.shutdown()

    def test_empty_batch(self):
        result = self.executor.submit([])

        assert isinstance(result, BatchResult)
        assert result.outcomes == []
        assert result.all_succeeded

    def test_distinct_accounts_all_succeed(self):
        """Test K valid transactions on K accounts all apply"""
        before = self.service.get_total_bank_balance()
        batch = [
            self.service.process_deposit(self.checking[0], Decimal("100")),
            self.service.process_withdrawal(self.checking[1], Decimal("250")),
            self.service.process_deposit(self.checking[2], Decimal("75.50")),
            self.service.process_withdrawal(self.checking[3], Decimal("10")),
        ]

        result = self.executor.submit(batch)

        assert result.all_succeeded
        assert result.succeeded == batch
        assert result.errors == []
        expected = sum((t.signed_amount for t in batch), Decimal("0"))
        assert self.service.get_total_bank_balance() - before == expected
        assert self.service.verify_integrity()["valid"]

    def test_single_invalid_transaction_isolated(self):
        """Test exactly one failure is recorded and the rest apply"""
        batch = [
            self.service.process_deposit(self.checking[0], Decimal("100")),
            self.service.process_withdrawal(self.checking[1], Decimal("1500")),
            self.service.process_deposit(self.checking[2], Decimal("200")),
            self.service.process_withdrawal(self.checking[3], Decimal("300")),
        ]

        result = self.executor.submit(batch)

        assert result.error_count == 1
        assert len(result.errors) == 1
        assert result.failed[0].transaction is batch[1]
        assert "overdraft limit" in result.errors[0]
        assert batch[1].transaction_id in result.errors[0]
        assert self.checking[0].balance == Decimal("100")
        assert self.checking[1].balance == Decimal("0")
        assert self.checking[2].balance == Decimal("200")
        assert self.checking[3].balance == Decimal("-300")
        assert self.service.get_transaction_count() == 3

    def test_errors_do_not_leak_across_batches(self):
        """Test the collector is drained per batch but the lifetime count persists"""
        bad = self.service.process_withdrawal(self.checking[0], Decimal("5000"))
        self.executor.submit([bad])

        assert not self.executor.error_collector.has_errors()
        assert self.executor.error_count == 1

        good = self.service.process_deposit(self.checking[0], Decimal("5"))
        result = self.executor.submit([good])

        assert result.errors == []
        assert self.executor.error_count == 1

        self.executor.submit([self.service.process_withdrawal(self.checking[0], Decimal("9999"))])
        assert self.executor.error_count == 2

        self.executor.reset_error_count()
        assert self.executor.error_count == 0

    def test_same_account_deposits(self):
        """Test 3 concurrent deposits of 100 to one account add exactly 300"""
        account = self.checking[0]
        before = account.balance
        journal_before = len(self.service.get_transactions_by_account(account.account_number))
        batch = [self.service.process_deposit(account, Decimal("100")) for _ in range(3)]

        result = self.executor.submit(batch)

        assert result.all_succeeded
        assert account.balance - before == Decimal("300")
        assert len(self.service.get_transactions_by_account(account.account_number)) == journal_before + 3

    def test_same_account_applied_in_submission_order(self):
        """Test transactions on one account apply in the order submitted"""
        account = self.checking[0]
        batch = [
            self.service.process_withdrawal(account, Decimal("900")),
            self.service.process_withdrawal(account, Decimal("200")),
            self.service.process_deposit(account, Decimal("500")),
        ]

        result = self.executor.submit(batch)

        assert [o.success for o in result.outcomes] == [True, False, True]
        assert account.balance == Decimal("-400")
        history = self.service.get_transactions_by_account(account.account_number)
        assert [t.transaction_id for t in history] == [batch[0].transaction_id, batch[2].transaction_id]

    def test_outcomes_follow_submission_order(self):
        batch = []
        for i in range(12):
            account = self.checking[i % 4]
            batch.append(self.service.process_deposit(account, Decimal(i + 1)))

        result = self.executor.submit(batch)

        assert [o.transaction for o in result.outcomes] == batch
        assert result.all_succeeded

    def test_overdraft_never_breached_under_load(self):
        """Test many withdrawals against one account stop exactly at the limit"""
        account = self.checking[0]
        batch = [self.service.process_withdrawal(account, Decimal("100")) for _ in range(25)]
        batch += [self.service.process_deposit(self.checking[i], Decimal("1")) for i in (1, 2, 3)]

        result = self.executor.submit(batch)

        assert account.balance == Decimal("-1000")
        assert result.error_count == 15
        assert self.service.verify_integrity()["valid"]

    def test_unknown_account_recorded_as_error(self):
        stray = Transaction("TXN900", TransactionType.DEPOSIT, "ACC404", Decimal("10"), Decimal("10"))
        good = self.service.process_deposit(self.checking[0], Decimal("10"))

        result = self.executor.submit([stray, good])

        assert [o.success for o in result.outcomes] == [False, True]
        assert "ACC404" in result.errors[0]

    def test_submit_after_shutdown(self):
        self.executor.shutdown()

        assert self.executor.is_shut_down
        with pytest.raises(RuntimeError, match="shut down"):
            self.executor.submit([self.service.process_deposit(self.checking[0], Decimal("1"))])

    def test_context_manager_shuts_down(self):
        with BatchExecutor(self.service, pool_size=2) as executor:
            executor.submit([self.service.process_deposit(self.checking[0], Decimal("1"))])

        assert executor.is_shut_down

    def test_invalid_pool_size(self):
        with pytest.raises(ValueError):
            BatchExecutor(self.service, pool_size=0)

    def test_defaults_from_config(self):
        service = BankingService(config=LedgerConfig(batch_pool_size=5, batch_shutdown_timeout=1.5))
        executor = BatchExecutor(service)
        try:
            assert executor.pool_size == 5
            assert executor.shutdown_timeout == 1.5
        finally:
            executor.shutdown()

    def test_shutdown_grace_period_expires(self):
        """Test shutdown gives up after the grace period on stuck work"""
        account = self.checking[0]
        started = threading.Event()
        release = threading.Event()
        original_confirm = self.service.confirm

        def slow_confirm(acct, transaction):
            started.set()
            release.wait(5)
            original_confirm(acct, transaction)

        self.service.confirm = slow_confirm
        transaction = self.service.process_deposit(account, Decimal("10"))
        results = []
        submitter = threading.Thread(target=lambda: results.append(self.executor.submit([transaction])))
        submitter.start()
        assert started.wait(5)

        finished = self.executor.shutdown(timeout=0.05)
        release.set()
        submitter.join(5)

        assert finished is False
        assert results[0].all_succeeded
        assert account.balance == Decimal("10")
