"""
Batch Executor

Confirms a batch of proposed transactions on a fixed-size thread pool.

- Each transaction is its own unit of work: a failure is caught at the
  task boundary, reported to the shared ErrorCollector and recorded in the
  batch result; it never aborts the rest of the batch.
- Transactions that target the same account are applied in submission
  order. The batch is split into one lane per account and each lane runs
  on a single worker, so distinct accounts proceed in parallel.
- submit() returns only after every lane has finished (full-batch barrier).
- shutdown() waits a bounded grace period, then cancels whatever is left.
"""

from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import threading

from .banking import BankingService
from .currency import format_amount
from .error_collector import ErrorCollector
from .logging_config import get_logger, log_action
from .transactions import Transaction


@dataclass
class TaskOutcome:
    """Result of confirming one transaction"""
    transaction: Transaction
    success: bool
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Per-transaction outcomes of one batch, in submission order"""
    outcomes: List[TaskOutcome] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> List[Transaction]:
        return [o.transaction for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[TaskOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def error_count(self) -> int:
        return len(self.failed)

    @property
    def all_succeeded(self) -> bool:
        return self.error_count == 0


class BatchExecutor:
    """
    Bounded worker pool for concurrent transaction confirmation
    """

    def __init__(
        self,
        banking_service: BankingService,
        pool_size: Optional[int] = None,
        error_collector: Optional[ErrorCollector] = None,
        shutdown_timeout: Optional[float] = None
    ):
        config = banking_service.config
        self.banking_service = banking_service
        self.pool_size = pool_size if pool_size is not None else config.batch_pool_size
        if self.pool_size < 1:
            raise ValueError("Pool size must be at least 1")
        self.shutdown_timeout = (
            shutdown_timeout if shutdown_timeout is not None else config.batch_shutdown_timeout
        )
        self.error_collector = error_collector or ErrorCollector()

        self._pool = ThreadPoolExecutor(
            max_workers=self.pool_size, thread_name_prefix="ledger-worker"
        )
        self._pending: set = set()
        self._lock = threading.RLock()
        self._closed = False
        self.logger = get_logger("bank_ledger.executor")

    def submit(self, transactions: Sequence[Transaction]) -> BatchResult:
        """
        Confirm a batch of proposed transactions concurrently

        Blocks until every transaction has either been applied or had its
        error recorded. Callers must not submit a new batch from another
        thread before this returns.

        Returns:
            BatchResult with one outcome per transaction, in submission order
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Cannot submit transactions: executor is shut down")

        transactions = list(transactions)
        if not transactions:
            return BatchResult()

        outcomes: List[Optional[TaskOutcome]] = [None] * len(transactions)
        lanes: Dict[str, List[Tuple[int, Transaction]]] = OrderedDict()
        for index, transaction in enumerate(transactions):
            lanes.setdefault(transaction.account_number, []).append((index, transaction))

        futures: List[Future] = []
        with self._lock:
            for lane in lanes.values():
                future = self._pool.submit(self._run_lane, lane, outcomes)
                self._pending.add(future)
                future.add_done_callback(self._discard)
                futures.append(future)

        # Full-batch barrier
        wait(futures)

        for future in futures:
            if not future.cancelled() and future.exception() is not None:
                self.logger.error(f"Batch lane failed outside task boundary: {future.exception()}")

        for index, outcome in enumerate(outcomes):
            if outcome is None:
                transaction = transactions[index]
                message = self._format_error(transaction, "task did not run to completion")
                self.error_collector.add_error(message)
                outcomes[index] = TaskOutcome(transaction, False, message)

        result = BatchResult(outcomes=list(outcomes))
        if self.error_collector.has_errors():
            result.errors = self.error_collector.drain()
            for message in result.errors:
                self.logger.warning(message)

        log_action(
            self.logger, "info", "Batch completed",
            action="submit_batch",
            extra={
                "transactions": len(transactions),
                "lanes": len(lanes),
                "succeeded": len(result.succeeded),
                "failed": result.error_count,
            }
        )
        return result

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _run_lane(
        self,
        lane: List[Tuple[int, Transaction]],
        outcomes: List[Optional[TaskOutcome]]
    ) -> None:
        for index, transaction in lane:
            outcomes[index] = self._confirm_one(transaction)

    def _confirm_one(self, transaction: Transaction) -> TaskOutcome:
        """Unit of work: look up, confirm, catch"""
        try:
            account = self.banking_service.get_account_by_number(transaction.account_number)
            self.banking_service.confirm(account, transaction)
        except Exception as e:
            message = self._format_error(transaction, str(e))
            self.error_collector.add_error(message)
            return TaskOutcome(transaction, False, message)

        self.logger.debug(
            f"{threading.current_thread().name} {transaction.transaction_type} "
            f"{format_amount(transaction.amount, self.banking_service.currency)} to {transaction.account_number}"
        )
        return TaskOutcome(transaction, True)

    def _format_error(self, transaction: Transaction, reason: str) -> str:
        amount = format_amount(transaction.amount, self.banking_service.currency)
        return (
            f"{transaction.transaction_id} {transaction.transaction_type} "
            f"{amount} on {transaction.account_number}: {reason}"
        )

    @property
    def error_count(self) -> int:
        """Errors recorded since creation or the last reset_error_count()"""
        return self.error_collector.lifetime_count

    def reset_error_count(self) -> None:
        self.error_collector.reset_lifetime_count()

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Stop the pool

        Waits up to timeout seconds (default shutdown_timeout) for running
        work, then cancels the rest. Abandoned work has an undefined effect
        on the ledger.

        Returns:
            True if everything finished within the grace period
        """
        timeout = self.shutdown_timeout if timeout is None else timeout
        with self._lock:
            if self._closed:
                return True
            self._closed = True
            pending = list(self._pending)

        _, not_done = wait(pending, timeout=timeout)
        if not_done:
            self.logger.warning(
                f"{len(not_done)} batch lanes still running after {timeout}s; cancelling"
            )
            for future in not_done:
                future.cancel()
            self._pool.shutdown(wait=False, cancel_futures=True)
            return False

        self._pool.shutdown(wait=True)
        return True

    @property
    def is_shut_down(self) -> bool:
        with self._lock:
            return self._closed

    def __enter__(self) -> 'BatchExecutor':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
