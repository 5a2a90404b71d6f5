"""
Snapshot Persistence

Optional point-in-time snapshot of the ledger and journal as two JSON
documents. This is not a transaction log: anything confirmed after the
last save is lost on restart. All monetary values stored as Decimal strings.
"""

from typing import Any, Dict, List, Optional
from pathlib import Path
import json
import os
import tempfile

from .accounts import Account
from .banking import BankingService
from .customers import CustomerRegistry
from .logging_config import get_logger
from .transactions import Transaction


SNAPSHOT_VERSION = 1


class SnapshotStore:
    """Reads and writes account and transaction snapshots in a directory"""

    def __init__(self, directory, accounts_file: str = "accounts.json",
                 transactions_file: str = "transactions.json"):
        self.directory = Path(directory)
        self.accounts_path = self.directory / accounts_file
        self.transactions_path = self.directory / transactions_file
        self.logger = get_logger("bank_ledger.snapshot")

    def _write(self, path: Path, records: List[Dict[str, Any]]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        document = {"version": SNAPSHOT_VERSION, "records": records}

        # Write to a temp file first so a crash never leaves half a snapshot
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, default=str)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _read(self, path: Path) -> List[Dict[str, Any]]:
        if not path.exists():
            self.logger.info(f"No snapshot at {path}; starting empty")
            return []
        with path.open(encoding="utf-8") as handle:
            document = json.load(handle)
        version = document.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version {version!r} in {path}")
        return document.get("records", [])

    def save_accounts(self, accounts: List[Account]) -> None:
        self._write(self.accounts_path, [account.to_dict() for account in accounts])
        self.logger.info(f"Saved {len(accounts)} accounts to {self.accounts_path}")

    def save_transactions(self, transactions: List[Transaction]) -> None:
        self._write(self.transactions_path, [t.to_dict() for t in transactions])
        self.logger.info(f"Saved {len(transactions)} transactions to {self.transactions_path}")

    def load_accounts(self) -> Dict[str, Account]:
        """Accounts keyed by account number"""
        accounts: Dict[str, Account] = {}
        for record in self._read(self.accounts_path):
            account = Account.from_dict(record)
            accounts[account.account_number] = account
        return accounts

    def load_transactions(self) -> Dict[str, List[Transaction]]:
        """Transactions grouped by account number, in stored order"""
        transactions: Dict[str, List[Transaction]] = {}
        for record in self._read(self.transactions_path):
            transaction = Transaction.from_dict(record)
            transactions.setdefault(transaction.account_number, []).append(transaction)
        return transactions

    def save(self, service: BankingService) -> None:
        """Snapshot the service's ledger and journal"""
        self.save_accounts(service.view_all_accounts())
        self.save_transactions(service.view_all_transactions())

    def load_into(self, service: BankingService,
                  registry: Optional[CustomerRegistry] = None) -> None:
        """
        Restore a snapshot into an empty service

        When a registry is given, the customers referenced by the restored
        accounts are loaded into it as well, so new customer ids continue
        after the restored ones.
        """
        accounts = self.load_accounts()
        customers = [account.customer for account in accounts.values()]
        if registry is not None:
            # Validated before restore so service and registry change together
            if len(registry) or registry.id_generator.issued:
                raise ValueError("Customers can only be restored into an empty registry")
            for customer in customers:
                registry.id_generator.extract_index(customer.customer_id)

        service.restore(accounts, self.load_transactions())
        if registry is not None:
            registry.restore(customers)
