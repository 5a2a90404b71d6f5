"""Run a demo batch against a seeded ledger"""

from decimal import Decimal

from .banking import BankingService
from .config import get_config
from .customers import CustomerRegistry
from .executor import BatchExecutor
from .logging_config import setup_logging
from .seed import seed_demo_data
from .snapshot import SnapshotStore


def main():
    """Seed the demo ledger, confirm one batch and snapshot the result"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format)

    service = BankingService(config=config)
    accounts = seed_demo_data(service, CustomerRegistry())
    alice, michael, sarah = accounts[0], accounts[1], accounts[2]

    batch = [
        service.process_deposit(alice, Decimal("300")),
        service.process_withdrawal(alice, Decimal("900")),
        service.process_withdrawal(michael, Decimal("2500")),
        service.process_withdrawal(sarah, Decimal("1000")),
        service.process_withdrawal(sarah, Decimal("1000")),
    ]

    with BatchExecutor(service) as executor:
        result = executor.submit(batch)

    print("🏦 Bank Ledger demo")
    for account in service.view_all_accounts():
        print(f"  {service.describe(account)}")
    print(f"  Confirmed: {len(result.succeeded)}  Rejected: {result.error_count}")
    for message in result.errors:
        print(f"  ✗ {message}")

    store = SnapshotStore(config.snapshot_dir)
    store.save(service)
    print(f"💾 Snapshot written to {store.directory}/")


if __name__ == "__main__":
    main()
