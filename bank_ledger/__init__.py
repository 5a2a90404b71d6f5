"""
Bank Ledger

An in-memory bank ledger with a two-phase propose/confirm transaction
protocol, Decimal money, and a bounded worker pool that confirms batches
of transactions concurrently.
"""

__version__ = "1.0.0"
