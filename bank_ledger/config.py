"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional


class LedgerConfig(BaseSettings):
    """Bank ledger configuration"""

    # Currency
    currency: str = "USD"

    # Savings product rules
    savings_interest_rate: Decimal = Decimal("0.035")
    savings_minimum_balance: Decimal = Decimal("500.00")

    # Checking product rules
    checking_overdraft_limit: Decimal = Decimal("1000.00")
    checking_monthly_fee: Decimal = Decimal("10.00")

    # Minimum initial deposits offered to the input layer
    min_initial_deposit_savings: Decimal = Decimal("500.00")
    min_initial_deposit_checking: Decimal = Decimal("0.00")
    min_initial_deposit_premium: Decimal = Decimal("10000.00")

    # Capacity (None = unbounded)
    max_accounts: Optional[int] = None
    max_transactions: Optional[int] = None

    # Identifier format
    id_width: int = Field(default=3, ge=1)

    # Batch execution
    batch_pool_size: int = Field(default=3, ge=1)
    batch_shutdown_timeout: float = Field(default=5.0, ge=0)

    # Snapshot persistence
    snapshot_dir: str = "data"

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
