"""
Ledger state value types
"""

from .ledger import (
    Address,
    Amount,
    ExclusionState,
    LedgerSnapshot,
    PoolReserves,
    normalize_address,
    orient_reserves,
)

__all__ = [
    "Address",
    "Amount",
    "ExclusionState",
    "LedgerSnapshot",
    "PoolReserves",
    "normalize_address",
    "orient_reserves",
]
