"""
Ports to the deployed token, its pair and the chain (imperative shell).

The engine never talks to a node directly. A `LedgerProvider` answers
read-only queries; a `Gateway` submits the one mutating call a scenario
makes and reports whether it landed. Adapters for a real JSON-RPC endpoint
live outside this package; tests use an in-memory chain.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional, Tuple

from ..core.classifier import TransferContext
from ..core.policy import TaxPolicy
from ..kernels.python.cpmm_v2 import get_amount_out
from ..state.ledger import Address, ExclusionState, LedgerSnapshot, PoolReserves, normalize_address


@dataclass(frozen=True)
class TxResult:
    success: bool
    revert_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.success, bool):
            raise TypeError("success must be a bool")
        if self.success and self.revert_reason is not None:
            raise ValueError("a successful call carries no revert_reason")


class LedgerProvider:
    """Read-only view of the token, its pair and the exclusion state."""

    def read_balance(self, address: Address) -> int:
        raise NotImplementedError

    def read_total_supply(self) -> int:
        raise NotImplementedError

    def read_pool_reserves(self) -> PoolReserves:
        raise NotImplementedError

    def read_policy(self) -> TaxPolicy:
        raise NotImplementedError

    def read_exclusion_state(self) -> ExclusionState:
        raise NotImplementedError

    def read_pair_gate(self) -> bool:
        raise NotImplementedError

    def read_lp_total_supply(self) -> int:
        raise NotImplementedError

    def read_trading_enabled(self) -> bool:
        raise NotImplementedError

    def read_paused(self) -> bool:
        raise NotImplementedError

    def read_contract_pair(self) -> Address:
        """The pair address the token itself taxes against."""
        raise NotImplementedError

    def read_factory_pair(self) -> Address:
        """The factory's pair for (token, base asset); the zero address if none exists."""
        raise NotImplementedError

    def snapshot(self, addresses: Iterable[Address]) -> LedgerSnapshot:
        """Capture balances of `addresses` plus supply and reserves in one view."""
        balances: dict[Address, int] = {}
        for addr in addresses:
            balances.setdefault(normalize_address(addr), self.read_balance(addr))
        return LedgerSnapshot(
            balances=balances,
            total_supply=self.read_total_supply(),
            reserves=self.read_pool_reserves(),
            lp_total_supply=self.read_lp_total_supply(),
        )


class Gateway:
    """Submits one mutating call per scenario."""

    def execute_transfer(
        self,
        ctx: TransferContext,
        *,
        timeout_s: float,
        extra: Optional[Mapping[str, int]] = None,
    ) -> TxResult:
        """
        Execute the operation `ctx` declares and wait for confirmation.

        `extra` carries the kind-specific second leg (the base amount of an
        add-liquidity). Implementations raise `TimeoutError` when the call is
        not confirmed within `timeout_s`.
        """
        raise NotImplementedError

    def quote_swap(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        return get_amount_out(amount_in, reserve_in, reserve_out)


def read_state(ledger: LedgerProvider) -> Tuple[TaxPolicy, ExclusionState]:
    """Read the policy (with the live pair gate) and the exclusion state."""
    policy = replace(ledger.read_policy(), pair_gate_enabled=ledger.read_pair_gate())
    return policy, ledger.read_exclusion_state()
