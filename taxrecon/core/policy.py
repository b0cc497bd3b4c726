"""
Tax policy model (deterministic, integer-only).

A fee-on-transfer token takes two cuts from a taxed transfer:
- a burn, removed from total supply,
- a foundation fee, credited to the treasury wallet.

Both are floored independently on the gross amount, matching the token's
truncating integer math; the recipient gets the remainder. Floating point is
never used here.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import PolicyError


BPS_DENOM = 10_000


def _require_bps(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value <= BPS_DENOM):
        raise PolicyError(f"{name} must be in [0, {BPS_DENOM}]: {value}")


@dataclass(frozen=True)
class TaxPolicy:
    """Mirror of the token's on-chain tax configuration (read-only to the engine)."""

    burn_bps: int
    foundation_bps: int
    pair_gate_enabled: bool = False

    def __post_init__(self) -> None:
        _require_bps("burn_bps", self.burn_bps)
        _require_bps("foundation_bps", self.foundation_bps)
        if not isinstance(self.pair_gate_enabled, bool):
            raise TypeError("pair_gate_enabled must be a bool")
        check_policy(self)

    @property
    def total_bps(self) -> int:
        return self.burn_bps + self.foundation_bps


@dataclass(frozen=True)
class TaxSplit:
    burn: int
    foundation: int
    net: int

    @property
    def gross(self) -> int:
        return self.burn + self.foundation + self.net

    @property
    def tax(self) -> int:
        return self.burn + self.foundation


def check_policy(policy: TaxPolicy) -> None:
    total = policy.burn_bps + policy.foundation_bps
    if total > BPS_DENOM:
        raise PolicyError(f"burn_bps + foundation_bps must be <= {BPS_DENOM}, got {total}")


def compute_split(amount_gross: int, policy: TaxPolicy) -> TaxSplit:
    """
    Split a gross transfer amount into (burn, foundation, net).

        burn       = floor(amount_gross * burn_bps / 10_000)
        foundation = floor(amount_gross * foundation_bps / 10_000)
        net        = amount_gross - burn - foundation

    Conservation holds exactly: burn + foundation + net == amount_gross.

    Raises:
        PolicyError: If the policy's bps sum exceeds 10_000.
        ValueError: If amount_gross is negative.
    """
    if not isinstance(amount_gross, int) or isinstance(amount_gross, bool):
        raise TypeError("amount_gross must be an int")
    if amount_gross < 0:
        raise ValueError(f"amount_gross must be non-negative: {amount_gross}")
    check_policy(policy)

    burn = (amount_gross * policy.burn_bps) // BPS_DENOM
    foundation = (amount_gross * policy.foundation_bps) // BPS_DENOM
    net = amount_gross - burn - foundation
    if net < 0:
        raise AssertionError("tax split over-distributed")

    return TaxSplit(burn=burn, foundation=foundation, net=net)


def untaxed(amount_gross: int) -> TaxSplit:
    if not isinstance(amount_gross, int) or isinstance(amount_gross, bool):
        raise TypeError("amount_gross must be an int")
    if amount_gross < 0:
        raise ValueError(f"amount_gross must be non-negative: {amount_gross}")
    return TaxSplit(burn=0, foundation=0, net=amount_gross)


def bps_of(component: int, gross: int) -> int:
    """Floor rate of `component` in basis points of `gross` (0 when gross is 0)."""
    if gross <= 0:
        return 0
    return (component * BPS_DENOM) // gross
