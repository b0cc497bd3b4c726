"""
Constant-product AMM kernel (Uniswap-v2 pair semantics).

This mirrors the arithmetic a V2 router and pair perform on-chain:
- Swap quotes charge the AMM fee on the input as `amount_in * 997 / 1000`
  and floor the output (`getAmountOut`).
- Liquidity quotes use the ratio quote `amount_a * reserve_b / reserve_a`.
- The pair's swap guard compares fee-adjusted balances against the
  pre-swap product scaled by 1000**2 (the "K" check).

The AMM fee lives here and only here. A token's own transfer tax is modeled
in `taxrecon.core.policy` and composes with these quotes; it is never folded
into the AMM fee.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


AMM_FEE_NUMERATOR = 997
AMM_FEE_DENOMINATOR = 1000
MIN_LIQUIDITY = 1000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class KCheckResult:
    amount_out: int
    amount_in_claimed: int
    amount_in_delivered: int
    balance_in_adjusted: int
    balance_out_adjusted: int
    k_before_scaled: int
    k_after_scaled: int

    @property
    def violated(self) -> bool:
        return self.k_after_scaled < self.k_before_scaled


@dataclass(frozen=True)
class OptimalLiquidityResult:
    amount_a_used: int
    amount_b_used: int
    amount_a_refund: int
    amount_b_refund: int


@dataclass(frozen=True)
class BurnLiquidityResult:
    amount_a_out: int
    amount_b_out: int


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """
    Exact-in quote: `floor(amount_in*997*reserve_out / (reserve_in*1000 + amount_in*997))`.

    Positional so it can be passed anywhere a `quote(amount_in, reserve_in, reserve_out)`
    callable is expected.
    """
    for name, v in (("amount_in", amount_in), ("reserve_in", reserve_in), ("reserve_out", reserve_out)):
        _require_int(name, v)
    if amount_in <= 0:
        raise ValueError("amount_in must be positive")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError("cannot quote against an empty reserve")

    amount_in_with_fee = amount_in * AMM_FEE_NUMERATOR
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * AMM_FEE_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


def quote_ratio(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Ratio-preserving quote used for liquidity: `floor(amount_a * reserve_b / reserve_a)`."""
    for name, v in (("amount_a", amount_a), ("reserve_a", reserve_a), ("reserve_b", reserve_b)):
        _require_int(name, v)
    if amount_a <= 0:
        raise ValueError("amount_a must be positive")
    if reserve_a <= 0 or reserve_b <= 0:
        raise ValueError("cannot quote against an empty reserve")
    return (amount_a * reserve_b) // reserve_a


def check_swap_k(
    *,
    amount_in_claimed: int,
    amount_in_delivered: int,
    reserve_in: int,
    reserve_out: int,
) -> KCheckResult:
    """
    Replay the pair's K guard for an exact-in swap.

    The router prices the swap on `amount_in_claimed` while the pair only
    receives `amount_in_delivered` (less, for a taxed transfer). The pair then
    requires:

        (balance_in*1000 - delivered*3) * (balance_out*1000) >= reserve_in*reserve_out*1000**2
    """
    for name, v in (
        ("amount_in_claimed", amount_in_claimed),
        ("amount_in_delivered", amount_in_delivered),
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
    ):
        _require_int(name, v)
    if amount_in_delivered < 0:
        raise ValueError("amount_in_delivered must be non-negative")
    if amount_in_delivered > amount_in_claimed:
        raise ValueError("amount_in_delivered exceeds amount_in_claimed")

    amount_out = get_amount_out(amount_in_claimed, reserve_in, reserve_out)

    fee_units = AMM_FEE_DENOMINATOR - AMM_FEE_NUMERATOR
    balance_in = reserve_in + amount_in_delivered
    balance_out = reserve_out - amount_out
    balance_in_adjusted = balance_in * AMM_FEE_DENOMINATOR - amount_in_delivered * fee_units
    balance_out_adjusted = balance_out * AMM_FEE_DENOMINATOR

    return KCheckResult(
        amount_out=amount_out,
        amount_in_claimed=amount_in_claimed,
        amount_in_delivered=amount_in_delivered,
        balance_in_adjusted=balance_in_adjusted,
        balance_out_adjusted=balance_out_adjusted,
        k_before_scaled=reserve_in * reserve_out * AMM_FEE_DENOMINATOR**2,
        k_after_scaled=balance_in_adjusted * balance_out_adjusted,
    )


def optimal_liquidity(
    *,
    reserve_a: int,
    reserve_b: int,
    amount_a_desired: int,
    amount_b_desired: int,
) -> OptimalLiquidityResult:
    """
    The router's `_addLiquidity` ratio match.

    Keep all of A if the matching B fits, otherwise keep all of B and scale A
    down; the leftover of the other leg is refunded. A pool with an empty
    reserve takes both desired amounts as they are.
    """
    _require_int("reserve_a", reserve_a)
    _require_int("reserve_b", reserve_b)
    _require_int("amount_a_desired", amount_a_desired)
    _require_int("amount_b_desired", amount_b_desired)
    if min(reserve_a, reserve_b) < 0 or min(amount_a_desired, amount_b_desired) <= 0:
        raise ValueError("desired amounts must be positive and reserves non-negative")

    used_a, used_b = amount_a_desired, amount_b_desired
    if reserve_a and reserve_b:
        b_for_all_a = quote_ratio(amount_a_desired, reserve_a, reserve_b)
        if b_for_all_a <= amount_b_desired:
            used_b = b_for_all_a
        else:
            used_a = quote_ratio(amount_b_desired, reserve_b, reserve_a)
        if not used_a or not used_b:
            raise ValueError("deposit rounds to zero on one leg")
    return OptimalLiquidityResult(
        amount_a_used=used_a,
        amount_b_used=used_b,
        amount_a_refund=amount_a_desired - used_a,
        amount_b_refund=amount_b_desired - used_b,
    )


def mint_liquidity(
    *,
    amount_a_delivered: int,
    amount_b_delivered: int,
    reserve_a: int,
    reserve_b: int,
    total_supply: int,
) -> int:
    """
    LP shares the pair mints for what actually arrived in its balances.

    The pair measures deposits as `balance - reserve`, so a taxed token leg
    mints against the post-tax amount.
    """
    for name, v in (
        ("amount_a_delivered", amount_a_delivered),
        ("amount_b_delivered", amount_b_delivered),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_supply", total_supply),
    ):
        _require_int(name, v)
    if amount_a_delivered < 0 or amount_b_delivered < 0:
        raise ValueError("delivered amounts must be non-negative")
    if reserve_a < 0 or reserve_b < 0 or total_supply < 0:
        raise ValueError("reserves and total_supply must be non-negative")

    if total_supply == 0:
        sqrt_product = math.isqrt(amount_a_delivered * amount_b_delivered)
        if sqrt_product <= MIN_LIQUIDITY:
            raise ValueError("insufficient initial liquidity (sqrt(a*b) <= MIN_LIQUIDITY)")
        return sqrt_product - MIN_LIQUIDITY

    if reserve_a == 0 or reserve_b == 0:
        raise ValueError("cannot mint into an empty pool when total_supply > 0")

    liquidity_a = (amount_a_delivered * total_supply) // reserve_a
    liquidity_b = (amount_b_delivered * total_supply) // reserve_b
    minted = min(liquidity_a, liquidity_b)
    if minted <= 0:
        raise ValueError("liquidity_minted is zero (deposit too small)")
    return minted


def burn_liquidity(*, lp_amount: int, reserve_a: int, reserve_b: int, total_supply: int) -> BurnLiquidityResult:
    """The pair's `burn`: each leg pays out `lp_amount / total_supply` of its balance, floored."""
    _require_int("lp_amount", lp_amount)
    _require_int("reserve_a", reserve_a)
    _require_int("reserve_b", reserve_b)
    _require_int("total_supply", total_supply)
    if not 0 < lp_amount <= total_supply:
        raise ValueError(f"lp_amount must be in (0, total_supply]; cannot burn {lp_amount} of {total_supply}")
    if min(reserve_a, reserve_b) < 0:
        raise ValueError("reserves must be non-negative")

    out_a = lp_amount * reserve_a // total_supply
    out_b = lp_amount * reserve_b // total_supply
    if not out_a or not out_b:
        # UniswapV2: INSUFFICIENT_LIQUIDITY_BURNED
        raise ValueError("burn pays out zero on one leg")
    return BurnLiquidityResult(amount_a_out=out_a, amount_b_out=out_b)

