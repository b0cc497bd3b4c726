"""
Expectation engine: predicted outcome of one transfer, per transfer kind.

Composes the tax split (`policy`), the taxability predicate (`classifier`)
and an AMM quote. The quote is a plain callable
`quote(amount_in, reserve_in, reserve_out) -> amount_out`; the gateway's
`quote_swap` and `kernels.python.cpmm_v2.get_amount_out` both fit. The AMM
fee lives inside the quote, the token tax outside it; the two compose and are
never merged.

Sells produce two expectations. The fee-aware path expects the tax to come
off before the tokens reach the pool and quotes the pool on what arrives.
The naive path prices the swap on the full gross amount; when tax is actually
taken the pair receives less than it was promised and its constant-product
guard reverts, so the expectation is a revert rather than a number.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Callable, Optional

from ..kernels.python.cpmm_v2 import burn_liquidity, check_swap_k, mint_liquidity, optimal_liquidity
from ..state.ledger import ExclusionState, PoolReserves
from .classifier import TransferContext, TransferKind, is_taxable
from .policy import TaxPolicy, TaxSplit, check_policy, compute_split, untaxed


QuoteFn = Callable[[int, int, int], int]


@unique
class ExpectationTag(Enum):
    NUMERIC = "Numeric"
    INVARIANT_VIOLATION_EXPECTED = "InvariantViolationExpected"


@dataclass(frozen=True)
class ExpectedOutcome:
    """
    Predicted token-leg outcome of one operation.

    `gross/net/burn/foundation` are token amounts. `base_amount` is the base
    asset leg where one exists (paid in for a buy, paid out for a sell or a
    removal, used for an add). `taxable` says whether the token leg falls under
    the tax rule at all; `tax_applied` additionally needs a non-zero cut, so
    tiny amounts can be taxable yet untaxed. `k_violation_modeled` is set only
    on naive sell expectations and records whether the analytic K replay also
    predicts the revert.
    """

    kind: TransferKind
    gross: int
    net: int
    burn: int
    foundation: int
    tax_applied: bool
    taxable: bool = False
    tag: ExpectationTag = ExpectationTag.NUMERIC
    base_amount: Optional[int] = None
    lp_minted: Optional[int] = None
    k_violation_modeled: Optional[bool] = None

    @property
    def expects_revert(self) -> bool:
        return self.tag is ExpectationTag.INVARIANT_VIOLATION_EXPECTED


@dataclass(frozen=True)
class SellExpectation:
    fee_aware: ExpectedOutcome
    naive: ExpectedOutcome

    def for_mode(self, fee_aware: bool) -> ExpectedOutcome:
        return self.fee_aware if fee_aware else self.naive


def _outcome(kind: TransferKind, split: TaxSplit, *, taxable: bool, **extra) -> ExpectedOutcome:
    return ExpectedOutcome(
        kind=kind,
        gross=split.gross,
        net=split.net,
        burn=split.burn,
        foundation=split.foundation,
        tax_applied=taxable and split.tax > 0,
        taxable=taxable,
        **extra,
    )


def _split_for(ctx: TransferContext, amount: int, policy: TaxPolicy, exclusion: ExclusionState) -> tuple[TaxSplit, bool]:
    taxable = is_taxable(ctx, policy, exclusion)
    split = compute_split(amount, policy) if taxable else untaxed(amount)
    return split, taxable


def _require_kind(ctx: TransferContext, kind: TransferKind) -> None:
    if ctx.kind is not kind:
        raise ValueError(f"expected a {kind.value} context, got {ctx.kind.value}")


def _require_positive(ctx: TransferContext) -> None:
    if ctx.amount_gross <= 0:
        raise ValueError(f"{ctx.kind.value} amount must be positive: {ctx.amount_gross}")


def for_simple_transfer(ctx: TransferContext, policy: TaxPolicy) -> ExpectedOutcome:
    """Wallet-to-wallet transfers are never taxed, whatever the exclusion state."""
    _require_kind(ctx, TransferKind.PEER_TRANSFER)
    check_policy(policy)
    if ctx.touches_pair:
        raise ValueError("a peer transfer must not involve the pair; declare Buy/Sell/liquidity instead")
    return _outcome(ctx.kind, untaxed(ctx.amount_gross), taxable=False)


def for_buy(
    ctx: TransferContext,
    policy: TaxPolicy,
    exclusion: ExclusionState,
    quote: QuoteFn,
    reserves: PoolReserves,
) -> ExpectedOutcome:
    """
    Base asset in, tokens out of the pair.

    The pool releases `quote(amount_in_base, reserve_base, reserve_token)`
    tokens; the token then taxes that transfer if the pair-as-sender leg is
    taxable.
    """
    _require_kind(ctx, TransferKind.BUY)
    _require_positive(ctx)
    if ctx.sender != ctx.pair_address:
        raise ValueError("a buy must be sent by the pair")

    gross_out = quote(ctx.amount_gross, reserves.base, reserves.token)
    split, taxable = _split_for(ctx, gross_out, policy, exclusion)
    return _outcome(ctx.kind, split, taxable=taxable, base_amount=ctx.amount_gross)


def for_sell(
    ctx: TransferContext,
    policy: TaxPolicy,
    exclusion: ExclusionState,
    quote: QuoteFn,
    reserves: PoolReserves,
) -> SellExpectation:
    """
    Tokens into the pair, base asset out. Returns both execution modes.
    """
    _require_kind(ctx, TransferKind.SELL)
    _require_positive(ctx)
    if ctx.recipient != ctx.pair_address:
        raise ValueError("a sell must be received by the pair")

    split, taxable = _split_for(ctx, ctx.amount_gross, policy, exclusion)
    base_out = quote(split.net, reserves.token, reserves.base) if split.net > 0 else 0
    fee_aware = _outcome(ctx.kind, split, taxable=taxable, base_amount=base_out)

    if taxable and policy.total_bps > 0:
        k = check_swap_k(
            amount_in_claimed=ctx.amount_gross,
            amount_in_delivered=split.net,
            reserve_in=reserves.token,
            reserve_out=reserves.base,
        )
        naive = _outcome(
            ctx.kind,
            split,
            taxable=taxable,
            tag=ExpectationTag.INVARIANT_VIOLATION_EXPECTED,
            k_violation_modeled=k.violated,
        )
    else:
        naive = _outcome(
            ctx.kind,
            split,
            taxable=taxable,
            base_amount=quote(ctx.amount_gross, reserves.token, reserves.base),
        )

    return SellExpectation(fee_aware=fee_aware, naive=naive)


def for_add_liquidity(
    ctx: TransferContext,
    policy: TaxPolicy,
    exclusion: ExclusionState,
    reserves: PoolReserves,
    *,
    base_amount: int,
    lp_total_supply: int,
) -> ExpectedOutcome:
    """
    Token leg into the pair (taxable), base leg alongside (never taxed).

    The router matches the deposit to the current reserve ratio; the pair
    mints LP shares against what actually arrived, i.e. the post-tax tokens.
    """
    _require_kind(ctx, TransferKind.ADD_LIQUIDITY)
    _require_positive(ctx)
    if ctx.recipient != ctx.pair_address:
        raise ValueError("an add-liquidity token leg must be received by the pair")

    opt = optimal_liquidity(
        reserve_a=reserves.token,
        reserve_b=reserves.base,
        amount_a_desired=ctx.amount_gross,
        amount_b_desired=base_amount,
    )
    split, taxable = _split_for(ctx, opt.amount_a_used, policy, exclusion)
    minted = mint_liquidity(
        amount_a_delivered=split.net,
        amount_b_delivered=opt.amount_b_used,
        reserve_a=reserves.token,
        reserve_b=reserves.base,
        total_supply=lp_total_supply,
    )
    return _outcome(ctx.kind, split, taxable=taxable, base_amount=opt.amount_b_used, lp_minted=minted)


def for_remove_liquidity(
    ctx: TransferContext,
    policy: TaxPolicy,
    exclusion: ExclusionState,
    reserves: PoolReserves,
    *,
    lp_total_supply: int,
) -> ExpectedOutcome:
    """
    Burn `ctx.amount_gross` LP shares; the pair pays out both legs pro rata
    and the token leg it sends is subject to the tax check.
    """
    _require_kind(ctx, TransferKind.REMOVE_LIQUIDITY)
    _require_positive(ctx)
    if ctx.sender != ctx.pair_address:
        raise ValueError("a remove-liquidity token leg must be sent by the pair")

    burned = burn_liquidity(
        lp_amount=ctx.amount_gross,
        reserve_a=reserves.token,
        reserve_b=reserves.base,
        total_supply=lp_total_supply,
    )
    split, taxable = _split_for(ctx, burned.amount_a_out, policy, exclusion)
    return _outcome(ctx.kind, split, taxable=taxable, base_amount=burned.amount_b_out)


def expect(
    ctx: TransferContext,
    policy: TaxPolicy,
    exclusion: ExclusionState,
    *,
    quote: QuoteFn,
    reserves: PoolReserves,
    base_amount: int = 0,
    lp_total_supply: int = 0,
) -> ExpectedOutcome:
    """
    Single entry point: dispatch on `ctx.kind`.

    Sells return the expectation matching `ctx.fee_aware`.
    """
    handlers: dict[TransferKind, Callable[[], ExpectedOutcome]] = {
        TransferKind.PEER_TRANSFER: lambda: for_simple_transfer(ctx, policy),
        TransferKind.BUY: lambda: for_buy(ctx, policy, exclusion, quote, reserves),
        TransferKind.SELL: lambda: for_sell(ctx, policy, exclusion, quote, reserves).for_mode(ctx.fee_aware),
        TransferKind.ADD_LIQUIDITY: lambda: for_add_liquidity(
            ctx, policy, exclusion, reserves, base_amount=base_amount, lp_total_supply=lp_total_supply
        ),
        TransferKind.REMOVE_LIQUIDITY: lambda: for_remove_liquidity(
            ctx, policy, exclusion, reserves, lp_total_supply=lp_total_supply
        ),
    }
    return handlers[ctx.kind]()
