"""
Snapshot reconciliation: observed outcome from two snapshots, and verdicts.

`diff` turns a before/after snapshot pair into signed deltas and the token
amounts they imply:

    net        = recipient balance delta
    burn       = total supply decrease
    foundation = foundation wallet balance delta

and rejects deltas no modeled transfer can produce (supply growth, a
shrinking recipient or foundation wallet, or a sender outflow that does not
equal net + burn + foundation).

`compare` judges an expectation against an observation within a tolerance
expressed in basis points of the gross amount; the tolerance absorbs integer
rounding drift between chained quote computations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Sequence

from ..state.ledger import Address, LedgerSnapshot, normalize_address
from .errors import GatewayError, ReconciliationError
from .expectation import ExpectedOutcome
from .policy import BPS_DENOM, bps_of


DEFAULT_TOLERANCE_BPS = 2
DEFAULT_K_REVERT_MARKERS: tuple[str, ...] = ("UniswapV2: K",)

# Forks rename the pair ("PancakeV2: K", "SushiSwap: K"); the check name stays "K".
# Only consulted with the default markers; explicit markers are exhaustive.
_K_REVERT_RE = re.compile(r":\s*K\b(?!\w)")


@unique
class Verdict(Enum):
    MATCH = "Match"
    MISMATCH = "Mismatch"
    NO_TAX_OBSERVED = "NoTaxObserved"
    ASYMMETRIC_BUY_ONLY = "AsymmetricBuyOnly"
    ASYMMETRIC_SELL_ONLY = "AsymmetricSellOnly"
    BOTH_UNTAXED = "BothUntaxed"


@dataclass(frozen=True)
class SnapshotAccounts:
    """The three balances a transfer's tax can move."""

    sender: Address
    recipient: Address
    foundation: Address

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", normalize_address(self.sender, name="sender"))
        object.__setattr__(self, "recipient", normalize_address(self.recipient, name="recipient"))
        object.__setattr__(self, "foundation", normalize_address(self.foundation, name="foundation"))


@dataclass(frozen=True)
class ObservedOutcome:
    net: int
    burn: int
    foundation: int
    tax_applied: bool
    sender_delta: int
    recipient_delta: int
    foundation_delta: int
    supply_delta: int
    reserve_base_delta: int
    reserve_token_delta: int

    @property
    def gross(self) -> int:
        return self.net + self.burn + self.foundation

    def effective_bps(self) -> tuple[int, int]:
        """Observed (burn_bps, foundation_bps) as floor rates of the gross amount."""
        return bps_of(self.burn, self.gross), bps_of(self.foundation, self.gross)

    def deltas(self) -> dict[str, int]:
        return {
            "sender": self.sender_delta,
            "recipient": self.recipient_delta,
            "foundation": self.foundation_delta,
            "supply": self.supply_delta,
            "reserve_base": self.reserve_base_delta,
            "reserve_token": self.reserve_token_delta,
        }


def diff(before: LedgerSnapshot, after: LedgerSnapshot, accounts: SnapshotAccounts) -> ObservedOutcome:
    """
    Difference two snapshots around a single operation.

    Raises:
        ReconciliationError: If the deltas are inconsistent with any modeled transfer.
    """
    sender_delta = after.balance_of(accounts.sender) - before.balance_of(accounts.sender)
    recipient_delta = after.balance_of(accounts.recipient) - before.balance_of(accounts.recipient)
    foundation_delta = after.balance_of(accounts.foundation) - before.balance_of(accounts.foundation)
    supply_delta = after.total_supply - before.total_supply
    deltas = {
        "sender": sender_delta,
        "recipient": recipient_delta,
        "foundation": foundation_delta,
        "supply": supply_delta,
    }

    if supply_delta > 0:
        raise ReconciliationError(f"total supply increased by {supply_delta}", deltas=deltas)

    foundation_is_endpoint = accounts.foundation in (accounts.sender, accounts.recipient)
    if not foundation_is_endpoint:
        if foundation_delta < 0:
            raise ReconciliationError(f"foundation wallet decreased by {-foundation_delta}", deltas=deltas)
        if recipient_delta < 0:
            raise ReconciliationError(f"recipient balance decreased by {-recipient_delta}", deltas=deltas)

    burn = -supply_delta
    foundation = 0 if foundation_is_endpoint else foundation_delta
    net = recipient_delta

    if accounts.sender != accounts.recipient and not foundation_is_endpoint:
        outflow = -sender_delta
        if outflow != net + burn + foundation:
            raise ReconciliationError(
                f"sender outflow {outflow} != net {net} + burn {burn} + foundation {foundation}",
                deltas=deltas,
            )

    return ObservedOutcome(
        net=net,
        burn=burn,
        foundation=foundation,
        tax_applied=(burn + foundation) > 0,
        sender_delta=sender_delta,
        recipient_delta=recipient_delta,
        foundation_delta=foundation_delta,
        supply_delta=supply_delta,
        reserve_base_delta=after.reserves.base - before.reserves.base,
        reserve_token_delta=after.reserves.token - before.reserves.token,
    )


def is_k_invariant_revert(reason: Optional[str], markers: Sequence[str] = DEFAULT_K_REVERT_MARKERS) -> bool:
    """
    True if a revert reason names the pair's constant-product check.

    With the default markers any fork's "<name>: K" reason also counts. A
    caller passing its own markers gets exactly those and nothing else.
    """
    if not reason:
        return False
    markers = tuple(markers)
    for marker in markers:
        if re.search(re.escape(marker) + r"(?!\w)", reason):
            return True
    if markers != DEFAULT_K_REVERT_MARKERS:
        return False
    return _K_REVERT_RE.search(reason) is not None


def within_tolerance(expected: int, observed: int, gross: int, tolerance_bps: int) -> bool:
    """|expected - observed| <= tolerance_bps of gross, in integer arithmetic."""
    return abs(expected - observed) * BPS_DENOM <= tolerance_bps * gross


def compare(
    expected: ExpectedOutcome,
    observed: Optional[ObservedOutcome],
    tolerance_bps: int = DEFAULT_TOLERANCE_BPS,
    *,
    revert_reason: Optional[str] = None,
    k_revert_markers: Sequence[str] = DEFAULT_K_REVERT_MARKERS,
) -> Verdict:
    """
    Judge one scenario.

    `observed` is None when the operation reverted; `revert_reason` then
    carries the gateway's reason. A revert is only a valid outcome when the
    expectation predicted the constant-product violation.

    A predicted revert that did not happen is judged on the numbers like any
    other outcome: rounding can leave the pair enough input to pass K, and a
    token that still taxed per policy is behaving correctly.

    Raises:
        GatewayError: If the operation reverted for any other reason.
    """
    if not isinstance(tolerance_bps, int) or isinstance(tolerance_bps, bool) or tolerance_bps < 0:
        raise ValueError("tolerance_bps must be a non-negative int")

    if observed is None:
        if expected.expects_revert and is_k_invariant_revert(revert_reason, k_revert_markers):
            return Verdict.MATCH
        raise GatewayError(f"operation reverted: {revert_reason or 'no reason given'}", revert_reason=revert_reason)

    if expected.tax_applied and not observed.tax_applied:
        return Verdict.NO_TAX_OBSERVED

    gross = expected.gross
    if gross == 0:
        return Verdict.MATCH if observed.gross == 0 else Verdict.MISMATCH
    for exp, obs in (
        (expected.net, observed.net),
        (expected.burn, observed.burn),
        (expected.foundation, observed.foundation),
    ):
        if not within_tolerance(exp, obs, gross, tolerance_bps):
            return Verdict.MISMATCH
    return Verdict.MATCH


def compare_round_trip(buy_tax_applied: bool, sell_tax_applied: bool) -> Verdict:
    """Pairwise verdict over one buy and one sell."""
    if buy_tax_applied and sell_tax_applied:
        return Verdict.MATCH
    if buy_tax_applied:
        return Verdict.ASYMMETRIC_BUY_ONLY
    if sell_tax_applied:
        return Verdict.ASYMMETRIC_SELL_ONLY
    return Verdict.BOTH_UNTAXED
