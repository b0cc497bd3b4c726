"""
Scenario runner (imperative shell).

One scenario is one mutating call bracketed by two snapshots:

    read policy + exclusion state (or use the pinned copy)
    snapshot before
    expectation
    gateway call (bounded by `timeout_s`)
    snapshot after
    diff + compare -> verdict

Every run ends in exactly one verdict or one raised error. Errors are
recorded in the history as `Inconclusive` before they propagate. The history
keeps the most recent `max_history` results; session totals keep counting.

The runner is synchronous and not re-entrant: a second call while a scenario
is in flight raises `RuntimeError`.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Callable, Deque, Optional, Tuple

from ..core.classifier import TransferContext, TransferKind
from ..core.compare import ObservedOutcome, SnapshotAccounts, Verdict, compare, compare_round_trip, diff
from ..core.diagnosis import Diagnosis, DiagnosticFacts, diagnose
from ..core.errors import ScenarioTimeoutError
from ..core.expectation import ExpectedOutcome, expect
from ..core.policy import TaxPolicy
from ..state.ledger import Address, ExclusionState, normalize_address
from .config import ReconcilerConfig
from .ports import Gateway, LedgerProvider, read_state
from .readiness import ReadinessFinding, check_readiness


logger = logging.getLogger(__name__)


@unique
class ScenarioStatus(Enum):
    COMPLETED = "Completed"
    INCONCLUSIVE = "Inconclusive"


@dataclass(frozen=True)
class ScenarioParams:
    """
    Inputs for one scenario.

    `amount` is denominated as `TransferContext.amount_gross` is for the
    kind. `counterparty` is the recipient of a peer transfer. `base_amount`
    is the base leg offered with an add-liquidity. `fee_aware` overrides the
    configured sell mode.
    """

    trader: Address
    amount: int
    counterparty: Optional[Address] = None
    base_amount: int = 0
    fee_aware: Optional[bool] = None


@dataclass(frozen=True)
class PinnedState:
    """Policy and exclusion state held fixed across a batch of scenarios."""

    policy: TaxPolicy
    exclusion: ExclusionState


@dataclass(frozen=True)
class ScenarioResult:
    kind: TransferKind
    ctx: TransferContext
    status: ScenarioStatus
    expected: Optional[ExpectedOutcome] = None
    observed: Optional[ObservedOutcome] = None
    verdict: Optional[Verdict] = None
    revert_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def tax_observed(self) -> bool:
        """
        Whether the token treated this operation as taxed.

        True when tax was observed, or when a taxable operation matched its
        expectation: a matched K revert (the pair only rejects the naive sell
        because the tax shrank what it received) or an amount so small that
        every cut floored to zero.
        """
        if self.observed is not None and self.observed.tax_applied:
            return True
        return self.verdict is Verdict.MATCH and self.expected is not None and self.expected.taxable


@dataclass
class SessionTotals:
    scenarios: int = 0
    burned: int = 0
    foundation: int = 0

    def record(self, observed: Optional[ObservedOutcome]) -> None:
        self.scenarios += 1
        if observed is not None:
            self.burned += observed.burn
            self.foundation += observed.foundation


@dataclass
class ScenarioRunner:
    ledger: LedgerProvider
    gateway: Gateway
    pair_address: Address
    foundation_wallet: Address
    config: ReconcilerConfig = field(default_factory=ReconcilerConfig)
    pinned: Optional[PinnedState] = None
    clock: Callable[[], float] = time.monotonic
    max_history: int = 1000
    totals: SessionTotals = field(default_factory=SessionTotals)
    history: Deque[ScenarioResult] = field(init=False, repr=False)
    _busy: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.max_history, int) or isinstance(self.max_history, bool) or self.max_history <= 0:
            raise ValueError("max_history must be a positive int")
        self.history = deque(maxlen=self.max_history)
        self.pair_address = normalize_address(self.pair_address, name="pair_address")
        self.foundation_wallet = normalize_address(self.foundation_wallet, name="foundation_wallet")

    def current_state(self) -> Tuple[TaxPolicy, ExclusionState]:
        if self.pinned is not None:
            return self.pinned.policy, self.pinned.exclusion
        return read_state(self.ledger)

    def check_readiness(self) -> Tuple[ReadinessFinding, ...]:
        """Audit the token's trading state against this runner's pair."""
        return check_readiness(self.ledger, pair_address=self.pair_address)

    def clear_history(self) -> None:
        """Drop recorded results. Session totals are left alone."""
        self.history.clear()

    def build_context(self, kind: TransferKind, params: ScenarioParams) -> TransferContext:
        pair = self.pair_address
        trader = params.trader
        fee_aware = self.config.fee_aware_sells if params.fee_aware is None else params.fee_aware
        if kind is TransferKind.PEER_TRANSFER:
            if params.counterparty is None:
                raise ValueError("a peer transfer needs a counterparty")
            sender, recipient = trader, params.counterparty
        elif kind in (TransferKind.BUY, TransferKind.REMOVE_LIQUIDITY):
            sender, recipient = pair, trader
        else:
            sender, recipient = trader, pair
        return TransferContext(
            sender=sender,
            recipient=recipient,
            amount_gross=params.amount,
            kind=kind,
            pair_address=pair,
            fee_aware=fee_aware if kind is TransferKind.SELL else True,
        )

    def run_scenario(self, kind: TransferKind, params: ScenarioParams) -> ScenarioResult:
        if self._busy:
            raise RuntimeError("a scenario is already in progress")
        self._busy = True
        try:
            ctx = self.build_context(kind, params)
            logger.info("scenario start kind=%s amount=%s fee_aware=%s", kind.value, ctx.amount_gross, ctx.fee_aware)
            try:
                result = self._execute(ctx, params)
            except Exception as exc:
                self.history.append(
                    ScenarioResult(kind=kind, ctx=ctx, status=ScenarioStatus.INCONCLUSIVE, error=f"{type(exc).__name__}: {exc}")
                )
                logger.warning("scenario inconclusive kind=%s: %s", kind.value, exc)
                raise
            self.history.append(result)
            self.totals.record(result.observed)
            logger.info(
                "scenario done kind=%s verdict=%s revert=%s",
                kind.value,
                result.verdict.value if result.verdict else None,
                result.revert_reason,
            )
            return result
        finally:
            self._busy = False

    def _execute(self, ctx: TransferContext, params: ScenarioParams) -> ScenarioResult:
        policy, exclusion = self.current_state()
        accounts = SnapshotAccounts(sender=ctx.sender, recipient=ctx.recipient, foundation=self.foundation_wallet)
        watched = (accounts.sender, accounts.recipient, accounts.foundation)

        before = self.ledger.snapshot(watched)
        expected = expect(
            ctx,
            policy,
            exclusion,
            quote=self.gateway.quote_swap,
            reserves=before.reserves,
            base_amount=params.base_amount,
            lp_total_supply=before.lp_total_supply,
        )

        timeout_s = self.config.timeout_s
        deadline = self.clock() + timeout_s
        extra = {"base_amount": params.base_amount} if ctx.kind is TransferKind.ADD_LIQUIDITY else None
        try:
            tx = self.gateway.execute_transfer(ctx, timeout_s=timeout_s, extra=extra)
        except ScenarioTimeoutError:
            raise
        except TimeoutError as exc:
            raise ScenarioTimeoutError(f"{ctx.kind.value} not confirmed within {timeout_s}s", timeout_s=timeout_s) from exc
        if self.clock() > deadline:
            raise ScenarioTimeoutError(f"{ctx.kind.value} confirmed after its {timeout_s}s deadline", timeout_s=timeout_s)

        observed: Optional[ObservedOutcome] = None
        if tx.success:
            after = self.ledger.snapshot(watched)
            observed = diff(before, after, accounts)
        verdict = compare(
            expected,
            observed,
            self.config.tolerance_bps,
            revert_reason=tx.revert_reason,
            k_revert_markers=self.config.k_revert_markers,
        )
        return ScenarioResult(
            kind=ctx.kind,
            ctx=ctx,
            status=ScenarioStatus.COMPLETED,
            expected=expected,
            observed=observed,
            verdict=verdict,
            revert_reason=tx.revert_reason,
        )

    def run_round_trip(
        self,
        trader: Address,
        *,
        buy_amount: int,
        sell_amount: int,
        fee_aware_sell: Optional[bool] = None,
    ) -> Tuple[ScenarioResult, ScenarioResult, Verdict]:
        buy = self.run_scenario(TransferKind.BUY, ScenarioParams(trader=trader, amount=buy_amount))
        sell = self.run_scenario(
            TransferKind.SELL, ScenarioParams(trader=trader, amount=sell_amount, fee_aware=fee_aware_sell)
        )
        return buy, sell, compare_round_trip(buy.tax_observed, sell.tax_observed)

    def run_full_diagnostic(
        self,
        trader: Address,
        *,
        buy_amount: int,
        sell_amount: int,
        fee_aware_sell: Optional[bool] = None,
    ) -> Diagnosis:
        """
        Buy then sell against the pair and diagnose the pair's tax treatment.

        `buy_amount` is in base asset, `sell_amount` in tokens.
        """
        _, exclusion = self.current_state()
        buy, sell, round_trip = self.run_round_trip(
            trader, buy_amount=buy_amount, sell_amount=sell_amount, fee_aware_sell=fee_aware_sell
        )
        facts = DiagnosticFacts(
            pair_in_explicit_set=exclusion.in_explicit_set(self.pair_address),
            pair_in_mapping=exclusion.in_mapping(self.pair_address),
            buy_tax_applied=buy.tax_observed,
            sell_tax_applied=sell.tax_observed,
            buy_consistent=buy.verdict is Verdict.MATCH,
            sell_consistent=sell.verdict is Verdict.MATCH,
        )
        diagnosis = diagnose(facts)
        logger.info("diagnosis=%s round_trip=%s", diagnosis.verdict.value, round_trip.value)
        return diagnosis
