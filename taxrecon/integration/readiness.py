"""
Pre-flight audit of the token's trading state.

A scenario run against a token that cannot trade, or that taxes against a
different pair than the one the router routes through, produces verdicts
that look like tax defects but are setup problems. `check_readiness` names
those problems before any scenario is spent on them:

    TradingDisabled   only excluded addresses can transfer
    Paused            no transfer can land
    PairNotSet        the pair gate is off, so trades skip the tax
    PairNotCreated    the factory has no pair for the token
    PairMismatch      the token's stored pair is not the factory's pair
    WrongPair         the runner is pointed at a different pair
    NoTaxConfigured   both rates are zero

`compare_token_configs` lines up two tokens' settings (a known-good
deployment against a new one) and returns the fields that differ.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum, unique
from typing import Any, Dict, Optional, Tuple

from ..state.ledger import Address, normalize_address
from .ports import LedgerProvider


logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@unique
class ReadinessIssue(Enum):
    TRADING_DISABLED = "TradingDisabled"
    PAUSED = "Paused"
    PAIR_NOT_SET = "PairNotSet"
    PAIR_NOT_CREATED = "PairNotCreated"
    PAIR_MISMATCH = "PairMismatch"
    WRONG_PAIR = "WrongPair"
    NO_TAX_CONFIGURED = "NoTaxConfigured"


@dataclass(frozen=True)
class ReadinessFinding:
    issue: ReadinessIssue
    detail: str


@dataclass(frozen=True)
class TokenConfig:
    """The settings that decide whether and how a token taxes a trade."""

    burn_bps: int
    foundation_bps: int
    pair_gate_enabled: bool
    trading_enabled: bool
    paused: bool
    contract_pair: Address
    factory_pair: Address

    def __post_init__(self) -> None:
        object.__setattr__(self, "contract_pair", normalize_address(self.contract_pair, name="contract_pair"))
        object.__setattr__(self, "factory_pair", normalize_address(self.factory_pair, name="factory_pair"))

    @property
    def total_bps(self) -> int:
        return self.burn_bps + self.foundation_bps


def read_token_config(ledger: LedgerProvider) -> TokenConfig:
    policy = ledger.read_policy()
    return TokenConfig(
        burn_bps=policy.burn_bps,
        foundation_bps=policy.foundation_bps,
        pair_gate_enabled=ledger.read_pair_gate(),
        trading_enabled=ledger.read_trading_enabled(),
        paused=ledger.read_paused(),
        contract_pair=ledger.read_contract_pair(),
        factory_pair=ledger.read_factory_pair(),
    )


def audit_config(config: TokenConfig, *, pair_address: Optional[Address] = None) -> Tuple[ReadinessFinding, ...]:
    """
    Findings for one token's settings, in a fixed order. Empty means ready.

    `pair_address`, when given, is the pair scenarios will trade against.
    """
    findings = []

    def add(issue: ReadinessIssue, detail: str) -> None:
        findings.append(ReadinessFinding(issue=issue, detail=detail))

    if not config.trading_enabled:
        add(ReadinessIssue.TRADING_DISABLED, "trading is disabled; only excluded addresses can transfer")
    if config.paused:
        add(ReadinessIssue.PAUSED, "the token is paused; no transfer can land")
    if not config.pair_gate_enabled:
        add(ReadinessIssue.PAIR_NOT_SET, "the pair gate is off; trades against the pair are not taxed")

    if config.factory_pair == ZERO_ADDRESS:
        add(ReadinessIssue.PAIR_NOT_CREATED, "the factory has no pair for this token")
    elif config.contract_pair != config.factory_pair:
        add(
            ReadinessIssue.PAIR_MISMATCH,
            f"the token taxes against {config.contract_pair} but the factory pair is {config.factory_pair}",
        )

    if pair_address is not None:
        pair = normalize_address(pair_address, name="pair_address")
        if pair != config.contract_pair:
            add(ReadinessIssue.WRONG_PAIR, f"scenarios target {pair} but the token taxes against {config.contract_pair}")

    if config.total_bps == 0:
        add(ReadinessIssue.NO_TAX_CONFIGURED, "burn and foundation rates are both zero")
    return tuple(findings)


def check_readiness(ledger: LedgerProvider, *, pair_address: Optional[Address] = None) -> Tuple[ReadinessFinding, ...]:
    """Read the token's settings and audit them."""
    findings = audit_config(read_token_config(ledger), pair_address=pair_address)
    if findings:
        logger.warning("token not ready: %s", ", ".join(f.issue.value for f in findings))
    else:
        logger.info("token ready")
    return findings


def compare_token_configs(reference: TokenConfig, candidate: TokenConfig) -> Dict[str, Tuple[Any, Any]]:
    """
    Settings that differ between two tokens, as `{field: (reference, candidate)}`.

    Pair addresses are per-deployment and always differ; they are left out.
    Whether each token's own pair is consistent is `audit_config`'s job.
    """
    ref = asdict(reference)
    cand = asdict(candidate)
    skipped = ("contract_pair", "factory_pair")
    return {name: (ref[name], cand[name]) for name in ref if name not in skipped and ref[name] != cand[name]}
