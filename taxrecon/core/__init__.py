"""
Core tax reconciliation algorithms
"""

from .errors import GatewayError, PolicyError, ReconciliationError, ScenarioTimeoutError
from .policy import BPS_DENOM, TaxPolicy, TaxSplit, bps_of, check_policy, compute_split, untaxed
from .classifier import Classification, EndpointFacts, TransferContext, TransferKind, classify, is_taxable
from .expectation import (
    ExpectationTag,
    ExpectedOutcome,
    SellExpectation,
    expect,
    for_add_liquidity,
    for_buy,
    for_remove_liquidity,
    for_sell,
    for_simple_transfer,
)
from .compare import (
    DEFAULT_TOLERANCE_BPS,
    ObservedOutcome,
    SnapshotAccounts,
    Verdict,
    compare,
    compare_round_trip,
    diff,
    is_k_invariant_revert,
)
from .diagnosis import Diagnosis, DiagnosisVerdict, DiagnosticFacts, diagnose

__all__ = [
    "GatewayError",
    "PolicyError",
    "ReconciliationError",
    "ScenarioTimeoutError",
    "BPS_DENOM",
    "TaxPolicy",
    "TaxSplit",
    "bps_of",
    "check_policy",
    "compute_split",
    "untaxed",
    "Classification",
    "EndpointFacts",
    "TransferContext",
    "TransferKind",
    "classify",
    "is_taxable",
    "ExpectationTag",
    "ExpectedOutcome",
    "SellExpectation",
    "expect",
    "for_add_liquidity",
    "for_buy",
    "for_remove_liquidity",
    "for_sell",
    "for_simple_transfer",
    "DEFAULT_TOLERANCE_BPS",
    "ObservedOutcome",
    "SnapshotAccounts",
    "Verdict",
    "compare",
    "compare_round_trip",
    "diff",
    "is_k_invariant_revert",
    "Diagnosis",
    "DiagnosisVerdict",
    "DiagnosticFacts",
    "diagnose",
]
