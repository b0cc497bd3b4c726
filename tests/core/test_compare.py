# [TESTER] v1

from __future__ import annotations

import pytest

from taxrecon.core.classifier import TransferKind
from taxrecon.core.compare import (
    SnapshotAccounts,
    Verdict,
    compare,
    compare_round_trip,
    diff,
    is_k_invariant_revert,
)
from taxrecon.core.errors import GatewayError, ReconciliationError
from taxrecon.core.expectation import ExpectationTag, ExpectedOutcome
from taxrecon.state.ledger import LedgerSnapshot, PoolReserves

PAIR = "0x00000000000000000000000000000000000000aa"
ALICE = "0x1111111111111111111111111111111111111111"
FOUNDATION = "0x00000000000000000000000000000000000000f0"

ACCOUNTS = SnapshotAccounts(sender=ALICE, recipient=PAIR, foundation=FOUNDATION)
RESERVES = PoolReserves(base=1_000, token=10_000)


def _snap(alice: int, pair: int, foundation: int, supply: int) -> LedgerSnapshot:
    return LedgerSnapshot(
        balances={ALICE: alice, PAIR: pair, FOUNDATION: foundation},
        total_supply=supply,
        reserves=RESERVES,
    )


def _expected(net: int, burn: int, foundation: int, *, tag: ExpectationTag = ExpectationTag.NUMERIC) -> ExpectedOutcome:
    return ExpectedOutcome(
        kind=TransferKind.SELL,
        gross=net + burn + foundation,
        net=net,
        burn=burn,
        foundation=foundation,
        tax_applied=(burn + foundation) > 0,
        taxable=True,
        tag=tag,
    )


def test_diff_reads_net_burn_and_foundation_from_deltas() -> None:
    before = _snap(10_000, 0, 0, 1_000_000)
    after = _snap(9_000, 976, 12, 999_988)
    obs = diff(before, after, ACCOUNTS)
    assert (obs.net, obs.burn, obs.foundation) == (976, 12, 12)
    assert obs.gross == 1000
    assert obs.tax_applied
    assert obs.effective_bps() == (120, 120)
    assert obs.deltas()["sender"] == -1000


def test_diff_rejects_supply_increase() -> None:
    with pytest.raises(ReconciliationError, match="total supply increased") as excinfo:
        diff(_snap(10, 0, 0, 100), _snap(10, 0, 0, 101), ACCOUNTS)
    assert excinfo.value.deltas["supply"] == 1


def test_diff_rejects_foundation_decrease() -> None:
    with pytest.raises(ReconciliationError, match="foundation wallet decreased"):
        diff(_snap(10, 0, 5, 100), _snap(10, 0, 4, 100), ACCOUNTS)


def test_diff_rejects_unbalanced_sender_outflow() -> None:
    with pytest.raises(ReconciliationError, match="sender outflow"):
        diff(_snap(1000, 0, 0, 1000), _snap(0, 990, 0, 1000), ACCOUNTS)


def test_compare_matches_within_tolerance() -> None:
    observed = diff(_snap(10_000, 0, 0, 1_000_000), _snap(0, 9_751, 124, 999_875), ACCOUNTS)
    # Off by one unit on net and foundation: 1/10000 of gross is 1 bps.
    assert compare(_expected(9_750, 125, 125), observed) is Verdict.MATCH
    assert compare(_expected(9_750, 125, 125), observed, tolerance_bps=0) is Verdict.MISMATCH


def test_compare_flags_missing_tax() -> None:
    observed = diff(_snap(1000, 0, 0, 1000), _snap(0, 1000, 0, 1000), ACCOUNTS)
    assert compare(_expected(976, 12, 12), observed) is Verdict.NO_TAX_OBSERVED


def test_compare_flags_unexpected_tax() -> None:
    observed = diff(_snap(1000, 0, 0, 1000), _snap(0, 976, 12, 988), ACCOUNTS)
    assert compare(_expected(1000, 0, 0), observed) is Verdict.MISMATCH


def test_expected_k_revert_matches() -> None:
    expected = _expected(976, 12, 12, tag=ExpectationTag.INVARIANT_VIOLATION_EXPECTED)
    assert compare(expected, None, revert_reason="execution reverted: UniswapV2: K") is Verdict.MATCH


def test_expected_k_revert_but_call_succeeded_untaxed() -> None:
    expected = _expected(976, 12, 12, tag=ExpectationTag.INVARIANT_VIOLATION_EXPECTED)
    observed = diff(_snap(1000, 0, 0, 1000), _snap(0, 1000, 0, 1000), ACCOUNTS)
    assert compare(expected, observed) is Verdict.NO_TAX_OBSERVED


def test_expected_k_revert_but_call_succeeded_is_judged_on_the_numbers() -> None:
    # Rounding left the pair enough input to pass K; the token still taxed per policy.
    expected = _expected(78, 1, 1, tag=ExpectationTag.INVARIANT_VIOLATION_EXPECTED)
    observed = diff(_snap(80, 0, 0, 1000), _snap(0, 78, 1, 999), ACCOUNTS)
    assert compare(expected, observed) is Verdict.MATCH

    skewed = diff(_snap(80, 0, 0, 1000), _snap(0, 70, 5, 995), ACCOUNTS)
    assert compare(expected, skewed) is Verdict.MISMATCH


def test_expected_k_revert_with_tax_floored_to_zero_matches_untaxed_landing() -> None:
    expected = _expected(50, 0, 0, tag=ExpectationTag.INVARIANT_VIOLATION_EXPECTED)
    observed = diff(_snap(50, 0, 0, 1000), _snap(0, 50, 0, 1000), ACCOUNTS)
    assert compare(expected, observed) is Verdict.MATCH


def test_unrelated_revert_is_a_gateway_error() -> None:
    with pytest.raises(GatewayError) as excinfo:
        compare(_expected(976, 12, 12), None, revert_reason="TransferHelper: TRANSFER_FROM_FAILED")
    assert excinfo.value.revert_reason == "TransferHelper: TRANSFER_FROM_FAILED"

    expected = _expected(976, 12, 12, tag=ExpectationTag.INVARIANT_VIOLATION_EXPECTED)
    with pytest.raises(GatewayError):
        compare(expected, None, revert_reason="UniswapV2: INSUFFICIENT_OUTPUT_AMOUNT")


def test_k_revert_detection_covers_forks() -> None:
    assert is_k_invariant_revert("UniswapV2: K")
    assert is_k_invariant_revert("Pancake: K")
    assert is_k_invariant_revert("custom K check", markers=("K check",))
    assert not is_k_invariant_revert("UniswapV2: KLAST")
    assert not is_k_invariant_revert(None)
    assert not is_k_invariant_revert("")


def test_explicit_k_markers_are_exhaustive() -> None:
    assert not is_k_invariant_revert("Pancake: K", markers=("K check",))
    assert not is_k_invariant_revert("execution reverted: SushiSwap: K", markers=("UniswapV2: K", "Pancake: K"))
    assert is_k_invariant_revert("Pancake: K", markers=("UniswapV2: K", "Pancake: K"))


def test_compare_honours_explicit_k_markers() -> None:
    expected = _expected(976, 12, 12, tag=ExpectationTag.INVARIANT_VIOLATION_EXPECTED)
    assert compare(expected, None, revert_reason="Pancake: K") is Verdict.MATCH
    with pytest.raises(GatewayError):
        compare(expected, None, revert_reason="Pancake: K", k_revert_markers=("UniswapV2: K", "SushiSwap: K"))


def test_round_trip_verdicts() -> None:
    assert compare_round_trip(True, True) is Verdict.MATCH
    assert compare_round_trip(True, False) is Verdict.ASYMMETRIC_BUY_ONLY
    assert compare_round_trip(False, True) is Verdict.ASYMMETRIC_SELL_ONLY
    assert compare_round_trip(False, False) is Verdict.BOTH_UNTAXED
