# [TESTER] v1

from __future__ import annotations

import pytest

from taxrecon.core.compare import Verdict
from taxrecon.core.errors import GatewayError
from taxrecon.core.policy import TaxPolicy
from taxrecon.integration.detector import DetectorStatus, check_detector_status, expected_detector_status
from taxrecon.state.ledger import ExclusionState
from tests.simulated_chain import DETECTOR, PAIR

POLICY = TaxPolicy(burn_bps=125, foundation_bps=125, pair_gate_enabled=True)


def _expected(policy: TaxPolicy, exclusion: ExclusionState) -> DetectorStatus:
    return expected_detector_status(policy, exclusion, pair_address=PAIR, detector_address=DETECTOR)


def _check(code: int, exclusion: ExclusionState = ExclusionState(), policy: TaxPolicy = POLICY) -> Verdict:
    return check_detector_status(code, policy, exclusion, pair_address=PAIR, detector_address=DETECTOR)


def test_taxed_pair_is_detected_as_fee_on_transfer() -> None:
    assert _expected(POLICY, ExclusionState()) is DetectorStatus.FEE_ON_TRANSFER
    assert _check(1) is Verdict.MATCH


def test_excluded_pair_or_detector_hides_the_fee() -> None:
    assert _expected(POLICY, ExclusionState(explicit_set=frozenset({PAIR}))) is DetectorStatus.UNKNOWN
    assert _expected(POLICY, ExclusionState(mapping={DETECTOR: True})) is DetectorStatus.UNKNOWN
    assert _check(0, ExclusionState(mapping={PAIR: True})) is Verdict.MATCH


def test_zero_policy_or_closed_gate_is_unknown() -> None:
    assert _expected(TaxPolicy(burn_bps=0, foundation_bps=0, pair_gate_enabled=True), ExclusionState()) is DetectorStatus.UNKNOWN
    assert _expected(TaxPolicy(burn_bps=125, foundation_bps=125), ExclusionState()) is DetectorStatus.UNKNOWN


def test_missed_fee_and_phantom_fee() -> None:
    assert _check(0) is Verdict.NO_TAX_OBSERVED
    assert _check(1, ExclusionState(explicit_set=frozenset({PAIR}))) is Verdict.MISMATCH


def test_transfer_failure_and_unknown_codes_raise() -> None:
    with pytest.raises(GatewayError, match="could not transfer"):
        _check(2)
    with pytest.raises(ValueError, match="unknown detector status"):
        _check(7)
