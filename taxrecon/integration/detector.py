"""
Fee-on-transfer detector probe.

Routers and frontends decide whether to use the fee-aware swap entry points
by asking a detector contract to flash-borrow the token from its pair and
send it back, watching for a shortfall. Its status codes:

    0  UNKNOWN             no fee observed
    1  FEE_ON_TRANSFER     the round trip lost tokens
    2  TRANSFER_FAILED     the detector could not move the token

The borrow leg is pair -> detector and the repay leg is detector -> pair, so
the token's own taxability rule predicts which code the detector must return.
"""

from __future__ import annotations

import logging
from enum import IntEnum, unique

from ..core.classifier import TransferContext, TransferKind, is_taxable
from ..core.compare import Verdict
from ..core.errors import GatewayError
from ..core.policy import TaxPolicy
from ..state.ledger import Address, ExclusionState


logger = logging.getLogger(__name__)

# Any positive amount; the rule does not depend on size.
_PROBE_AMOUNT = 1


@unique
class DetectorStatus(IntEnum):
    UNKNOWN = 0
    FEE_ON_TRANSFER = 1
    TRANSFER_FAILED = 2


def expected_detector_status(
    policy: TaxPolicy,
    exclusion: ExclusionState,
    *,
    pair_address: Address,
    detector_address: Address,
) -> DetectorStatus:
    if policy.total_bps == 0:
        return DetectorStatus.UNKNOWN
    borrow = TransferContext(
        sender=pair_address,
        recipient=detector_address,
        amount_gross=_PROBE_AMOUNT,
        kind=TransferKind.BUY,
        pair_address=pair_address,
    )
    repay = TransferContext(
        sender=detector_address,
        recipient=pair_address,
        amount_gross=_PROBE_AMOUNT,
        kind=TransferKind.SELL,
        pair_address=pair_address,
    )
    if is_taxable(borrow, policy, exclusion) or is_taxable(repay, policy, exclusion):
        return DetectorStatus.FEE_ON_TRANSFER
    return DetectorStatus.UNKNOWN


def check_detector_status(
    code: int,
    policy: TaxPolicy,
    exclusion: ExclusionState,
    *,
    pair_address: Address,
    detector_address: Address,
) -> Verdict:
    """
    Judge a detector's reported status against the predicted one.

    Raises:
        GatewayError: If the detector reports a failed transfer.
        ValueError: If `code` is not a known status.
    """
    try:
        status = DetectorStatus(code)
    except ValueError as exc:
        raise ValueError(f"unknown detector status: {code!r}") from exc
    if status is DetectorStatus.TRANSFER_FAILED:
        raise GatewayError("fee detector could not transfer the token", revert_reason=None)

    expected = expected_detector_status(
        policy, exclusion, pair_address=pair_address, detector_address=detector_address
    )
    if status is expected:
        verdict = Verdict.MATCH
    elif expected is DetectorStatus.FEE_ON_TRANSFER:
        verdict = Verdict.NO_TAX_OBSERVED
    else:
        verdict = Verdict.MISMATCH
    logger.info("fee detector status=%s expected=%s verdict=%s", status.name, expected.name, verdict.value)
    return verdict
