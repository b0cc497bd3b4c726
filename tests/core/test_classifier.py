# [TESTER] v1

from __future__ import annotations

import pytest

from taxrecon.core.classifier import TransferContext, TransferKind, classify, is_taxable
from taxrecon.core.policy import TaxPolicy
from taxrecon.state.ledger import ExclusionState

PAIR = "0xPairPairPairPairPairPairPairPairPairPair"
ALICE = "0x1111111111111111111111111111111111111111"
BOB = "0x2222222222222222222222222222222222222222"

GATED = TaxPolicy(burn_bps=125, foundation_bps=125, pair_gate_enabled=True)


def _buy(amount: int = 1000) -> TransferContext:
    return TransferContext(sender=PAIR, recipient=ALICE, amount_gross=amount, kind=TransferKind.BUY, pair_address=PAIR)


def _sell(amount: int = 1000) -> TransferContext:
    return TransferContext(sender=ALICE, recipient=PAIR, amount_gross=amount, kind=TransferKind.SELL, pair_address=PAIR)


def test_pair_trades_are_taxable_when_gate_is_on_and_nobody_is_excluded() -> None:
    assert is_taxable(_buy(), GATED, ExclusionState())
    assert is_taxable(_sell(), GATED, ExclusionState())


def test_gate_off_disables_tax() -> None:
    policy = TaxPolicy(burn_bps=125, foundation_bps=125, pair_gate_enabled=False)
    assert not is_taxable(_buy(), policy, ExclusionState())


def test_peer_transfer_is_never_taxable() -> None:
    ctx = TransferContext(sender=ALICE, recipient=BOB, amount_gross=10_000, kind=TransferKind.PEER_TRANSFER, pair_address=PAIR)
    assert not ctx.touches_pair
    assert not is_taxable(ctx, GATED, ExclusionState())


def test_each_mechanism_excludes_on_its_own() -> None:
    by_set = ExclusionState(explicit_set=frozenset({ALICE}))
    by_mapping = ExclusionState(mapping={ALICE: True})
    assert not is_taxable(_sell(), GATED, by_set)
    assert not is_taxable(_sell(), GATED, by_mapping)
    # A false mapping entry is not an exclusion.
    assert is_taxable(_sell(), GATED, ExclusionState(mapping={ALICE: False}))


def test_classification_reports_mechanisms_separately() -> None:
    exclusion = ExclusionState(explicit_set=frozenset({PAIR}), mapping={PAIR: False})
    c = classify(_buy(), GATED, exclusion)
    assert not c.taxable
    assert c.sender.in_explicit_set
    assert not c.sender.in_mapping
    assert c.sender.excluded
    assert not c.recipient.excluded


def test_addresses_compare_case_insensitively() -> None:
    exclusion = ExclusionState(explicit_set=frozenset({PAIR.upper().replace("0X", "0x")}))
    assert not is_taxable(_buy(), GATED, exclusion)


def test_context_rejects_bad_arguments() -> None:
    with pytest.raises(TypeError):
        TransferContext(sender=ALICE, recipient=PAIR, amount_gross=1.5, kind=TransferKind.SELL, pair_address=PAIR)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        TransferContext(sender=ALICE, recipient=PAIR, amount_gross=-1, kind=TransferKind.SELL, pair_address=PAIR)
    with pytest.raises(ValueError):
        TransferContext(sender="  ", recipient=PAIR, amount_gross=1, kind=TransferKind.SELL, pair_address=PAIR)
    with pytest.raises(TypeError):
        TransferContext(sender=ALICE, recipient=PAIR, amount_gross=1, kind="Sell", pair_address=PAIR)  # type: ignore[arg-type]


def test_classify_is_deterministic_for_unchanged_state() -> None:
    exclusion = ExclusionState(explicit_set=frozenset({BOB}), mapping={ALICE: True})
    assert classify(_sell(), GATED, exclusion) == classify(_sell(), GATED, exclusion)

