"""
Participant classification: does a transfer trigger the token's tax?

The rule reproduces the token's on-chain predicate:

    taxable = pair_gate_enabled
              and (sender == pair or recipient == pair)
              and not excluded(sender)
              and not excluded(recipient)

where `excluded(a)` consults both exclusion mechanisms independently
(`a in explicit_set` or `mapping[a]`). The transfer kind is supplied by the
caller; it cannot be inferred from addresses without pool-membership data.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from ..state.ledger import Address, ExclusionState, normalize_address
from .policy import TaxPolicy


@unique
class TransferKind(Enum):
    PEER_TRANSFER = "PeerTransfer"
    BUY = "Buy"
    SELL = "Sell"
    ADD_LIQUIDITY = "AddLiquidity"
    REMOVE_LIQUIDITY = "RemoveLiquidity"


@dataclass(frozen=True)
class TransferContext:
    """
    One scenario's transfer, as the caller declares it.

    `amount_gross` is denominated in what the initiator pays: tokens for a
    peer transfer, sell or add-liquidity; base asset for a buy; LP shares for
    a remove-liquidity. `fee_aware` declares whether the operation runs in
    fee-on-transfer-aware execution mode.
    """

    sender: Address
    recipient: Address
    amount_gross: int
    kind: TransferKind
    pair_address: Address
    fee_aware: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", normalize_address(self.sender, name="sender"))
        object.__setattr__(self, "recipient", normalize_address(self.recipient, name="recipient"))
        object.__setattr__(self, "pair_address", normalize_address(self.pair_address, name="pair_address"))
        if not isinstance(self.amount_gross, int) or isinstance(self.amount_gross, bool):
            raise TypeError("amount_gross must be an int")
        if self.amount_gross < 0:
            raise ValueError(f"amount_gross must be non-negative: {self.amount_gross}")
        if not isinstance(self.kind, TransferKind):
            raise TypeError("kind must be a TransferKind")
        if not isinstance(self.fee_aware, bool):
            raise TypeError("fee_aware must be a bool")

    @property
    def touches_pair(self) -> bool:
        return self.pair_address in (self.sender, self.recipient)


@dataclass(frozen=True)
class EndpointFacts:
    address: Address
    in_explicit_set: bool
    in_mapping: bool

    @property
    def excluded(self) -> bool:
        return self.in_explicit_set or self.in_mapping


@dataclass(frozen=True)
class Classification:
    taxable: bool
    pair_gate_enabled: bool
    touches_pair: bool
    sender: EndpointFacts
    recipient: EndpointFacts


def endpoint_facts(address: Address, exclusion: ExclusionState) -> EndpointFacts:
    return EndpointFacts(
        address=normalize_address(address),
        in_explicit_set=exclusion.in_explicit_set(address),
        in_mapping=exclusion.in_mapping(address),
    )


def classify(ctx: TransferContext, policy: TaxPolicy, exclusion: ExclusionState) -> Classification:
    sender = endpoint_facts(ctx.sender, exclusion)
    recipient = endpoint_facts(ctx.recipient, exclusion)
    taxable = (
        policy.pair_gate_enabled
        and ctx.touches_pair
        and not sender.in_explicit_set
        and not sender.in_mapping
        and not recipient.in_explicit_set
        and not recipient.in_mapping
    )
    return Classification(
        taxable=taxable,
        pair_gate_enabled=policy.pair_gate_enabled,
        touches_pair=ctx.touches_pair,
        sender=sender,
        recipient=recipient,
    )


def is_taxable(ctx: TransferContext, policy: TaxPolicy, exclusion: ExclusionState) -> bool:
    return classify(ctx, policy, exclusion).taxable
