"""
Ledger value types: addresses, exclusion state, pool reserves, snapshots.

All types are frozen and validated on construction. Addresses are compared
case-insensitively (checksummed and lower-case spellings are the same
account), so every address is normalized to lower case at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping


Address = str
Amount = int


def normalize_address(value: object, *, name: str = "address") -> Address:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    addr = value.strip().lower()
    if not addr:
        raise ValueError(f"{name} must be non-empty")
    return addr


def _require_amount(name: str, value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")
    return value


@dataclass(frozen=True)
class ExclusionState:
    """
    The token's two independent tax-exclusion mechanisms.

    `explicit_set` mirrors the enumerable excluded-address set; `mapping`
    mirrors the per-address boolean flag. They are kept apart on purpose: an
    address present in one and absent from the other is the defect class the
    diagnostic looks for.
    """

    explicit_set: frozenset[Address] = frozenset()
    mapping: Mapping[Address, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        explicit = frozenset(normalize_address(a, name="explicit_set entry") for a in self.explicit_set)
        flags: dict[Address, bool] = {}
        for addr, flag in dict(self.mapping).items():
            if not isinstance(flag, bool):
                raise TypeError("mapping values must be bool")
            flags[normalize_address(addr, name="mapping key")] = flag
        object.__setattr__(self, "explicit_set", explicit)
        object.__setattr__(self, "mapping", MappingProxyType(flags))

    @classmethod
    def from_reads(cls, explicit: Iterable[Address], mapping: Mapping[Address, bool]) -> "ExclusionState":
        return cls(explicit_set=frozenset(explicit), mapping=dict(mapping))

    def in_explicit_set(self, address: Address) -> bool:
        return normalize_address(address) in self.explicit_set

    def in_mapping(self, address: Address) -> bool:
        return bool(self.mapping.get(normalize_address(address), False))

    def __hash__(self) -> int:
        return hash((self.explicit_set, tuple(sorted(self.mapping.items()))))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExclusionState):
            return NotImplemented
        return self.explicit_set == other.explicit_set and dict(self.mapping) == dict(other.mapping)


@dataclass(frozen=True)
class PoolReserves:
    """Pair reserves oriented as (base asset, token)."""

    base: Amount
    token: Amount

    def __post_init__(self) -> None:
        _require_amount("reserves.base", self.base)
        _require_amount("reserves.token", self.token)


def orient_reserves(*, token0: Address, token: Address, reserve0: Amount, reserve1: Amount) -> PoolReserves:
    """
    Map a pair's raw `(reserve0, reserve1)` onto (base, token).

    The pair sorts its two assets by address; the token sits in slot 0 iff it
    is the pair's `token0`.
    """
    if normalize_address(token0, name="token0") == normalize_address(token, name="token"):
        return PoolReserves(base=reserve1, token=reserve0)
    return PoolReserves(base=reserve0, token=reserve1)


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Point-in-time view of token balances, supply and pool reserves.

    Captured immediately before and after one mutating call. Balances not
    listed read as zero.
    """

    balances: Mapping[Address, Amount]
    total_supply: Amount
    reserves: PoolReserves
    lp_total_supply: Amount = 0

    def __post_init__(self) -> None:
        normalized: dict[Address, Amount] = {}
        for addr, amount in dict(self.balances).items():
            key = normalize_address(addr, name="balances key")
            if key in normalized:
                raise ValueError(f"duplicate balance entry for {key}")
            normalized[key] = _require_amount(f"balance[{key}]", amount)
        object.__setattr__(self, "balances", MappingProxyType(normalized))
        _require_amount("total_supply", self.total_supply)
        _require_amount("lp_total_supply", self.lp_total_supply)
        if not isinstance(self.reserves, PoolReserves):
            raise TypeError("reserves must be PoolReserves")

    def balance_of(self, address: Address) -> Amount:
        return self.balances.get(normalize_address(address), 0)

    def __hash__(self) -> int:
        return hash((tuple(sorted(self.balances.items())), self.total_supply, self.reserves, self.lp_total_supply))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LedgerSnapshot):
            return NotImplemented
        return (
            dict(self.balances) == dict(other.balances)
            and self.total_supply == other.total_supply
            and self.reserves == other.reserves
            and self.lp_total_supply == other.lp_total_supply
        )
