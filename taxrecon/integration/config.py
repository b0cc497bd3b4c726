"""
Reconciler configuration.

Sources, lowest to highest precedence:
1. dataclass defaults,
2. a YAML file (`load_config`),
3. environment variables (`config_from_env`):
   - TAXRECON_TOLERANCE_BPS
   - TAXRECON_TIMEOUT_S
   - TAXRECON_FEE_AWARE_SELLS
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

import yaml

from ..core.compare import DEFAULT_K_REVERT_MARKERS, DEFAULT_TOLERANCE_BPS
from ..core.policy import BPS_DENOM


@dataclass(frozen=True)
class ReconcilerConfig:
    """
    Controls how scenarios are judged.

    `fee_aware_sells` defaults to False: the diagnostic runs the plain router
    sell first, which is expected to revert on the pair's K check whenever the
    token taxes it.
    """

    tolerance_bps: int = DEFAULT_TOLERANCE_BPS
    timeout_s: float = 120.0
    fee_aware_sells: bool = False
    k_revert_markers: Tuple[str, ...] = DEFAULT_K_REVERT_MARKERS

    def __post_init__(self) -> None:
        if not isinstance(self.tolerance_bps, int) or isinstance(self.tolerance_bps, bool):
            raise TypeError("tolerance_bps must be an int")
        if not (0 <= self.tolerance_bps <= BPS_DENOM):
            raise ValueError(f"tolerance_bps must be in [0, {BPS_DENOM}]")
        if isinstance(self.timeout_s, bool) or not isinstance(self.timeout_s, (int, float)):
            raise TypeError("timeout_s must be a number")
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        object.__setattr__(self, "timeout_s", float(self.timeout_s))
        if not isinstance(self.fee_aware_sells, bool):
            raise TypeError("fee_aware_sells must be a bool")
        markers = tuple(self.k_revert_markers)
        if not markers or not all(isinstance(m, str) and m for m in markers):
            raise ValueError("k_revert_markers must be a non-empty list of non-empty strings")
        object.__setattr__(self, "k_revert_markers", markers)


_FIELD_NAMES = frozenset(f.name for f in fields(ReconcilerConfig))


def config_from_mapping(obj: Mapping[str, Any], *, base: ReconcilerConfig = ReconcilerConfig()) -> ReconcilerConfig:
    unknown = sorted(set(obj) - _FIELD_NAMES)
    if unknown:
        raise ValueError(f"unknown config keys: {unknown}")
    return replace(base, **dict(obj))


def load_config(path: Union[str, Path], *, base: ReconcilerConfig = ReconcilerConfig()) -> ReconcilerConfig:
    """Load a YAML config file. An empty file yields `base` unchanged."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return base
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    return config_from_mapping(obj, base=base)


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer: {raw!r}") from exc
    if not (lo <= v <= hi):
        raise ValueError(f"{name} must be in [{lo}, {hi}]: {v}")
    return v


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return float(default)
    try:
        v = float(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number: {raw!r}") from exc
    if v <= 0:
        raise ValueError(f"{name} must be positive: {v}")
    return v


def _bool_env(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return bool(default)
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def config_from_env(
    base: ReconcilerConfig = ReconcilerConfig(),
    *,
    path: Optional[Union[str, Path]] = None,
) -> ReconcilerConfig:
    """Apply an optional YAML file, then environment overrides, on top of `base`."""
    cfg = load_config(path, base=base) if path is not None else base
    return replace(
        cfg,
        tolerance_bps=_env_int("TAXRECON_TOLERANCE_BPS", cfg.tolerance_bps, lo=0, hi=BPS_DENOM),
        timeout_s=_env_float("TAXRECON_TIMEOUT_S", cfg.timeout_s),
        fee_aware_sells=_bool_env("TAXRECON_FEE_AWARE_SELLS", default=cfg.fee_aware_sells),
    )
