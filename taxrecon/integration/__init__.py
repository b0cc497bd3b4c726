"""
Integration layer: ports to the chain, configuration, scenario runner.
"""

from .config import ReconcilerConfig, config_from_env, load_config
from .detector import DetectorStatus, check_detector_status, expected_detector_status
from .ports import Gateway, LedgerProvider, TxResult, read_state
from .readiness import (
    ReadinessFinding,
    ReadinessIssue,
    TokenConfig,
    audit_config,
    check_readiness,
    compare_token_configs,
    read_token_config,
)
from .scenario import (
    PinnedState,
    ScenarioParams,
    ScenarioResult,
    ScenarioRunner,
    ScenarioStatus,
    SessionTotals,
)

__all__ = [
    "ReconcilerConfig",
    "config_from_env",
    "load_config",
    "DetectorStatus",
    "check_detector_status",
    "expected_detector_status",
    "Gateway",
    "LedgerProvider",
    "TxResult",
    "read_state",
    "ReadinessFinding",
    "ReadinessIssue",
    "TokenConfig",
    "audit_config",
    "check_readiness",
    "compare_token_configs",
    "read_token_config",
    "PinnedState",
    "ScenarioParams",
    "ScenarioResult",
    "ScenarioRunner",
    "ScenarioStatus",
    "SessionTotals",
]
