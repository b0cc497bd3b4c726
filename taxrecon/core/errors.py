"""Exception types for the tax reconciliation engine.

Every scenario run ends in exactly one verdict or one of these errors.
"""

from __future__ import annotations

from typing import Optional


class PolicyError(ValueError):
    """Raised when a tax policy's basis points are out of range or sum past 10_000."""


class GatewayError(RuntimeError):
    """Raised when the gateway reports a revert the engine cannot attribute to a modeled outcome."""

    def __init__(self, message: str, *, revert_reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.revert_reason = revert_reason


class ScenarioTimeoutError(GatewayError, TimeoutError):
    """Raised when a gateway call is not confirmed within the caller's bound."""

    def __init__(self, message: str, *, timeout_s: float) -> None:
        super().__init__(message)
        self.timeout_s = float(timeout_s)


class ReconciliationError(RuntimeError):
    """Raised when snapshot deltas are inconsistent with every modeled expectation."""

    def __init__(self, message: str, *, deltas: Optional[dict[str, int]] = None) -> None:
        super().__init__(message)
        self.deltas = dict(deltas or {})
