"""
Root-cause diagnosis over one buy scenario and one sell scenario.

A fixed priority table maps the boolean facts to exactly one verdict. Rows
are evaluated top to bottom; the last row matches everything, so the table
is total over all fact combinations.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum, unique
from typing import Callable


@unique
class DiagnosisVerdict(Enum):
    EXCLUSION_BYPASS_BUG = "ExclusionBypassBug"
    TAX_NOT_APPLIED = "TaxNotApplied"
    ASYMMETRIC_TAX_APPLICATION = "AsymmetricTaxApplication"
    EXPECTED_BEHAVIOR_CONFIRMED = "ExpectedBehaviorConfirmed"
    UNEXPLAINED_DIVERGENCE = "UnexplainedDivergence"


@dataclass(frozen=True)
class DiagnosticFacts:
    """
    Facts gathered from the exclusion state and one buy/sell round trip.

    `buy_consistent` / `sell_consistent` record whether each side's observed
    outcome agreed with its expectation (a Match verdict).
    """

    pair_in_explicit_set: bool
    pair_in_mapping: bool
    buy_tax_applied: bool
    sell_tax_applied: bool
    buy_consistent: bool = True
    sell_consistent: bool = True

    def __post_init__(self) -> None:
        for name, value in asdict(self).items():
            if not isinstance(value, bool):
                raise TypeError(f"{name} must be a bool")

    @property
    def pair_excluded(self) -> bool:
        return self.pair_in_explicit_set or self.pair_in_mapping


@dataclass(frozen=True)
class Diagnosis:
    verdict: DiagnosisVerdict
    explanation: str
    facts: DiagnosticFacts


def _exclusion_bypass(f: DiagnosticFacts) -> str:
    where = [
        name
        for name, hit in (("explicit exclusion set", f.pair_in_explicit_set), ("exclusion mapping", f.pair_in_mapping))
        if hit
    ]
    return (
        f"The pair is excluded via the {' and '.join(where)}. "
        "Tax is skipped whenever the pair is sender (buys) or recipient (sells), "
        "so no trade is taxed. Remove the pair from the exclusion state."
    )


def _tax_not_applied(f: DiagnosticFacts) -> str:
    return "Neither buys nor sells were taxed although the pair is not excluded. Check the pair gate and the exclusion logic."


def _asymmetric(f: DiagnosticFacts) -> str:
    taxed, untaxed = ("buys", "sells") if f.buy_tax_applied else ("sells", "buys")
    return f"Tax applied on {taxed} but not on {untaxed}; the taxability rule is symmetric in sender and recipient."


def _confirmed(f: DiagnosticFacts) -> str:
    return "Both buys and sells were taxed and the observed splits match the declared policy."


def _unexplained(f: DiagnosticFacts) -> str:
    sides = [name for name, ok in (("buy", f.buy_consistent), ("sell", f.sell_consistent)) if not ok]
    return (
        f"Both sides were taxed but the {' and '.join(sides)} outcome diverged from the policy. "
        "The cause lies outside the modeled rules; review the token's transfer hook manually."
    )


_Rule = tuple[Callable[[DiagnosticFacts], bool], DiagnosisVerdict, Callable[[DiagnosticFacts], str]]

_RULES: tuple[_Rule, ...] = (
    (lambda f: f.pair_excluded, DiagnosisVerdict.EXCLUSION_BYPASS_BUG, _exclusion_bypass),
    (lambda f: not f.buy_tax_applied and not f.sell_tax_applied, DiagnosisVerdict.TAX_NOT_APPLIED, _tax_not_applied),
    (lambda f: f.buy_tax_applied != f.sell_tax_applied, DiagnosisVerdict.ASYMMETRIC_TAX_APPLICATION, _asymmetric),
    (lambda f: f.buy_consistent and f.sell_consistent, DiagnosisVerdict.EXPECTED_BEHAVIOR_CONFIRMED, _confirmed),
    (lambda f: True, DiagnosisVerdict.UNEXPLAINED_DIVERGENCE, _unexplained),
)


def diagnose(facts: DiagnosticFacts) -> Diagnosis:
    for matches, verdict, explain in _RULES:
        if matches(facts):
            return Diagnosis(verdict=verdict, explanation=explain(facts), facts=facts)
    raise AssertionError("diagnosis table is not total")
