"""Constraint Checker — ordered hard/soft evaluators per candidate.

Every evaluator runs independently and returns an optional violation; the
list order below is the presentation order of reason codes, labels and
"what would change my mind" sentences.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from app.models.enums import ReadinessStatus
from app.modules.matching.candidates import Candidate
from app.modules.matching.mandate import ResolvedMandate
from app.modules.matching.policy import DEFAULT_POLICY, MatchingPolicy


class ConstraintKey(str, enum.Enum):
    BUDGET_MAX = "budget_max"
    BUDGET_MIN = "budget_min"
    YIELD_TARGET = "yield_target"
    TRUST_SCORE = "trust_score"
    NEEDS_VERIFICATION = "needs_verification"
    AREA_CONCENTRATION = "area_concentration"
    AREA_MISMATCH = "area_mismatch"
    TYPE_MISMATCH = "type_mismatch"
    LIQUIDITY_RISK = "liquidity_risk"


class Severity(str, enum.Enum):
    HARD = "hard"
    SOFT = "soft"


SEVERITY: dict[ConstraintKey, Severity] = {
    ConstraintKey.BUDGET_MAX: Severity.HARD,
    ConstraintKey.BUDGET_MIN: Severity.SOFT,
    ConstraintKey.YIELD_TARGET: Severity.HARD,
    ConstraintKey.TRUST_SCORE: Severity.HARD,
    ConstraintKey.NEEDS_VERIFICATION: Severity.HARD,
    ConstraintKey.AREA_CONCENTRATION: Severity.HARD,
    ConstraintKey.AREA_MISMATCH: Severity.SOFT,
    ConstraintKey.TYPE_MISMATCH: Severity.SOFT,
    ConstraintKey.LIQUIDITY_RISK: Severity.SOFT,
}

REASON_CODES: dict[ConstraintKey, str] = {
    ConstraintKey.BUDGET_MAX: "over_budget",
    ConstraintKey.BUDGET_MIN: "under_budget_min",
    ConstraintKey.YIELD_TARGET: "yield_below_target",
    ConstraintKey.TRUST_SCORE: "low_trust_score",
    ConstraintKey.NEEDS_VERIFICATION: "needs_verification",
    ConstraintKey.AREA_CONCENTRATION: "concentration_risk",
    ConstraintKey.AREA_MISMATCH: "area_mismatch",
    ConstraintKey.TYPE_MISMATCH: "type_mismatch",
    ConstraintKey.LIQUIDITY_RISK: "liquidity_risk",
}


@dataclass(frozen=True)
class ConstraintViolation:
    key: ConstraintKey
    expected: Any
    actual: Any
    label: str

    @property
    def severity(self) -> Severity:
        return SEVERITY[self.key]

    @property
    def is_hard(self) -> bool:
        return self.severity is Severity.HARD

    @property
    def reason_code(self) -> str:
        return REASON_CODES[self.key]

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key.value, "expected": self.expected, "actual": self.actual}


@dataclass
class ConstraintEvaluation:
    candidate_id: str
    violations: list[ConstraintViolation] = field(default_factory=list)

    @property
    def hard_violations(self) -> list[ConstraintViolation]:
        return [v for v in self.violations if v.is_hard]

    @property
    def soft_violations(self) -> list[ConstraintViolation]:
        return [v for v in self.violations if not v.is_hard]

    @property
    def is_qualifying(self) -> bool:
        return not self.hard_violations

    @property
    def is_clean(self) -> bool:
        return not self.violations

    @property
    def reason_codes(self) -> list[str]:
        return [v.reason_code for v in self.violations]

    @property
    def reason_labels(self) -> list[str]:
        return [v.label for v in self.violations]


# ── Number formatting for labels ──────────────────────────────────────────────


def format_fixed(value: float, places: int) -> str:
    """Fixed-point formatting with half-up rounding."""
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_number(value: float) -> str:
    """Integral floats print without the trailing ``.0``."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


# ── Evaluators ────────────────────────────────────────────────────────────────

Evaluator = Callable[[Candidate, ResolvedMandate, MatchingPolicy], ConstraintViolation | None]


def _budget_max(candidate: Candidate, ctx: ResolvedMandate, policy: MatchingPolicy) -> ConstraintViolation | None:
    budget_max = ctx.mandate.budget_max
    if candidate.price <= budget_max:
        return None
    over_by = candidate.price - budget_max
    return ConstraintViolation(
        key=ConstraintKey.BUDGET_MAX,
        expected=budget_max,
        actual=candidate.price,
        label=f"Over budget by AED {format_fixed(over_by / 1000, 0)}k",
    )


def _budget_min(candidate: Candidate, ctx: ResolvedMandate, policy: MatchingPolicy) -> ConstraintViolation | None:
    mandate = ctx.mandate
    # Only meaningful while the price is within the ceiling.
    if candidate.price > mandate.budget_max or candidate.price >= mandate.budget_min:
        return None
    return ConstraintViolation(
        key=ConstraintKey.BUDGET_MIN,
        expected=mandate.budget_min,
        actual=candidate.price,
        label="Below minimum investment threshold",
    )


def _yield_target(candidate: Candidate, ctx: ResolvedMandate, policy: MatchingPolicy) -> ConstraintViolation | None:
    target = ctx.mandate.yield_target_pct
    if not candidate.roi or candidate.roi >= target:
        return None
    return ConstraintViolation(
        key=ConstraintKey.YIELD_TARGET,
        expected=target,
        actual=candidate.roi,
        label=f"Yield below target by {format_fixed(target - candidate.roi, 1)}%",
    )


def _trust_score(candidate: Candidate, ctx: ResolvedMandate, policy: MatchingPolicy) -> ConstraintViolation | None:
    minimum = ctx.mandate.trust_policy.min_trust_score
    if not candidate.trust_score or candidate.trust_score >= minimum:
        return None
    return ConstraintViolation(
        key=ConstraintKey.TRUST_SCORE,
        expected=minimum,
        actual=candidate.trust_score,
        label=(
            "Trust score below threshold "
            f"({format_number(candidate.trust_score)} < {format_number(minimum)})"
        ),
    )


def _needs_verification(candidate: Candidate, ctx: ResolvedMandate, policy: MatchingPolicy) -> ConstraintViolation | None:
    if not ctx.mandate.trust_policy.require_verification or not candidate.needs_verification:
        return None
    return ConstraintViolation(
        key=ConstraintKey.NEEDS_VERIFICATION,
        expected=ReadinessStatus.READY_FOR_MEMO.value,
        actual=candidate.readiness_status,
        label="Needs verification: portal source",
    )


def _area_concentration(candidate: Candidate, ctx: ResolvedMandate, policy: MatchingPolicy) -> ConstraintViolation | None:
    count = ctx.holdings_in(candidate.area)
    if count < policy.area_concentration_limit:
        return None
    return ConstraintViolation(
        key=ConstraintKey.AREA_CONCENTRATION,
        expected=policy.area_concentration_limit,
        actual=count,
        label=f"Concentration risk: already {count} assets in {candidate.area}",
    )


def _area_mismatch(candidate: Candidate, ctx: ResolvedMandate, policy: MatchingPolicy) -> ConstraintViolation | None:
    areas = ctx.mandate.preferred_areas
    if not areas or candidate.area in areas:
        return None
    return ConstraintViolation(
        key=ConstraintKey.AREA_MISMATCH,
        expected=sorted(areas),
        actual=candidate.area,
        label=f"Not in preferred area ({candidate.area})",
    )


def _type_mismatch(candidate: Candidate, ctx: ResolvedMandate, policy: MatchingPolicy) -> ConstraintViolation | None:
    types = ctx.mandate.property_types
    if not types or candidate.property_type in types:
        return None
    return ConstraintViolation(
        key=ConstraintKey.TYPE_MISMATCH,
        expected=sorted(types),
        actual=candidate.property_type,
        label=f"Not preferred type ({candidate.property_type})",
    )


def _liquidity_risk(candidate: Candidate, ctx: ResolvedMandate, policy: MatchingPolicy) -> ConstraintViolation | None:
    unscored_portal = candidate.is_portal_sourced and not candidate.trust_score
    if not unscored_portal and not candidate.malformed_fields:
        return None
    return ConstraintViolation(
        key=ConstraintKey.LIQUIDITY_RISK,
        expected="trust_score",
        actual=list(candidate.malformed_fields) or None,
        label="Liquidity risk: limited comps in last 6 months",
    )


CONSTRAINT_EVALUATORS: tuple[tuple[ConstraintKey, Evaluator], ...] = (
    (ConstraintKey.BUDGET_MAX, _budget_max),
    (ConstraintKey.BUDGET_MIN, _budget_min),
    (ConstraintKey.YIELD_TARGET, _yield_target),
    (ConstraintKey.TRUST_SCORE, _trust_score),
    (ConstraintKey.NEEDS_VERIFICATION, _needs_verification),
    (ConstraintKey.AREA_CONCENTRATION, _area_concentration),
    (ConstraintKey.AREA_MISMATCH, _area_mismatch),
    (ConstraintKey.TYPE_MISMATCH, _type_mismatch),
    (ConstraintKey.LIQUIDITY_RISK, _liquidity_risk),
)


class ConstraintChecker:
    def __init__(self, policy: MatchingPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    def check(self, candidate: Candidate, ctx: ResolvedMandate) -> ConstraintEvaluation:
        evaluation = ConstraintEvaluation(candidate_id=candidate.id)
        for _key, evaluator in CONSTRAINT_EVALUATORS:
            violation = evaluator(candidate, ctx, self.policy)
            if violation is not None:
                evaluation.violations.append(violation)
        return evaluation
