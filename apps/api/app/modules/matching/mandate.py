"""Mandate Resolver — normalise a raw investor mandate and holdings.

Raw mandates come from CRM forms and API overrides, so every field is
optional and may arrive in camelCase or snake_case. Resolution is the one
place where permissive defaults are applied: no budget ceiling, a baseline
yield target and the default trust policy. Scoring and constraint checks
never see a missing field.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from app.models.enums import RiskTolerance
from app.modules.matching.policy import DEFAULT_POLICY, MatchingPolicy


@dataclass(frozen=True)
class TrustPolicy:
    min_trust_score: float
    require_verification: bool = False


@dataclass(frozen=True)
class Holding:
    property_id: str
    area: str | None = None
    status: str | None = None


@dataclass(frozen=True)
class Mandate:
    preferred_areas: frozenset[str]
    property_types: frozenset[str]
    budget_min: float
    budget_max: float
    yield_target_pct: float
    risk_tolerance: RiskTolerance
    trust_policy: TrustPolicy

    def to_dict(self) -> dict[str, Any]:
        return {
            "preferred_areas": sorted(self.preferred_areas),
            "property_types": sorted(self.property_types),
            "budget_min": self.budget_min,
            "budget_max": None if math.isinf(self.budget_max) else self.budget_max,
            "yield_target_pct": self.yield_target_pct,
            "risk_tolerance": self.risk_tolerance.value,
            "min_trust_score": self.trust_policy.min_trust_score,
            "require_verification": self.trust_policy.require_verification,
        }


@dataclass(frozen=True)
class ResolvedMandate:
    """Mandate plus the portfolio facts derived from holdings."""

    mandate: Mandate
    area_concentration: Mapping[str, int] = field(default_factory=dict)
    owned_ids: frozenset[str] = frozenset()

    def holdings_in(self, area: str | None) -> int:
        if not area:
            return 0
        return self.area_concentration.get(area, 0)


# ── Raw value coercion ────────────────────────────────────────────────────────


def parse_number(value: Any) -> float | None:
    """Coerce int/float/Decimal/numeric strings to a finite float; None if impossible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, Decimal):
        try:
            number = float(value)
        except ValueError:
            return None
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(Decimal(text))
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_yield_target(value: Any, default: float) -> float:
    """Parse "6-8%" -> 6.0, "7.5%" -> 7.5; numbers pass through."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float, Decimal)):
        number = parse_number(value)
        return default if number is None else number
    if isinstance(value, str):
        lower_bound = value.replace("%", "").split("-")[0]
        number = parse_number(lower_bound)
        return default if number is None else number
    return default


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _string_set(value: Any) -> frozenset[str]:
    if not value:
        return frozenset()
    if isinstance(value, str):
        return frozenset([value])
    return frozenset(str(v) for v in value if v)


def _risk_tolerance(value: Any) -> RiskTolerance:
    try:
        return RiskTolerance(str(value).lower())
    except ValueError:
        return RiskTolerance.MEDIUM


def _budget_max(value: Any) -> float:
    number = parse_number(value)
    if not number:
        return math.inf
    return number


# ── Resolution ────────────────────────────────────────────────────────────────


def resolve_trust_policy(
    raw_mandate: Mapping[str, Any] | None,
    override: TrustPolicy | Mapping[str, Any] | None = None,
    policy: MatchingPolicy = DEFAULT_POLICY,
) -> TrustPolicy:
    """Override wins field by field, then the mandate, then the defaults."""
    if isinstance(override, TrustPolicy):
        return override
    raw = raw_mandate or {}
    over = override or {}

    min_score = parse_number(_pick(over, "minTrustScore", "min_trust_score"))
    if min_score is None:
        min_score = parse_number(_pick(raw, "minTrustScore", "min_trust_score"))
    if min_score is None:
        min_score = policy.default_min_trust_score

    require = _pick(over, "requireVerification", "require_verification")
    if require is None:
        require = _pick(raw, "requireVerification", "require_verification")

    return TrustPolicy(min_trust_score=min_score, require_verification=bool(require))


def resolve_holdings(holdings: Iterable[Holding | Mapping[str, Any]] | None) -> list[Holding]:
    resolved: list[Holding] = []
    for item in holdings or ():
        if isinstance(item, Holding):
            resolved.append(item)
            continue
        property_id = _pick(item, "propertyId", "property_id", "id")
        if property_id is None:
            continue
        area = _pick(item, "area")
        status = _pick(item, "status")
        resolved.append(
            Holding(
                property_id=str(property_id),
                area=str(area) if area else None,
                status=str(status) if status is not None else None,
            )
        )
    return resolved


def area_concentration(holdings: Iterable[Holding]) -> dict[str, int]:
    """Count holdings per area; every holding passed in is counted."""
    counts = Counter(h.area for h in holdings if h.area)
    return dict(counts)


def resolve_mandate(
    raw_mandate: Mapping[str, Any] | None,
    holdings: Iterable[Holding | Mapping[str, Any]] | None = None,
    *,
    trust_policy: TrustPolicy | Mapping[str, Any] | None = None,
    budget: Mapping[str, Any] | None = None,
    policy: MatchingPolicy = DEFAULT_POLICY,
) -> ResolvedMandate:
    raw = raw_mandate or {}
    over_budget = budget or {}

    budget_min = parse_number(_pick(over_budget, "min", "budget_min", "budgetMin"))
    if budget_min is None:
        budget_min = parse_number(
            _pick(raw, "minInvestment", "budget_min", "budgetMin", "min_investment")
        )

    max_value = _pick(over_budget, "max", "budget_max", "budgetMax")
    if max_value is None:
        max_value = _pick(raw, "maxInvestment", "budget_max", "budgetMax", "max_investment")

    mandate = Mandate(
        preferred_areas=_string_set(_pick(raw, "preferredAreas", "preferred_areas")),
        property_types=_string_set(_pick(raw, "propertyTypes", "property_types")),
        budget_min=budget_min or 0.0,
        budget_max=_budget_max(max_value),
        yield_target_pct=parse_yield_target(
            _pick(raw, "yieldTarget", "yield_target", "yieldTargetPct", "yield_target_pct"),
            policy.default_yield_target_pct,
        ),
        risk_tolerance=_risk_tolerance(_pick(raw, "riskTolerance", "risk_tolerance")),
        trust_policy=resolve_trust_policy(raw, trust_policy, policy),
    )

    resolved_holdings = resolve_holdings(holdings)
    return ResolvedMandate(
        mandate=mandate,
        area_concentration=area_concentration(resolved_holdings),
        owned_ids=frozenset(h.property_id for h in resolved_holdings),
    )
