"""Signal relevance tiers: portfolio > mandate > general.

For one (signal, investor) pair:
  portfolio  signal.geo_name is an area where the investor holds property
  mandate    signal.geo_name is one of the mandate's preferred areas
  general    the signal already carries a nonzero upstream match count
  (none)     no target row is written
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from app.models.enums import RelevanceTier, SignalTargetStatus
from app.modules.matching.mandate import ResolvedMandate

TIER_SCORES: dict[RelevanceTier, int] = {
    RelevanceTier.PORTFOLIO: 100,
    RelevanceTier.MANDATE: 80,
    RelevanceTier.GENERAL: 60,
}


def _norm(area: str | None) -> str:
    return (area or "").strip().casefold()


@dataclass(frozen=True)
class SignalRecord:
    id: str
    org_id: str
    type: str | None
    metric: str | None
    geo_id: str | None
    geo_name: str | None = None
    investor_matches: int = 0

    @property
    def is_valid(self) -> bool:
        return bool(self.id and self.geo_id and self.type and self.metric)


@dataclass(frozen=True)
class InvestorProfile:
    investor_id: str
    preferred_areas: frozenset[str] = frozenset()
    holdings_by_area: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def from_resolved(cls, investor_id: Any, resolved: ResolvedMandate) -> InvestorProfile:
        return cls(
            investor_id=str(investor_id),
            preferred_areas=resolved.mandate.preferred_areas,
            holdings_by_area=dict(resolved.area_concentration),
        )

    def holding_area(self, geo_name: str | None) -> tuple[str, int] | None:
        wanted = _norm(geo_name)
        if not wanted:
            return None
        for area, count in self.holdings_by_area.items():
            if _norm(area) == wanted and count > 0:
                return area, count
        return None

    def preferred_area(self, geo_name: str | None) -> str | None:
        wanted = _norm(geo_name)
        if not wanted:
            return None
        for area in sorted(self.preferred_areas):
            if _norm(area) == wanted:
                return area
        return None


@dataclass(frozen=True)
class Relevance:
    tier: RelevanceTier
    matched_area: str | None
    holdings_in_area: int

    @property
    def score(self) -> int:
        return TIER_SCORES[self.tier]

    def to_reason(self) -> dict[str, Any]:
        return {
            "tier": self.tier.value,
            "matched_area": self.matched_area,
            "holdings_in_area": self.holdings_in_area,
        }


@dataclass(frozen=True)
class TargetRow:
    org_id: str
    signal_id: str
    investor_id: str
    relevance_score: int
    reason: dict[str, Any]
    status: SignalTargetStatus = SignalTargetStatus.NEW


@dataclass
class SignalTargets:
    rows: list[TargetRow] = field(default_factory=list)
    skipped_investors: list[str] = field(default_factory=list)
    signal_skipped: bool = False


def classify(signal: SignalRecord, investor: InvestorProfile) -> Relevance | None:
    held = investor.holding_area(signal.geo_name)
    if held is not None:
        area, count = held
        return Relevance(RelevanceTier.PORTFOLIO, area, count)

    preferred = investor.preferred_area(signal.geo_name)
    if preferred is not None:
        return Relevance(RelevanceTier.MANDATE, preferred, 0)

    if signal.investor_matches > 0:
        return Relevance(RelevanceTier.GENERAL, None, 0)
    return None


def compute_targets_for_signal(
    org_id: Any, signal: SignalRecord, investors: Iterable[InvestorProfile]
) -> SignalTargets:
    result = SignalTargets()
    if not signal.is_valid:
        result.signal_skipped = True
        return result

    for investor in investors:
        relevance = classify(signal, investor)
        if relevance is None:
            result.skipped_investors.append(investor.investor_id)
            continue
        result.rows.append(
            TargetRow(
                org_id=str(org_id),
                signal_id=signal.id,
                investor_id=investor.investor_id,
                relevance_score=relevance.score,
                reason=relevance.to_reason(),
            )
        )
    return result
