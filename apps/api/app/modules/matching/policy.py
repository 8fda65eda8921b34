"""Matching policy constants, snapshotted once per run."""

from __future__ import annotations

from dataclasses import dataclass

from app.core.config import settings


@dataclass(frozen=True)
class MatchingPolicy:
    trust_weight: float = 0.55
    roi_weight: float = 3.5
    type_bonus: float = 10.0
    default_trust_score: float = 60.0
    default_roi: float = 7.0
    default_yield_target_pct: float = 8.0
    default_min_trust_score: float = 70.0
    area_concentration_limit: int = 2
    high_trust_threshold: float = 85.0
    strong_yield_threshold: float = 9.0
    counterfactual_min_score: int = 50
    counterfactual_max_violations: int = 2
    recommended_cap: int = 6
    counterfactual_cap: int = 10
    reason_cap: int = 3

    @classmethod
    def from_settings(cls) -> MatchingPolicy:
        return cls(
            trust_weight=settings.MATCH_TRUST_WEIGHT,
            roi_weight=settings.MATCH_ROI_WEIGHT,
            type_bonus=settings.MATCH_TYPE_BONUS,
            default_trust_score=settings.MATCH_DEFAULT_TRUST_SCORE,
            default_roi=settings.MATCH_DEFAULT_ROI,
            default_yield_target_pct=settings.MATCH_DEFAULT_YIELD_TARGET_PCT,
            default_min_trust_score=settings.MATCH_DEFAULT_MIN_TRUST_SCORE,
            area_concentration_limit=settings.MATCH_AREA_CONCENTRATION_LIMIT,
            counterfactual_min_score=settings.MATCH_COUNTERFACTUAL_MIN_SCORE,
            counterfactual_max_violations=settings.MATCH_COUNTERFACTUAL_MAX_VIOLATIONS,
            recommended_cap=settings.MATCH_RECOMMENDED_CAP,
            counterfactual_cap=settings.MATCH_COUNTERFACTUAL_CAP,
            reason_cap=settings.MATCH_REASON_CAP,
        )


DEFAULT_POLICY = MatchingPolicy()
