"""Candidate Scorer — pure deterministic linear scoring, no LLM.

    score = trust_score * 0.55 + roi * 3.5 + (type matches ? 10 : 0)

Weights and defaults come from MatchingPolicy. The raw (unrounded) score is
used for ranking; the half-up rounded integer is what gets displayed and
compared against the counterfactual threshold.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from app.modules.matching.candidates import Candidate
from app.modules.matching.mandate import Mandate
from app.modules.matching.policy import DEFAULT_POLICY, MatchingPolicy

HIGH_TRUST_LABEL = "High trust score"
STRONG_YIELD_LABEL = "Strong yield"
PREFERRED_AREA_LABEL = "Matches preferred area"
MANDATE_TYPE_LABEL = "Matches mandate type"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class CandidateScore:
    raw: float
    rounded: int
    reasons: list[str] = field(default_factory=list)


class CandidateScorer:
    """Scores candidates against a resolved mandate."""

    def __init__(self, policy: MatchingPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    def score(self, candidate: Candidate, mandate: Mandate) -> float:
        p = self.policy
        trust = candidate.trust_score if candidate.trust_score is not None else p.default_trust_score
        roi = candidate.roi if candidate.roi is not None else p.default_roi
        type_bonus = p.type_bonus if candidate.property_type in mandate.property_types else 0.0
        return trust * p.trust_weight + roi * p.roi_weight + type_bonus

    def reasons(self, candidate: Candidate, mandate: Mandate) -> list[str]:
        """Soft-match labels in priority order, capped by policy.reason_cap."""
        p = self.policy
        reasons: list[str] = []
        if candidate.trust_score and candidate.trust_score >= p.high_trust_threshold:
            reasons.append(HIGH_TRUST_LABEL)
        if candidate.roi and candidate.roi >= p.strong_yield_threshold:
            reasons.append(STRONG_YIELD_LABEL)
        if candidate.area in mandate.preferred_areas:
            reasons.append(PREFERRED_AREA_LABEL)
        if candidate.property_type in mandate.property_types:
            reasons.append(MANDATE_TYPE_LABEL)
        return reasons[: p.reason_cap]

    def evaluate(self, candidate: Candidate, mandate: Mandate) -> CandidateScore:
        raw = self.score(candidate, mandate)
        return CandidateScore(
            raw=raw,
            rounded=round_half_up(raw),
            reasons=self.reasons(candidate, mandate),
        )
