"""Recommendation Assembler — Recommended / Counterfactual / Excluded split.

  Recommended     zero violations of any kind
  Counterfactual  1..max_violations reason codes and rounded score > min
  Excluded        everything else (not surfaced)

Both lists are ordered by raw score descending, then candidate id
ascending, before capping.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from app.models.enums import BundleSource
from app.modules.matching.algorithm import CandidateScore
from app.modules.matching.candidates import Candidate
from app.modules.matching.constraints import ConstraintEvaluation
from app.modules.matching.explainer import Counterfactual, explain
from app.modules.matching.policy import DEFAULT_POLICY, MatchingPolicy


@dataclass(frozen=True)
class EvaluatedCandidate:
    candidate: Candidate
    score: CandidateScore
    evaluation: ConstraintEvaluation

    @property
    def sort_key(self) -> tuple[float, str]:
        return (-self.score.raw, self.candidate.id)


@dataclass(frozen=True)
class RecommendedItem:
    candidate_id: str
    score: int
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "score": self.score,
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class RecommendationBundle:
    recommended: list[RecommendedItem] = field(default_factory=list)
    counterfactuals: list[Counterfactual] = field(default_factory=list)
    source: BundleSource = BundleSource.AI_INSIGHT

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommended": [r.to_dict() for r in self.recommended],
            "counterfactuals": [c.to_dict() for c in self.counterfactuals],
            "source": self.source.value,
        }


class RecommendationAssembler:
    def __init__(self, policy: MatchingPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    def is_counterfactual(self, item: EvaluatedCandidate) -> bool:
        codes = len(item.evaluation.reason_codes)
        return (
            1 <= codes <= self.policy.counterfactual_max_violations
            and item.score.rounded > self.policy.counterfactual_min_score
        )

    def assemble(
        self,
        evaluated: Iterable[EvaluatedCandidate],
        source: BundleSource = BundleSource.AI_INSIGHT,
    ) -> RecommendationBundle:
        ordered = sorted(evaluated, key=lambda e: e.sort_key)

        recommended = [
            RecommendedItem(
                candidate_id=e.candidate.id,
                score=e.score.rounded,
                reasons=list(e.score.reasons),
            )
            for e in ordered
            if e.evaluation.is_clean
        ][: self.policy.recommended_cap]
        recommended_ids = {r.candidate_id for r in recommended}

        counterfactuals = [
            explain(e.candidate, e.evaluation, e.score.rounded)
            for e in ordered
            if self.is_counterfactual(e) and e.candidate.id not in recommended_ids
        ][: self.policy.counterfactual_cap]

        return RecommendationBundle(
            recommended=recommended,
            counterfactuals=counterfactuals,
            source=source,
        )
