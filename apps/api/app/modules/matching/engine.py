"""Matching engine: resolve -> score & check -> assemble -> explain.

Pure and synchronous. No I/O once inputs are loaded, so one engine can be
shared across threads and investors.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from app.models.enums import BundleSource
from app.modules.matching.algorithm import CandidateScorer
from app.modules.matching.assembler import (
    EvaluatedCandidate,
    RecommendationAssembler,
    RecommendationBundle,
)
from app.modules.matching.candidates import Candidate, parse_candidate
from app.modules.matching.constraints import ConstraintChecker
from app.modules.matching.mandate import (
    Holding,
    ResolvedMandate,
    TrustPolicy,
    resolve_mandate,
)
from app.modules.matching.policy import MatchingPolicy

logger = structlog.get_logger()


class MatchingEngine:
    def __init__(self, policy: MatchingPolicy | None = None) -> None:
        self.policy = policy or MatchingPolicy.from_settings()
        self.scorer = CandidateScorer(self.policy)
        self.checker = ConstraintChecker(self.policy)
        self.assembler = RecommendationAssembler(self.policy)

    def evaluate(
        self, candidates: Iterable[Candidate], ctx: ResolvedMandate
    ) -> list[EvaluatedCandidate]:
        return [
            EvaluatedCandidate(
                candidate=c,
                score=self.scorer.evaluate(c, ctx.mandate),
                evaluation=self.checker.check(c, ctx),
            )
            for c in candidates
        ]

    def build_bundle(
        self,
        investor_id: Any,
        *,
        mandate: Mapping[str, Any] | None = None,
        holdings: Iterable[Holding | Mapping[str, Any]] | None = None,
        candidates: Iterable[Candidate | Mapping[str, Any]] | None = None,
        trust_policy: TrustPolicy | Mapping[str, Any] | None = None,
        budget: Mapping[str, Any] | None = None,
        source: BundleSource = BundleSource.AI_INSIGHT,
    ) -> RecommendationBundle:
        ctx = resolve_mandate(
            mandate,
            holdings,
            trust_policy=trust_policy,
            budget=budget,
            policy=self.policy,
        )

        parsed: list[Candidate] = []
        seen: set[str] = set()
        skipped = 0
        for raw in candidates or ():
            candidate = parse_candidate(raw)
            if candidate is None:
                skipped += 1
                continue
            if candidate.id in ctx.owned_ids or candidate.id in seen:
                continue
            seen.add(candidate.id)
            parsed.append(candidate)

        bundle = self.assembler.assemble(self.evaluate(parsed, ctx), source=source)

        logger.debug(
            "recommendation_bundle_built",
            investor_id=str(investor_id),
            candidates=len(parsed),
            malformed=skipped,
            recommended=len(bundle.recommended),
            counterfactuals=len(bundle.counterfactuals),
        )
        return bundle


def build_recommendation_bundle(
    investor_id: Any,
    *,
    mandate: Mapping[str, Any] | None = None,
    holdings: Iterable[Holding | Mapping[str, Any]] | None = None,
    candidates: Iterable[Candidate | Mapping[str, Any]] | None = None,
    trust_policy: TrustPolicy | Mapping[str, Any] | None = None,
    budget: Mapping[str, Any] | None = None,
    source: BundleSource = BundleSource.AI_INSIGHT,
    policy: MatchingPolicy | None = None,
) -> RecommendationBundle:
    """Pure entry point over already-loaded inputs; missing inputs are empty."""
    return MatchingEngine(policy).build_bundle(
        investor_id,
        mandate=mandate,
        holdings=holdings,
        candidates=candidates,
        trust_policy=trust_policy,
        budget=budget,
        source=source,
    )
