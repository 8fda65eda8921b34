"""End-to-end tests for the pure recommendation engine."""

from __future__ import annotations

import pytest

from app.models.enums import BundleSource
from app.modules.matching.engine import MatchingEngine, build_recommendation_bundle
from app.modules.matching.policy import DEFAULT_POLICY, MatchingPolicy

INVESTOR_ID = "inv-1"
MANDATE = {"budgetMax": 5_000_000, "yieldTargetPct": 8}


def _bundle(candidates, mandate=None, **kwargs):
    kwargs.setdefault("policy", DEFAULT_POLICY)
    return build_recommendation_bundle(
        INVESTOR_ID,
        mandate=MANDATE if mandate is None else mandate,
        candidates=candidates,
        **kwargs,
    )


def _listing(id: str, **fields) -> dict:
    record = {"id": id, "title": f"Listing {id}", "price": 4_000_000, "roi": 9, "trustScore": 90}
    record.update(fields)
    return record


class TestBundleScenarios:
    def test_over_budget_candidate_becomes_counterfactual(self) -> None:
        bundle = _bundle([_listing("p-1", price=5_200_000)])
        assert bundle.recommended == []
        [cf] = bundle.counterfactuals
        assert cf.candidate_id == "p-1"
        assert cf.score == 81
        assert cf.reason_codes == ["over_budget"]
        assert [v.key.value for v in cf.violated_constraints] == ["budget_max"]
        assert cf.what_would_change_my_mind == ["If price < AED 5,000,000"]
        assert cf.details == "This property scored 81 but was excluded due to: Over budget by AED 200k"

    def test_matching_candidate_is_recommended(self) -> None:
        mandate = {**MANDATE, "preferredAreas": ["Dubai Marina"], "propertyTypes": ["apartment"]}
        bundle = _bundle(
            [_listing("p-2", area="Dubai Marina", type="apartment")],
            mandate=mandate,
        )
        [item] = bundle.recommended
        assert item.candidate_id == "p-2"
        assert item.score == 91
        assert item.reasons == ["High trust score", "Strong yield", "Matches preferred area"]
        assert bundle.counterfactuals == []

    def test_empty_inputs_give_empty_bundle(self) -> None:
        bundle = build_recommendation_bundle(INVESTOR_ID, policy=DEFAULT_POLICY)
        assert bundle.recommended == []
        assert bundle.counterfactuals == []
        assert bundle.source is BundleSource.AI_INSIGHT

    def test_source_override(self) -> None:
        bundle = _bundle([], source=BundleSource.NLP_QUERY)
        assert bundle.to_dict()["source"] == "nlp_query"


class TestPartitioning:
    def test_recommended_and_counterfactuals_are_disjoint(self) -> None:
        candidates = [
            _listing("p-1"),
            _listing("p-2", price=5_500_000),
            _listing("p-3", area="JVC"),
        ]
        bundle = _bundle(candidates, mandate={**MANDATE, "preferredAreas": ["Dubai Marina", "JVC"]})
        recommended = {r.candidate_id for r in bundle.recommended}
        counterfactual = {c.candidate_id for c in bundle.counterfactuals}
        assert recommended.isdisjoint(counterfactual)

    def test_soft_violation_only_is_a_counterfactual(self) -> None:
        bundle = _bundle(
            [_listing("p-1", area="JVC")],
            mandate={**MANDATE, "preferredAreas": ["Dubai Marina"]},
        )
        assert bundle.recommended == []
        [cf] = bundle.counterfactuals
        assert cf.reason_codes == ["area_mismatch"]
        assert cf.what_would_change_my_mind is None

    def test_three_violations_are_excluded(self) -> None:
        bundle = _bundle(
            [_listing("p-1", price=6_000_000, roi=6, trustScore=65)],
        )
        assert bundle.recommended == []
        assert bundle.counterfactuals == []

    def test_rounded_score_of_fifty_is_excluded(self) -> None:
        # 40 * 0.55 + 8 * 3.5 = 50.0
        bundle = _bundle([_listing("p-1", trustScore=40, roi=8)])
        assert bundle.recommended == []
        assert bundle.counterfactuals == []

    def test_malformed_roi_becomes_liquidity_counterfactual(self) -> None:
        bundle = _bundle([_listing("p-1", roi="n/a")])
        [cf] = bundle.counterfactuals
        assert cf.reason_codes == ["liquidity_risk"]
        assert cf.what_would_change_my_mind is None
        assert cf.score == 74

    @pytest.mark.parametrize("price", ["sNaN", "1e999", "-1e999", "Infinity"])
    def test_non_finite_price_drops_only_that_candidate(self, price: str) -> None:
        bundle = _bundle([_listing("good"), _listing("bad", price=price)])
        assert [r.candidate_id for r in bundle.recommended] == ["good"]
        assert bundle.counterfactuals == []

    @pytest.mark.parametrize("field", ["roi", "trustScore"])
    @pytest.mark.parametrize("value", ["sNaN", "1e999", "-1e999"])
    def test_non_finite_metric_does_not_block_the_run(self, field: str, value: str) -> None:
        bundle = _bundle([_listing("good"), _listing("bad", **{field: value})])
        ids = [r.candidate_id for r in bundle.recommended] + [c.candidate_id for c in bundle.counterfactuals]
        assert "good" in [r.candidate_id for r in bundle.recommended]
        assert "bad" in ids

    def test_malformed_price_is_dropped(self) -> None:
        bundle = _bundle([_listing("p-1", price="POA"), _listing("p-2")])
        assert [r.candidate_id for r in bundle.recommended] == ["p-2"]
        assert bundle.counterfactuals == []


class TestOrderingAndCaps:
    def test_recommended_capped_at_six_by_score(self) -> None:
        candidates = [_listing(f"p-{i}", trustScore=80 + i) for i in range(8)]
        bundle = _bundle(candidates)
        assert [r.candidate_id for r in bundle.recommended] == [
            "p-7", "p-6", "p-5", "p-4", "p-3", "p-2",
        ]

    def test_counterfactuals_capped_at_ten_with_id_tiebreak(self) -> None:
        candidates = [_listing(f"p-{i:02d}", price=5_200_000) for i in reversed(range(12))]
        bundle = _bundle(candidates)
        assert [c.candidate_id for c in bundle.counterfactuals] == [f"p-{i:02d}" for i in range(10)]

    def test_ranking_uses_unrounded_score(self) -> None:
        # 90.0 -> 81.0 and 90.5 -> 81.275; both display as 81.
        bundle = _bundle([_listing("a", trustScore=90), _listing("b", trustScore=90.5)])
        assert [(r.candidate_id, r.score) for r in bundle.recommended] == [("b", 81), ("a", 81)]

    def test_output_is_deterministic(self) -> None:
        candidates = [
            _listing("p-1"),
            _listing("p-2", price=5_100_000),
            _listing("p-3", trustScore=75),
            _listing("p-4", roi=7.5),
        ]
        first = _bundle(candidates).to_dict()
        second = _bundle(list(reversed(candidates))).to_dict()
        assert first == second


class TestPortfolioAwareness:
    def test_owned_candidates_are_never_surfaced(self) -> None:
        bundle = _bundle(
            [_listing("p-1"), _listing("p-2")],
            holdings=[{"propertyId": "p-1", "area": "JVC"}],
        )
        assert [r.candidate_id for r in bundle.recommended] == ["p-2"]

    def test_duplicate_candidate_ids_keep_first(self) -> None:
        bundle = _bundle([_listing("p-1"), _listing("p-1", price=9_000_000)])
        assert [r.candidate_id for r in bundle.recommended] == ["p-1"]
        assert bundle.counterfactuals == []

    def test_concentration_turns_candidate_into_counterfactual(self) -> None:
        holdings = [
            {"propertyId": "h-1", "area": "JVC"},
            {"propertyId": "h-2", "area": "JVC"},
        ]
        bundle = _bundle([_listing("p-1", area="JVC")], holdings=holdings)
        [cf] = bundle.counterfactuals
        assert cf.reason_codes == ["concentration_risk"]
        assert cf.what_would_change_my_mind == ["If fewer than 2 holdings in JVC"]

    def test_trust_policy_override_requires_verification(self) -> None:
        bundle = _bundle(
            [_listing("p-1", readinessStatus="NEEDS_VERIFICATION")],
            trust_policy={"requireVerification": True},
        )
        [cf] = bundle.counterfactuals
        assert cf.what_would_change_my_mind == ["If trust verified"]

    def test_budget_override_lifts_ceiling(self) -> None:
        bundle = _bundle([_listing("p-1", price=5_200_000)], budget={"max": 6_000_000})
        assert [r.candidate_id for r in bundle.recommended] == ["p-1"]


class TestPolicy:
    def test_custom_policy_changes_caps(self) -> None:
        policy = MatchingPolicy(recommended_cap=2)
        engine = MatchingEngine(policy)
        bundle = engine.build_bundle(
            INVESTOR_ID,
            mandate=MANDATE,
            candidates=[_listing(f"p-{i}") for i in range(4)],
        )
        assert [r.candidate_id for r in bundle.recommended] == ["p-0", "p-1"]

    def test_policy_from_settings_matches_defaults(self) -> None:
        assert MatchingPolicy.from_settings() == DEFAULT_POLICY
