"""Matching module API schemas."""

from typing import Any

from pydantic import BaseModel, Field

from app.models.enums import BundleSource


# ── Override payload ──────────────────────────────────────────────────────────


class TrustPolicyRequest(BaseModel):
    min_trust_score: float | None = Field(None, ge=0, le=100)
    require_verification: bool | None = None


class BudgetRequest(BaseModel):
    min: float | None = Field(None, ge=0)
    max: float | None = Field(None, ge=0)   # 0 / None = unbounded


class HoldingRequest(BaseModel):
    property_id: str
    area: str | None = None
    status: str | None = None


class RecommendationOverridesRequest(BaseModel):
    """Every field optional; omitted fields fall back to stored investor data."""

    mandate: dict[str, Any] | None = None
    holdings: list[HoldingRequest] | None = None
    # Raw candidate records; malformed ones are skipped, never rejected.
    candidates: list[dict[str, Any]] | None = None
    trust_policy: TrustPolicyRequest | None = None
    budget: BudgetRequest | None = None
    source: BundleSource = BundleSource.AI_INSIGHT


# ── Bundle ────────────────────────────────────────────────────────────────────


class RecommendedItemResponse(BaseModel):
    candidate_id: str
    score: int
    reasons: list[str]


class ConstraintViolationResponse(BaseModel):
    key: str
    expected: Any
    actual: Any


class CounterfactualResponse(BaseModel):
    candidate_id: str
    title: str
    score: int
    reason_codes: list[str]
    reason_labels: list[str]
    violated_constraints: list[ConstraintViolationResponse]
    what_would_change_my_mind: list[str] | None
    details: str


class RecommendationBundleResponse(BaseModel):
    recommended: list[RecommendedItemResponse]
    counterfactuals: list[CounterfactualResponse]
    source: BundleSource
