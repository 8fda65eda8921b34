"""Matching service — load investor state and candidates, run the engine."""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.middleware.tenant import tenant_filter
from app.models.investors import Investor, InvestorHolding
from app.models.listings import Listing
from app.modules.matching.assembler import RecommendationBundle
from app.modules.matching.candidates import Candidate
from app.modules.matching.engine import MatchingEngine
from app.modules.matching.mandate import Holding
from app.modules.matching.schemas import (
    RecommendationBundleResponse,
    RecommendationOverridesRequest,
)

logger = structlog.get_logger()


# ── Loaders ───────────────────────────────────────────────────────────────────


async def _get_investor_or_raise(
    db: AsyncSession, org_id: uuid.UUID, investor_id: uuid.UUID
) -> Investor:
    stmt = tenant_filter(
        select(Investor).where(Investor.id == investor_id), org_id, Investor
    )
    result = await db.execute(stmt)
    investor = result.scalar_one_or_none()
    if not investor:
        raise LookupError(f"Investor {investor_id} not found")
    return investor


async def load_holdings(
    db: AsyncSession, org_id: uuid.UUID, investor_id: uuid.UUID
) -> list[Holding]:
    stmt = tenant_filter(
        select(InvestorHolding).where(InvestorHolding.investor_id == investor_id),
        org_id,
        InvestorHolding,
    )
    result = await db.execute(stmt)
    return [
        Holding(property_id=str(h.property_id), area=h.area, status=h.status.value)
        for h in result.scalars().all()
    ]


def listing_to_candidate(listing: Listing) -> Candidate:
    return Candidate(
        id=str(listing.id),
        title=listing.title,
        price=float(listing.price),
        roi=float(listing.roi) if listing.roi is not None else None,
        trust_score=float(listing.trust_score) if listing.trust_score is not None else None,
        readiness_status=listing.readiness_status.value,
        area=listing.area,
        property_type=listing.property_type,
        source_kind=listing.source_type,
    )


async def load_candidates(db: AsyncSession, org_id: uuid.UUID) -> list[Candidate]:
    stmt = tenant_filter(select(Listing), org_id, Listing).order_by(Listing.id.asc())
    result = await db.execute(stmt)
    return [listing_to_candidate(row) for row in result.scalars().all()]


# ── Bundle ────────────────────────────────────────────────────────────────────


async def build_recommendation_bundle(
    db: AsyncSession,
    org_id: uuid.UUID,
    investor_id: uuid.UUID,
    overrides: RecommendationOverridesRequest | None = None,
    engine: MatchingEngine | None = None,
) -> RecommendationBundleResponse:
    """Build the bundle for one investor; overrides replace stored inputs."""
    overrides = overrides or RecommendationOverridesRequest()
    investor = await _get_investor_or_raise(db, org_id, investor_id)

    mandate: dict[str, Any] | None = (
        overrides.mandate if overrides.mandate is not None else investor.mandate
    )
    holdings: list[Holding]
    if overrides.holdings is not None:
        holdings = [Holding(**h.model_dump()) for h in overrides.holdings]
    else:
        holdings = await load_holdings(db, org_id, investor.id)

    candidates: list[Candidate | dict[str, Any]]
    if overrides.candidates is not None:
        candidates = list(overrides.candidates)
    else:
        candidates = list(await load_candidates(db, org_id))

    bundle: RecommendationBundle = (engine or MatchingEngine()).build_bundle(
        investor.id,
        mandate=mandate,
        holdings=holdings,
        candidates=candidates,
        trust_policy=(
            overrides.trust_policy.model_dump(exclude_none=True)
            if overrides.trust_policy
            else None
        ),
        budget=overrides.budget.model_dump(exclude_none=True) if overrides.budget else None,
        source=overrides.source,
    )

    logger.info(
        "recommendation_bundle_served",
        org_id=str(org_id),
        investor_id=str(investor.id),
        recommended=len(bundle.recommended),
        counterfactuals=len(bundle.counterfactuals),
    )
    return RecommendationBundleResponse.model_validate(bundle.to_dict())
