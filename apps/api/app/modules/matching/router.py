"""Matching API router — recommendation bundles per investor."""

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_permission
from app.core.database import get_readonly_db
from app.modules.matching import service
from app.modules.matching.schemas import (
    RecommendationBundleResponse,
    RecommendationOverridesRequest,
)
from app.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/matching", tags=["matching"])


@router.get(
    "/investors/{investor_id}/recommendations",
    response_model=RecommendationBundleResponse,
)
async def get_recommendations(
    investor_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_permission("view", "match")),
    db: AsyncSession = Depends(get_readonly_db),
):
    """Recommended properties and counterfactuals from stored investor data."""
    try:
        return await service.build_recommendation_bundle(
            db, current_user.org_id, investor_id
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.post(
    "/investors/{investor_id}/recommendations",
    response_model=RecommendationBundleResponse,
)
async def build_recommendations(
    investor_id: uuid.UUID,
    body: RecommendationOverridesRequest,
    current_user: CurrentUser = Depends(require_permission("run_analysis", "match")),
    db: AsyncSession = Depends(get_readonly_db),
):
    """Same as GET, with any of mandate/holdings/candidates/policy overridden."""
    try:
        return await service.build_recommendation_bundle(
            db, current_user.org_id, investor_id, body
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
