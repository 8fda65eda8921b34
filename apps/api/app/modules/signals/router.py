"""Signals API router — signal → investor relevance mapping."""

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_permission
from app.core.config import settings
from app.core.database import get_db, get_readonly_db
from app.modules.signals import service
from app.modules.signals.schemas import (
    MatchSignalsRequest,
    MatchSignalsResponse,
    SignalTargetListResponse,
)
from app.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/signals", tags=["signals"])


@router.post("/match", response_model=MatchSignalsResponse)
async def match_signals(
    body: MatchSignalsRequest,
    current_user: CurrentUser = Depends(require_permission("run_analysis", "signal")),
    db: AsyncSession = Depends(get_db),
):
    """Map one page of unmapped signals for the caller's org."""
    try:
        return await service.match_unmapped_signals(
            db,
            current_user.org_id,
            limit=body.limit or settings.SIGNAL_MATCH_DEFAULT_LIMIT,
            cursor=body.cursor,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.get(
    "/investors/{investor_id}/targets",
    response_model=SignalTargetListResponse,
)
async def list_investor_targets(
    investor_id: uuid.UUID,
    limit: int = Query(100, ge=1, le=100),
    current_user: CurrentUser = Depends(require_permission("view", "signal")),
    db: AsyncSession = Depends(get_readonly_db),
):
    """The investor's signal targets, newest first."""
    return await service.list_investor_targets(
        db, current_user.org_id, investor_id, limit=limit
    )
