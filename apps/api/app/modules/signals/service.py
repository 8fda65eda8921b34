"""Signals service — run the relevance matcher and read targets for the API."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.modules.signals.matcher import MatchSummary, SignalRelevanceMatcher
from app.modules.signals.repository import SignalRepository
from app.modules.signals.schemas import (
    MatchSignalsResponse,
    SignalTargetListResponse,
    SignalTargetResponse,
)

logger = structlog.get_logger()


def match_unmapped_signals_sync(
    session: Session, org_id: uuid.UUID | str, limit: int, cursor: str | None = None
) -> MatchSummary:
    """Sync entry point shared by the Celery task and the API."""
    repo = SignalRepository(session)
    matcher = SignalRelevanceMatcher(feed=repo, investors=repo, sink=repo)
    return matcher.match_unmapped_signals(org_id, limit, cursor)


async def match_unmapped_signals(
    db: AsyncSession, org_id: uuid.UUID, limit: int, cursor: str | None = None
) -> MatchSignalsResponse:
    summary = await db.run_sync(
        lambda session: match_unmapped_signals_sync(session, org_id, limit, cursor)
    )
    return MatchSignalsResponse(**summary.to_dict())


async def list_investor_targets(
    db: AsyncSession, org_id: uuid.UUID, investor_id: uuid.UUID, limit: int = 100
) -> SignalTargetListResponse:
    targets = await db.run_sync(
        lambda session: SignalRepository(session).list_targets_for_investor(
            str(org_id), str(investor_id), limit=limit
        )
    )
    items = [
        SignalTargetResponse(
            id=t.id,
            signal_id=t.signal_id,
            investor_id=t.investor_id,
            relevance_score=t.relevance_score,
            reason=t.reason,
            status=t.status.value,
            created_at=t.created_at,
            updated_at=t.updated_at,
        )
        for t in targets
    ]
    return SignalTargetListResponse(items=items, total=len(items))
