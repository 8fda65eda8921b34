"""SQLAlchemy-backed signal feed, investor source and target sink.

Sync session only: runs inside Celery workers, or through
``AsyncSession.run_sync`` from the API.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Sequence
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.models.investors import Investor, InvestorHolding
from app.models.signals import MarketSignal, MarketSignalTarget
from app.modules.matching.mandate import Holding, resolve_mandate
from app.modules.matching.policy import MatchingPolicy
from app.modules.signals.relevance import InvestorProfile, SignalRecord, TargetRow

logger = structlog.get_logger()

UPSERT_CHUNK_SIZE = 500

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _as_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValueError(f"Invalid id: {value!r}") from None


def _to_record(signal: MarketSignal) -> SignalRecord:
    return SignalRecord(
        id=str(signal.id),
        org_id=str(signal.org_id),
        type=signal.type,
        metric=signal.metric,
        geo_id=signal.geo_id,
        geo_name=signal.geo_name,
        investor_matches=signal.investor_matches or 0,
    )


class SignalRepository:
    """Implements SignalFeed, InvestorSource and TargetSink over one session."""

    def __init__(
        self,
        session: Session,
        policy: MatchingPolicy | None = None,
        commit_each_chunk: bool = True,
    ) -> None:
        self.session = session
        self.policy = policy or MatchingPolicy.from_settings()
        self.commit_each_chunk = commit_each_chunk

    # ── SignalFeed ───────────────────────────────────────────────────────────

    def fetch_page(
        self, org_id: str, *, after_id: str | None, limit: int
    ) -> list[SignalRecord]:
        stmt = (
            select(MarketSignal)
            .where(
                MarketSignal.org_id == _as_uuid(org_id),
                MarketSignal.is_deleted.is_(False),
            )
            .order_by(MarketSignal.id.asc())
            .limit(limit)
        )
        if after_id:
            stmt = stmt.where(MarketSignal.id > _as_uuid(after_id))
        return [_to_record(s) for s in self.session.execute(stmt).scalars().all()]

    def signals_with_targets(self, org_id: str, signal_ids: Sequence[str]) -> set[str]:
        if not signal_ids:
            return set()
        stmt = (
            select(MarketSignalTarget.signal_id)
            .where(
                MarketSignalTarget.org_id == _as_uuid(org_id),
                MarketSignalTarget.signal_id.in_([_as_uuid(i) for i in signal_ids]),
                MarketSignalTarget.is_deleted.is_(False),
            )
            .distinct()
        )
        return {str(sid) for sid in self.session.execute(stmt).scalars().all()}

    # ── InvestorSource ───────────────────────────────────────────────────────

    def list_investor_profiles(self, org_id: str) -> list[InvestorProfile]:
        org_uuid = _as_uuid(org_id)
        investors = self.session.execute(
            select(Investor)
            .where(
                Investor.org_id == org_uuid,
                Investor.is_active.is_(True),
                Investor.is_deleted.is_(False),
            )
            .order_by(Investor.id.asc())
        ).scalars().all()

        holdings_by_investor: dict[uuid.UUID, list[Holding]] = defaultdict(list)
        rows = self.session.execute(
            select(InvestorHolding).where(
                InvestorHolding.org_id == org_uuid,
                InvestorHolding.is_deleted.is_(False),
            )
        ).scalars().all()
        for h in rows:
            holdings_by_investor[h.investor_id].append(
                Holding(property_id=str(h.property_id), area=h.area, status=h.status.value)
            )

        return [
            InvestorProfile.from_resolved(
                inv.id,
                resolve_mandate(inv.mandate, holdings_by_investor.get(inv.id, []), policy=self.policy),
            )
            for inv in investors
        ]

    # ── TargetSink ───────────────────────────────────────────────────────────

    def upsert_targets(self, rows: Sequence[TargetRow]) -> int:
        """INSERT ... ON CONFLICT (org_id, signal_id, investor_id) DO UPDATE.

        Score and reason are overwritten; the target's workflow status is
        kept. Chunks already committed stay when a later chunk fails.
        """
        if not rows:
            return 0
        dialect = self.session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise RuntimeError(f"Target upsert not supported on {dialect}")

        written = 0
        for start in range(0, len(rows), UPSERT_CHUNK_SIZE):
            chunk = rows[start:start + UPSERT_CHUNK_SIZE]
            stmt = insert(MarketSignalTarget).values(
                [
                    {
                        "id": uuid.uuid4(),
                        "org_id": _as_uuid(r.org_id),
                        "signal_id": _as_uuid(r.signal_id),
                        "investor_id": _as_uuid(r.investor_id),
                        "relevance_score": r.relevance_score,
                        "reason": r.reason,
                        "status": r.status,
                        "is_deleted": False,
                    }
                    for r in chunk
                ]
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["org_id", "signal_id", "investor_id"],
                set_={
                    "relevance_score": stmt.excluded.relevance_score,
                    "reason": stmt.excluded.reason,
                    "is_deleted": False,
                    "updated_at": func.now(),
                },
            )
            self.session.execute(stmt)
            if self.commit_each_chunk:
                self.session.commit()
            written += len(chunk)
        return written

    def list_targets_for_investor(
        self, org_id: str, investor_id: str, limit: int = 100
    ) -> list[MarketSignalTarget]:
        stmt = (
            select(MarketSignalTarget)
            .where(
                MarketSignalTarget.org_id == _as_uuid(org_id),
                MarketSignalTarget.investor_id == _as_uuid(investor_id),
                MarketSignalTarget.is_deleted.is_(False),
            )
            .order_by(MarketSignalTarget.created_at.desc(), MarketSignalTarget.id.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())
