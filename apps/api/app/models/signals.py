"""Market signal models: MarketSignal, MarketSignalTarget."""

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import JSONType
from app.models.base import TenantModel
from app.models.enums import (
    SignalSeverity,
    SignalSourceType,
    SignalStatus,
    SignalTargetStatus,
)


class MarketSignal(TenantModel):
    __tablename__ = "market_signals"
    __table_args__ = (
        UniqueConstraint("signal_key", name="uq_market_signals_signal_key"),
        Index("ix_market_signals_org_id_geo_name", "org_id", "geo_name"),
    )

    source_type: Mapped[SignalSourceType] = mapped_column(nullable=False)
    source: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    geo_type: Mapped[str] = mapped_column(String(50), nullable=False, default="community")
    geo_id: Mapped[str] = mapped_column(String(100), nullable=False)
    geo_name: Mapped[str | None] = mapped_column(String(255))
    segment: Mapped[str] = mapped_column(String(100), nullable=False, default="all")
    metric: Mapped[str] = mapped_column(String(100), nullable=False)
    timeframe: Mapped[str] = mapped_column(String(20), nullable=False)
    current_value: Mapped[Decimal | None] = mapped_column(Numeric(19, 4))
    prev_value: Mapped[Decimal | None] = mapped_column(Numeric(19, 4))
    delta_value: Mapped[Decimal | None] = mapped_column(Numeric(19, 4))
    delta_pct: Mapped[Decimal | None] = mapped_column(Numeric(9, 4))
    confidence_score: Mapped[Decimal | None] = mapped_column(Numeric(5, 4))
    evidence: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    severity: Mapped[SignalSeverity] = mapped_column(
        nullable=False, default=SignalSeverity.INFO
    )
    status: Mapped[SignalStatus] = mapped_column(
        nullable=False, default=SignalStatus.NEW
    )
    # Match count computed by the upstream detector; drives the general tier.
    investor_matches: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    signal_key: Mapped[str] = mapped_column(String(1000), nullable=False)

    def __repr__(self) -> str:
        return f"<MarketSignal(id={self.id}, key={self.signal_key!r})>"


class MarketSignalTarget(TenantModel):
    __tablename__ = "market_signal_targets"
    __table_args__ = (
        UniqueConstraint(
            "org_id", "signal_id", "investor_id",
            name="uq_market_signal_targets_org_signal_investor",
        ),
        Index("ix_market_signal_targets_org_id_signal_id", "org_id", "signal_id"),
        Index("ix_market_signal_targets_investor_id", "investor_id"),
    )

    signal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("market_signals.id", ondelete="CASCADE"),
        nullable=False,
    )
    investor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("investors.id", ondelete="CASCADE"),
        nullable=False,
    )
    relevance_score: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    status: Mapped[SignalTargetStatus] = mapped_column(
        nullable=False, default=SignalTargetStatus.NEW
    )

    def __repr__(self) -> str:
        return (
            f"<MarketSignalTarget(signal_id={self.signal_id}, "
            f"investor_id={self.investor_id}, score={self.relevance_score})>"
        )
