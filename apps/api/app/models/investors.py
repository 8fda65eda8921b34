"""Investor models: Investor (with raw mandate), InvestorHolding."""

import uuid
from typing import Any

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import JSONType
from app.models.base import TenantModel
from app.models.enums import HoldingStatus


class Investor(TenantModel):
    __tablename__ = "investors"
    __table_args__ = (
        Index("ix_investors_org_id_is_active", "org_id", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    company: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    # Raw mandate as captured by the CRM forms; normalised by the mandate
    # resolver on every matching run.
    mandate: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    is_active: Mapped[bool] = mapped_column(
        default=True, server_default="true", nullable=False
    )

    holdings: Mapped[list["InvestorHolding"]] = relationship(back_populates="investor")

    def __repr__(self) -> str:
        return f"<Investor(id={self.id}, name={self.name!r})>"


class InvestorHolding(TenantModel):
    __tablename__ = "investor_holdings"
    __table_args__ = (
        Index("ix_investor_holdings_investor_id", "investor_id"),
        Index("ix_investor_holdings_org_id_area", "org_id", "area"),
    )

    investor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("investors.id", ondelete="CASCADE"),
        nullable=False,
    )
    property_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    area: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[HoldingStatus] = mapped_column(
        nullable=False, default=HoldingStatus.ACTIVE
    )

    investor: Mapped["Investor"] = relationship(back_populates="holdings")

    def __repr__(self) -> str:
        return f"<InvestorHolding(id={self.id}, area={self.area!r})>"
