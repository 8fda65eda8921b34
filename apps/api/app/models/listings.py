"""Listing model: investable properties evaluated as matching candidates."""

from decimal import Decimal

from sqlalchemy import Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import TenantModel
from app.models.enums import ReadinessStatus, SourceKind


class Listing(TenantModel):
    __tablename__ = "listings"
    __table_args__ = (
        Index("ix_listings_org_id_area", "org_id", "area"),
        Index("ix_listings_readiness_status", "readiness_status"),
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    area: Mapped[str] = mapped_column(String(255), nullable=False)
    property_type: Mapped[str] = mapped_column(String(50), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    roi: Mapped[Decimal | None] = mapped_column(Numeric(9, 4))
    trust_score: Mapped[Decimal | None] = mapped_column(Numeric(9, 4))
    readiness_status: Mapped[ReadinessStatus] = mapped_column(
        nullable=False, default=ReadinessStatus.DRAFT
    )
    source_type: Mapped[SourceKind] = mapped_column(
        nullable=False, default=SourceKind.VERIFIED
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="AED")

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title!r})>"
