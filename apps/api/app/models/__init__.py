"""SQLAlchemy models package — import all models so Base.metadata is populated."""

from app.models.base import BaseModel, ModelMixin, TenantModel
from app.models.enums import (
    BundleSource,
    HoldingStatus,
    ReadinessStatus,
    RelevanceTier,
    RiskTolerance,
    SignalSeverity,
    SignalSourceType,
    SignalStatus,
    SignalTargetStatus,
    SourceKind,
    UserRole,
)
from app.models.investors import Investor, InvestorHolding
from app.models.listings import Listing
from app.models.signals import MarketSignal, MarketSignalTarget

__all__ = [
    # Base
    "BaseModel",
    "ModelMixin",
    "TenantModel",
    # Enums
    "BundleSource",
    "HoldingStatus",
    "ReadinessStatus",
    "RelevanceTier",
    "RiskTolerance",
    "SignalSeverity",
    "SignalSourceType",
    "SignalStatus",
    "SignalTargetStatus",
    "SourceKind",
    "UserRole",
    # Models
    "Investor",
    "InvestorHolding",
    "Listing",
    "MarketSignal",
    "MarketSignalTarget",
]
