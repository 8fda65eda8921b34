"""PostgreSQL native enums for all domain models."""

import enum


# ── Core ─────────────────────────────────────────────────────────────────────


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    ANALYST = "analyst"
    VIEWER = "viewer"


# ── Investors / mandates ─────────────────────────────────────────────────────


class RiskTolerance(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class HoldingStatus(str, enum.Enum):
    ACTIVE = "active"
    UNDER_OFFER = "under_offer"
    EXITED = "exited"


# ── Listings (candidates) ────────────────────────────────────────────────────


class ReadinessStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    NEEDS_VERIFICATION = "NEEDS_VERIFICATION"
    READY_FOR_MEMO = "READY_FOR_MEMO"


class SourceKind(str, enum.Enum):
    PORTAL = "portal"
    VERIFIED = "verified"


class BundleSource(str, enum.Enum):
    MANUAL = "manual"
    AI_INSIGHT = "ai_insight"
    NLP_QUERY = "nlp_query"


# ── Market signals ───────────────────────────────────────────────────────────


class SignalSourceType(str, enum.Enum):
    OFFICIAL = "official"
    PORTAL = "portal"


class SignalSeverity(str, enum.Enum):
    INFO = "info"
    WATCH = "watch"
    URGENT = "urgent"


class SignalStatus(str, enum.Enum):
    NEW = "new"
    ACKNOWLEDGED = "acknowledged"
    DISMISSED = "dismissed"
    ROUTED = "routed"


class SignalTargetStatus(str, enum.Enum):
    NEW = "new"
    SENT = "sent"
    VIEWED = "viewed"
    DISMISSED = "dismissed"


class RelevanceTier(str, enum.Enum):
    PORTFOLIO = "portfolio"
    MANDATE = "mandate"
    GENERAL = "general"
