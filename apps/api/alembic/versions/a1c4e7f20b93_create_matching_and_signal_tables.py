"""create_matching_and_signal_tables

Revision ID: a1c4e7f20b93
Revises:
Create Date: 2026-10-16 09:12:00.000000

"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "a1c4e7f20b93"
down_revision = None
branch_labels = None
depends_on = None

_holding_status = postgresql.ENUM("ACTIVE", "UNDER_OFFER", "EXITED", name="holdingstatus", create_type=False)
_readiness_status = postgresql.ENUM(
    "DRAFT", "NEEDS_VERIFICATION", "READY_FOR_MEMO", name="readinessstatus", create_type=False
)
_source_kind = postgresql.ENUM("PORTAL", "VERIFIED", name="sourcekind", create_type=False)
_signal_source_type = postgresql.ENUM("OFFICIAL", "PORTAL", name="signalsourcetype", create_type=False)
_signal_severity = postgresql.ENUM("INFO", "WATCH", "URGENT", name="signalseverity", create_type=False)
_signal_status = postgresql.ENUM(
    "NEW", "ACKNOWLEDGED", "DISMISSED", "ROUTED", name="signalstatus", create_type=False
)
_signal_target_status = postgresql.ENUM(
    "NEW", "SENT", "VIEWED", "DISMISSED", name="signaltargetstatus", create_type=False
)

_ENUMS = (
    _holding_status,
    _readiness_status,
    _source_kind,
    _signal_source_type,
    _signal_severity,
    _signal_status,
    _signal_target_status,
)


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("org_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("is_deleted", sa.Boolean, server_default="false", nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in _ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "investors",
        *_base_columns(),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("company", sa.String(500), server_default="", nullable=False),
        sa.Column("mandate", postgresql.JSONB, nullable=True),
        sa.Column("is_active", sa.Boolean, server_default="true", nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_investors_org_id", "investors", ["org_id"])
    op.create_index("ix_investors_org_id_is_active", "investors", ["org_id", "is_active"])

    op.create_table(
        "investor_holdings",
        *_base_columns(),
        sa.Column("investor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("property_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("area", sa.String(255), nullable=False),
        sa.Column("status", _holding_status, nullable=False),
        sa.ForeignKeyConstraint(["investor_id"], ["investors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_investor_holdings_org_id", "investor_holdings", ["org_id"])
    op.create_index("ix_investor_holdings_investor_id", "investor_holdings", ["investor_id"])
    op.create_index("ix_investor_holdings_org_id_area", "investor_holdings", ["org_id", "area"])

    op.create_table(
        "listings",
        *_base_columns(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("area", sa.String(255), nullable=False),
        sa.Column("property_type", sa.String(50), nullable=False),
        sa.Column("price", sa.Numeric(19, 4), nullable=False),
        sa.Column("roi", sa.Numeric(9, 4), nullable=True),
        sa.Column("trust_score", sa.Numeric(9, 4), nullable=True),
        sa.Column("readiness_status", _readiness_status, nullable=False),
        sa.Column("source_type", _source_kind, nullable=False),
        sa.Column("currency", sa.String(3), server_default="AED", nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_listings_org_id", "listings", ["org_id"])
    op.create_index("ix_listings_org_id_area", "listings", ["org_id", "area"])
    op.create_index("ix_listings_readiness_status", "listings", ["readiness_status"])

    op.create_table(
        "market_signals",
        *_base_columns(),
        sa.Column("source_type", _signal_source_type, nullable=False),
        sa.Column("source", sa.String(100), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("geo_type", sa.String(50), server_default="community", nullable=False),
        sa.Column("geo_id", sa.String(100), nullable=False),
        sa.Column("geo_name", sa.String(255), nullable=True),
        sa.Column("segment", sa.String(100), server_default="all", nullable=False),
        sa.Column("metric", sa.String(100), nullable=False),
        sa.Column("timeframe", sa.String(20), nullable=False),
        sa.Column("current_value", sa.Numeric(19, 4), nullable=True),
        sa.Column("prev_value", sa.Numeric(19, 4), nullable=True),
        sa.Column("delta_value", sa.Numeric(19, 4), nullable=True),
        sa.Column("delta_pct", sa.Numeric(9, 4), nullable=True),
        sa.Column("confidence_score", sa.Numeric(5, 4), nullable=True),
        sa.Column("evidence", postgresql.JSONB, nullable=True),
        sa.Column("severity", _signal_severity, nullable=False),
        sa.Column("status", _signal_status, nullable=False),
        sa.Column("investor_matches", sa.Integer, server_default="0", nullable=False),
        sa.Column("signal_key", sa.String(1000), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("signal_key", name="uq_market_signals_signal_key"),
    )
    op.create_index("ix_market_signals_org_id", "market_signals", ["org_id"])
    op.create_index("ix_market_signals_org_id_geo_name", "market_signals", ["org_id", "geo_name"])

    op.create_table(
        "market_signal_targets",
        *_base_columns(),
        sa.Column("signal_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("investor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("relevance_score", sa.Integer, nullable=False),
        sa.Column("reason", postgresql.JSONB, nullable=True),
        sa.Column("status", _signal_target_status, nullable=False),
        sa.ForeignKeyConstraint(["signal_id"], ["market_signals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["investor_id"], ["investors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "org_id", "signal_id", "investor_id",
            name="uq_market_signal_targets_org_signal_investor",
        ),
    )
    op.create_index("ix_market_signal_targets_org_id", "market_signal_targets", ["org_id"])
    op.create_index(
        "ix_market_signal_targets_org_id_signal_id", "market_signal_targets", ["org_id", "signal_id"]
    )
    op.create_index("ix_market_signal_targets_investor_id", "market_signal_targets", ["investor_id"])


def downgrade() -> None:
    op.drop_table("market_signal_targets")
    op.drop_table("market_signals")
    op.drop_table("listings")
    op.drop_table("investor_holdings")
    op.drop_table("investors")

    bind = op.get_bind()
    for enum_type in reversed(_ENUMS):
        enum_type.drop(bind, checkfirst=True)
