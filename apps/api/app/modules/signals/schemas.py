"""Signals module API schemas."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MatchSignalsRequest(BaseModel):
    limit: int | None = Field(None, ge=1, le=1000)   # None = SIGNAL_MATCH_DEFAULT_LIMIT
    cursor: str | None = None


class MatchSignalsResponse(BaseModel):
    signals_processed: int
    targets_written: int
    targets_skipped: int
    written_count: int
    next_cursor: str | None


class SignalTargetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    signal_id: uuid.UUID
    investor_id: uuid.UUID
    relevance_score: int
    reason: dict[str, Any] | None
    status: str
    created_at: datetime
    updated_at: datetime


class SignalTargetListResponse(BaseModel):
    items: list[SignalTargetResponse]
    total: int
