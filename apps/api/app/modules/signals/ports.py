"""Collaborator interfaces consumed by the signal relevance matcher."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from app.modules.signals.relevance import InvestorProfile, SignalRecord, TargetRow


class SignalFeed(Protocol):
    def fetch_page(
        self, org_id: str, *, after_id: str | None, limit: int
    ) -> list[SignalRecord]:
        """Signals of the org ordered by id ascending, strictly after ``after_id``."""
        ...

    def signals_with_targets(self, org_id: str, signal_ids: Sequence[str]) -> set[str]:
        """Subset of ``signal_ids`` that already have at least one target."""
        ...


class InvestorSource(Protocol):
    def list_investor_profiles(self, org_id: str) -> list[InvestorProfile]: ...


class TargetSink(Protocol):
    def upsert_targets(self, rows: Sequence[TargetRow]) -> int:
        """Upsert keyed on (org_id, signal_id, investor_id); returns rows written."""
        ...
