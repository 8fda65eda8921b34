"""Signal Relevance Matcher — map unmapped market signals to investors.

One call collects up to ``limit`` unmapped signals (signals with no target
rows yet) by scanning the feed in id order, computes relevance tiers for
every investor of the org and upserts the resulting targets. The returned
cursor is only handed out after the upserts for the scanned signals were
issued, so a crash resumes from a safe position.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from app.modules.signals.ports import InvestorSource, SignalFeed, TargetSink
from app.modules.signals.relevance import (
    InvestorProfile,
    SignalRecord,
    TargetRow,
    compute_targets_for_signal,
)

logger = structlog.get_logger()

MIN_SCAN_BATCH = 200
SCAN_FACTOR = 3


def scan_batch_size(limit: int) -> int:
    return max(limit * SCAN_FACTOR, MIN_SCAN_BATCH)


@dataclass(frozen=True)
class UnmappedPage:
    signals: list[SignalRecord]
    next_cursor: str | None


@dataclass
class MatchSummary:
    signals_processed: int = 0
    targets_written: int = 0
    targets_skipped: int = 0
    next_cursor: str | None = None

    @property
    def written_count(self) -> int:
        return self.targets_written

    def to_dict(self) -> dict[str, Any]:
        return {
            "signals_processed": self.signals_processed,
            "targets_written": self.targets_written,
            "targets_skipped": self.targets_skipped,
            "written_count": self.written_count,
            "next_cursor": self.next_cursor,
        }


class SignalRelevanceMatcher:
    def __init__(
        self,
        feed: SignalFeed,
        investors: InvestorSource,
        sink: TargetSink,
    ) -> None:
        self.feed = feed
        self.investors = investors
        self.sink = sink

    def get_unmapped_signals(
        self, org_id: str, limit: int, cursor: str | None = None
    ) -> UnmappedPage:
        """Collect up to ``limit`` unmapped signals after ``cursor``.

        ``next_cursor`` is None only once the feed returned an empty batch.
        When the limit is reached mid-batch the cursor stops at the last
        collected signal, so the rest of that batch is scanned again.
        """
        batch_size = scan_batch_size(limit)
        collected: list[SignalRecord] = []

        while len(collected) < limit:
            batch = self.feed.fetch_page(org_id, after_id=cursor, limit=batch_size)
            if not batch:
                return UnmappedPage(signals=collected, next_cursor=None)

            mapped = self.feed.signals_with_targets(org_id, [s.id for s in batch])
            cursor = batch[-1].id
            for signal in batch:
                if signal.id in mapped:
                    continue
                collected.append(signal)
                if len(collected) >= limit:
                    cursor = signal.id
                    break

            logger.debug(
                "signal_page_scanned",
                org_id=org_id,
                scanned=len(batch),
                already_mapped=len(mapped),
                collected=len(collected),
            )

        return UnmappedPage(signals=collected, next_cursor=cursor)

    def match_unmapped_signals(
        self, org_id: Any, limit: int, cursor: str | None = None
    ) -> MatchSummary:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        org_key = str(org_id)

        profiles: list[InvestorProfile] = self.investors.list_investor_profiles(org_key)
        page = self.get_unmapped_signals(org_key, limit, cursor)
        summary = MatchSummary(next_cursor=page.next_cursor)

        rows: list[TargetRow] = []
        for signal in page.signals:
            summary.signals_processed += 1
            targets = compute_targets_for_signal(org_key, signal, profiles)
            if targets.signal_skipped:
                logger.warning("signal_skipped_missing_fields", signal_id=signal.id)
                summary.targets_skipped += 1
                continue
            summary.targets_skipped += len(targets.skipped_investors)
            rows.extend(targets.rows)

        # Failures propagate; rows already upserted stay, a retry is a no-op.
        if rows:
            summary.targets_written = self.sink.upsert_targets(rows)
            logger.info(
                "signal_targets_upserted",
                org_id=org_key,
                count=summary.targets_written,
            )

        logger.info(
            "signal_match_complete",
            org_id=org_key,
            investors=len(profiles),
            **summary.to_dict(),
        )
        return summary
