"""Celery tasks for the signal → investor relevance mapping batch."""

from __future__ import annotations

import structlog
from celery import shared_task

logger = structlog.get_logger()


@shared_task(
    name="tasks.match_unmapped_signals",
    bind=True,
    max_retries=2,
    default_retry_delay=60,
)
def match_unmapped_signals(
    self, org_id: str, limit: int | None = None, cursor: str | None = None
) -> dict:
    """Page through one org's unmapped signals until the feed is exhausted
    or SIGNAL_MATCH_MAX_PAGES pages were processed.

    Upserts are idempotent, so a retry after a partial run is safe.
    """
    from app.core.celery_db import get_celery_db_session
    from app.core.config import settings
    from app.modules.signals.service import match_unmapped_signals_sync

    page_limit = limit or settings.SIGNAL_MATCH_DEFAULT_LIMIT
    totals = {"signals_processed": 0, "targets_written": 0, "targets_skipped": 0}
    pages = 0

    logger.info("signal_match_started", org_id=org_id, cursor=cursor, limit=page_limit)
    try:
        with get_celery_db_session() as session:
            while pages < settings.SIGNAL_MATCH_MAX_PAGES:
                summary = match_unmapped_signals_sync(session, org_id, page_limit, cursor)
                pages += 1
                totals["signals_processed"] += summary.signals_processed
                totals["targets_written"] += summary.targets_written
                totals["targets_skipped"] += summary.targets_skipped
                cursor = summary.next_cursor
                if cursor is None:
                    break
    except Exception as exc:
        logger.error(
            "signal_match_failed",
            org_id=org_id,
            cursor=cursor,
            pages=pages,
            error=str(exc),
        )
        raise self.retry(exc=exc)

    return {
        "status": "success",
        "org_id": org_id,
        "pages": pages,
        "next_cursor": cursor,
        **totals,
    }


@shared_task(name="tasks.match_unmapped_signals_all_orgs")
def match_unmapped_signals_all_orgs() -> dict:
    """Beat entry point: fan out one mapping task per org with investors."""
    from sqlalchemy import select

    from app.core.celery_db import get_celery_db_session
    from app.models.investors import Investor

    with get_celery_db_session() as session:
        org_ids = session.execute(
            select(Investor.org_id)
            .where(Investor.is_active.is_(True), Investor.is_deleted.is_(False))
            .distinct()
        ).scalars().all()

    for org_id in org_ids:
        match_unmapped_signals.delay(str(org_id))

    logger.info("signal_match_dispatched", orgs=len(org_ids))
    return {"status": "dispatched", "orgs": len(org_ids)}
