"""Tests for Celery task infrastructure — queue config, routing, signal mapping tasks."""
import uuid
from contextlib import contextmanager

import pytest

from app.modules.signals.matcher import MatchSummary


# ── Queue topology ──────────────────────────────────────────────────────────


def test_queue_topology_defined() -> None:
    from app.core.celery_config import CELERY_QUEUES

    assert {q.name for q in CELERY_QUEUES} == {"default", "bulk"}


def test_signal_tasks_routed_to_bulk() -> None:
    from app.core.celery_config import CELERY_TASK_ROUTES

    assert CELERY_TASK_ROUTES["tasks.match_unmapped_signals"] == {"queue": "bulk"}
    assert CELERY_TASK_ROUTES["tasks.match_unmapped_signals_all_orgs"] == {"queue": "bulk"}


def test_task_annotations_have_timeouts() -> None:
    from app.core.celery_config import CELERY_TASK_ANNOTATIONS

    for task, annotations in CELERY_TASK_ANNOTATIONS.items():
        assert "time_limit" in annotations, f"Task {task} missing time_limit"
        assert annotations["soft_time_limit"] < annotations["time_limit"]


# ── Worker app ──────────────────────────────────────────────────────────────


def test_beat_schedule_dispatches_signal_mapping() -> None:
    from app.worker import celery_app

    entry = celery_app.conf.beat_schedule["match-unmapped-signals"]
    assert entry["task"] == "tasks.match_unmapped_signals_all_orgs"


def test_task_names_are_stable() -> None:
    from app.modules.signals.tasks import (
        match_unmapped_signals,
        match_unmapped_signals_all_orgs,
    )

    assert match_unmapped_signals.name == "tasks.match_unmapped_signals"
    assert match_unmapped_signals_all_orgs.name == "tasks.match_unmapped_signals_all_orgs"


def test_shared_session_factory_importable() -> None:
    from app.core.celery_db import get_celery_db_session

    assert callable(get_celery_db_session)


# ── Signal mapping task ─────────────────────────────────────────────────────


@pytest.fixture
def fake_session(monkeypatch):
    """Replace the worker DB session with a sentinel object."""
    import app.core.celery_db as celery_db

    session = object()

    @contextmanager
    def _session():
        yield session

    monkeypatch.setattr(celery_db, "get_celery_db_session", _session)
    return session


def _pages(monkeypatch, summaries: list[MatchSummary]) -> list[tuple]:
    import app.modules.signals.service as signals_service

    calls: list[tuple] = []
    remaining = iter(summaries)

    def _match(session, org_id, limit, cursor=None):
        calls.append((session, org_id, limit, cursor))
        return next(remaining)

    monkeypatch.setattr(signals_service, "match_unmapped_signals_sync", _match)
    return calls


def test_task_pages_until_cursor_exhausted(monkeypatch, fake_session) -> None:
    from app.modules.signals.tasks import match_unmapped_signals

    calls = _pages(
        monkeypatch,
        [
            MatchSummary(signals_processed=5, targets_written=4, targets_skipped=1, next_cursor="c-1"),
            MatchSummary(signals_processed=2, targets_written=2, targets_skipped=0, next_cursor=None),
        ],
    )
    result = match_unmapped_signals("org-1", limit=5)

    assert [c[3] for c in calls] == [None, "c-1"]
    assert all(c[0] is fake_session and c[2] == 5 for c in calls)
    assert result == {
        "status": "success",
        "org_id": "org-1",
        "pages": 2,
        "next_cursor": None,
        "signals_processed": 7,
        "targets_written": 6,
        "targets_skipped": 1,
    }


def test_task_stops_at_max_pages(monkeypatch, fake_session) -> None:
    from app.core.config import settings
    from app.modules.signals.tasks import match_unmapped_signals

    monkeypatch.setattr(settings, "SIGNAL_MATCH_MAX_PAGES", 2)
    _pages(
        monkeypatch,
        [MatchSummary(signals_processed=1, next_cursor=f"c-{i}") for i in range(5)],
    )
    result = match_unmapped_signals("org-1", limit=1)
    assert result["pages"] == 2
    assert result["next_cursor"] == "c-1"


def test_task_failure_is_reraised_when_called_directly(monkeypatch, fake_session) -> None:
    import app.modules.signals.service as signals_service
    from app.modules.signals.tasks import match_unmapped_signals

    def _boom(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(signals_service, "match_unmapped_signals_sync", _boom)
    with pytest.raises(RuntimeError, match="connection reset"):
        match_unmapped_signals("org-1", limit=10)


def test_all_orgs_fans_out_per_org(monkeypatch, sync_session) -> None:
    import app.core.celery_db as celery_db
    from app.models.investors import Investor
    from app.modules.signals import tasks

    org_a, org_b = uuid.uuid4(), uuid.uuid4()
    sync_session.add_all(
        [
            Investor(org_id=org_a, name="A1"),
            Investor(org_id=org_a, name="A2"),
            Investor(org_id=org_b, name="B1"),
            Investor(org_id=uuid.uuid4(), name="Dormant", is_active=False),
        ]
    )
    sync_session.commit()

    @contextmanager
    def _session():
        yield sync_session

    dispatched: list[str] = []
    monkeypatch.setattr(celery_db, "get_celery_db_session", _session)
    monkeypatch.setattr(tasks.match_unmapped_signals, "delay", dispatched.append)

    result = tasks.match_unmapped_signals_all_orgs()

    assert result == {"status": "dispatched", "orgs": 2}
    assert sorted(dispatched) == sorted([str(org_a), str(org_b)])
