"""Tests for SignalRepository against SQLite (sync session)."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.enums import HoldingStatus, SignalSourceType, SignalTargetStatus
from app.models.investors import Investor, InvestorHolding
from app.models.signals import MarketSignal, MarketSignalTarget
from app.modules.matching.policy import DEFAULT_POLICY
from app.modules.signals.keys import make_signal_key
from app.modules.signals.matcher import SignalRelevanceMatcher
from app.modules.signals.relevance import TargetRow
from app.modules.signals.repository import SignalRepository
from tests.conftest import OTHER_ORG_ID, SAMPLE_ORG_ID


def _uuid(n: int) -> uuid.UUID:
    return uuid.UUID(int=n)


def _add_signal(session: Session, n: int, geo_name: str = "Dubai Marina", org_id=SAMPLE_ORG_ID) -> MarketSignal:
    geo_id = geo_name.lower().replace(" ", "-")
    signal = MarketSignal(
        id=_uuid(n),
        org_id=org_id,
        source_type=SignalSourceType.OFFICIAL,
        source="dld",
        type="price_change",
        geo_id=geo_id,
        geo_name=geo_name,
        metric="median_price_sqft",
        timeframe="30d",
        signal_key=make_signal_key(
            "official", "dld", "price_change", "community", geo_id, "all", "30d", f"{org_id}-{n}"
        ),
    )
    session.add(signal)
    return signal


def _add_investor(
    session: Session, n: int, mandate: dict | None = None, org_id=SAMPLE_ORG_ID, **fields
) -> Investor:
    investor = Investor(id=_uuid(n), org_id=org_id, name=f"Investor {n}", mandate=mandate, **fields)
    session.add(investor)
    return investor


@pytest.fixture
def repo(sync_session: Session) -> SignalRepository:
    return SignalRepository(sync_session, policy=DEFAULT_POLICY)


class TestSignalFeed:
    def test_fetch_page_orders_by_id_and_honours_cursor(self, sync_session, repo) -> None:
        for n in (1003, 1001, 1002):
            _add_signal(sync_session, n)
        sync_session.commit()

        first = repo.fetch_page(str(SAMPLE_ORG_ID), after_id=None, limit=2)
        assert [s.id for s in first] == [str(_uuid(1001)), str(_uuid(1002))]

        rest = repo.fetch_page(str(SAMPLE_ORG_ID), after_id=first[-1].id, limit=2)
        assert [s.id for s in rest] == [str(_uuid(1003))]

    def test_fetch_page_is_org_scoped(self, sync_session, repo) -> None:
        _add_signal(sync_session, 1001)
        _add_signal(sync_session, 1002, org_id=OTHER_ORG_ID)
        sync_session.commit()
        page = repo.fetch_page(str(SAMPLE_ORG_ID), after_id=None, limit=10)
        assert [s.id for s in page] == [str(_uuid(1001))]

    def test_signals_with_targets(self, sync_session, repo) -> None:
        _add_investor(sync_session, 1)
        _add_signal(sync_session, 1001)
        _add_signal(sync_session, 1002)
        sync_session.commit()
        repo.upsert_targets(
            [TargetRow(str(SAMPLE_ORG_ID), str(_uuid(1001)), str(_uuid(1)), 80, {"tier": "mandate"})]
        )
        mapped = repo.signals_with_targets(
            str(SAMPLE_ORG_ID), [str(_uuid(1001)), str(_uuid(1002))]
        )
        assert mapped == {str(_uuid(1001))}

    def test_invalid_org_id_raises_value_error(self, repo) -> None:
        with pytest.raises(ValueError):
            repo.fetch_page("not-a-uuid", after_id=None, limit=10)


class TestInvestorSource:
    def test_profiles_include_holdings_and_skip_inactive(self, sync_session, repo) -> None:
        _add_investor(sync_session, 1, mandate={"preferredAreas": ["JVC"]})
        _add_investor(sync_session, 2, is_active=False)
        _add_investor(sync_session, 3, org_id=OTHER_ORG_ID)
        sync_session.add_all(
            [
                InvestorHolding(
                    org_id=SAMPLE_ORG_ID,
                    investor_id=_uuid(1),
                    property_id=_uuid(501),
                    area="Dubai Marina",
                    status=HoldingStatus.ACTIVE,
                ),
                InvestorHolding(
                    org_id=SAMPLE_ORG_ID,
                    investor_id=_uuid(1),
                    property_id=_uuid(502),
                    area="Dubai Marina",
                    status=HoldingStatus.EXITED,
                ),
            ]
        )
        sync_session.commit()

        [profile] = repo.list_investor_profiles(str(SAMPLE_ORG_ID))
        assert profile.investor_id == str(_uuid(1))
        assert profile.preferred_areas == {"JVC"}
        assert profile.holdings_by_area == {"Dubai Marina": 2}


class TestTargetSink:
    def test_upsert_is_idempotent_and_keeps_status(self, sync_session, repo) -> None:
        _add_investor(sync_session, 1)
        _add_signal(sync_session, 1001)
        sync_session.commit()
        row = TargetRow(str(SAMPLE_ORG_ID), str(_uuid(1001)), str(_uuid(1)), 80, {"tier": "mandate"})

        assert repo.upsert_targets([row]) == 1
        target = sync_session.execute(select(MarketSignalTarget)).scalar_one()
        target.status = SignalTargetStatus.VIEWED
        sync_session.commit()

        updated = TargetRow(row.org_id, row.signal_id, row.investor_id, 100, {"tier": "portfolio"})
        assert repo.upsert_targets([updated]) == 1
        sync_session.expire_all()

        [stored] = sync_session.execute(select(MarketSignalTarget)).scalars().all()
        assert stored.relevance_score == 100
        assert stored.reason == {"tier": "portfolio"}
        assert stored.status is SignalTargetStatus.VIEWED

    def test_empty_upsert_writes_nothing(self, repo) -> None:
        assert repo.upsert_targets([]) == 0

    def test_soft_deleted_target_is_unmapped_and_revived(self, sync_session, repo) -> None:
        _add_investor(sync_session, 1)
        _add_signal(sync_session, 1001)
        sync_session.commit()
        row = TargetRow(str(SAMPLE_ORG_ID), str(_uuid(1001)), str(_uuid(1)), 80, {"tier": "mandate"})
        repo.upsert_targets([row])

        target = sync_session.execute(select(MarketSignalTarget)).scalar_one()
        target.is_deleted = True
        sync_session.commit()

        assert repo.signals_with_targets(str(SAMPLE_ORG_ID), [str(_uuid(1001))]) == set()
        assert repo.list_targets_for_investor(str(SAMPLE_ORG_ID), str(_uuid(1))) == []

        repo.upsert_targets([row])
        sync_session.expire_all()
        assert repo.signals_with_targets(str(SAMPLE_ORG_ID), [str(_uuid(1001))]) == {str(_uuid(1001))}
        [listed] = repo.list_targets_for_investor(str(SAMPLE_ORG_ID), str(_uuid(1)))
        assert listed.signal_id == _uuid(1001)

    def test_unsupported_dialect_raises_runtime_error(self, monkeypatch, repo) -> None:
        import app.modules.signals.repository as repository

        monkeypatch.setattr(repository, "_INSERT_BY_DIALECT", {})
        row = TargetRow(str(SAMPLE_ORG_ID), str(_uuid(1001)), str(_uuid(1)), 80, {"tier": "mandate"})
        with pytest.raises(RuntimeError, match="not supported"):
            repo.upsert_targets([row])


class TestEndToEnd:
    def test_match_twice_yields_one_target_per_pair(self, sync_session, repo) -> None:
        _add_investor(sync_session, 1, mandate={"preferredAreas": ["Dubai Marina"]})
        _add_investor(sync_session, 2, mandate={"preferredAreas": ["JVC"]})
        _add_signal(sync_session, 1001, geo_name="Dubai Marina")
        _add_signal(sync_session, 1002, geo_name="JVC")
        _add_signal(sync_session, 1003, geo_name="Palm Jumeirah")
        sync_session.commit()

        matcher = SignalRelevanceMatcher(repo, repo, repo)
        first = matcher.match_unmapped_signals(str(SAMPLE_ORG_ID), limit=10)
        second = matcher.match_unmapped_signals(str(SAMPLE_ORG_ID), limit=10)

        assert first.signals_processed == 3
        assert first.targets_written == 2
        # The irrelevant signal stays unmapped and is seen again.
        assert second.signals_processed == 1
        assert second.targets_written == 0

        pairs = sync_session.execute(
            select(MarketSignalTarget.signal_id, MarketSignalTarget.investor_id)
        ).all()
        assert sorted(tuple(p) for p in pairs) == [(_uuid(1001), _uuid(1)), (_uuid(1002), _uuid(2))]

        listed = repo.list_targets_for_investor(str(SAMPLE_ORG_ID), str(_uuid(1)))
        assert [t.signal_id for t in listed] == [_uuid(1001)]


class TestSignalKeyUniqueness:
    def test_duplicate_signal_key_is_rejected(self, sync_session) -> None:
        _add_signal(sync_session, 1001)
        sync_session.commit()
        duplicate = _add_signal(sync_session, 1002)
        duplicate.signal_key = make_signal_key(
            "official", "dld", "price_change", "community", "dubai-marina", "all", "30d",
            f"{SAMPLE_ORG_ID}-1001",
        )
        with pytest.raises(IntegrityError):
            sync_session.commit()
        sync_session.rollback()
