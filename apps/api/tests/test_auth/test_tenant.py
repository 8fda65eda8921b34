"""Tests for tenant isolation middleware and helpers."""

import uuid

from sqlalchemy import select

from app.middleware.tenant import tenant_filter
from app.models.listings import Listing


def _sql(stmt) -> str:
    return str(stmt.compile(compile_kwargs={"literal_binds": False}))


class TestTenantFilter:
    """Test the tenant_filter query helper."""

    def test_appends_org_id_and_soft_delete_filters(self):
        filtered = tenant_filter(select(Listing), uuid.uuid4(), Listing)

        compiled = _sql(filtered)
        assert "listings.org_id" in compiled
        assert "listings.is_deleted" in compiled

    def test_no_filter_for_model_without_org_id(self):
        """Models without org_id should pass through unchanged."""

        class NoOrgModel:
            pass

        stmt = select(Listing)
        assert _sql(tenant_filter(stmt, uuid.uuid4(), NoOrgModel)) == _sql(stmt)

    def test_org_id_is_bound_as_parameter(self):
        org_id = uuid.uuid4()
        filtered = tenant_filter(select(Listing), org_id, Listing)
        params = filtered.compile().params
        assert org_id in params.values()
