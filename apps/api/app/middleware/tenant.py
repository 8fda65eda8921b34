"""Multi-tenant middleware and query helpers.

The middleware initializes request.state.org_id; get_current_user fills it
from the gateway headers. tenant_filter() scopes a select to one org so no
investor, listing or holding of another tenant reaches the matching engine.
"""

import uuid

from starlette.types import ASGIApp, Receive, Scope, Send
from sqlalchemy.sql import Select


class TenantMiddleware:
    """Pure ASGI middleware that initializes tenant state on each request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            scope.setdefault("state", {})
            scope["state"].setdefault("org_id", None)
            scope["state"].setdefault("user_id", None)
        await self.app(scope, receive, send)


def tenant_filter(stmt: Select, org_id: uuid.UUID, model: type) -> Select:
    """Append org_id and soft-delete filters to a select statement.

    Usage:
        stmt = tenant_filter(select(Listing), current_user.org_id, Listing)
    """
    if hasattr(model, "org_id"):
        stmt = stmt.where(model.org_id == org_id)  # type: ignore[attr-defined]
    if hasattr(model, "is_deleted"):
        stmt = stmt.where(model.is_deleted.is_(False))  # type: ignore[attr-defined]
    return stmt
