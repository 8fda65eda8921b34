"""FastAPI auth dependencies: get_current_user, require_permission.

Authentication happens at the gateway; this service trusts the identity
headers it forwards (X-User-Id, X-Org-Id, X-User-Role).
"""

import uuid

import sentry_sdk
import structlog
from fastapi import Depends, Header, HTTPException, Request, status

from app.auth.rbac import check_permission
from app.models.enums import UserRole
from app.schemas.auth import CurrentUser

logger = structlog.get_logger()


def _parse_uuid(value: str | None, header: str) -> uuid.UUID:
    if not value:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {header} header",
        )
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {header} header",
        ) from e


async def get_current_user(
    request: Request,
    x_user_id: str | None = Header(None),
    x_org_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> CurrentUser:
    """Resolve the caller from gateway headers and set tenant state."""
    user_id = _parse_uuid(x_user_id, "X-User-Id")
    org_id = _parse_uuid(x_org_id, "X-Org-Id")
    try:
        role = UserRole((x_user_role or UserRole.VIEWER.value).lower())
    except ValueError as e:
        logger.warning("unknown_user_role", role=x_user_role, user_id=str(user_id))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Role header",
        ) from e

    current_user = CurrentUser(user_id=user_id, org_id=org_id, role=role)

    request.state.org_id = org_id
    request.state.user_id = user_id

    # Enrich Sentry scope with identity (PII-free)
    sentry_sdk.set_user({"id": str(user_id)})
    sentry_sdk.set_tag("org_id", str(org_id))
    sentry_sdk.set_tag("user_role", role.value)

    return current_user


def require_permission(action: str, resource_type: str):
    """
    Dependency factory: checks a specific (action, resource_type) permission.

    Usage:
        current_user: CurrentUser = Depends(require_permission("view", "match"))
    """

    async def _check_perm(
        current_user: CurrentUser = Depends(get_current_user),
    ) -> CurrentUser:
        if not check_permission(current_user.role, action, resource_type):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {action} on {resource_type}",
            )
        return current_user

    return _check_perm
