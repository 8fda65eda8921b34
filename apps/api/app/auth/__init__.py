"""Auth package: gateway identity dependencies and RBAC."""

from app.auth.dependencies import get_current_user, require_permission
from app.auth.rbac import check_permission, get_permissions_for_role

__all__ = [
    "check_permission",
    "get_current_user",
    "get_permissions_for_role",
    "require_permission",
]
