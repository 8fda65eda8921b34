"""RBAC permission matrix and checker.

Roles inherit cumulatively: viewer < analyst < manager < admin.
Permissions are (action, resource_type) tuples in a set for O(1) lookup.
"""

from app.models.enums import UserRole


# ── Actions ───────────────────────────────────────────────────────────────


class Action:
    VIEW = "view"
    RUN_ANALYSIS = "run_analysis"


# ── Resource Types ────────────────────────────────────────────────────────


class Resource:
    MATCH = "match"
    SIGNAL = "signal"


# ── Per-role permission sets ──────────────────────────────────────────────

_VIEWER_PERMS: set[tuple[str, str]] = {
    (Action.VIEW, Resource.MATCH),
    (Action.VIEW, Resource.SIGNAL),
}

_ANALYST_EXTRA: set[tuple[str, str]] = {
    (Action.RUN_ANALYSIS, Resource.MATCH),
}

_MANAGER_EXTRA: set[tuple[str, str]] = {
    (Action.RUN_ANALYSIS, Resource.SIGNAL),
}

_ADMIN_EXTRA: set[tuple[str, str]] = set()

# ── Cumulative permission matrix ──────────────────────────────────────────

PERMISSION_MATRIX: dict[UserRole, set[tuple[str, str]]] = {
    UserRole.VIEWER: _VIEWER_PERMS,
    UserRole.ANALYST: _VIEWER_PERMS | _ANALYST_EXTRA,
    UserRole.MANAGER: _VIEWER_PERMS | _ANALYST_EXTRA | _MANAGER_EXTRA,
    UserRole.ADMIN: _VIEWER_PERMS | _ANALYST_EXTRA | _MANAGER_EXTRA | _ADMIN_EXTRA,
}


# ── Public API ────────────────────────────────────────────────────────────


def check_permission(role: UserRole, action: str, resource_type: str) -> bool:
    """Check if a role has permission for an action on a resource type."""
    perms = PERMISSION_MATRIX.get(role)
    if perms is None:
        return False
    return (action, resource_type) in perms


def get_permissions_for_role(role: UserRole) -> dict[str, list[str]]:
    """Return permissions grouped by resource type (for API responses)."""
    perms = PERMISSION_MATRIX.get(role, set())
    result: dict[str, list[str]] = {}
    for action, resource in sorted(perms):
        result.setdefault(resource, []).append(action)
    return result
