from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """
    Closed set of roles.

    Two parallel tracks ordered by privilege:
    - host: HOST_OWNER > HOST_ADMIN, global, never tenant-scoped
    - platform: PLATFORM_OWNER > PLATFORM_ADMIN > PLATFORM_USER, scoped to one tenant

    TENANT is an end customer and never administers other users.
    """

    HOST_OWNER = "ROLE_HOST_OWNER"
    HOST_ADMIN = "ROLE_HOST_ADMIN"
    PLATFORM_OWNER = "ROLE_PLATFORM_OWNER"
    PLATFORM_ADMIN = "ROLE_PLATFORM_ADMIN"
    PLATFORM_USER = "ROLE_PLATFORM_USER"
    TENANT = "ROLE_TENANT"


HOST_ROLES: frozenset[Role] = frozenset({Role.HOST_OWNER, Role.HOST_ADMIN})
PLATFORM_ROLES: frozenset[Role] = frozenset(
    {Role.PLATFORM_OWNER, Role.PLATFORM_ADMIN, Role.PLATFORM_USER}
)
# Roles anyone may register with, authenticated or not.
SELF_SERVICE_ROLES: frozenset[Role] = frozenset({Role.TENANT, Role.PLATFORM_USER})


def requires_tenant(role: Role) -> bool:
    return role in PLATFORM_ROLES


def tenant_scope_is_valid(role: Role, tenant_id: str | None) -> bool:
    return requires_tenant(role) == (tenant_id is not None)


def parse_role(value: str) -> Role:
    """Accept `ROLE_PLATFORM_ADMIN`, `PLATFORM_ADMIN` or any casing of either."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError("role name is empty")
    name = value.strip().upper()
    if not name.startswith("ROLE_"):
        name = f"ROLE_{name}"
    try:
        return Role(name)
    except ValueError as e:
        raise ValueError(f"unknown role: {value}") from e
