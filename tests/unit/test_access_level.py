from __future__ import annotations

import pytest

from conftest import make_principal
from users_service.domain.roles import Role, requires_tenant
from users_service.security.access_level import (
    AllAccess,
    TenantAccess,
    TenantFilteredAccess,
    resolve_access_level,
)


@pytest.mark.parametrize("role", [Role.HOST_OWNER, Role.HOST_ADMIN])
def test_host_roles_see_everything(role: Role) -> None:
    assert resolve_access_level(make_principal(role)) == AllAccess()


@pytest.mark.parametrize("role", [Role.PLATFORM_OWNER, Role.PLATFORM_ADMIN])
def test_platform_admins_see_their_tenant(role: Role) -> None:
    level = resolve_access_level(make_principal(role, "tenant-a"))
    assert level == TenantAccess(tenant_id="tenant-a")


def test_platform_user_sees_only_peers() -> None:
    level = resolve_access_level(make_principal(Role.PLATFORM_USER, "tenant-a"))
    assert level == TenantFilteredAccess(
        tenant_id="tenant-a", roles=frozenset({Role.PLATFORM_USER})
    )


def test_tenant_has_no_access_level() -> None:
    assert resolve_access_level(make_principal(Role.TENANT)) is None


EXPECTED_LEVELS = {
    Role.HOST_OWNER: AllAccess(),
    Role.HOST_ADMIN: AllAccess(),
    Role.PLATFORM_OWNER: TenantAccess(tenant_id="tenant-a"),
    Role.PLATFORM_ADMIN: TenantAccess(tenant_id="tenant-a"),
    Role.PLATFORM_USER: TenantFilteredAccess(
        tenant_id="tenant-a", roles=frozenset({Role.PLATFORM_USER})
    ),
    Role.TENANT: None,
}


def test_expected_levels_cover_every_role() -> None:
    assert set(EXPECTED_LEVELS) == set(Role)


@pytest.mark.parametrize("role", list(Role))
def test_every_role_resolves_to_its_level(role: Role) -> None:
    principal = make_principal(role, "tenant-a" if requires_tenant(role) else None)
    assert resolve_access_level(principal) == EXPECTED_LEVELS[role]
