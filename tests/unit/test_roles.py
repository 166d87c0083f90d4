from __future__ import annotations

import pytest

from users_service.auth.models import Principal
from users_service.domain.roles import (
    HOST_ROLES,
    PLATFORM_ROLES,
    SELF_SERVICE_ROLES,
    Role,
    parse_role,
    requires_tenant,
)


def test_tracks_partition_privileged_roles() -> None:
    assert HOST_ROLES.isdisjoint(PLATFORM_ROLES)
    assert set(Role) == HOST_ROLES | PLATFORM_ROLES | {Role.TENANT}
    assert SELF_SERVICE_ROLES == {Role.TENANT, Role.PLATFORM_USER}


@pytest.mark.parametrize("role", list(Role))
def test_only_platform_track_requires_tenant(role: Role) -> None:
    assert requires_tenant(role) == (role in PLATFORM_ROLES)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("ROLE_PLATFORM_ADMIN", Role.PLATFORM_ADMIN),
        ("platform_admin", Role.PLATFORM_ADMIN),
        (" host_owner ", Role.HOST_OWNER),
        ("role_tenant", Role.TENANT),
    ],
)
def test_parse_role(value: str, expected: Role) -> None:
    assert parse_role(value) is expected


@pytest.mark.parametrize("value", ["", "   ", "ROLE_SUPER_ADMIN", "admin"])
def test_parse_role_rejects_unknown(value: str) -> None:
    with pytest.raises(ValueError):
        parse_role(value)


def test_principal_requires_tenant_on_platform_track() -> None:
    with pytest.raises(ValueError):
        Principal(role=Role.PLATFORM_ADMIN, tenant_id=None, subject_id="u1")


@pytest.mark.parametrize("role", [Role.HOST_OWNER, Role.HOST_ADMIN, Role.TENANT])
def test_principal_rejects_tenant_off_platform_track(role: Role) -> None:
    with pytest.raises(ValueError):
        Principal(role=role, tenant_id="tenant-a", subject_id="u1")
