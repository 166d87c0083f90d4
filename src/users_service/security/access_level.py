from __future__ import annotations

from dataclasses import dataclass
from typing import Union, assert_never

from users_service.auth.models import Principal
from users_service.domain.roles import Role


@dataclass(frozen=True)
class AllAccess:
    """No restriction."""


@dataclass(frozen=True)
class TenantAccess:
    """Every user of one tenant."""

    tenant_id: str


@dataclass(frozen=True)
class TenantFilteredAccess:
    """Users of one tenant holding one of `roles`."""

    tenant_id: str
    roles: frozenset[Role]


AccessLevel = Union[AllAccess, TenantAccess, TenantFilteredAccess]


def resolve_access_level(principal: Principal) -> AccessLevel | None:
    """
    Map a principal to the scope of user records it may read.

    `None` means the principal may not read other users at all. Both the
    single-record check and the list filter are derived from this value.
    """
    role = principal.role
    if role is Role.HOST_OWNER or role is Role.HOST_ADMIN:
        return AllAccess()
    if role is Role.PLATFORM_OWNER or role is Role.PLATFORM_ADMIN:
        return TenantAccess(tenant_id=principal.tenant_id)
    if role is Role.PLATFORM_USER:
        return TenantFilteredAccess(
            tenant_id=principal.tenant_id,
            roles=frozenset({Role.PLATFORM_USER}),
        )
    if role is Role.TENANT:
        return None
    assert_never(role)
