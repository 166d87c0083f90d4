from __future__ import annotations

from dataclasses import dataclass
from typing import assert_never

from users_service.auth.models import Principal
from users_service.configs.logging_config import get_logger
from users_service.domain.entities.user import User
from users_service.domain.roles import SELF_SERVICE_ROLES, Role
from users_service.repositories.user_filter import UserFilter, build_user_filter
from users_service.security.access_level import resolve_access_level

log = get_logger(__name__)

_HOST_ADMIN_REMOVABLE = frozenset(
    {Role.TENANT, Role.PLATFORM_OWNER, Role.PLATFORM_ADMIN, Role.PLATFORM_USER}
)
_HOST_ADMIN_ASSIGNABLE = frozenset({Role.HOST_ADMIN, Role.PLATFORM_OWNER, Role.PLATFORM_ADMIN})
_PLATFORM_ADMIN_ASSIGNABLE = frozenset({Role.PLATFORM_ADMIN, Role.PLATFORM_USER})


@dataclass(frozen=True)
class AuthorizationFailure:
    """Denial value. Carries nothing about the target."""

    message: str = "insufficient role"


INSUFFICIENT_ROLE = AuthorizationFailure()


def _same_tenant(principal: Principal, target: User) -> bool:
    return principal.tenant_id is not None and target.tenant_id == principal.tenant_id


class AuthorizationService:
    """
    Decides whether a principal may perform a user-management operation.

    Every method is pure: a denial is a return value, never an exception.
    """

    def can_create_user_with_role(
        self,
        principal: Principal | None,
        target_tenant_id: str | None,
        target_role: Role,
    ) -> bool:
        # Self-service signup is open, authenticated or not.
        if target_role in SELF_SERVICE_ROLES:
            return True
        if principal is None:
            return False

        role = principal.role
        if role is Role.HOST_OWNER or role is Role.HOST_ADMIN:
            return True
        if role is Role.PLATFORM_OWNER or role is Role.PLATFORM_ADMIN:
            return (
                target_role is Role.PLATFORM_ADMIN
                and target_tenant_id is not None
                and target_tenant_id == principal.tenant_id
            )
        if role is Role.PLATFORM_USER or role is Role.TENANT:
            return False
        assert_never(role)

    def can_remove_user(self, principal: Principal, target: User) -> bool:
        role = principal.role
        if role is Role.HOST_OWNER:
            return True
        if role is Role.HOST_ADMIN:
            return target.role in _HOST_ADMIN_REMOVABLE
        if role is Role.PLATFORM_OWNER:
            return _same_tenant(principal, target)
        if role is Role.PLATFORM_ADMIN:
            return _same_tenant(principal, target) and target.role is Role.PLATFORM_USER
        if role is Role.PLATFORM_USER or role is Role.TENANT:
            return False
        assert_never(role)

    def can_update_user_role(self, principal: Principal, target: User, new_role: Role) -> bool:
        # The target's current tenant gates the decision; updates never move tenants.
        role = principal.role
        if role is Role.HOST_OWNER:
            return True
        if role is Role.HOST_ADMIN:
            return new_role in _HOST_ADMIN_ASSIGNABLE
        if role is Role.PLATFORM_OWNER:
            return _same_tenant(principal, target)
        if role is Role.PLATFORM_ADMIN:
            return _same_tenant(principal, target) and new_role in _PLATFORM_ADMIN_ASSIGNABLE
        if role is Role.PLATFORM_USER or role is Role.TENANT:
            return False
        assert_never(role)

    def can_fetch_user(self, principal: Principal, target: User) -> bool:
        level = resolve_access_level(principal)
        if level is None:
            return False
        return build_user_filter(level).matches(target)

    def get_user_fetch_filter(self, principal: Principal) -> UserFilter | AuthorizationFailure:
        """
        Filter selecting exactly the users `can_fetch_user` would allow.

        Callers may refine the result further but cannot widen it.
        """
        level = resolve_access_level(principal)
        if level is None:
            log.info("authz.list_denied role=%s", principal.role.value)
            return INSUFFICIENT_ROLE
        return build_user_filter(level)
