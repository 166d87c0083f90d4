from __future__ import annotations

import uuid
from math import ceil

from users_service.auth.models import Principal
from users_service.configs.logging_config import get_logger
from users_service.configs.settings import Settings
from users_service.domain.entities.user import (
    OwnerRegistrationRequest,
    RegistrationRequest,
    User,
    UserPage,
    UserResponse,
    UserSearchCriteria,
    utc_now,
)
from users_service.domain.roles import Role, requires_tenant, tenant_scope_is_valid
from users_service.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from users_service.repositories.user_filter import UserFilter
from users_service.repositories.user_repository import UserRepository
from users_service.security.authorization import (
    INSUFFICIENT_ROLE,
    AuthorizationFailure,
    AuthorizationService,
)
from users_service.services.user_events import (
    USER_CREATED,
    USER_REMOVED,
    USER_ROLE_UPDATED,
    UserEventPublisher,
)
from users_service.webclient.auth_service_client import AuthServiceClient

log = get_logger(__name__)


def _scope_error(role: Role) -> ValidationError:
    if requires_tenant(role):
        return ValidationError(f"role {role.value} requires a platform")
    return ValidationError(f"role {role.value} cannot belong to a platform")


class UserService:
    def __init__(
        self,
        repo: UserRepository,
        authorization: AuthorizationService,
        auth_client: AuthServiceClient,
        events: UserEventPublisher,
        settings: Settings,
    ):
        self._repo = repo
        self._authz = authorization
        self._auth_client = auth_client
        self._events = events
        self._settings = settings

    async def _get_or_404(self, user_id: str) -> User:
        user = await self._repo.find_by_id(user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    def _deny(self, action: str, principal: Principal | None) -> ForbiddenError:
        log.info(
            "svc.user.%s denied principal_id=%s role=%s",
            action,
            principal.subject_id if principal else None,
            principal.role.value if principal else None,
        )
        return ForbiddenError(INSUFFICIENT_ROLE.message)

    async def create_host_user(
        self, req: RegistrationRequest, principal: Principal | None
    ) -> UserResponse:
        return await self._create_user(req, None, principal)

    async def create_platform_user(
        self, req: RegistrationRequest, tenant_id: str, principal: Principal | None
    ) -> UserResponse:
        return await self._create_user(req, tenant_id, principal)

    async def _create_user(
        self,
        req: RegistrationRequest,
        tenant_id: str | None,
        principal: Principal | None,
    ) -> UserResponse:
        log.info(
            "svc.user.create start tenant_id=%s role=%s principal_id=%s",
            tenant_id,
            req.role_name.value,
            principal.subject_id if principal else None,
        )
        if not self._authz.can_create_user_with_role(principal, tenant_id, req.role_name):
            raise self._deny("create", principal)
        if not tenant_scope_is_valid(req.role_name, tenant_id):
            raise _scope_error(req.role_name)

        email = str(req.email)
        duplicate = UserFilter.unrestricted().with_email(email).with_tenant(tenant_id)
        if await self._repo.exists(duplicate):
            log.info("svc.user.create conflict tenant_id=%s", tenant_id)
            raise ConflictError("email already exists")

        now = utc_now()
        user = User(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            role=req.role_name,
            email=email,
            first_name=req.first_name,
            last_name=req.last_name,
            created_at=now,
            updated_at=now,
        )
        await self._repo.insert(user)

        try:
            await self._auth_client.create_user(email, req.password, user.id, tenant_id)
        except UpstreamError:
            log.error("svc.user.create auth_registration_failed user_id=%s rolling back", user.id)
            await self._repo.remove_by_id(user.id)
            raise

        await self._events.publish(USER_CREATED, user, principal.subject_id if principal else None)
        log.info("svc.user.create done user_id=%s tenant_id=%s", user.id, tenant_id)
        return UserResponse.from_user(user)

    async def remove_user(self, user_id: str, principal: Principal) -> None:
        log.info("svc.user.remove start user_id=%s principal_id=%s", user_id, principal.subject_id)
        user = await self._get_or_404(user_id)
        if not self._authz.can_remove_user(principal, user):
            raise self._deny("remove", principal)

        await self._repo.remove_by_id(user_id)
        await self._events.publish(USER_REMOVED, user, principal.subject_id)
        log.info("svc.user.remove done user_id=%s", user_id)

    async def get_principal_user(self, principal: Principal) -> UserResponse:
        user = await self._get_or_404(principal.subject_id)
        return UserResponse.from_user(user)

    async def get_user(self, user_id: str, principal: Principal) -> UserResponse:
        user = await self._get_or_404(user_id)
        if not self._authz.can_fetch_user(principal, user):
            raise self._deny("fetch", principal)
        return UserResponse.from_user(user)

    async def get_user_internal(self, user_id: str) -> UserResponse:
        user = await self._get_or_404(user_id)
        return UserResponse.from_user(user)

    async def get_user_role(self, user_id: str) -> Role:
        user = await self._get_or_404(user_id)
        return user.role

    async def get_user_page(
        self,
        principal: Principal,
        search: UserSearchCriteria | None = None,
        page: int = 0,
        size: int | None = None,
    ) -> UserPage:
        result = self._authz.get_user_fetch_filter(principal)
        if isinstance(result, AuthorizationFailure):
            raise ForbiddenError(result.message)

        user_filter = result.refine(search)
        size = self._settings.default_page_size if size is None else size
        limit = max(min(size, self._settings.max_page_size), 1)
        page = max(page, 0)
        skip = page * limit

        log.info(
            "svc.user.list start principal_id=%s role=%s skip=%s limit=%s",
            principal.subject_id,
            principal.role.value,
            skip,
            limit,
        )
        users, total = await self._repo.find_all(user_filter, skip=skip, limit=limit)
        out = UserPage(
            users=[UserResponse.from_user(u) for u in users],
            totalElements=total,
            totalPages=ceil(total / limit),
            currentPage=page,
        )
        log.info("svc.user.list done returned=%s total=%s", len(out.users), total)
        return out

    async def update_user_role(
        self, user_id: str, new_role: Role, principal: Principal
    ) -> UserResponse:
        log.info(
            "svc.user.update_role start user_id=%s new_role=%s principal_id=%s",
            user_id,
            new_role.value,
            principal.subject_id,
        )
        user = await self._get_or_404(user_id)
        if not self._authz.can_update_user_role(principal, user, new_role):
            raise self._deny("update_role", principal)
        if not tenant_scope_is_valid(new_role, user.tenant_id):
            raise _scope_error(new_role)

        updated = await self._repo.update_role(user_id, new_role)
        if updated is None:
            raise NotFoundError("user not found")

        await self._events.publish(USER_ROLE_UPDATED, updated, principal.subject_id)
        log.info("svc.user.update_role done user_id=%s role=%s", user_id, new_role.value)
        return UserResponse.from_user(updated)

    async def create_owner(self, req: OwnerRegistrationRequest) -> UserResponse:
        log.info(
            "svc.user.create_owner start user_id=%s platform_id=%s",
            req.user_id,
            req.platform_id,
        )
        user = await self._get_or_404(req.user_id)

        duplicate = UserFilter.unrestricted().with_email(user.email).with_tenant(req.platform_id)
        if await self._repo.exists(duplicate):
            raise ConflictError("email already exists")

        now = utc_now()
        owner = User(
            id=str(uuid.uuid4()),
            tenant_id=req.platform_id,
            role=Role.PLATFORM_OWNER,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            created_at=now,
            updated_at=now,
        )
        await self._repo.insert(owner)

        try:
            await self._auth_client.create_owner(user.id, owner.id, req.platform_id)
        except UpstreamError:
            log.error("svc.user.create_owner auth_registration_failed owner_id=%s rolling back", owner.id)
            await self._repo.remove_by_id(owner.id)
            raise

        await self._events.publish(USER_CREATED, owner, user.id)
        log.info("svc.user.create_owner done owner_id=%s platform_id=%s", owner.id, req.platform_id)
        return UserResponse.from_user(owner)
