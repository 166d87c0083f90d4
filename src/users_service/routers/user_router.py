from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import ValidationError as PydanticValidationError

from users_service.auth.dependencies import get_optional_principal, get_principal
from users_service.auth.models import Principal
from users_service.configs.logging_config import get_logger
from users_service.domain.entities.user import (
    RegistrationRequest,
    RoleUpdateRequest,
    UserSearchCriteria,
)
from users_service.domain.roles import parse_role
from users_service.errors import ValidationError
from users_service.services.user_service import UserService
from users_service.utils.response import success

log = get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_host_user(
    body: RegistrationRequest,
    principal: Optional[Principal] = Depends(get_optional_principal),
    svc: UserService = Depends(get_user_service),
) -> dict:
    data = await svc.create_host_user(body, principal)
    return success(data, message="user registered")


@router.post("/platforms/{tenant_id}/register", status_code=status.HTTP_201_CREATED)
async def register_platform_user(
    tenant_id: str,
    body: RegistrationRequest,
    principal: Optional[Principal] = Depends(get_optional_principal),
    svc: UserService = Depends(get_user_service),
) -> dict:
    data = await svc.create_platform_user(body, tenant_id, principal)
    return success(data, message="user registered")


@router.get("/me")
async def get_me(
    principal: Principal = Depends(get_principal),
    svc: UserService = Depends(get_user_service),
) -> dict:
    data = await svc.get_principal_user(principal)
    return success(data)


@router.get("")
async def list_users(
    page: int = 0,
    size: Optional[int] = None,
    id: Optional[str] = None,
    email: Optional[str] = None,
    role: Optional[List[str]] = Query(default=None),
    tenant_id: Optional[str] = None,
    host_scoped: bool = False,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    principal: Principal = Depends(get_principal),
    svc: UserService = Depends(get_user_service),
) -> dict:
    try:
        roles = [parse_role(r) for r in role] if role else None
    except ValueError as e:
        raise ValidationError(str(e)) from e

    try:
        search = UserSearchCriteria(
            id=id,
            email=email,
            roles=roles,
            tenant_id=tenant_id,
            host_scoped=host_scoped,
            first_name=first_name,
            last_name=last_name,
        )
    except PydanticValidationError as e:
        raise ValidationError("invalid search criteria") from e
    data = await svc.get_user_page(principal, search, page=page, size=size)
    return success(data, message="Request successful")


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    svc: UserService = Depends(get_user_service),
) -> dict:
    data = await svc.get_user(user_id, principal)
    return success(data)


@router.put("/{user_id}")
async def update_user_role(
    user_id: str,
    body: RoleUpdateRequest,
    principal: Principal = Depends(get_principal),
    svc: UserService = Depends(get_user_service),
) -> dict:
    data = await svc.update_user_role(user_id, body.role_name, principal)
    return success(data, message="role updated")


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user(
    user_id: str,
    principal: Principal = Depends(get_principal),
    svc: UserService = Depends(get_user_service),
) -> Response:
    await svc.remove_user(user_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
