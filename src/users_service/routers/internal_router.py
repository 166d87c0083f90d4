from __future__ import annotations

from fastapi import APIRouter, Depends, status

from users_service.domain.entities.user import OwnerRegistrationRequest
from users_service.routers.user_router import get_user_service
from users_service.services.user_service import UserService
from users_service.utils.response import success

# Service-to-service endpoints; not exposed through the public gateway.
router = APIRouter(prefix="/api/internal/users", tags=["internal"])


@router.get("/{user_id}")
async def get_user(user_id: str, svc: UserService = Depends(get_user_service)) -> dict:
    data = await svc.get_user_internal(user_id)
    return success(data)


@router.get("/{user_id}/role")
async def get_user_role(user_id: str, svc: UserService = Depends(get_user_service)) -> dict:
    role = await svc.get_user_role(user_id)
    return success({"role": role.value})


@router.post("/owner", status_code=status.HTTP_201_CREATED)
async def create_owner(
    body: OwnerRegistrationRequest,
    svc: UserService = Depends(get_user_service),
) -> dict:
    data = await svc.create_owner(body)
    return success(data, message="owner created")
