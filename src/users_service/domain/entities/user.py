from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, EmailStr, Field, SecretStr, field_validator

from users_service.domain.roles import Role, parse_role

NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72

_REPEATING_CHARS = re.compile(r"(.)\1{2,}")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_role(v: Any) -> Any:
    if isinstance(v, str) and not isinstance(v, Role):
        return parse_role(v)
    return v


def validate_name(value: str) -> str:
    if not value:
        raise ValueError("name must not be empty")
    if len(value) < NAME_MIN_LENGTH:
        raise ValueError(f"name must be at least {NAME_MIN_LENGTH} characters")
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"name must be at most {NAME_MAX_LENGTH} characters")
    if not all(c.isalpha() or c in " -'" for c in value):
        raise ValueError("name may contain only letters, spaces, hyphens and apostrophes")
    return value


def validate_password(value: str) -> str:
    if not value:
        raise ValueError("password must not be empty")
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(value) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"password must be at most {PASSWORD_MAX_LENGTH} characters")

    missing: list[str] = []
    if not re.search(r"[A-Z]", value):
        missing.append("uppercase letter")
    if not re.search(r"[a-z]", value):
        missing.append("lowercase letter")
    if not re.search(r"[0-9]", value):
        missing.append("digit")
    if not re.search(r"[^A-Za-z0-9]", value):
        missing.append("special character")
    if missing:
        raise ValueError(f"password is missing: {', '.join(missing)}")

    if _REPEATING_CHARS.search(value):
        raise ValueError("password must not repeat a character 3 or more times in a row")
    return value


class User(BaseModel):
    """
    Mongo document model for the users collection.

    `tenant_id` is set iff `role` is on the platform track.
    """

    id: str
    tenant_id: str | None = None
    role: Role
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime


class UserResponse(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    tenant_id: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            tenant_id=user.tenant_id,
        )


class RegistrationRequest(BaseModel):
    email: EmailStr
    password: SecretStr
    first_name: str
    last_name: str
    role_name: Role = Role.TENANT

    @field_validator("first_name", "last_name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return validate_name(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: SecretStr) -> SecretStr:
        validate_password(v.get_secret_value())
        return v

    @field_validator("role_name", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return _coerce_role(v)


class RoleUpdateRequest(BaseModel):
    role_name: Role

    @field_validator("role_name", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return _coerce_role(v)


class OwnerRegistrationRequest(BaseModel):
    """Internal request: make an existing user the owner of a new platform."""

    user_id: str
    platform_id: str


class UserSearchCriteria(BaseModel):
    """
    Optional administrative search refinements for user listing.

    These only ever narrow the caller's visible set.
    `host_scoped=True` restricts to users without a tenant.
    `email` is normalized the same way registration stores it.
    """

    id: Optional[str] = None
    email: Optional[EmailStr] = None
    roles: Optional[List[Role]] = None
    tenant_id: Optional[str] = None
    host_scoped: bool = False
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("roles", mode="before")
    @classmethod
    def normalize_roles(cls, v):
        if v is None:
            return v
        if isinstance(v, str):
            v = [v]
        return [_coerce_role(item) for item in v]


class UserPage(BaseModel):
    users: list[UserResponse] = Field(default_factory=list)
    totalElements: int = 0
    totalPages: int = 0
    currentPage: int = 0
