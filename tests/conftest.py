from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest
from hypothesis import strategies as st

from users_service.auth.models import Principal
from users_service.domain.entities.user import User
from users_service.domain.roles import Role, requires_tenant
from users_service.repositories.user_filter import UserFilter

TENANTS = ["tenant-a", "tenant-b", "tenant-c"]


def make_user(role: Role, tenant_id: str | None = None, **overrides) -> User:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    data = {
        "id": str(uuid.uuid4()),
        "tenant_id": tenant_id,
        "role": role,
        "email": f"{uuid.uuid4().hex[:8]}@example.com",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "created_at": now,
        "updated_at": now,
    }
    data.update(overrides)
    return User(**data)


def make_principal(role: Role, tenant_id: str | None = None, subject_id: str = "caller") -> Principal:
    return Principal(role=role, tenant_id=tenant_id, subject_id=subject_id)


@st.composite
def principals(draw) -> Principal:
    role = draw(st.sampled_from(list(Role)))
    tenant = draw(st.sampled_from(TENANTS)) if requires_tenant(role) else None
    return make_principal(role, tenant)


@st.composite
def users(draw) -> User:
    role = draw(st.sampled_from(list(Role)))
    tenant = draw(st.sampled_from(TENANTS)) if requires_tenant(role) else None
    return make_user(role, tenant)


class InMemoryUserRepository:
    """Test double that evaluates filters with UserFilter.matches."""

    def __init__(self, seed: list[User] | None = None):
        self.users: dict[str, User] = {u.id: u for u in seed or []}
        self.filters: list[UserFilter] = []

    async def insert(self, user: User) -> str:
        self.users[user.id] = user
        return user.id

    async def find_by_id(self, user_id: str) -> User | None:
        return self.users.get(user_id)

    async def find_all(self, user_filter, *, skip, limit, sort=None):
        self.filters.append(user_filter)
        matched = [u for u in self.users.values() if user_filter.matches(u)]
        return matched[skip : skip + limit], len(matched)

    async def exists(self, user_filter) -> bool:
        self.filters.append(user_filter)
        return any(user_filter.matches(u) for u in self.users.values())

    async def update_role(self, user_id: str, role: Role) -> User | None:
        user = self.users.get(user_id)
        if user is None:
            return None
        updated = user.model_copy(update={"role": role})
        self.users[user_id] = updated
        return updated

    async def remove_by_id(self, user_id: str) -> bool:
        return self.users.pop(user_id, None) is not None


@pytest.fixture()
def repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()
