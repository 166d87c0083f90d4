from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, Union, assert_never

from users_service.domain.entities.user import User, UserSearchCriteria
from users_service.security.access_level import (
    AccessLevel,
    AllAccess,
    TenantAccess,
    TenantFilteredAccess,
)

# Model attribute -> Mongo document field, where they differ.
_MONGO_FIELDS = {"id": "_id"}


def _mongo_field(field: str) -> str:
    return _MONGO_FIELDS.get(field, field)


def _mongo_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class FieldEquals:
    field: str
    value: Any

    def matches(self, user: User) -> bool:
        return getattr(user, self.field) == self.value

    def to_mongo(self) -> dict[str, Any]:
        return {_mongo_field(self.field): _mongo_value(self.value)}


@dataclass(frozen=True)
class FieldIn:
    field: str
    values: frozenset[Any]

    def matches(self, user: User) -> bool:
        return getattr(user, self.field) in self.values

    def to_mongo(self) -> dict[str, Any]:
        values = sorted(_mongo_value(v) for v in self.values)
        return {_mongo_field(self.field): {"$in": values}}


Clause = Union[FieldEquals, FieldIn]


@dataclass(frozen=True)
class UserFilter:
    """
    Immutable conjunction of clauses over user records.

    `scope` holds the access-level clauses and is fixed at construction.
    Combinators only append to `refinements`, so a refined filter never
    matches a record its unrefined form would reject.
    """

    scope: tuple[Clause, ...] = ()
    refinements: tuple[Clause, ...] = ()

    @classmethod
    def unrestricted(cls) -> "UserFilter":
        return cls()

    @property
    def clauses(self) -> tuple[Clause, ...]:
        return self.scope + self.refinements

    def _and(self, clause: Clause) -> "UserFilter":
        return replace(self, refinements=self.refinements + (clause,))

    def with_id(self, user_id: str | None) -> "UserFilter":
        if user_id is None:
            return self
        return self._and(FieldEquals("id", user_id))

    def with_email(self, email: str | None) -> "UserFilter":
        if email is None:
            return self
        return self._and(FieldEquals("email", email))

    def with_roles(self, roles: Iterable[Any] | None) -> "UserFilter":
        if roles is None:
            return self
        return self._and(FieldIn("role", frozenset(roles)))

    def with_tenant(self, tenant_id: str | None) -> "UserFilter":
        # None is meaningful here: users without a tenant.
        return self._and(FieldEquals("tenant_id", tenant_id))

    def with_first_name(self, first_name: str | None) -> "UserFilter":
        if first_name is None:
            return self
        return self._and(FieldEquals("first_name", first_name))

    def with_last_name(self, last_name: str | None) -> "UserFilter":
        if last_name is None:
            return self
        return self._and(FieldEquals("last_name", last_name))

    def refine(self, search: UserSearchCriteria | None) -> "UserFilter":
        if search is None:
            return self
        out = (
            self.with_id(search.id)
            .with_email(search.email)
            .with_roles(search.roles)
        )
        if search.host_scoped:
            out = out.with_tenant(None)
        elif search.tenant_id is not None:
            out = out.with_tenant(search.tenant_id)
        return out.with_first_name(search.first_name).with_last_name(search.last_name)

    def matches(self, user: User) -> bool:
        return all(clause.matches(user) for clause in self.clauses)

    def to_mongo(self) -> dict[str, Any]:
        if not self.clauses:
            return {}
        return {"$and": [clause.to_mongo() for clause in self.clauses]}


def build_user_filter(level: AccessLevel) -> UserFilter:
    if isinstance(level, AllAccess):
        return UserFilter()
    if isinstance(level, TenantAccess):
        return UserFilter(scope=(FieldEquals("tenant_id", level.tenant_id),))
    if isinstance(level, TenantFilteredAccess):
        return UserFilter(
            scope=(
                FieldEquals("tenant_id", level.tenant_id),
                FieldIn("role", level.roles),
            )
        )
    assert_never(level)
