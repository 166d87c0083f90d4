from __future__ import annotations

from dataclasses import dataclass

from users_service.domain.roles import Role, tenant_scope_is_valid


@dataclass(frozen=True)
class Principal:
    """The authenticated caller for one request: role, tenant scope and subject id."""

    role: Role
    tenant_id: str | None
    subject_id: str

    def __post_init__(self) -> None:
        if not tenant_scope_is_valid(self.role, self.tenant_id):
            raise ValueError(
                f"principal with role {self.role.value} has invalid tenant scope"
            )
