from __future__ import annotations

from typing import Any

from fastapi import Depends, Header

from users_service.auth.jwt import decode_token
from users_service.auth.models import Principal
from users_service.configs.logging_config import get_logger
from users_service.configs.settings import Settings, get_settings
from users_service.domain.roles import parse_role
from users_service.errors import AuthError

log = get_logger(__name__)


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthError("missing authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("invalid authorization header")
    return token.strip()


def principal_from_claims(claims: dict[str, Any], settings: Settings) -> Principal:
    """Adapter from token claims to the Principal the authorization engine consumes."""
    user_id = claims.get("sub")
    raw_role = claims.get(settings.jwt_role_claim)
    tenant_id = claims.get(settings.jwt_tenant_claim)

    if not user_id or not raw_role:
        log.info(
            "auth.token_missing_claims has_sub=%s has_role=%s",
            bool(user_id),
            bool(raw_role),
        )
        raise AuthError("token missing required claims")

    try:
        role = parse_role(str(raw_role))
        principal = Principal(
            role=role,
            tenant_id=str(tenant_id) if tenant_id else None,
            subject_id=str(user_id),
        )
    except ValueError as e:
        log.info("auth.invalid_principal sub=%s role=%s error=%s", user_id, raw_role, str(e))
        raise AuthError("invalid principal claims") from e

    log.info(
        "auth.principal user_id=%s role=%s tenant_id=%s",
        principal.subject_id,
        principal.role.value,
        principal.tenant_id,
    )
    return principal


async def get_principal(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Principal:
    token = _bearer_token(authorization)
    claims = decode_token(token, settings)
    return principal_from_claims(claims, settings)


async def get_optional_principal(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Principal | None:
    """Anonymous callers get None; a present but invalid token is still rejected."""
    if not authorization:
        return None
    token = _bearer_token(authorization)
    claims = decode_token(token, settings)
    return principal_from_claims(claims, settings)
