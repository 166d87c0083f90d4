from __future__ import annotations

from typing import Any

from jose import JWTError, jwt

from users_service.configs.logging_config import get_logger
from users_service.configs.settings import Settings
from users_service.errors import AuthError

log = get_logger(__name__)


def decode_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Decode and validate a JWT issued by the auth service.

    Only shared-secret algorithms (HS256 by default) are configured here.
    """
    try:
        options = {"verify_aud": settings.jwt_audience is not None}
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_alg],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=options,
        )
        log.debug(
            "jwt.decode ok sub=%s role=%s",
            claims.get("sub"),
            claims.get(settings.jwt_role_claim),
        )
        return claims
    except JWTError as e:
        log.info("jwt.decode failed: %s", str(e))
        raise AuthError("invalid token") from e
