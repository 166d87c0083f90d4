from __future__ import annotations

from typing import Any

import httpx
from pydantic import SecretStr

from users_service.configs.logging_config import get_logger
from users_service.errors import UpstreamError

log = get_logger(__name__)


class AuthServiceClient:
    """Registers credentials with the authentication service."""

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = client or httpx.AsyncClient(timeout=timeout)

    async def _post(self, path: str, payload: dict[str, Any]) -> None:
        url = f"{self.base_url}{path}"
        try:
            resp = await self.session.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            log.error(
                "auth_client.error path=%s status=%s",
                path,
                exc.response.status_code,
            )
            raise UpstreamError(f"auth service error: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            log.error("auth_client.unreachable path=%s error=%s", path, str(exc))
            raise UpstreamError("auth service unavailable") from exc

    async def create_user(
        self,
        email: str,
        password: SecretStr,
        user_id: str,
        platform_id: str | None,
    ) -> None:
        log.info("auth_client.create_user user_id=%s platform_id=%s", user_id, platform_id)
        await self._post(
            "/api/auth/register",
            {
                "email": email,
                "password": password.get_secret_value(),
                "id": user_id,
                "platformId": platform_id,
            },
        )

    async def create_owner(self, current_user_id: str, owner_id: str, platform_id: str) -> None:
        log.info(
            "auth_client.create_owner current_user_id=%s owner_id=%s platform_id=%s",
            current_user_id,
            owner_id,
            platform_id,
        )
        await self._post(
            "/api/auth/owner",
            {
                "currentUserId": current_user_id,
                "newUserId": owner_id,
                "platformId": platform_id,
            },
        )

    async def aclose(self) -> None:
        await self.session.aclose()
