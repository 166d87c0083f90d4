from __future__ import annotations

import redis.asyncio as redis

from users_service.configs.logging_config import get_logger
from users_service.configs.settings import Settings
from users_service.domain.entities.user import User

log = get_logger(__name__)

USER_CREATED = "USER_CREATED"
USER_REMOVED = "USER_REMOVED"
USER_ROLE_UPDATED = "USER_ROLE_UPDATED"


async def open_event_stream(settings: Settings) -> redis.Redis | None:
    """Connect to the Redis instance holding the user event stream, if events are on."""
    if not settings.events_enabled:
        log.info("events.disabled")
        return None
    try:
        log.info(f"Connecting to Redis at {settings.redis_url}")
        client = redis.from_url(settings.redis_url, decode_responses=True)
        await client.ping()
        log.info("Connected to Redis")
    except Exception as e:
        log.error(f"Error connecting to Redis: {e}")
        raise
    return client


class UserEventPublisher:
    """Appends user lifecycle events to a Redis stream."""

    def __init__(self, client: redis.Redis | None, stream: str, enabled: bool = True):
        self._redis = client
        self._stream = stream
        self._enabled = enabled

    async def publish(self, event: str, user: User, actor_id: str | None) -> None:
        if not self._enabled or self._redis is None:
            log.debug("events.skip event=%s user_id=%s", event, user.id)
            return
        log.info(
            "events.publish stream=%s event=%s user_id=%s",
            self._stream,
            event,
            user.id,
        )
        await self._redis.xadd(
            self._stream,
            {
                "event": event,
                "user_id": user.id,
                "tenant_id": user.tenant_id or "",
                "role": user.role.value,
                "actor_id": actor_id or "",
            },
        )

    async def aclose(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
