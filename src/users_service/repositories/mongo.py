from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from users_service.configs.logging_config import get_logger
from users_service.configs.settings import Settings

log = get_logger(__name__)


class MongoConnection:
    """Owns the Motor client backing the users database."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self.client: AsyncIOMotorClient | None = None
        self.db: AsyncIOMotorDatabase | None = None

    def connect(self) -> AsyncIOMotorDatabase:
        log.info("mongo.connect uri=%s db=%s", self._settings.mongo_uri, self._settings.mongo_db)
        # User ids are UUID strings; keep any native UUIDs in the standard binary form.
        self.client = AsyncIOMotorClient(self._settings.mongo_uri, uuidRepresentation="standard")
        self.db = self.client[self._settings.mongo_db]
        return self.db

    async def ping(self) -> bool:
        if self.db is None:
            return False
        try:
            await self.db.command("ping")
        except Exception as exc:
            log.warning("mongo.ping failed error=%s", str(exc))
            return False
        return True

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
            self.db = None
