from __future__ import annotations

from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from users_service.configs.logging_config import get_logger
from users_service.configs.settings import Settings
from users_service.domain.entities.user import User, utc_now
from users_service.domain.roles import Role
from users_service.errors import ConflictError
from users_service.repositories.user_filter import UserFilter

log = get_logger(__name__)


def user_to_doc(user: User) -> dict[str, Any]:
    doc = user.model_dump(exclude={"id"})
    doc["_id"] = user.id
    doc["role"] = user.role.value
    return doc


def doc_to_user(doc: dict[str, Any]) -> User:
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    return User(**data)


class UserRepository:
    """
    Persistence for user records.

    `find_all` and `exists` execute a UserFilter as given; scoping is
    decided by whoever built the filter.
    """

    def __init__(self, db: AsyncIOMotorDatabase, settings: Settings):
        self._db = db
        self._settings = settings
        self._col = db[settings.users_collection]

    async def ensure_indexes(self) -> None:
        log.info("repo.user.ensure_indexes start")
        # Email is unique within a tenant scope; host users share the null scope.
        await self._col.create_index([("tenant_id", 1), ("email", 1)], unique=True)
        await self._col.create_index([("tenant_id", 1), ("role", 1)])
        log.info("repo.user.ensure_indexes done")

    async def insert(self, user: User) -> str:
        log.info(
            "repo.user.insert user_id=%s tenant_id=%s role=%s",
            user.id,
            user.tenant_id,
            user.role.value,
        )
        try:
            res = await self._col.insert_one(user_to_doc(user))
        except DuplicateKeyError as e:
            # Lost a race with a concurrent registration on the (tenant_id, email) index.
            log.info("repo.user.insert duplicate tenant_id=%s", user.tenant_id)
            raise ConflictError("email already exists") from e
        return str(res.inserted_id)

    async def find_by_id(self, user_id: str) -> User | None:
        doc = await self._col.find_one({"_id": user_id})
        if not doc:
            log.info("repo.user.find_by_id not_found user_id=%s", user_id)
            return None
        return doc_to_user(doc)

    async def find_all(
        self,
        user_filter: UserFilter,
        *,
        skip: int,
        limit: int,
        sort: list[tuple[str, int]] | None = None,
    ) -> tuple[list[User], int]:
        q = user_filter.to_mongo()
        sort = sort or [("created_at", -1)]
        log.info(
            "repo.user.find_all skip=%s limit=%s sort=%s clauses=%s",
            skip,
            limit,
            sort,
            len(user_filter.clauses),
        )
        log.debug(f"executing query {q}")
        cursor = self._col.find(q).sort(sort).skip(skip).limit(limit)
        docs = await cursor.to_list(length=limit)
        total = await self._col.count_documents(q)
        return [doc_to_user(d) for d in docs], total

    async def exists(self, user_filter: UserFilter) -> bool:
        doc = await self._col.find_one(user_filter.to_mongo(), projection={"_id": 1})
        return doc is not None

    async def update_role(self, user_id: str, role: Role) -> User | None:
        log.info("repo.user.update_role user_id=%s role=%s", user_id, role.value)
        doc = await self._col.find_one_and_update(
            {"_id": user_id},
            {"$set": {"role": role.value, "updated_at": utc_now()}},
            return_document=True,
        )
        if not doc:
            log.info("repo.user.update_role not_found user_id=%s", user_id)
            return None
        return doc_to_user(doc)

    async def remove_by_id(self, user_id: str) -> bool:
        log.info("repo.user.remove user_id=%s", user_id)
        res = await self._col.delete_one({"_id": user_id})
        return res.deleted_count > 0
