from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import DuplicateKeyError

from conftest import make_user
from users_service.configs.settings import Settings
from users_service.domain.roles import Role
from users_service.errors import ConflictError
from users_service.repositories.user_filter import build_user_filter
from users_service.repositories.user_repository import UserRepository, doc_to_user, user_to_doc
from users_service.security.access_level import TenantFilteredAccess


@pytest.fixture()
def collection() -> MagicMock:
    col = MagicMock()
    col.insert_one = AsyncMock()
    col.find_one = AsyncMock()
    col.find_one_and_update = AsyncMock()
    col.delete_one = AsyncMock()
    col.count_documents = AsyncMock()
    col.create_index = AsyncMock()
    return col


@pytest.fixture()
def user_repo(collection: MagicMock) -> UserRepository:
    db = {"users": collection}
    return UserRepository(db, Settings())


def test_document_mapping() -> None:
    user = make_user(Role.PLATFORM_ADMIN, "tenant-a", id="u-1")
    doc = user_to_doc(user)
    assert doc["_id"] == "u-1"
    assert "id" not in doc
    assert doc["role"] == "ROLE_PLATFORM_ADMIN"
    assert doc_to_user(doc) == user


async def test_find_all_runs_filter_verbatim(user_repo, collection) -> None:
    stored = make_user(Role.PLATFORM_USER, "tenant-a")
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[user_to_doc(stored)])
    collection.find.return_value = cursor
    collection.count_documents.return_value = 11

    user_filter = build_user_filter(
        TenantFilteredAccess("tenant-a", frozenset({Role.PLATFORM_USER}))
    ).with_email(stored.email)
    users, total = await user_repo.find_all(user_filter, skip=10, limit=5)

    expected = {
        "$and": [
            {"tenant_id": "tenant-a"},
            {"role": {"$in": ["ROLE_PLATFORM_USER"]}},
            {"email": stored.email},
        ]
    }
    collection.find.assert_called_once_with(expected)
    collection.count_documents.assert_awaited_once_with(expected)
    cursor.skip.assert_called_once_with(10)
    cursor.limit.assert_called_once_with(5)
    assert users == [stored]
    assert total == 11


async def test_find_by_id_missing(user_repo, collection) -> None:
    collection.find_one.return_value = None
    assert await user_repo.find_by_id("nope") is None
    collection.find_one.assert_awaited_once_with({"_id": "nope"})


async def test_update_role_sets_value(user_repo, collection) -> None:
    stored = make_user(Role.PLATFORM_ADMIN, "tenant-a", id="u-1")
    collection.find_one_and_update.return_value = user_to_doc(stored)

    out = await user_repo.update_role("u-1", Role.PLATFORM_ADMIN)

    assert out == stored
    query, update = collection.find_one_and_update.await_args.args
    assert query == {"_id": "u-1"}
    assert update["$set"]["role"] == "ROLE_PLATFORM_ADMIN"


async def test_remove_reports_deletion(user_repo, collection) -> None:
    collection.delete_one.return_value = MagicMock(deleted_count=0)
    assert await user_repo.remove_by_id("u-1") is False


async def test_insert_duplicate_key_is_conflict(user_repo, collection) -> None:
    collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")
    with pytest.raises(ConflictError):
        await user_repo.insert(make_user(Role.TENANT))
