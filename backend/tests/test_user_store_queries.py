# 저장소 쿼리 테스트 (mongomock-motor 위에 실제 Beanie 초기화)
# - 프로젝션으로 비밀번호가 빠지는지, 정렬/페이지/카운트/수정/삭제가 Mongo 쿼리로 동작하는지 확인

import pytest
import pytest_asyncio
from beanie import init_beanie
from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient

from userhub.core.exceptions import DuplicateEmailError
from userhub.models.user import User
from userhub.repositories.user_repository import UserRepository
from userhub.schemas.user_schema import UserInDB, UserPublic


@pytest_asyncio.fixture
async def store(monkeypatch):
    # 테스트가 끝나면 User를 다시 미초기화 상태로 되돌립니다
    monkeypatch.setattr(User, "_document_settings", None)
    client = AsyncMongoMockClient()
    await init_beanie(database=client["userhub_test"], document_models=[User])
    return UserRepository()


async def add_user(store, i, **extra):
    return await store.insert({"name": f"user{i}", "email": f"user{i}@x.com", "password": f"hash{i}", **extra})


@pytest.mark.asyncio
async def test_insert_and_read_back(store):
    user_id = await add_user(store, 1, phone="0912345678")

    public = await store.find_by_id(str(user_id))
    assert type(public) is UserPublic
    assert public.id == user_id
    assert public.phone == "0912345678"
    assert "password" not in public.model_dump()

    full = await store.find_by_email("user1@x.com")
    assert type(full) is UserInDB
    assert full.password == "hash1"
    assert await store.find_by_email("nobody@x.com") is None


@pytest.mark.asyncio
async def test_exists(store):
    await add_user(store, 1)
    assert await store.exists("user1@x.com")
    assert not await store.exists("nobody@x.com")


@pytest.mark.asyncio
async def test_unique_index_rejects_duplicate_email(store):
    await add_user(store, 1)
    with pytest.raises(DuplicateEmailError):
        await store.insert({"name": "other", "email": "user1@x.com", "password": "hash"})
    assert await store.count({}) == 1


@pytest.mark.asyncio
async def test_find_sort_skip_limit(store):
    for i in range(5):
        await add_user(store, i)

    page = await store.find({}, sort=[("name", -1)], skip=1, limit=2)
    assert [u.name for u in page] == ["user3", "user2"]
    assert all(type(u) is UserPublic for u in page)

    page = await store.find({"name": {"$in": ["user0", "user4"]}}, sort=[("name", 1)])
    assert [u.name for u in page] == ["user0", "user4"]


@pytest.mark.asyncio
async def test_count(store):
    for i in range(4):
        await add_user(store, i)
    assert await store.count({}) == 4
    assert await store.count({"name": {"$in": ["user1", "user2", "nobody"]}}) == 2
    assert await store.count({"name": "nobody"}) == 0


@pytest.mark.asyncio
async def test_update_sets_only_given_fields(store):
    user_id = await add_user(store, 1, address="Hanoi")
    before = await store.find_by_id(str(user_id))

    outcome = await store.update_by_id(str(user_id), {"name": "B"})
    assert outcome.matched_count == 1
    assert outcome.modified_count == 1

    after = await store.find_by_id(str(user_id))
    assert after.name == "B"
    assert after.address == "Hanoi"
    assert after.email == "user1@x.com"
    assert after.updated_at >= before.updated_at
    assert (await store.find_by_email("user1@x.com")).password == "hash1"


@pytest.mark.asyncio
async def test_update_unknown_id(store):
    await add_user(store, 1)
    outcome = await store.update_by_id(str(ObjectId()), {"name": "B"})
    assert outcome.matched_count == 0
    assert (await store.find_by_email("user1@x.com")).name == "user1"


@pytest.mark.asyncio
async def test_delete(store):
    user_id = await add_user(store, 1)

    outcome = await store.delete_by_id(str(user_id))
    assert outcome.deleted_count == 1
    assert await store.find_by_id(str(user_id)) is None

    outcome = await store.delete_by_id(str(user_id))
    assert outcome.deleted_count == 0
