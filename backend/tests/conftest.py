# 테스트 공용 픽스처
# - MongoDB 없이 서비스/라우터를 검증하기 위한 인메모리 저장소
# - UserRepository와 같은 메서드/반환 타입을 가집니다

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

from userhub.core.exceptions import DuplicateEmailError
from userhub.core.security import PasswordHasher
from userhub.main import app
from userhub.repositories.user_repository import to_object_id
from userhub.schemas.user_schema import DeleteOutcome, UpdateOutcome, UserInDB, UserPublic
from userhub.services.user_service import UserService, get_user_service


def _matches(doc: Dict[str, Any], query_filter: Dict[str, Any]) -> bool:
    for key, cond in query_filter.items():
        value = doc.get(key)
        if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
            for op, arg in cond.items():
                if op == "$in" and value not in arg:
                    return False
                if op == "$nin" and value in arg:
                    return False
                if op == "$ne" and value == arg:
                    return False
                if op == "$exists" and (key in doc and doc[key] is not None) != arg:
                    return False
                if op == "$gt" and not (value is not None and value > arg):
                    return False
                if op == "$gte" and not (value is not None and value >= arg):
                    return False
                if op == "$lt" and not (value is not None and value < arg):
                    return False
                if op == "$lte" and not (value is not None and value <= arg):
                    return False
        elif value != cond:
            return False
    return True


class FakeUserRepository:
    def __init__(self):
        self.docs: Dict[ObjectId, Dict[str, Any]] = {}

    async def exists(self, email: str) -> bool:
        return any(doc["email"] == email for doc in self.docs.values())

    async def insert(self, record: Dict[str, Any]) -> ObjectId:
        # unique 인덱스 흉내
        if await self.exists(record["email"]):
            raise DuplicateEmailError(record["email"])
        now = datetime.now(tz=timezone.utc)
        object_id = ObjectId()
        self.docs[object_id] = {**record, "_id": object_id, "created_at": now, "updated_at": now}
        return object_id

    async def find_by_id(self, user_id: str) -> Optional[UserPublic]:
        object_id = to_object_id(user_id)
        doc = self.docs.get(object_id) if object_id else None
        return UserPublic.model_validate(doc) if doc else None

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        for doc in self.docs.values():
            if doc["email"] == email:
                return UserInDB.model_validate(doc)
        return None

    async def find(
        self,
        query_filter: Dict[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[UserPublic]:
        docs = [doc for doc in self.docs.values() if _matches(doc, query_filter)]
        for key, direction in reversed(sort or []):
            docs.sort(key=lambda d: (d.get(key) is not None, d.get(key)), reverse=direction < 0)
        end = skip + limit if limit else None
        return [UserPublic.model_validate(doc) for doc in docs[skip:end]]

    async def count(self, query_filter: Dict[str, Any]) -> int:
        return len([doc for doc in self.docs.values() if _matches(doc, query_filter)])

    async def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> UpdateOutcome:
        doc = self.docs.get(to_object_id(user_id))
        if doc is None:
            return UpdateOutcome(acknowledged=True, matched_count=0, modified_count=0)
        modified = any(doc.get(k) != v for k, v in fields.items())
        doc.update(fields)
        return UpdateOutcome(acknowledged=True, matched_count=1, modified_count=int(modified))

    async def delete_by_id(self, user_id: str) -> DeleteOutcome:
        removed = self.docs.pop(to_object_id(user_id), None)
        return DeleteOutcome(acknowledged=True, deleted_count=1 if removed else 0)


@pytest.fixture
def repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def hasher() -> PasswordHasher:
    # 테스트 속도를 위해 최소 cost 사용
    return PasswordHasher(rounds=4)


@pytest.fixture
def service(repo, hasher) -> UserService:
    return UserService(repo, hasher)


@pytest_asyncio.fixture
async def client(service):
    app.dependency_overrides[get_user_service] = lambda: service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_user_service, None)
