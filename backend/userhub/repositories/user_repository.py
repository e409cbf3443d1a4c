# 사용자 저장소 레이어
# - 데이터 접근(조회/생성/수정/삭제)만 담당 (서비스 로직 분리)
# - 목록/단건 조회는 비밀번호를 뺀 UserPublic 프로젝션으로 읽습니다
# - pymongo/Beanie 예외는 StorageError로 바꿔서 올립니다 (재시도 없음)

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Tuple

from beanie import PydanticObjectId
from beanie.exceptions import CollectionWasNotInitialized
from beanie.odm.enums import SortDirection
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..core.exceptions import DuplicateEmailError, StorageError
from ..models.user import User, utcnow
from ..schemas.user_schema import DeleteOutcome, UpdateOutcome, UserInDB, UserPublic

logger = logging.getLogger(__name__)


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


@asynccontextmanager
async def _storage_call(operation: str):
    try:
        yield
    except CollectionWasNotInitialized as e:
        logger.error(f"[users] {operation}: MongoDB not initialised")
        raise StorageError(operation, "database is not initialised") from e
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        logger.error(f"[users] {operation} failed: {e}", exc_info=True)
        raise StorageError(operation, str(e)) from e


class UserRepository:
    async def exists(self, email: str) -> bool:
        async with _storage_call("exists"):
            return await User.find({"email": email}).count() > 0

    async def insert(self, record: Dict[str, Any]) -> PydanticObjectId:
        try:
            async with _storage_call("insert"):
                user = User(**record)
                await user.insert()
        except DuplicateKeyError as e:
            # 서비스의 사전 중복 체크를 통과한 동시 요청은 unique 인덱스에서 걸립니다
            raise DuplicateEmailError(record.get("email")) from e
        return user.id

    async def find_by_id(self, user_id: str) -> Optional[UserPublic]:
        object_id = to_object_id(user_id)
        if object_id is None:
            return None
        async with _storage_call("find_by_id"):
            return await User.find_one({"_id": object_id}, projection_model=UserPublic)

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        async with _storage_call("find_by_email"):
            return await User.find_one({"email": email}, projection_model=UserInDB)

    async def find(
        self,
        query_filter: Dict[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[UserPublic]:
        sort_spec = [(field, SortDirection(direction)) for field, direction in sort] if sort else None
        async with _storage_call("find"):
            return await User.find(
                query_filter,
                skip=skip,
                limit=limit,
                sort=sort_spec,
                projection_model=UserPublic,
            ).to_list()

    async def count(self, query_filter: Dict[str, Any]) -> int:
        async with _storage_call("count"):
            return await User.find(query_filter).count()

    async def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> UpdateOutcome:
        object_id = to_object_id(user_id)
        if object_id is None:
            return UpdateOutcome(acknowledged=True, matched_count=0, modified_count=0)
        changes = {**fields, "updated_at": utcnow()}
        async with _storage_call("update_by_id"):
            result = await User.get_motor_collection().update_one({"_id": object_id}, {"$set": changes})
        return UpdateOutcome(
            acknowledged=result.acknowledged,
            matched_count=result.matched_count,
            modified_count=result.modified_count,
        )

    async def delete_by_id(self, user_id: str) -> DeleteOutcome:
        object_id = to_object_id(user_id)
        if object_id is None:
            return DeleteOutcome(acknowledged=True, deleted_count=0)
        async with _storage_call("delete_by_id"):
            result = await User.get_motor_collection().delete_one({"_id": object_id})
        return DeleteOutcome(acknowledged=result.acknowledged, deleted_count=result.deleted_count)
