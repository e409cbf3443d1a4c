# 사용자 서비스 레이어
# - 이메일 중복 체크, 사용자 생성, 회원가입(인증 코드 발급)
# - 쿼리 문자열 기반 목록 조회 + 페이지네이션
# - 단건 조회/수정/삭제

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import Depends

from ..core.config import settings
from ..core.exceptions import DuplicateEmailError, InvalidIdError
from ..core.query_params import parse_query
from ..core.security import PasswordHasher, get_password_hasher
from ..repositories.user_repository import UserRepository, to_object_id
from ..schemas.user_schema import (
    CreatedUser,
    DeleteOutcome,
    UpdateOutcome,
    UserCreate,
    UserInDB,
    UserPage,
    UserPublic,
    UserRegister,
    UserUpdate,
)

logger = logging.getLogger(__name__)

# 목록 조회용 제어 파라미터. 레코드 필드가 아니므로 필터에서 제거합니다.
PAGINATION_KEYS = ("current", "pageSize")
# 비밀번호 해시는 조회 조건/정렬에 쓸 수 없습니다. $where는 서버 측 JS로 모든 필드를 읽을 수 있어 같이 막습니다.
PROTECTED_KEYS = ("password", "$where")


def _strip_protected(value: Any) -> Any:
    # $or/$and 등에 중첩된 조건까지 재귀적으로 제거
    if isinstance(value, dict):
        return {k: _strip_protected(v) for k, v in value.items() if k not in PROTECTED_KEYS}
    if isinstance(value, list):
        return [_strip_protected(v) for v in value]
    return value


def _page_number(value: Any, default: int) -> int:
    # 숫자가 아니거나 1보다 작으면 기본값 (예: current=abc -> 1페이지)
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


class UserService:
    def __init__(
        self,
        repo: UserRepository,
        hasher: PasswordHasher,
        code_ttl: timedelta = timedelta(minutes=settings.VERIFY_CODE_TTL_MINUTES),
        default_page_size: int = settings.DEFAULT_PAGE_SIZE,
    ):
        self.repo = repo
        self.hasher = hasher
        self.code_ttl = code_ttl
        self.default_page_size = default_page_size

    async def check_existed_user(self, email: str) -> bool:
        return await self.repo.exists(email)

    async def _insert_with_hashed_password(self, record: Dict[str, Any]) -> CreatedUser:
        # 사전 체크는 빠른 실패용. 최종 보장은 email unique 인덱스입니다.
        if await self.check_existed_user(record["email"]):
            logger.warning(f"[users] duplicate email rejected: {record['email']}")
            raise DuplicateEmailError(record["email"])

        # 해싱 실패(HashingError)는 그대로 올려서 저장하지 않습니다
        record["password"] = await self.hasher.hash(record["password"])
        user_id = await self.repo.insert(record)
        logger.info(f"[users] created user {user_id}")
        return CreatedUser(id=str(user_id))

    async def create(self, payload: UserCreate) -> CreatedUser:
        return await self._insert_with_hashed_password(payload.model_dump())

    async def register(self, payload: UserRegister) -> CreatedUser:
        """
        회원가입. create와 같지만 이메일 인증용 코드(code_id)와 만료 시각(code_expired)을 함께 저장합니다.
        인증 코드 발송/확인은 이 서비스 밖에서 처리합니다.
        """
        record = payload.model_dump()
        record["code_id"] = str(uuid4())
        record["code_expired"] = datetime.now(tz=timezone.utc) + self.code_ttl
        return await self._insert_with_hashed_password(record)

    async def list(self, query: Optional[str], current: Any = None, page_size: Any = None) -> UserPage:
        """
        쿼리 문자열의 필터/정렬로 사용자 목록을 페이지 단위로 조회합니다.

        페이지 위치는 current/page_size로만 정합니다. 쿼리 문자열의 skip, limit, fields는
        파싱되더라도 사용하지 않으며, 응답에는 항상 비밀번호를 뺀 전체 공개 필드가 들어갑니다.
        """
        spec = parse_query(query)
        for key in PAGINATION_KEYS:
            spec.filter.pop(key, None)
        query_filter = _strip_protected(spec.filter)
        sort = [(field, direction) for field, direction in spec.sort if field not in PROTECTED_KEYS]

        current = _page_number(current, 1)
        page_size = _page_number(page_size, self.default_page_size)

        total_items = await self.repo.count(query_filter)
        total_pages = math.ceil(total_items / page_size)
        skip = (current - 1) * page_size

        result = await self.repo.find(query_filter, sort=sort, skip=skip, limit=page_size)
        return UserPage(result=result, total_pages=total_pages)

    async def get_by_id(self, user_id: str) -> Optional[UserPublic]:
        return await self.repo.find_by_id(user_id)

    async def get_by_email(self, email: str) -> Optional[UserInDB]:
        return await self.repo.find_by_email(email)

    async def validate_credentials(self, email: str, password: str) -> Optional[UserInDB]:
        # 외부 인증 모듈용 자격 증명 확인. 토큰 발급은 하지 않습니다.
        user = await self.repo.find_by_email(email)
        if not user or not await self.hasher.verify(password, user.password):
            return None
        return user

    async def update(self, payload: UserUpdate) -> UpdateOutcome:
        return await self.repo.update_by_id(payload.id, payload.changes())

    async def remove(self, user_id: str) -> DeleteOutcome:
        if to_object_id(user_id) is None:
            raise InvalidIdError(user_id)
        outcome = await self.repo.delete_by_id(user_id)
        logger.info(f"[users] delete {user_id}: deleted_count={outcome.deleted_count}")
        return outcome


def get_user_service(
    repo: UserRepository = Depends(UserRepository),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserService:
    return UserService(repo, hasher)
