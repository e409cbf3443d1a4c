# 보안 유틸리티
# - 비밀번호 해싱/검증 (passlib + bcrypt)
# - bcrypt는 CPU를 많이 쓰므로 스레드풀에서 실행하여 이벤트 루프를 막지 않습니다.

import logging

from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext

from .config import settings
from .exceptions import HashingError

logger = logging.getLogger(__name__)


class PasswordHasher:
    def __init__(self, rounds: int = settings.BCRYPT_ROUNDS):
        self.rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def _hash(self, plain_password: str) -> str:
        try:
            hashed = self._context.hash(plain_password)
        except (ValueError, TypeError) as e:
            logger.error(f"[security] bcrypt hash failed: {e}", exc_info=True)
            raise HashingError(str(e)) from e
        if not hashed:
            raise HashingError("empty hash returned")
        return hashed

    def _verify(self, plain_password: str, hashed_password: str) -> bool:
        # 불일치는 False, 해시 형식이 잘못되어 비교 자체가 불가능하면 HashingError
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            raise HashingError(str(e)) from e

    async def hash(self, plain_password: str) -> str:
        return await run_in_threadpool(self._hash, plain_password)

    async def verify(self, plain_password: str, hashed_password: str) -> bool:
        return await run_in_threadpool(self._verify, plain_password, hashed_password)


password_hasher = PasswordHasher()

def get_password_hasher() -> PasswordHasher:
    return password_hasher
