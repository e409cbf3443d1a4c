# User 도메인 모델 (Beanie Document)
# - 이름, 이메일, 비밀번호 해시, 연락처/주소/이미지(선택)
# - 회원가입으로 만든 사용자에게만 인증 코드(code_id/code_expired)가 있음
# - 이메일은 unique 인덱스 (서비스의 중복 체크보다 이 인덱스가 최종 보장)

from datetime import datetime, timezone
from typing import Optional
from beanie import Document, Indexed
from pydantic import EmailStr, Field

def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)

class User(Document):
    name: str
    email: Indexed(EmailStr, unique=True)  # 중복 방지 인덱스
    password: str = Field(repr=False)  # bcrypt 해시만 저장
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None
    code_id: Optional[str] = None
    code_expired: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"  # 컬렉션명
