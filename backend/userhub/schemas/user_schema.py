# 요청/응답 스키마 정의 (Pydantic 모델)
# - 요청 스키마는 정의되지 않은 필드를 거부합니다 (extra="forbid")
# - 응답 스키마의 id는 Mongo와 같은 "_id" 키로 직렬화됩니다

from datetime import datetime
from typing import List, Optional

import phonenumbers
from beanie import PydanticObjectId
from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from ..core.config import settings


def _required(value, info: ValidationInfo):
    if value is None or value == "":
        raise ValueError(f"{info.field_name.capitalize()} is required")
    return value


def _valid_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        parsed = phonenumbers.parse(value, settings.PHONE_REGION)
    except phonenumbers.NumberParseException:
        raise ValueError("Phone number is not valid")
    if not phonenumbers.is_valid_number(parsed):
        raise ValueError("Phone number is not valid")
    return value


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    email: EmailStr
    password: str
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None

    @field_validator("name", "email", "password", mode="before")
    @classmethod
    def check_required(cls, value, info: ValidationInfo):
        return _required(value, info)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value):
        return _valid_phone(value)


class UserRegister(UserCreate):
    """회원가입 요청. 필드는 UserCreate와 같고, 인증 코드는 서버가 발급합니다."""


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str = Field(alias="_id")
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def check_id(cls, value):
        if value is None or value == "":
            raise ValueError("ID is required")
        if not isinstance(value, str) or not ObjectId.is_valid(value):
            raise ValueError("ID is not valid")
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value):
        return _valid_phone(value)

    def changes(self) -> dict:
        # 요청에 실제로 들어온 필드만 덮어씁니다
        return self.model_dump(exclude_unset=True, exclude_none=True, exclude={"id"})


class UserPublic(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: PydanticObjectId = Field(alias="_id")
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None
    code_id: Optional[str] = None
    code_expired: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserInDB(UserPublic):
    # 비밀번호 해시 포함. 자격 증명 확인용으로만 사용하고 응답으로 내보내지 않습니다.
    password: str = Field(repr=False)


class CreatedUser(BaseModel):
    id: str


class UserPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result: List[UserPublic]
    total_pages: int = Field(alias="totalPages")


class UpdateOutcome(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool
    matched_count: int = Field(alias="matchedCount")
    modified_count: int = Field(alias="modifiedCount")


class DeleteOutcome(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool
    deleted_count: int = Field(alias="deletedCount")
