# 인증 라우터
# - 회원가입: POST /api/v1/auth/register
#   (인증 코드는 저장만 하고, 토큰 발급/로그인은 이 서비스 범위 밖입니다)

from fastapi import APIRouter, Depends, status

from ...core.exceptions import UserServiceError
from ...schemas.user_schema import CreatedUser, UserRegister
from ...services.user_service import UserService, get_user_service
from .users import to_http_error

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=CreatedUser, status_code=status.HTTP_201_CREATED, summary="회원가입 (이메일 중복 체크 + 인증 코드 발급)")
async def register(payload: UserRegister, service: UserService = Depends(get_user_service)):
    try:
        return await service.register(payload)
    except UserServiceError as e:
        raise to_http_error(e)
