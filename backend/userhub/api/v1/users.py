# 사용자 라우터
# - POST   /api/v1/users        : 사용자 생성
# - GET    /api/v1/users        : 목록 조회 (current, pageSize + 자유 형식 필터/정렬 쿼리)
# - GET    /api/v1/users/{id}   : 단건 조회 (비밀번호 제외)
# - PATCH  /api/v1/users        : 부분 수정 (본문의 _id 기준)
# - DELETE /api/v1/users/{id}   : 삭제

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ...core.exceptions import DuplicateEmailError, HashingError, InvalidIdError, StorageError, UserServiceError
from ...schemas.user_schema import CreatedUser, DeleteOutcome, UpdateOutcome, UserCreate, UserPage, UserPublic, UserUpdate
from ...services.user_service import UserService, get_user_service

router = APIRouter(prefix="/users", tags=["users"])


def to_http_error(error: UserServiceError) -> HTTPException:
    # 클라이언트 잘못은 400, 저장소 장애는 503, 그 외 서버 오류는 500
    if isinstance(error, (DuplicateEmailError, InvalidIdError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, StorageError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    if isinstance(error, HashingError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not process password")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)


@router.post("", response_model=CreatedUser, status_code=status.HTTP_201_CREATED, summary="사용자 생성 (이메일 중복 체크 포함)")
async def create_user(payload: UserCreate, service: UserService = Depends(get_user_service)):
    try:
        return await service.create(payload)
    except UserServiceError as e:
        raise to_http_error(e)


@router.get("", response_model=UserPage, summary="사용자 목록 (필터/정렬/페이지네이션)")
async def list_users(
    request: Request,
    current: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    service: UserService = Depends(get_user_service),
):
    try:
        return await service.list(request.url.query, current, page_size)
    except UserServiceError as e:
        raise to_http_error(e)


@router.get("/{user_id}", response_model=Optional[UserPublic], summary="사용자 단건 조회")
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    try:
        return await service.get_by_id(user_id)
    except UserServiceError as e:
        raise to_http_error(e)


@router.patch("", response_model=UpdateOutcome, summary="사용자 부분 수정")
async def update_user(payload: UserUpdate, service: UserService = Depends(get_user_service)):
    try:
        return await service.update(payload)
    except UserServiceError as e:
        raise to_http_error(e)


@router.delete("/{user_id}", response_model=DeleteOutcome, summary="사용자 삭제")
async def remove_user(user_id: str, service: UserService = Depends(get_user_service)):
    try:
        return await service.remove(user_id)
    except UserServiceError as e:
        raise to_http_error(e)
