# FastAPI 진입점
# - Beanie ODM 초기화 (MongoDB)
# - 라우터 라우팅 (전역 prefix /api/v1, 헬스체크는 제외)
# - CORS 설정

import logging
from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from .core.config import settings
from .models.user import User
from .api.v1.auth import router as auth_router
from .api.v1.users import router as users_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# FastAPI 애플리케이션 인스턴스 생성
app = FastAPI(
    title="사용자 관리 서비스 API",
    description="사용자 CRUD, 회원가입, 목록 조회",
    version="1.0.0"
)

# CORS 허용 도메인 세팅
origins = [o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Beanie 초기화 (앱 시작 시 1회)
# 연결에 실패해도 서버는 시작되고, 저장소 호출은 StorageError(503)로 응답합니다.
@app.on_event("startup")
async def app_init():
    try:
        client = AsyncIOMotorClient(settings.MONGODB_URI, serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS)
        await client.admin.command('ping')

        db = client.get_default_database()
        # init_beanie가 users.email unique 인덱스도 생성합니다
        await init_beanie(database=db, document_models=[User])
        logger.info(f"MongoDB 연결 성공: {settings.MONGODB_URI}")
    except Exception as e:
        logger.warning(f"MongoDB 연결 실패: {e}")
        logger.info("서버는 계속 시작됩니다. 사용자 API는 DB 연결 전까지 503을 반환합니다.")

# 간단한 헬스체크
@app.get("/")
async def root():
    return {"ok": True, "app": settings.APP_NAME, "time": datetime.now(tz=timezone.utc).isoformat()}

@app.get("/health")
async def health_check():
    return {"status": "ok", "app": settings.APP_NAME, "version": "1.0.0"}

# API v1 라우터 등록
app.include_router(users_router, prefix="/api/v1")
app.include_router(auth_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("userhub.main:app", host=settings.HOST, port=settings.PORT)
