# 설정 모듈
# - .env 값들을 한 곳에서 관리
# - 기본값을 제공하여 로컬 실행 편의성 확보

from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from pydantic import Field

# 프로젝트 루트 디렉토리 경로 찾기
# 이 파일은 backend/userhub/core/config.py에 있으므로 4단계 상위가 프로젝트 루트입니다.
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ENV_FILE_PATH = PROJECT_ROOT / ".env"

class Settings(BaseSettings):
    APP_NAME: str = "userhub"
    ENV: str = "dev"
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    MONGODB_URI: str = "mongodb://localhost:27017/userhub"
    # 서버 선택 타임아웃(밀리초). 이 시간 안에 연결하지 못하면 시작 시 연결 실패로 처리합니다.
    MONGODB_TIMEOUT_MS: int = 5000

    CORS_ALLOW_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # bcrypt work factor. 값이 1 늘어날 때마다 해싱 비용이 2배가 됩니다.
    BCRYPT_ROUNDS: int = Field(default=10, ge=4, le=31, description="bcrypt cost parameter")

    # 회원가입 시 발급되는 인증 코드의 유효 시간 (분)
    VERIFY_CODE_TTL_MINUTES: int = 5

    DEFAULT_PAGE_SIZE: int = Field(default=10, ge=1)

    # 전화번호 검증 시 사용할 기본 국가 코드 (ISO 3166-1 alpha-2)
    PHONE_REGION: str = "VN"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH) if ENV_FILE_PATH.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
