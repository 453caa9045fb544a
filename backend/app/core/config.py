# 설정 모듈
# - .env 값들을 한 곳에서 관리
# - 기본값을 제공하여 로컬 실행 편의성 확보

from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Set
from pydantic import Field

# 프로젝트 루트 디렉토리 경로 찾기
# 주니어 개발자님께: 이 파일은 backend/app/core/config.py에 있으므로,
# backend 디렉토리에서 2단계 상위로 올라가면 프로젝트 루트가 됩니다.
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ENV_FILE_PATH = PROJECT_ROOT / ".env"

class Settings(BaseSettings):
    APP_NAME: str = "user-directory"
    APP_VERSION: str = "1.0.0"
    ENV: str = "dev"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    MONGODB_URI: str = "mongodb://localhost:27017/user_directory"
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # 저장소 구현 선택: "mongo" (Beanie/Motor) 또는 "memory" (로컬 개발/테스트용)
    STORAGE_BACKEND: str = Field(default="mongo", description="mongo | memory")

    CORS_ALLOW_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # 가입을 허용하지 않는 일회용 이메일 도메인 (쉼표로 구분)
    DISPOSABLE_EMAIL_DOMAINS: str = "tempmail.com,throwaway.com"

    DEFAULT_PAGE_SIZE: int = 10
    SEARCH_RESULT_LIMIT: int = 50

    model_config = SettingsConfigDict(
        # 주니어 개발자님께: env_file에 절대 경로를 지정하면 backend 디렉토리에서 실행해도
        # 프로젝트 루트의 .env 파일을 찾을 수 있습니다.
        env_file=str(ENV_FILE_PATH) if ENV_FILE_PATH.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def disposable_domains(self) -> Set[str]:
        return {d.strip().lower() for d in self.DISPOSABLE_EMAIL_DOMAINS.split(",") if d.strip()}

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]

settings = Settings()
