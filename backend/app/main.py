# FastAPI 진입점
# - Beanie ODM 초기화 (MongoDB, STORAGE_BACKEND=mongo 일 때)
# - 라우터 라우팅
# - CORS 설정
# - 예외 → HTTP 응답 변환 (모든 에러는 필드/원인을 담은 JSON으로 응답)

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from beanie import init_beanie
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient

from .api.v1.users import router as users_router
from .core.config import settings
from .core.exceptions import UserServiceError
from .core.logging_config import setup_logging
from .models.user import UserDocument

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# FastAPI 애플리케이션 인스턴스 생성
app = FastAPI(
    title="사용자 관리 API",
    description="사용자 CRUD + 검색 + 통계 API (MongoDB)",
    version=settings.APP_VERSION,
)

# CORS 허용 도메인 세팅
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.mongo_client = None


# Beanie 초기화 (앱 시작 시 1회)
# 주니어 개발자님께: MongoDB 연결에 실패해도 서버는 시작됩니다.
# 이 경우 /health가 "degraded"를 반환하므로 모니터링에서 확인할 수 있습니다.
@app.on_event("startup")
async def app_init():
    if settings.STORAGE_BACKEND != "mongo":
        logger.info(f"[Startup] Storage backend: {settings.STORAGE_BACKEND} (MongoDB not used)")
        return
    try:
        # 주니어 개발자님께: serverSelectionTimeoutMS 안에 연결하지 못하면 타임아웃 에러가 발생합니다.
        client = AsyncIOMotorClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        )
        await client.admin.command("ping")

        db = client.get_default_database()
        await init_beanie(database=db, document_models=[UserDocument])
        app.state.mongo_client = client
        logger.info(f"[Startup] MongoDB connected: database={db.name}")
    except Exception as e:
        logger.error(f"[Startup] MongoDB connection failed: {e}", exc_info=True)
        logger.info("[Startup] Server keeps running; user endpoints will fail until MongoDB is reachable.")


@app.on_event("shutdown")
async def app_shutdown():
    client = app.state.mongo_client
    if client is not None:
        client.close()
        logger.info("[Shutdown] MongoDB connection closed")


# ---- 예외 처리 ----

def _error_body(request: Request, message: str, errors: Optional[Dict[str, str]] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "success": False,
        "message": message,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
        "path": request.url.path,
        "method": request.method,
    }
    if errors:
        body["errors"] = errors
    body.update(extra)
    return body


@app.exception_handler(UserServiceError)
async def user_service_error_handler(request: Request, exc: UserServiceError):
    if exc.status_code >= 500:
        logger.error(f"[API] {request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"[API] {request.method} {request.url.path} rejected ({exc.status_code}): {exc.message} {exc.errors or ''}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, exc.errors, **exc.extra),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    # 주니어 개발자님께: 본문 JSON 타입이 틀린 경우(FastAPI/Pydantic 단계)도
    # 같은 "필드 -> 메시지" 형식으로 400을 돌려줍니다.
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        errors.setdefault(".".join(loc) or "body", err.get("msg", "Invalid value"))
    logger.warning(f"[API] {request.method} {request.url.path} rejected (400): {errors}")
    return JSONResponse(status_code=400, content=_error_body(request, "Validation failed", errors))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"[API] Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    detail = {"error": str(exc)} if settings.ENV == "dev" else {}
    return JSONResponse(status_code=500, content=_error_body(request, "Internal server error", **detail))


# 간단한 헬스체크
@app.get("/")
async def root():
    return {"ok": True, "app": settings.APP_NAME, "time": datetime.now(tz=timezone.utc).isoformat()}


@app.get("/health")
async def health_check():
    database = "unavailable"
    if settings.STORAGE_BACKEND == "memory":
        database = "memory"
    elif app.state.mongo_client is not None:
        try:
            await app.state.mongo_client.admin.command("ping")
            database = "ok"
        except Exception as e:
            logger.warning(f"[Health] MongoDB ping failed: {e}")

    status = "ok" if database in ("ok", "memory") else "degraded"
    return JSONResponse(
        status_code=200 if status == "ok" else 503,
        content={
            "status": status,
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "storage": settings.STORAGE_BACKEND,
            "database": database,
        },
    )


# API v1 라우터 등록
app.include_router(users_router, prefix="/api/v1")
