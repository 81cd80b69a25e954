"""
JanMap Backend - FastAPI Application

雀荘 검색 서비스의 역 근접성 API
점포-역 지정, 주변 역 검색, 역 주변 점포 검색
"""

import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from janmap.core.config import settings
from janmap.core.exceptions import JanMapException, ValidationException
from janmap.db.database import initialize_pool, close_pool, get_db_connection
from janmap.db.cache import initialize_cache, get_station_index
from janmap.api.deps import get_geocode_cache, get_geocoding_client
from janmap.api.v1.router import api_router

# 성능 모니터링
from janmap.middleware.performance_monitoring import (
    PerformanceMonitoringMiddleware,
    RequestLoggingMiddleware,
    get_metrics_collector,
)

# 로깅 설정
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 생명주기 관리

    서버 시작 시 실행:
    - PostgreSQL 연결 풀 초기화
    - 역 데이터 캐시 + 공간 인덱스 초기화

    서버 종료 시 실행:
    - 지오코딩 HTTP 클라이언트 종료
    - PostgreSQL 연결 풀 종료
    """
    # ========== Startup ==========
    logger.info("=" * 60)
    logger.info("JanMap Backend 시작 중...")
    logger.info("=" * 60)

    try:
        logger.info("1/2 PostgreSQL 연결 풀 초기화 중...")
        initialize_pool()

        logger.info("2/2 역 데이터 캐시 초기화 중...")
        initialize_cache()

        logger.info("JanMap Backend 시작 완료!")

    except Exception as e:
        logger.error(f"❌ 초기화 실패: {e}", exc_info=True)
        raise

    yield

    # ========== Shutdown ==========
    logger.info("JanMap Backend 종료 중...")

    try:
        get_geocoding_client().close()
        close_pool()
        logger.info("✓ JanMap Backend 종료 완료")

    except Exception as e:
        logger.error(f"❌ 종료 중 오류: {e}", exc_info=True)


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="""
    ## 雀荘 검색 서비스 - 역 근접성 API

    ### 주요 기능
    - 🚉 점포 최근접 역 / 서브 역 지정 (도보 시간, 거리 정밀도)
    - 📍 좌표 / 주소 기준 주변 역 검색 (역 그룹 단위)
    - 🀄 역 주변 점포 검색 (영업 형태 / 룰 / 특징 필터)
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# CORS 설정
# allow_credentials=True일 때는 allow_origins에 ["*"]를 사용할 수 없음
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 성능 모니터링 미들웨어 추가
if settings.ENABLE_PERFORMANCE_MONITORING:
    app.add_middleware(PerformanceMonitoringMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    logger.info("✓ 성능 모니터링 미들웨어 활성화")

app.include_router(api_router, prefix="/v1")


# ========== Health Check Endpoints ==========


@app.get("/")
async def root():
    return {
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """
    헬스 체크 엔드포인트

    - 데이터베이스 연결 상태
    - Redis 연결 상태 (지오코딩 캐시, 장애 시에도 서비스는 동작)
    - 역 공간 인덱스 크기
    """
    try:
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
        db_status = "healthy"
    except Exception as e:
        logger.error(f"DB 헬스 체크 실패: {e}")
        db_status = "unhealthy"

    try:
        redis_status = "healthy" if get_geocode_cache().redis_client.ping() else "unhealthy"
    except Exception as e:
        logger.error(f"Redis 헬스 체크 실패: {e}")
        redis_status = "unhealthy"

    try:
        indexed_stations = len(get_station_index())
        index_status = "healthy" if indexed_stations > 0 else "unhealthy"
    except Exception as e:
        logger.error(f"역 인덱스 헬스 체크 실패: {e}")
        indexed_stations = 0
        index_status = "unhealthy"

    # Redis는 캐시 용도 => 전체 상태 판정에서 제외
    overall_status = (
        "healthy" if db_status == "healthy" and index_status == "healthy" else "unhealthy"
    )

    return JSONResponse(
        status_code=200 if overall_status == "healthy" else 503,
        content={
            "status": overall_status,
            "version": settings.VERSION,
            "timestamp": time.time(),
            "components": {
                "database": db_status,
                "redis": redis_status,
                "station_index": index_status,
            },
            "indexed_stations": indexed_stations,
        },
    )


@app.get("/v1/metrics")
async def get_metrics():
    """성능 메트릭 (worker 단위 집계)"""
    if not settings.ENABLE_PERFORMANCE_MONITORING:
        return {"message": "성능 모니터링이 비활성화되어 있습니다"}

    metrics = get_metrics_collector()
    return {
        "summary": metrics.get_summary(),
        "top_paths": metrics.get_path_stats(top_n=10),
        "configuration": {
            "slow_request_threshold_ms": settings.SLOW_REQUEST_THRESHOLD_MS,
        },
    }


# ========== Exception Handlers ==========


@app.exception_handler(JanMapException)
async def janmap_exception_handler(request: Request, exc: JanMapException):
    """서비스 계층 예외 -> {"message", "code"} 응답"""
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}",
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """요청 body / query 검증 실패 -> 서비스 예외와 같은 {"message", "code"} 형태"""
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} -> 422 VALIDATION_ERROR: {errors}")

    return JSONResponse(
        status_code=422,
        content={
            "message": ValidationException().message,
            "code": "VALIDATION_ERROR",
            "errors": errors,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"예상치 못한 오류: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "message": "サーバー内部エラーが発生しました。",
            "code": "INTERNAL_ERROR",
            "detail": str(exc) if settings.DEBUG else "Internal Server Error",
        },
    )


# ========== Development Server ==========

if __name__ == "__main__":
    import uvicorn

    logger.info("개발 서버 시작...")

    uvicorn.run(
        "janmap.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True,
        timeout_keep_alive=30,
    )
