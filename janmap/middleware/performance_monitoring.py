# 요청 로깅 / 응답 시간 측정 미들웨어

import time
import logging
import json
from threading import Lock
from typing import Callable, Dict, List
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from janmap.core.config import settings

logger = logging.getLogger(__name__)


def _route_path(request: Request) -> str:
    """/v1/shops/12/stations -> /v1/shops/{shop_id}/stations (경로별 집계용)"""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class PerformanceMonitoringMiddleware(BaseHTTPMiddleware):
    """
    모든 HTTP 요청의 응답 시간을 측정해서 로그 + 메트릭 수집기에 기록

    느린 요청(threshold 초과)은 경고로 로깅
    """

    def __init__(self, app: ASGIApp, collector: "MetricsCollector" = None):
        super().__init__(app)
        self.slow_threshold_ms = settings.SLOW_REQUEST_THRESHOLD_MS
        self.collector = collector or get_metrics_collector()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_time_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"요청 처리 중 예외 발생: {request.method} {request.url.path}, "
                f"소요시간={elapsed_time_ms:.2f}ms, 예외={e}",
                exc_info=True,
            )
            self.collector.record_request(
                _route_path(request), request.method, 500, elapsed_time_ms, is_slow=False
            )
            raise

        elapsed_time_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Process-Time-Ms"] = f"{elapsed_time_ms:.2f}"

        is_slow = elapsed_time_ms > self.slow_threshold_ms
        self._log_performance_metrics(request, response, elapsed_time_ms, is_slow)
        self.collector.record_request(
            _route_path(request),
            request.method,
            response.status_code,
            elapsed_time_ms,
            is_slow=is_slow,
        )
        return response

    def _log_performance_metrics(
        self, request: Request, response: Response, elapsed_time_ms: float, is_slow: bool
    ) -> None:
        metrics = {
            "event": "http_request",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "elapsed_time_ms": round(elapsed_time_ms, 2),
            "slow_request": is_slow,
        }

        if request.query_params:
            metrics["query_params"] = dict(request.query_params)

        if request.client:
            metrics["client_host"] = request.client.host

        if is_slow:
            logger.warning(
                f"⚠️ 느린 요청 감지: {request.method} {request.url.path}, "
                f"소요시간={elapsed_time_ms:.2f}ms (기준: {self.slow_threshold_ms}ms)"
            )

        logger.info(f"PERFORMANCE: {json.dumps(metrics, ensure_ascii=False)}")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로깅 (4xx 이상은 WARNING / 5xx는 ERROR)"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        logger.info(
            f"→ {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        response = await call_next(request)

        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO
        logger.log(
            log_level,
            f"← {request.method} {request.url.path} status={response.status_code}",
        )

        return response


class MetricsCollector:
    """프로세스 메모리에 요청 메트릭 누적 (worker 단위)"""

    def __init__(self):
        self._lock = Lock()
        self.reset()

    def reset(self):
        self.request_count = 0
        self.total_elapsed_time_ms = 0.0
        self.slow_request_count = 0
        self.error_count = 0
        self.path_stats: Dict[str, Dict] = {}

    def record_request(
        self,
        path: str,
        method: str,
        status_code: int,
        elapsed_time_ms: float,
        is_slow: bool = False,
    ):
        with self._lock:
            self.request_count += 1
            self.total_elapsed_time_ms += elapsed_time_ms

            if is_slow:
                self.slow_request_count += 1
            if status_code >= 400:
                self.error_count += 1

            stats = self.path_stats.setdefault(
                f"{method} {path}",
                {"count": 0, "total_time_ms": 0.0, "slow_count": 0, "error_count": 0},
            )
            stats["count"] += 1
            stats["total_time_ms"] += elapsed_time_ms
            if is_slow:
                stats["slow_count"] += 1
            if status_code >= 400:
                stats["error_count"] += 1

    def get_summary(self) -> dict:
        count = self.request_count
        return {
            "total_requests": count,
            "average_elapsed_time_ms": round(self.total_elapsed_time_ms / count, 2) if count else 0,
            "slow_requests": self.slow_request_count,
            "error_requests": self.error_count,
            "success_rate": round((count - self.error_count) / count * 100, 2) if count else 0,
        }

    def get_path_stats(self, top_n: int = 10) -> List[dict]:
        """요청 수 기준 상위 N개 경로"""
        sorted_paths = sorted(
            self.path_stats.items(), key=lambda x: x[1]["count"], reverse=True
        )

        return [
            {
                "path": path,
                "count": stats["count"],
                "avg_time_ms": round(stats["total_time_ms"] / stats["count"], 2),
                "slow_count": stats["slow_count"],
                "error_count": stats["error_count"],
            }
            for path, stats in sorted_paths[:top_n]
        ]


# 전역 메트릭 수집기 인스턴스
_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics_collector
