from janmap.middleware.performance_monitoring import (
    PerformanceMonitoringMiddleware,
    RequestLoggingMiddleware,
    MetricsCollector,
    get_metrics_collector,
)

__all__ = [
    "PerformanceMonitoringMiddleware",
    "RequestLoggingMiddleware",
    "MetricsCollector",
    "get_metrics_collector",
]
