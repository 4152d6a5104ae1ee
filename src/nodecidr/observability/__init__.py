"""Observability - Metrics, health probes and logging."""

from .health import create_health_app, serve_health
from .logger import LogContext, clear_all_context, configure_logging, current_context
from .metrics import (
    FailureBucket,
    FailureSink,
    LoggerBackend,
    MetricsCollector,
    PrometheusBackend,
    bucket_for,
    get_global_collector,
    start_metrics_server,
)

__all__ = [
    "MetricsCollector",
    "LoggerBackend",
    "PrometheusBackend",
    "FailureBucket",
    "FailureSink",
    "bucket_for",
    "get_global_collector",
    "start_metrics_server",
    "create_health_app",
    "serve_health",
    "configure_logging",
    "current_context",
    "clear_all_context",
    "LogContext",
]
