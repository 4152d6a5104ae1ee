"""Metrics collection and failure classification."""

import threading
from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from enum import Enum
from typing import Any, Protocol

import structlog
from prometheus_client import CollectorRegistry, Histogram, start_http_server
from prometheus_client import Counter as PromCounter

from ..constants import (
    METRIC_K8S_FAILS,
    METRIC_NETBOX_FAILS,
    METRIC_NETBOX_LATENCY,
    METRIC_NETBOX_REQUESTS,
    METRIC_NETBOX_RESULT_FAILS,
    METRIC_RECONCILE_TOTAL,
)
from ..utils.exceptions import (
    CardinalityError,
    MalformedAddressError,
    NodeCIDRError,
    NodeUpdateError,
    RegistryUnavailable,
    ResolutionCancelled,
    UnassignedOwnerError,
)

logger = structlog.get_logger(__name__)

_HELP: dict[str, str] = {
    METRIC_NETBOX_FAILS: "number of failed netbox requests",
    METRIC_NETBOX_RESULT_FAILS: "number of times netbox results are too few or too many",
    METRIC_K8S_FAILS: "number of times k8s operations failed",
    METRIC_NETBOX_REQUESTS: "number of netbox requests by endpoint",
    METRIC_NETBOX_LATENCY: "netbox request latency in milliseconds",
    METRIC_RECONCILE_TOTAL: "number of node reconciles by outcome",
}

_LATENCY_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000)


class FailureBucket(str, Enum):
    """Failure counters a classified error can be charged to."""

    REGISTRY_TRANSPORT = METRIC_NETBOX_FAILS  # NetBox unreachable or misbehaving
    REGISTRY_RESULT = METRIC_NETBOX_RESULT_FAILS  # NetBox data does not resolve
    NODE_UPDATE = METRIC_K8S_FAILS  # Kubernetes node read/patch failed


# Checked in order; the first matching type wins.
_BUCKETS: tuple[tuple[type[NodeCIDRError], FailureBucket], ...] = (
    (RegistryUnavailable, FailureBucket.REGISTRY_TRANSPORT),
    (ResolutionCancelled, FailureBucket.REGISTRY_TRANSPORT),
    (CardinalityError, FailureBucket.REGISTRY_RESULT),
    (UnassignedOwnerError, FailureBucket.REGISTRY_RESULT),
    (MalformedAddressError, FailureBucket.REGISTRY_RESULT),
    (NodeUpdateError, FailureBucket.NODE_UPDATE),
)


def bucket_for(error: NodeCIDRError) -> FailureBucket:
    """
    Map a classified error to the counter it increments.

    Args:
        error: Any controller error

    Returns:
        The FailureBucket for the error

    Raises:
        TypeError: If the error type has no bucket
    """
    for error_type, bucket in _BUCKETS:
        if isinstance(error, error_type):
            return bucket
    raise TypeError(f"No failure bucket for {type(error).__name__}")


class FailureSink(Protocol):
    """Anything that can absorb classified failures."""

    def record_failure(self, error: NodeCIDRError) -> FailureBucket:
        """Charge error to its bucket and return the bucket."""


class MetricsBackend(ABC):
    """Abstract base class for metrics backends."""

    @abstractmethod
    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        pass

    @abstractmethod
    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass


class LoggerBackend(MetricsBackend):
    """
    Simple in-memory metrics backend that aggregates stats for logging.

    All updates hold a lock so workers on other threads may share it.
    """

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self.timings: dict[str, list[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        """Increment a counter."""
        key = self._format_key(name, tags)
        with self._lock:
            self.counters[key] += value

    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        """Record a timing."""
        key = self._format_key(name, tags)
        with self._lock:
            self.timings[key].append(value)

    def _format_key(self, name: str, tags: dict[str, str] | None) -> str:
        if not tags:
            return name
        sorted_tags = sorted(tags.items())
        tag_str = ",".join(f"{k}={v}" for k, v in sorted_tags)
        return f"{name}[{tag_str}]"

    def get_summary(self) -> dict[str, Any]:
        """Return a summary of collected metrics."""
        with self._lock:
            summary: dict[str, Any] = {
                "counters": dict(self.counters),
                "timings": {},
            }
            for name, values in self.timings.items():
                if values:
                    summary["timings"][name] = {
                        "count": len(values),
                        "avg": sum(values) / len(values),
                        "min": min(values),
                        "max": max(values),
                    }
        return summary


class PrometheusBackend(LoggerBackend):
    """
    Metrics backend exported through prometheus_client.

    Counters become Prometheus counters (exposed with a _total suffix) and
    timings become histograms. Tag keys are the label names, fixed by the
    first update of each metric. The in-memory aggregation of LoggerBackend
    is kept for get_summary().
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        super().__init__()
        self.registry = registry if registry is not None else CollectorRegistry()
        self._counters: dict[str, PromCounter] = {}
        self._histograms: dict[str, Histogram] = {}

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        """Increment a counter."""
        super().increment(name, value, tags)
        with self._lock:
            counter = self._counters.get(name)
            if counter is None:
                counter = PromCounter(
                    name,
                    _HELP.get(name, name),
                    labelnames=sorted(tags or {}),
                    registry=self.registry,
                )
                self._counters[name] = counter
        if tags:
            counter.labels(**tags).inc(value)
        else:
            counter.inc(value)

    def timing(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        """Record a timing."""
        super().timing(name, value, tags)
        with self._lock:
            histogram = self._histograms.get(name)
            if histogram is None:
                histogram = Histogram(
                    name,
                    _HELP.get(name, name),
                    labelnames=sorted(tags or {}),
                    buckets=_LATENCY_BUCKETS_MS,
                    registry=self.registry,
                )
                self._histograms[name] = histogram
        if tags:
            histogram.labels(**tags).observe(value)
        else:
            histogram.observe(value)


_BACKENDS: dict[str, type[LoggerBackend]] = {
    "logger": LoggerBackend,
    "prometheus": PrometheusBackend,
}


class MetricsCollector:
    """
    Central collector for controller metrics.

    Implements FailureSink, so it can be handed straight to the reconciler.
    """

    def __init__(self, backend: str = "logger") -> None:
        """
        Initialize Metrics Collector.

        Args:
            backend: Backend type to use: "logger" or "prometheus".
        """
        backend_cls = _BACKENDS.get(backend)
        if backend_cls is None:
            logger.warning(f"Unknown metrics backend '{backend}', defaulting to 'logger'")
            backend_cls = LoggerBackend
        self.backend: LoggerBackend = backend_cls()

        # Failure counters exist from the start so a summary shows zeros
        for bucket in FailureBucket:
            self.backend.increment(bucket.value, 0)

    @property
    def registry(self) -> CollectorRegistry | None:
        """Prometheus registry to expose, if the backend has one."""
        return getattr(self.backend, "registry", None)

    def record_failure(self, error: NodeCIDRError) -> FailureBucket:
        """Increment the failure counter matching error."""
        bucket = bucket_for(error)
        self.backend.increment(bucket.value)
        return bucket

    def count_reconcile(self, outcome: str) -> None:
        """Record a reconcile outcome (skipped, updated, failed)."""
        self.backend.increment(METRIC_RECONCILE_TOTAL, tags={"outcome": outcome})

    def failure_count(self, bucket: FailureBucket) -> int:
        """Current value of a failure counter."""
        summary = self.get_summary()
        return int(summary.get("counters", {}).get(bucket.value, 0))

    def get_summary(self) -> dict[str, Any]:
        """Get summary from backend."""
        return self.backend.get_summary()


# Singleton instance
_GLOBAL_COLLECTOR: MetricsCollector | None = None


def get_global_collector(backend: str = "logger") -> MetricsCollector:
    """
    Get or create the global metrics collector.

    backend only applies to the call that creates it.
    """
    global _GLOBAL_COLLECTOR
    if _GLOBAL_COLLECTOR is None:
        _GLOBAL_COLLECTOR = MetricsCollector(backend)
    return _GLOBAL_COLLECTOR


def start_metrics_server(collector: MetricsCollector, port: int, addr: str = "0.0.0.0") -> None:
    """
    Serve the collector's Prometheus registry on addr:port in a daemon thread.

    Raises:
        ValueError: If the collector's backend is not Prometheus
    """
    if collector.registry is None:
        raise ValueError("metrics server needs the 'prometheus' metrics backend")
    start_http_server(port, addr=addr, registry=collector.registry)
    logger.info("Serving metrics", addr=addr, port=port)
