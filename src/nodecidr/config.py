"""Configuration management for the node CIDR controller."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .constants import (
    DEFAULT_HEALTH_PORT,
    DEFAULT_METRICS_PORT,
    DEFAULT_NETBOX_URL,
    DEFAULT_RESOLVE_TIMEOUT,
    DEFAULT_RESYNC_INTERVAL,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_MAX_WAIT,
    DEFAULT_RETRY_MIN_WAIT,
    DEFAULT_WORKERS,
)


@dataclass
class NetBoxConfig:
    """NetBox connection configuration."""

    base_url: str = DEFAULT_NETBOX_URL
    token: str = ""
    timeout: float = 30.0
    verify_ssl: bool = True
    max_connections: int = 20  # Maximum total connections
    max_keepalive: int = 10  # Maximum keep-alive connections


@dataclass
class KubernetesConfig:
    """Kubernetes API access configuration."""

    context: str | None = None  # kubeconfig context, None for current/in-cluster


@dataclass
class ReconcileConfig:
    """
    Reconciliation scheduling configuration.

    resolve_timeout bounds a single hostname -> CIDR resolution.
    retry_* control the backoff applied by workers to retriable failures.
    """

    workers: int = DEFAULT_WORKERS
    resolve_timeout: float = DEFAULT_RESOLVE_TIMEOUT
    resync_interval: float = DEFAULT_RESYNC_INTERVAL
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_min_wait: float = DEFAULT_RETRY_MIN_WAIT
    retry_max_wait: float = DEFAULT_RETRY_MAX_WAIT


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    file: Path | None = None


@dataclass
class MetricsConfig:
    """Metrics and health probe configuration."""

    backend: str = "prometheus"
    bind_address: str = "0.0.0.0"
    port: int = DEFAULT_METRICS_PORT  # 0 disables the metrics listener
    health_port: int = DEFAULT_HEALTH_PORT  # 0 disables the health listener


@dataclass
class ControllerConfig:
    """
    Complete configuration for the node CIDR controller.

    This combines all configuration sections.
    """

    netbox: NetBoxConfig = field(default_factory=NetBoxConfig)
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    reconcile: ReconcileConfig = field(default_factory=ReconcileConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> "ControllerConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            ControllerConfig instance
        """
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid configuration file structure in {config_path}: "
                f"expected dictionary, got {type(data).__name__}"
            )

        netbox = NetBoxConfig(**(data.get("netbox") or {}))
        kubernetes = KubernetesConfig(**(data.get("kubernetes") or {}))
        reconcile = ReconcileConfig(**(data.get("reconcile") or {}))

        logging_data = dict(data.get("logging") or {})
        if logging_data.get("file"):
            logging_data["file"] = Path(logging_data["file"])
        logging = LoggingConfig(**logging_data)
        metrics = MetricsConfig(**(data.get("metrics") or {}))

        return cls(
            netbox=netbox,
            kubernetes=kubernetes,
            reconcile=reconcile,
            logging=logging,
            metrics=metrics,
        )

    @classmethod
    def from_env(cls) -> "ControllerConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            NETBOX_URL: NetBox base URL
            NETBOX_TOKEN: NetBox API token
            NETBOX_VERIFY_SSL: Set to 'false' to skip certificate checks
            KUBECONTEXT: kubeconfig context to use
            NODECIDR_WORKERS: Number of reconcile workers
            NODECIDR_RESOLVE_TIMEOUT: Per-node resolution deadline in seconds
            LOG_LEVEL: Logging level (default: INFO)
            LOG_FORMAT: console or json (default: console)
            METRICS_BACKEND: logger or prometheus (default: prometheus)
            METRICS_PORT: Prometheus listener port (default: 32280, 0 disables)
            HEALTH_PORT: Health probe listener port (default: 32281, 0 disables)

        Returns:
            ControllerConfig instance
        """
        verify_ssl_str = os.environ.get("NETBOX_VERIFY_SSL", "true").lower()

        netbox = NetBoxConfig(
            base_url=os.environ.get("NETBOX_URL", DEFAULT_NETBOX_URL),
            token=os.environ.get("NETBOX_TOKEN", ""),
            verify_ssl=verify_ssl_str not in ("false", "0", "no", "off"),
        )
        kubernetes = KubernetesConfig(context=os.environ.get("KUBECONTEXT") or None)
        reconcile = ReconcileConfig(
            workers=int(os.environ.get("NODECIDR_WORKERS", str(DEFAULT_WORKERS))),
            resolve_timeout=float(
                os.environ.get("NODECIDR_RESOLVE_TIMEOUT", str(DEFAULT_RESOLVE_TIMEOUT))
            ),
        )
        logging_config = LoggingConfig(
            level=os.environ.get("LOG_LEVEL", "INFO"),
            format=os.environ.get("LOG_FORMAT", "console"),
        )

        metrics = MetricsConfig(
            backend=os.environ.get("METRICS_BACKEND", "prometheus"),
            port=int(os.environ.get("METRICS_PORT", str(DEFAULT_METRICS_PORT))),
            health_port=int(os.environ.get("HEALTH_PORT", str(DEFAULT_HEALTH_PORT))),
        )

        return cls(
            netbox=netbox,
            kubernetes=kubernetes,
            reconcile=reconcile,
            logging=logging_config,
            metrics=metrics,
        )


def load_config(config_file: Path | None = None) -> ControllerConfig:
    """
    Load configuration from file or environment variables.

    Args:
        config_file: Optional path to YAML config file

    Returns:
        ControllerConfig instance

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        return ControllerConfig.from_file(config_file)
    return ControllerConfig.from_env()
