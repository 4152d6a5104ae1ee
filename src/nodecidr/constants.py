"""Named constants for the node CIDR controller."""

# -----------------------------------------------------------------------------
# NetBox
# -----------------------------------------------------------------------------

DEFAULT_NETBOX_URL: str = "https://netbox.global.cloud.sap"

# Interface whose address becomes the node's pod CIDR.
MANAGEMENT_INTERFACE_NAME: str = "cbr0"

# Values of IPAddress.assigned_object_type the resolver knows how to traverse.
ASSIGNED_TO_DEVICE_INTERFACE: str = "dcim.interface"
ASSIGNED_TO_VM_INTERFACE: str = "virtualization.vminterface"

# Stage labels carried by cardinality errors.
CONTEXT_HOSTNAME: str = "hostname"
CONTEXT_MANAGEMENT_INTERFACE: str = "management-interface"
CONTEXT_MANAGEMENT_ADDRESS: str = "management-address"


# -----------------------------------------------------------------------------
# Metrics
# -----------------------------------------------------------------------------

METRIC_NETBOX_FAILS: str = "netbox_fails"
METRIC_NETBOX_RESULT_FAILS: str = "netbox_result_fails"
METRIC_K8S_FAILS: str = "k8s_fails"
METRIC_NETBOX_REQUESTS: str = "netbox_requests_total"
METRIC_NETBOX_LATENCY: str = "netbox_latency_ms"
METRIC_RECONCILE_TOTAL: str = "reconcile_total"


# -----------------------------------------------------------------------------
# Controller defaults
# -----------------------------------------------------------------------------

CONTROLLER_NAME: str = "ccloud-nodeCIDR-controller"
DEFAULT_WORKERS: int = 4
DEFAULT_RESOLVE_TIMEOUT: float = 60.0
DEFAULT_RESYNC_INTERVAL: float = 600.0
DEFAULT_RETRY_ATTEMPTS: int = 5
DEFAULT_RETRY_MIN_WAIT: float = 1.0
DEFAULT_RETRY_MAX_WAIT: float = 60.0
WATCH_RECONNECT_DELAY: float = 10.0
DEFAULT_METRICS_PORT: int = 32280
DEFAULT_HEALTH_PORT: int = 32281
