"""NetBox REST API client.

Provides the three read-only searches the resolver needs.

Architecture Overview:
---------------------
- Async HTTP communication via httpx
- Token authentication (``Authorization: Token <token>``)
- Responses validated into ResultSet[...] pydantic models
- Every transport or protocol problem surfaces as RegistryUnavailable

The client performs no retries and no caching. Scheduling retries is the
controller's job, and a stale cache would defeat the point of asking NetBox.

Endpoints used:
--------------
- GET /api/ipam/ip-addresses/?q=<hostname>
- GET /api/ipam/ip-addresses/?interface_id=<id>
- GET /api/ipam/ip-addresses/?vminterface_id=<id>
- GET /api/dcim/interfaces/?device_id=<id>&name=<name>
- GET /api/virtualization/interfaces/?virtual_machine_id=<id>&name=<name>
"""

import asyncio
from typing import Any, Protocol, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from ..config import NetBoxConfig
from ..constants import METRIC_NETBOX_LATENCY, METRIC_NETBOX_REQUESTS
from ..observability.metrics import MetricsCollector, get_global_collector
from ..utils.exceptions import RegistryUnavailable
from .endpoints import NetBoxEndpoints
from .response_models import (
    InterfaceRecord,
    IPAddressRecord,
    ResultSet,
    VMInterfaceRecord,
)

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RegistryClient(Protocol):
    """Searches the resolver depends on. NetBoxClient is the real implementation."""

    async def search_addresses(
        self,
        *,
        q: str | None = None,
        interface_id: int | None = None,
        vminterface_id: int | None = None,
    ) -> ResultSet[IPAddressRecord]:
        """Search IP addresses by exactly one filter."""

    async def search_physical_interfaces(
        self, *, device_id: int, name: str
    ) -> ResultSet[InterfaceRecord]:
        """Search device interfaces."""

    async def search_virtual_interfaces(
        self, *, vm_id: int, name: str
    ) -> ResultSet[VMInterfaceRecord]:
        """Search virtual machine interfaces."""


class NetBoxClient:
    """
    NetBox REST API client.

    Features:
    - Token authentication
    - Connection pooling via httpx.AsyncClient
    - Response validation
    - Request count and latency metrics
    """

    def __init__(self, config: NetBoxConfig, collector: MetricsCollector | None = None):
        """
        Initialize NetBox client.

        Args:
            config: NetBox configuration with connection details
            collector: Metrics collector (defaults to the global one)
        """
        self.config = config
        self.base_url = f"{config.base_url.rstrip('/')}/api"

        # HTTP client management
        self._client: httpx.AsyncClient | None = None  # Lazy-loaded

        self.collector = collector or get_global_collector()

    async def __aenter__(self):
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """
        Get HTTP client with lazy initialization.

        Connection Pool Configuration:
        - max_connections: Total concurrent connections to NetBox
        - max_keepalive: Reused connections for efficiency
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self.config.verify_ssl,
                timeout=self.config.timeout,
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=self.config.max_keepalive,
                ),
            )
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Token {self.config.token}"
        return headers

    async def request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """
        Make an authenticated GET request to the NetBox API.

        Args:
            endpoint: API endpoint (relative to /api/)
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            RegistryUnavailable: On connection errors, timeouts, non-2xx
                responses and bodies that are not JSON
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        self.collector.backend.increment(METRIC_NETBOX_REQUESTS, tags={"endpoint": endpoint})
        start_time = asyncio.get_running_loop().time()

        try:
            response = await self.client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("NetBox request failed", endpoint=endpoint, error=str(e))
            raise RegistryUnavailable(f"HTTP request failed: {e}", endpoint=endpoint) from e

        duration = (asyncio.get_running_loop().time() - start_time) * 1000
        self.collector.backend.timing(
            METRIC_NETBOX_LATENCY, duration, tags={"endpoint": endpoint}
        )

        if response.is_error:
            message = response.text
            try:
                data = response.json()
                if isinstance(data, dict) and data.get("detail"):
                    message = str(data["detail"])
            except ValueError:
                pass
            if len(message) > 200:
                message = message[:197] + "..."
            logger.error(
                "NetBox returned an error",
                endpoint=endpoint,
                status=response.status_code,
                message=message,
            )
            raise RegistryUnavailable(
                f"API Error {response.status_code}: {message}",
                status_code=response.status_code,
                endpoint=endpoint,
            )

        try:
            return response.json()
        except ValueError as e:
            raise RegistryUnavailable(
                f"Invalid JSON from {endpoint}: {e}",
                status_code=response.status_code,
                endpoint=endpoint,
            ) from e

    async def _search(
        self, endpoint: str, params: dict[str, Any], model: type[RecordT]
    ) -> ResultSet[RecordT]:
        data = await self.request(endpoint, params=params)
        try:
            page = ResultSet[model].model_validate(data)  # type: ignore[valid-type]
        except ValidationError as e:
            logger.error(
                "NetBox response validation failed",
                endpoint=endpoint,
                validation_errors=e.errors(),
            )
            raise RegistryUnavailable(
                f"Unexpected response from {endpoint}: {e}", endpoint=endpoint
            ) from e

        logger.debug("NetBox search", endpoint=endpoint, params=params, count=page.count)
        return page

    async def search_addresses(
        self,
        *,
        q: str | None = None,
        interface_id: int | None = None,
        vminterface_id: int | None = None,
    ) -> ResultSet[IPAddressRecord]:
        """
        Search IP addresses.

        Exactly one filter must be given: a free-text query, a device
        interface ID or a VM interface ID. The two interface ID spaces are
        distinct in NetBox and map to different query keys.

        Args:
            q: Free-text query (node hostname)
            interface_id: dcim interface ID
            vminterface_id: virtualization interface ID

        Returns:
            Matching IP addresses
        """
        filters = {"q": q, "interface_id": interface_id, "vminterface_id": vminterface_id}
        params = {key: value for key, value in filters.items() if value is not None}
        if len(params) != 1:
            raise ValueError(
                f"search_addresses needs exactly one filter, got {sorted(params) or 'none'}"
            )
        return await self._search(NetBoxEndpoints.IP_ADDRESSES, params, IPAddressRecord)

    async def search_physical_interfaces(
        self, *, device_id: int, name: str
    ) -> ResultSet[InterfaceRecord]:
        """Search interfaces of a device by name."""
        params = {"device_id": device_id, "name": name}
        return await self._search(NetBoxEndpoints.DEVICE_INTERFACES, params, InterfaceRecord)

    async def search_virtual_interfaces(
        self, *, vm_id: int, name: str
    ) -> ResultSet[VMInterfaceRecord]:
        """Search interfaces of a virtual machine by name."""
        params = {"virtual_machine_id": vm_id, "name": name}
        return await self._search(NetBoxEndpoints.VM_INTERFACES, params, VMInterfaceRecord)
