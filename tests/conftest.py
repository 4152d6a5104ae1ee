"""Pytest configuration and shared fixtures.

Fixtures are organized by category:
- Registry fixtures: A scripted in-memory NetBox
- Kubernetes fixtures: In-memory node store
- Infrastructure fixtures: Config and metrics
"""

import asyncio
from typing import Any

import pytest

from nodecidr.config import NetBoxConfig, ReconcileConfig
from nodecidr.netbox.response_models import (
    InterfaceRecord,
    IPAddressRecord,
    ResultSet,
    VMInterfaceRecord,
)
from nodecidr.observability.metrics import MetricsCollector
from nodecidr.utils.exceptions import NodeUpdateError


def _page(model, items: list[dict[str, Any]], count: int | None = None):
    return ResultSet[model].model_validate(
        {"count": len(items) if count is None else count, "results": items}
    )


class FakeRegistry:
    """
    In-memory NetBox implementing RegistryClient.

    Every search is appended to ``calls`` as (method, filters) so tests can
    assert which stages ran.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.by_hostname: dict[str, list[dict[str, Any]]] = {}
        self.by_interface: dict[int, list[dict[str, Any]]] = {}
        self.by_vminterface: dict[int, list[dict[str, Any]]] = {}
        self.device_interfaces: dict[int, list[dict[str, Any]]] = {}
        self.vm_interfaces: dict[int, list[dict[str, Any]]] = {}
        self.error: Exception | None = None
        self.delay: float = 0.0

    # -- scripting helpers -------------------------------------------------

    def add_device_node(
        self, hostname: str, device_id: int, interface_id: int, address: str
    ) -> None:
        """Node whose hostname address sits on a device interface."""
        self.by_hostname[hostname] = [
            {
                "id": 100 + device_id,
                "address": "10.99.0.1/32",
                "assigned_object_type": "dcim.interface",
                "assigned_object_id": 500 + device_id,
                "assigned_object": {"id": 500 + device_id, "device": {"id": device_id}},
            }
        ]
        self.device_interfaces[device_id] = [
            {"id": interface_id, "name": "cbr0", "device": {"id": device_id}}
        ]
        self.by_interface[interface_id] = [{"id": 900 + interface_id, "address": address}]

    def add_vm_node(self, hostname: str, vm_id: int, vminterface_id: int, address: str) -> None:
        """Node whose hostname address sits on a VM interface."""
        self.by_hostname[hostname] = [
            {
                "id": 200 + vm_id,
                "address": "10.98.0.1/32",
                "assigned_object_type": "virtualization.vminterface",
                "assigned_object_id": 600 + vm_id,
                "assigned_object": {"id": 600 + vm_id, "virtual_machine": {"id": vm_id}},
            }
        ]
        self.vm_interfaces[vm_id] = [
            {"id": vminterface_id, "name": "cbr0", "virtual_machine": {"id": vm_id}}
        ]
        self.by_vminterface[vminterface_id] = [{"id": 950 + vminterface_id, "address": address}]

    # -- RegistryClient ----------------------------------------------------

    async def _enter(self, method: str, filters: dict[str, Any]) -> None:
        self.calls.append((method, filters))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

    async def search_addresses(self, *, q=None, interface_id=None, vminterface_id=None):
        filters = {
            k: v
            for k, v in {"q": q, "interface_id": interface_id, "vminterface_id": vminterface_id}.items()
            if v is not None
        }
        await self._enter("search_addresses", filters)
        if q is not None:
            items = self.by_hostname.get(q, [])
        elif interface_id is not None:
            items = self.by_interface.get(interface_id, [])
        else:
            items = self.by_vminterface.get(vminterface_id, [])
        return _page(IPAddressRecord, items)

    async def search_physical_interfaces(self, *, device_id, name):
        await self._enter("search_physical_interfaces", {"device_id": device_id, "name": name})
        items = [i for i in self.device_interfaces.get(device_id, []) if i["name"] == name]
        return _page(InterfaceRecord, items)

    async def search_virtual_interfaces(self, *, vm_id, name):
        await self._enter("search_virtual_interfaces", {"vm_id": vm_id, "name": name})
        items = [i for i in self.vm_interfaces.get(vm_id, []) if i["name"] == name]
        return _page(VMInterfaceRecord, items)

    def methods_called(self) -> list[str]:
        return [method for method, _ in self.calls]


class FakeNodeStore:
    """In-memory NodeStore and NodeSource."""

    def __init__(self, pod_cidrs: dict[str, str] | None = None) -> None:
        self.pod_cidrs: dict[str, str] = dict(pod_cidrs or {})
        self.patches: list[tuple[str, str]] = []
        self.get_error: Exception | None = None
        self.patch_error: Exception | None = None
        self.watch_events: list[str] = []
        self.watch_error: Exception | None = None

    async def get_pod_cidr(self, node_name: str) -> str:
        if self.get_error is not None:
            raise self.get_error
        if node_name not in self.pod_cidrs:
            raise NodeUpdateError(node_name, "get")
        return self.pod_cidrs[node_name]

    async def set_pod_cidr(self, node_name: str, pod_cidr: str) -> None:
        if self.patch_error is not None:
            raise self.patch_error
        self.patches.append((node_name, pod_cidr))
        self.pod_cidrs[node_name] = pod_cidr

    async def list_node_names(self) -> list[str]:
        return sorted(self.pod_cidrs)

    async def watch_node_names(self):
        for name in self.watch_events:
            yield name
        if self.watch_error is not None:
            raise self.watch_error


# =============================================================================
# Registry Fixtures
# =============================================================================


@pytest.fixture
def registry() -> FakeRegistry:
    """Empty scripted NetBox. Tests add nodes with add_device_node/add_vm_node."""
    return FakeRegistry()


@pytest.fixture
def make_page():
    """Build a ResultSet for a record model, optionally overriding count."""
    return _page


# =============================================================================
# Kubernetes Fixtures
# =============================================================================


@pytest.fixture
def node_store() -> FakeNodeStore:
    """Node store with no nodes."""
    return FakeNodeStore()


# =============================================================================
# Infrastructure Fixtures
# =============================================================================


@pytest.fixture
def collector() -> MetricsCollector:
    """Fresh metrics collector (not the global singleton)."""
    return MetricsCollector()


@pytest.fixture
def netbox_config() -> NetBoxConfig:
    return NetBoxConfig(base_url="https://netbox.example.com", token="secret-token")


@pytest.fixture
def reconcile_config() -> ReconcileConfig:
    """Reconcile settings with zero backoff so retries don't slow tests down."""
    return ReconcileConfig(
        workers=2,
        resolve_timeout=5.0,
        resync_interval=3600.0,
        retry_attempts=3,
        retry_min_wait=0.0,
        retry_max_wait=0.0,
    )
