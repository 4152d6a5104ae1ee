"""Find the management interface of a device or VM."""

import structlog

from ..constants import CONTEXT_MANAGEMENT_INTERFACE, MANAGEMENT_INTERFACE_NAME
from ..models.references import (
    Device,
    InterfaceKind,
    InterfaceReference,
    OwnerReference,
    VirtualMachine,
)
from ..netbox.client import RegistryClient
from ..utils.exceptions import InterfaceCardinalityError
from .cardinality import expect_one

logger = structlog.get_logger(__name__)


class ManagementInterfaceResolver:
    """Look up the interface named MANAGEMENT_INTERFACE_NAME on an owner."""

    def __init__(self, registry: RegistryClient) -> None:
        self.registry = registry

    async def resolve(self, owner: OwnerReference) -> InterfaceReference:
        """
        Resolve owner's management interface.

        Args:
            owner: Device or VirtualMachine (UnknownOwner is rejected upstream)

        Returns:
            Interface ID tagged PHYSICAL for devices, VIRTUAL for VMs

        Raises:
            InterfaceCardinalityError: If the search does not return exactly one interface
            RegistryUnavailable: If NetBox cannot be queried
        """
        if isinstance(owner, Device):
            logger.debug(
                "Looking up device interface",
                device_id=owner.id,
                interface=MANAGEMENT_INTERFACE_NAME,
            )
            page = await self.registry.search_physical_interfaces(
                device_id=owner.id, name=MANAGEMENT_INTERFACE_NAME
            )
            interface = expect_one(
                page,
                InterfaceCardinalityError,
                CONTEXT_MANAGEMENT_INTERFACE,
                subject=f"device {owner.id}",
            )
            return InterfaceReference(id=interface.id, kind=InterfaceKind.PHYSICAL)

        if isinstance(owner, VirtualMachine):
            logger.debug(
                "Looking up VM interface",
                vm_id=owner.id,
                interface=MANAGEMENT_INTERFACE_NAME,
            )
            page = await self.registry.search_virtual_interfaces(
                vm_id=owner.id, name=MANAGEMENT_INTERFACE_NAME
            )
            interface = expect_one(
                page,
                InterfaceCardinalityError,
                CONTEXT_MANAGEMENT_INTERFACE,
                subject=f"virtual machine {owner.id}",
            )
            return InterfaceReference(id=interface.id, kind=InterfaceKind.VIRTUAL)

        raise TypeError(f"Cannot resolve interfaces for {owner!r}")
