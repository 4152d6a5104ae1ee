"""Find the address bound to the management interface."""

import structlog

from ..constants import CONTEXT_MANAGEMENT_ADDRESS
from ..models.references import InterfaceKind, InterfaceReference
from ..netbox.client import RegistryClient
from ..utils.exceptions import AddressCardinalityError
from .cardinality import expect_one

logger = structlog.get_logger(__name__)


class ManagementAddressResolver:
    """Look up the single IP address assigned to a management interface."""

    def __init__(self, registry: RegistryClient) -> None:
        self.registry = registry

    async def resolve(self, interface: InterfaceReference) -> str:
        """
        Resolve the address string of interface.

        Args:
            interface: Management interface, tagged with its ID space

        Returns:
            The address as stored in NetBox, e.g. "10.0.1.5/24"

        Raises:
            AddressCardinalityError: If the search does not return exactly one address
            RegistryUnavailable: If NetBox cannot be queried
        """
        if interface.kind == InterfaceKind.PHYSICAL:
            page = await self.registry.search_addresses(interface_id=interface.id)
        else:
            page = await self.registry.search_addresses(vminterface_id=interface.id)

        record = expect_one(
            page,
            AddressCardinalityError,
            CONTEXT_MANAGEMENT_ADDRESS,
            subject=f"{interface.kind.value} {interface.id}",
        )
        logger.debug("Management address found", interface_id=interface.id, address=record.address)
        return record.address
