"""Hostname to pod CIDR resolution against NetBox.

Resolution chain:
----------------
1. Search IP addresses by hostname (q=<node name>)      -> exactly one address
2. Classify the address owner                           -> device or VM
3. Search the owner's interfaces named cbr0             -> exactly one interface
4. Search IP addresses on that interface                -> exactly one address
5. Mask host bits                                       -> pod CIDR

Each step needs the previous step's output, so there is nothing to run in
parallel. The first failure aborts the chain and propagates unchanged.
"""

import asyncio

import structlog

from ..constants import CONTEXT_HOSTNAME
from ..models.references import UnknownOwner
from ..netbox.client import RegistryClient
from ..utils.exceptions import (
    AddressCardinalityError,
    ResolutionCancelled,
    UnassignedOwnerError,
)
from .addresses import ManagementAddressResolver
from .cardinality import expect_one
from .cidr import derive_cidr
from .interfaces import ManagementInterfaceResolver
from .owner import classify_owner

logger = structlog.get_logger(__name__)


class NodeCIDRResolver:
    """
    Resolve a node name to its pod CIDR.

    The resolver holds no state between calls: resolving the same name twice
    against unchanged NetBox data gives the same answer, and NetBox is never
    written to.
    """

    def __init__(self, registry: RegistryClient) -> None:
        """
        Initialize resolver.

        Args:
            registry: NetBox client (or anything implementing RegistryClient)
        """
        self.registry = registry
        self.interfaces = ManagementInterfaceResolver(registry)
        self.addresses = ManagementAddressResolver(registry)

    async def resolve(self, node_name: str, timeout: float | None = None) -> str:
        """
        Resolve node_name to a canonical network CIDR.

        Args:
            node_name: Node name, used verbatim as the NetBox search query
            timeout: Deadline in seconds for the whole chain (None for no limit)

        Returns:
            Network CIDR with host bits cleared, e.g. "10.0.1.0/24"

        Raises:
            RegistryUnavailable: NetBox could not be queried
            AddressCardinalityError: hostname or management-address search did
                not return exactly one address
            InterfaceCardinalityError: management interface search did not
                return exactly one interface
            UnassignedOwnerError: hostname address is not on a device or VM interface
            MalformedAddressError: management address is not ip/prefix
            ResolutionCancelled: timeout expired; the in-flight request is aborted
        """
        try:
            async with asyncio.timeout(timeout):
                return await self._resolve(node_name)
        except TimeoutError as e:
            logger.warning("Resolution deadline expired", node=node_name, timeout=timeout)
            raise ResolutionCancelled(node_name, timeout) from e

    async def _resolve(self, node_name: str) -> str:
        page = await self.registry.search_addresses(q=node_name)
        host_address = expect_one(
            page, AddressCardinalityError, CONTEXT_HOSTNAME, subject=node_name
        )
        logger.debug(
            "Hostname address found",
            node=node_name,
            address=host_address.address,
            assigned_object_type=host_address.assigned_object_type,
        )

        owner = classify_owner(host_address)
        if isinstance(owner, UnknownOwner):
            raise UnassignedOwnerError(host_address.address, owner.raw_type)

        interface = await self.interfaces.resolve(owner)
        address = await self.addresses.resolve(interface)
        cidr = derive_cidr(address)

        logger.info("Resolved pod CIDR", node=node_name, address=address, cidr=cidr)
        return cidr
