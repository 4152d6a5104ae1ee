"""Classify which device or VM an IP address belongs to."""

import structlog

from ..constants import ASSIGNED_TO_DEVICE_INTERFACE, ASSIGNED_TO_VM_INTERFACE
from ..models.references import Device, OwnerReference, UnknownOwner, VirtualMachine
from ..netbox.response_models import IPAddressRecord

logger = structlog.get_logger(__name__)


def classify_owner(record: IPAddressRecord) -> OwnerReference:
    """
    Turn an address's assignment into an owner reference.

    A recognised assigned_object_type whose nested device or virtual
    machine link is missing is treated like an unknown type: there is
    nothing to traverse.

    Args:
        record: Address returned by the hostname search

    Returns:
        Device, VirtualMachine or UnknownOwner
    """
    object_type = record.assigned_object_type
    assigned = record.assigned_object

    if object_type == ASSIGNED_TO_DEVICE_INTERFACE:
        if assigned is not None and assigned.device is not None:
            return Device(id=assigned.device.id)
    elif object_type == ASSIGNED_TO_VM_INTERFACE:
        if assigned is not None and assigned.virtual_machine is not None:
            return VirtualMachine(id=assigned.virtual_machine.id)

    logger.debug(
        "Address owner not traversable",
        address=record.address,
        assigned_object_type=object_type,
    )
    return UnknownOwner(raw_type=object_type)
