"""References passed between resolution stages."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Device:
    """Physical device owning an address's interface."""

    id: int


@dataclass(frozen=True)
class VirtualMachine:
    """Virtual machine owning an address's interface."""

    id: int


@dataclass(frozen=True)
class UnknownOwner:
    """Address whose owner the resolver cannot traverse.

    Attributes:
        raw_type: assigned_object_type as NetBox sent it (None when absent)
    """

    raw_type: str | None


OwnerReference = Device | VirtualMachine | UnknownOwner


class InterfaceKind(str, Enum):
    """ID space an interface ID belongs to."""

    PHYSICAL = "dcim.interface"
    VIRTUAL = "virtualization.vminterface"


@dataclass(frozen=True)
class InterfaceReference:
    """Management interface ID tagged with its ID space.

    A dcim interface and a VM interface may share the same numeric ID,
    so the kind must travel with the ID.
    """

    id: int
    kind: InterfaceKind
