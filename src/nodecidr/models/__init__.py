"""Data models for the node CIDR controller."""

from .references import (
    Device,
    InterfaceKind,
    InterfaceReference,
    OwnerReference,
    UnknownOwner,
    VirtualMachine,
)
from .results import ReconcileOutcome, ReconcileResult

__all__ = [
    # Owners
    "Device",
    "VirtualMachine",
    "UnknownOwner",
    "OwnerReference",
    # Interfaces
    "InterfaceKind",
    "InterfaceReference",
    # Results
    "ReconcileOutcome",
    "ReconcileResult",
]
