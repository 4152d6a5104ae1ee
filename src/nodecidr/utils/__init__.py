"""Utility functions and exceptions."""

from .exceptions import (
    AddressCardinalityError,
    CardinalityError,
    InterfaceCardinalityError,
    MalformedAddressError,
    NodeCIDRError,
    NodeUpdateError,
    RegistryUnavailable,
    ResolutionCancelled,
    ResolutionError,
    UnassignedOwnerError,
)

__all__ = [
    "NodeCIDRError",
    "ResolutionError",
    "RegistryUnavailable",
    "ResolutionCancelled",
    "CardinalityError",
    "AddressCardinalityError",
    "InterfaceCardinalityError",
    "UnassignedOwnerError",
    "MalformedAddressError",
    "NodeUpdateError",
]
