"""Core resolution logic."""

from .addresses import ManagementAddressResolver
from .cardinality import expect_one
from .cidr import derive_cidr
from .interfaces import ManagementInterfaceResolver
from .owner import classify_owner
from .resolver import NodeCIDRResolver

__all__ = [
    "NodeCIDRResolver",
    "ManagementInterfaceResolver",
    "ManagementAddressResolver",
    "classify_owner",
    "derive_cidr",
    "expect_one",
]
