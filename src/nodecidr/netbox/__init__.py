"""NetBox API access."""

from .client import NetBoxClient, RegistryClient
from .response_models import (
    InterfaceRecord,
    IPAddressRecord,
    ResultSet,
    VMInterfaceRecord,
)

__all__ = [
    "NetBoxClient",
    "RegistryClient",
    "ResultSet",
    "IPAddressRecord",
    "InterfaceRecord",
    "VMInterfaceRecord",
]
