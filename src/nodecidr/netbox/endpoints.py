"""NetBox REST API endpoint paths.

All endpoints are relative to the API root (e.g., https://netbox.example.com/api/).
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class NetBoxEndpoints:
    """Centralized NetBox endpoint constants."""

    # -------------------------------------------------------------------------
    # IPAM
    # -------------------------------------------------------------------------
    IP_ADDRESSES: str = "ipam/ip-addresses/"

    # -------------------------------------------------------------------------
    # DCIM
    # -------------------------------------------------------------------------
    DEVICE_INTERFACES: str = "dcim/interfaces/"

    # -------------------------------------------------------------------------
    # Virtualization
    # -------------------------------------------------------------------------
    VM_INTERFACES: str = "virtualization/interfaces/"
