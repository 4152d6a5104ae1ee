"""Pydantic models for NetBox REST API list responses.

Only the fields the resolver reads are declared; everything else NetBox sends
is kept through extra="allow".

Usage:
    page = ResultSet[IPAddressRecord].model_validate(response.json())
    if page.count == 1:
        record = page.results[0]
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field


class NestedDevice(BaseModel):
    """Brief device representation nested in interface payloads."""

    id: int
    name: str | None = None

    model_config = {"extra": "allow"}


class NestedVirtualMachine(BaseModel):
    """Brief virtual machine representation nested in VM interface payloads."""

    id: int
    name: str | None = None

    model_config = {"extra": "allow"}


class AssignedObject(BaseModel):
    """Interface an IP address is assigned to.

    Exactly one of device or virtual_machine is set by NetBox, depending on
    the address's assigned_object_type.
    """

    id: int | None = None
    name: str | None = None
    device: NestedDevice | None = None
    virtual_machine: NestedVirtualMachine | None = None

    model_config = {"extra": "allow"}


class IPAddressRecord(BaseModel):
    """Element of GET /api/ipam/ip-addresses/.

    Attributes:
        id: NetBox IP address ID
        address: Host address with prefix length, e.g. "10.0.1.5/24"
        assigned_object_type: Content type of the owning interface
        assigned_object_id: ID of the owning interface
        assigned_object: Nested owning interface
    """

    id: int
    address: str
    assigned_object_type: str | None = None
    assigned_object_id: int | None = None
    assigned_object: AssignedObject | None = None

    model_config = {"extra": "allow"}


class InterfaceRecord(BaseModel):
    """Element of GET /api/dcim/interfaces/."""

    id: int
    name: str
    device: NestedDevice | None = None

    model_config = {"extra": "allow"}


class VMInterfaceRecord(BaseModel):
    """Element of GET /api/virtualization/interfaces/."""

    id: int
    name: str
    virtual_machine: NestedVirtualMachine | None = None

    model_config = {"extra": "allow"}


RecordT = TypeVar("RecordT", bound=BaseModel)


class ResultSet(BaseModel, Generic[RecordT]):
    """Paginated NetBox list response.

    count is the server-side total across all pages; results holds the
    current page only.
    """

    count: int = Field(..., ge=0, description="Total number of matching objects")
    next: str | None = Field(None, description="Link to next page")
    previous: str | None = Field(None, description="Link to previous page")
    results: list[RecordT] = Field(default_factory=list)

    model_config = {"extra": "allow"}
