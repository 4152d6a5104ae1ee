"""Unit tests for address owner classification."""

import pytest

from nodecidr.core.owner import classify_owner
from nodecidr.models.references import Device, UnknownOwner, VirtualMachine
from nodecidr.netbox.response_models import IPAddressRecord


def _record(**fields) -> IPAddressRecord:
    return IPAddressRecord.model_validate({"id": 1, "address": "10.0.0.1/32", **fields})


class TestClassifyOwner:
    """Test classify_owner."""

    def test_device_interface(self):
        record = _record(
            assigned_object_type="dcim.interface",
            assigned_object={"id": 10, "name": "eth0", "device": {"id": 77, "name": "node001"}},
        )

        assert classify_owner(record) == Device(id=77)

    def test_vm_interface(self):
        record = _record(
            assigned_object_type="virtualization.vminterface",
            assigned_object={"id": 11, "virtual_machine": {"id": 88}},
        )

        assert classify_owner(record) == VirtualMachine(id=88)

    @pytest.mark.parametrize("object_type", ["circuits.something-else", "", None])
    def test_untraversable_types(self, object_type):
        record = _record(assigned_object_type=object_type)

        assert classify_owner(record) == UnknownOwner(raw_type=object_type)

    def test_device_type_without_device_link(self):
        """A device interface with no nested device has nothing to follow."""
        record = _record(assigned_object_type="dcim.interface", assigned_object={"id": 10})

        assert classify_owner(record) == UnknownOwner(raw_type="dcim.interface")

    def test_vm_type_carrying_device_link(self):
        """The type tag selects which link is read; a mismatched link is ignored."""
        record = _record(
            assigned_object_type="virtualization.vminterface",
            assigned_object={"id": 10, "device": {"id": 5}},
        )

        assert isinstance(classify_owner(record), UnknownOwner)
