from types import SimpleNamespace

import pytest

from vspheredb.core.identity import hex_to_uuid, make_binary_global_uuid, moref_id, vcenter_uuid_from_instance
from vspheredb.pipeline.mapping import create_uuid_for_moref, make_boolean_value, map_properties
from vspheredb.pipeline.object_types import HOST_SYSTEM, VIRTUAL_MACHINE, Field, FieldKind, ObjectType


VC_A = b"\xaa" * 16
VC_B = b"\xbb" * 16


def test_global_uuid_is_deterministic_and_namespaced():
    first = make_binary_global_uuid(VC_A, "vm-42")
    assert len(first) == 16
    assert make_binary_global_uuid(VC_A, "vm-42") == first
    assert make_binary_global_uuid(VC_B, "vm-42") != first
    assert make_binary_global_uuid(VC_A, "vm-43") != first


def test_global_uuid_requires_binary_namespace():
    with pytest.raises(TypeError):
        make_binary_global_uuid("not-bytes", "vm-1")


def test_vcenter_uuid_from_instance():
    assert vcenter_uuid_from_instance("5b2c7a1e-8f4d-4c3b-9a6e-1d2f3a4b5c6d").hex() == "5b2c7a1e8f4d4c3b9a6e1d2f3a4b5c6d"
    # non-uuid identifiers are hashed into 16 bytes
    odd = vcenter_uuid_from_instance("ha-host")
    assert len(odd) == 16
    assert vcenter_uuid_from_instance("ha-host") == odd


def test_moref_id_and_hex_parsing():
    assert moref_id(SimpleNamespace(_moId="host-7")) == "host-7"
    assert moref_id("group-d1") == "group-d1"
    assert moref_id(None) is None

    assert hex_to_uuid("00" * 16) == b"\x00" * 16
    with pytest.raises(ValueError):
        hex_to_uuid("zz")
    with pytest.raises(ValueError):
        hex_to_uuid("00" * 8)


def test_make_boolean_value():
    assert make_boolean_value(True) == "y"
    assert make_boolean_value(False) == "n"
    assert make_boolean_value(None) is None
    for bad in ("true", 1, 0, "y"):
        with pytest.raises(TypeError):
            make_boolean_value(bad)


def test_create_uuid_for_moref():
    assert create_uuid_for_moref(None, VC_A) is None
    assert create_uuid_for_moref("", VC_A) is None
    expected = make_binary_global_uuid(VC_A, "host-7")
    assert create_uuid_for_moref("host-7", VC_A) == expected
    assert create_uuid_for_moref(SimpleNamespace(_moId="host-7"), VC_A) == expected


def test_map_properties_converts_by_field_kind():
    props = {
        "name": "app01",
        "parent": SimpleNamespace(_moId="group-v3"),
        "runtime.host": "host-7",
        "config.template": False,
        "config.hardware.numCPU": 4,
    }
    mapped = map_properties(VIRTUAL_MACHINE, props, VC_A)

    assert mapped == {
        "name": "app01",
        "parent_uuid": make_binary_global_uuid(VC_A, "group-v3"),
        "runtime_host_uuid": make_binary_global_uuid(VC_A, "host-7"),
        "template": "n",
        "hardware_numcpu": 4,
    }


def test_map_properties_only_includes_present_keys():
    mapped = map_properties(HOST_SYSTEM, {"name": "esx1"}, VC_A)
    assert mapped == {"name": "esx1"}


def test_parent_is_always_a_reference():
    object_type = ObjectType("Folder", "folder", (Field("parent", "parent_uuid", FieldKind.PLAIN),))
    mapped = map_properties(object_type, {"parent": "group-d1"}, VC_A)
    assert mapped["parent_uuid"] == make_binary_global_uuid(VC_A, "group-d1")


def test_object_type_property_set_follows_field_order():
    assert HOST_SYSTEM.property_set[:2] == ["name", "parent"]
    assert HOST_SYSTEM.field_for("summary.runtime.inMaintenanceMode").kind is FieldKind.BOOLEAN
    assert HOST_SYSTEM.field_for("missing") is None
    assert len(HOST_SYSTEM.columns) == len(HOST_SYSTEM.property_set)
