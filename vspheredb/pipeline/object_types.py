"""Inventory object type descriptors.

Each synchronized type is described by an `ObjectType`: the remote type
name passed to the API client, the local table, and the list of mapped
fields. Every field carries an explicit `FieldKind` which decides how its
remote value is converted before storage.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple


class FieldKind(enum.Enum):
    PLAIN = "plain"
    REFERENCE = "reference"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class RemoteObject:
    """An object as reported by the inventory API.

    `id` is the managed object reference (e.g. ``vm-42``), `properties`
    maps the collected property paths to their values.
    """
    id: str
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Field:
    source: str
    column: str
    kind: FieldKind = FieldKind.PLAIN

    @property
    def effective_kind(self) -> FieldKind:
        # a parent is always a managed object reference
        if self.source == "parent":
            return FieldKind.REFERENCE
        return self.kind


@dataclass(frozen=True)
class ObjectType:
    type_name: str
    table: str
    fields: Tuple[Field, ...]
    on_store_sync: Optional[Callable[[Any], None]] = field(default=None, compare=False)

    @property
    def property_set(self) -> list:
        """Remote property paths to collect, in declaration order."""
        return [f.source for f in self.fields]

    @property
    def columns(self) -> list:
        return [f.column for f in self.fields]

    def field_for(self, source: str) -> Optional[Field]:
        for f in self.fields:
            if f.source == source:
                return f
        return None


def _plain(source: str, column: str) -> Field:
    return Field(source, column, FieldKind.PLAIN)


def _ref(source: str, column: str) -> Field:
    return Field(source, column, FieldKind.REFERENCE)


def _bool(source: str, column: str) -> Field:
    return Field(source, column, FieldKind.BOOLEAN)


HOST_SYSTEM = ObjectType(
    type_name="HostSystem",
    table="host_system",
    fields=(
        _plain("name", "name"),
        _ref("parent", "parent_uuid"),
        _plain("summary.hardware.uuid", "sysinfo_uuid"),
        _plain("summary.hardware.vendor", "sysinfo_vendor"),
        _plain("summary.hardware.model", "sysinfo_model"),
        _plain("summary.hardware.cpuMhz", "hardware_cpu_mhz"),
        _plain("summary.hardware.numCpuCores", "hardware_cpu_cores"),
        _plain("summary.hardware.memorySize", "hardware_memory_size"),
        _plain("summary.runtime.powerState", "power_state"),
        _bool("summary.runtime.inMaintenanceMode", "in_maintenance_mode"),
        _plain("summary.config.product.version", "product_version"),
    ),
)


VIRTUAL_MACHINE = ObjectType(
    type_name="VirtualMachine",
    table="virtual_machine",
    fields=(
        _plain("name", "name"),
        _ref("parent", "parent_uuid"),
        _plain("config.annotation", "annotation"),
        _plain("config.hardware.numCPU", "hardware_numcpu"),
        _plain("config.hardware.memoryMB", "hardware_memorymb"),
        _bool("config.template", "template"),
        _plain("config.uuid", "bios_uuid"),
        _plain("config.instanceUuid", "instance_uuid"),
        _ref("runtime.host", "runtime_host_uuid"),
        _plain("runtime.powerState", "runtime_power_state"),
        _plain("guest.hostName", "guest_host_name"),
        _plain("guest.ipAddress", "guest_ip_address"),
        _plain("guest.toolsRunningStatus", "guest_tools_running_status"),
    ),
)


# hosts first, virtual machines reference them
DEFAULT_OBJECT_TYPES: Tuple[ObjectType, ...] = (HOST_SYSTEM, VIRTUAL_MACHINE)


__all__ = [
    "RemoteObject",
    "FieldKind",
    "Field",
    "ObjectType",
    "HOST_SYSTEM",
    "VIRTUAL_MACHINE",
    "DEFAULT_OBJECT_TYPES",
]
