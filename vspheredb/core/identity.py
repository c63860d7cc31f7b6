"""Derived binary identifiers.

Every inventory object is stored under a 16 byte UUID computed from the
owning vCenter's UUID and the object's managed object reference, so that
the same moref reported by two different vCenters never collides.
"""
from __future__ import annotations

import hashlib
import uuid
from typing import Any, Optional


def make_binary_global_uuid(vcenter_uuid: bytes, moref: str) -> bytes:
    """Return md5(vcenter_uuid + moref) as 16 raw bytes."""
    if not isinstance(vcenter_uuid, (bytes, bytearray)):
        raise TypeError("vcenter_uuid must be bytes")
    return hashlib.md5(bytes(vcenter_uuid) + str(moref).encode("utf-8")).digest()


def vcenter_uuid_from_instance(instance_uuid: str) -> bytes:
    """Binary vCenter UUID for the `about.instanceUuid` reported by the API.

    Proper UUID strings are stored as their 16 raw bytes; anything else
    (standalone hosts report odd values) is hashed into 16 bytes.
    """
    try:
        return uuid.UUID(str(instance_uuid)).bytes
    except ValueError:
        return hashlib.md5(str(instance_uuid).encode("utf-8")).digest()


def moref_id(value: Any) -> Optional[str]:
    """Extract the moref string from a managed object or a plain id."""
    if value is None:
        return None
    if hasattr(value, "_moId"):
        return str(value._moId)
    return str(value)


def hex_to_uuid(value: str) -> bytes:
    """Parse a hex UUID as used on the HTTP surface.

    Raises ValueError for anything that is not 32 hex digits.
    """
    raw = bytes.fromhex(value)
    if len(raw) != 16:
        raise ValueError(f"Invalid UUID length: {value}")
    return raw


__all__ = ["make_binary_global_uuid", "vcenter_uuid_from_instance", "moref_id", "hex_to_uuid"]
