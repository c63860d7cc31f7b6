"""Property mapping from remote objects to table columns."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..core.identity import make_binary_global_uuid, moref_id
from .object_types import FieldKind, ObjectType


def make_boolean_value(value: Any) -> Optional[str]:
    """Map a remote boolean to the stored 'y'/'n' flag.

    None stays None. Anything that is not a real bool is a programming
    error and raises TypeError.
    """
    if value is True:
        return "y"
    if value is False:
        return "n"
    if value is None:
        return None
    raise TypeError(f"Boolean expected, got {value!r}")


def create_uuid_for_moref(value: Any, vcenter_uuid: bytes) -> Optional[bytes]:
    """Translate a managed object reference into the vCenter's UUID namespace."""
    if not value:
        return None
    return make_binary_global_uuid(vcenter_uuid, moref_id(value))


def map_value(kind: FieldKind, value: Any, vcenter_uuid: bytes) -> Any:
    if kind is FieldKind.REFERENCE:
        return create_uuid_for_moref(value, vcenter_uuid)
    if kind is FieldKind.BOOLEAN:
        return make_boolean_value(value)
    return value


def map_properties(object_type: ObjectType, properties: Mapping[str, Any], vcenter_uuid: bytes) -> Dict[str, Any]:
    """Return {column: value} for every mapped property present in `properties`.

    Properties missing from the remote object are not part of the result,
    so the stored column keeps its current value.
    """
    mapped: Dict[str, Any] = {}
    for f in object_type.fields:
        if f.source in properties:
            mapped[f.column] = map_value(f.effective_kind, properties[f.source], vcenter_uuid)
    return mapped


__all__ = ["make_boolean_value", "create_uuid_for_moref", "map_value", "map_properties"]
