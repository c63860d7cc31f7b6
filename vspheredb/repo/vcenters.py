"""Repository helpers for vCenter records.

A vCenter row is the owner of every inventory object: its binary `uuid`
is the namespace all object UUIDs are derived from.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..core.identity import vcenter_uuid_from_instance


@dataclass(frozen=True)
class VCenter:
    uuid: bytes
    instance_uuid: str
    name: Optional[str] = None
    version: Optional[str] = None
    api_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uuid": self.uuid.hex(),
            "instance_uuid": self.instance_uuid,
            "name": self.name,
            "version": self.version,
            "api_type": self.api_type,
        }


_COLUMNS = "uuid, instance_uuid, name, version, api_type"


def _row_to_vcenter(row) -> VCenter:
    return VCenter(uuid=bytes(row[0]), instance_uuid=row[1], name=row[2], version=row[3], api_type=row[4])


def register_vcenter(
    conn: Any,
    instance_uuid: str,
    name: str | None = None,
    version: str | None = None,
    api_type: str | None = None,
) -> VCenter:
    """Create or refresh the vCenter identified by `instance_uuid`.

    Returns the stored VCenter.
    """
    now = datetime.utcnow().isoformat()
    uuid = vcenter_uuid_from_instance(instance_uuid)
    cur = conn.cursor()
    cur.execute("SELECT uuid FROM vcenter WHERE uuid = ?", (uuid,))
    if cur.fetchone():
        cur.execute(
            "UPDATE vcenter SET name = ?, version = ?, api_type = ?, updated_at = ? WHERE uuid = ?",
            (name, version, api_type, now, uuid),
        )
    else:
        cur.execute(
            f"INSERT INTO vcenter ({_COLUMNS}, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (uuid, instance_uuid, name, version, api_type, now, now),
        )
    conn.commit()
    return VCenter(uuid=uuid, instance_uuid=instance_uuid, name=name, version=version, api_type=api_type)


def find_vcenter(conn: Any, uuid: bytes) -> Optional[VCenter]:
    cur = conn.cursor()
    cur.execute(f"SELECT {_COLUMNS} FROM vcenter WHERE uuid = ?", (uuid,))
    row = cur.fetchone()
    return _row_to_vcenter(row) if row else None


def list_vcenters(conn: Any) -> List[VCenter]:
    cur = conn.cursor()
    cur.execute(f"SELECT {_COLUMNS} FROM vcenter ORDER BY name")
    return [_row_to_vcenter(r) for r in cur.fetchall()]


__all__ = ["VCenter", "register_vcenter", "find_vcenter", "list_vcenters"]
