"""Repository helpers for per-VM guest disk usage."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple
import sqlite3


DiskKey = Tuple[bytes, str]


def list_disk_usage(conn: sqlite3.Connection, vm_uuid: bytes) -> List[Dict[str, Any]]:
    """Return the disks of one VM ordered by path."""
    cur = conn.cursor()
    cur.execute(
        "SELECT disk_path, capacity, free_space FROM vm_disk_usage WHERE vm_uuid = ? ORDER BY disk_path",
        (vm_uuid,),
    )
    return [{"disk_path": r[0], "capacity": int(r[1]), "free_space": int(r[2])} for r in cur.fetchall()]


def load_disk_usage_for_vcenter(conn: sqlite3.Connection, vcenter_uuid: bytes) -> Dict[DiskKey, Tuple[int, int]]:
    """Return {(vm_uuid, disk_path): (capacity, free_space)} for all VMs of a vCenter."""
    cur = conn.cursor()
    cur.execute(
        """
        SELECT d.vm_uuid, d.disk_path, d.capacity, d.free_space
        FROM vm_disk_usage d
        JOIN virtual_machine vm ON vm.uuid = d.vm_uuid
        WHERE vm.vcenter_uuid = ?
        """,
        (vcenter_uuid,),
    )
    return {(bytes(r[0]), r[1]): (int(r[2]), int(r[3])) for r in cur.fetchall()}


def upsert_disk(cur: sqlite3.Cursor, vm_uuid: bytes, disk_path: str, capacity: int, free_space: int) -> None:
    cur.execute(
        """
        INSERT INTO vm_disk_usage (vm_uuid, disk_path, capacity, free_space) VALUES (?, ?, ?, ?)
        ON CONFLICT (vm_uuid, disk_path) DO UPDATE SET capacity = excluded.capacity, free_space = excluded.free_space
        """,
        (vm_uuid, disk_path, int(capacity), int(free_space)),
    )


def delete_disks(cur: sqlite3.Cursor, keys: Iterable[DiskKey]) -> int:
    count = 0
    for vm_uuid, disk_path in keys:
        cur.execute("DELETE FROM vm_disk_usage WHERE vm_uuid = ? AND disk_path = ?", (vm_uuid, disk_path))
        count += 1
    return count


__all__ = ["list_disk_usage", "load_disk_usage_for_vcenter", "upsert_disk", "delete_disks"]
