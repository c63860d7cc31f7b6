"""VM guest disk usage.

Synchronizes the `guest.disk` information of all virtual machines into
`vm_disk_usage` and builds the per-VM usage report (with a totals row)
served by the API and exported as XLSX.
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from ..core.db import transaction
from ..core.identity import make_binary_global_uuid
from ..core.storage import export_dir, export_to_excel
from ..repo.disk_usage import delete_disks, list_disk_usage, load_disk_usage_for_vcenter, upsert_disk
from ..repo.objects import get_record, load_all_for_vcenter
from ..repo.sync_runs import save_sync_run
from ..repo.vcenters import VCenter
from .object_types import VIRTUAL_MACHINE
from .sync import STATUS_COMPLETED, STATUS_FAILED, SyncError, SyncResult
from .utils import format_bytes, format_free_space, percentage


LOG = logging.getLogger(__name__)

DISK_USAGE_TYPE = "VmDiskUsage"
GUEST_DISK_PROPERTY = "guest.disk"
TOTAL_LABEL = "Total"


def _disk_attr(disk: Any, name: str) -> Any:
    if isinstance(disk, Mapping):
        return disk.get(name)
    return getattr(disk, name, None)


def _collect_guest_disks(api: Any) -> list:
    try:
        objects = api.collect_object_properties(VIRTUAL_MACHINE.type_name, [GUEST_DISK_PROPERTY])
    except Exception as exc:
        raise SyncError(f"Failed to fetch {DISK_USAGE_TYPE} from API: {exc}") from exc
    return list(objects or [])


def sync_disk_usage(conn, vcenter: VCenter, api: Any) -> SyncResult:
    """Mirror guest disk information for all stored VMs of `vcenter`.

    VMs unknown to the local `virtual_machine` table are skipped, as are
    VMs whose `guest.disk` property was not reported; disks of the latter
    stay as they are. Disks that vanished from a reported VM are deleted.
    """
    started_at = datetime.utcnow().isoformat()
    try:
        objects = _collect_guest_disks(api)
        known_vms = load_all_for_vcenter(conn, VIRTUAL_MACHINE.table, [], vcenter.uuid)
        existing = load_disk_usage_for_vcenter(conn, vcenter.uuid)

        seen_vms = set()
        wanted: Dict[Tuple[bytes, str], Tuple[int, int]] = {}
        for obj in objects:
            if GUEST_DISK_PROPERTY not in obj.properties:
                continue
            vm_uuid = make_binary_global_uuid(vcenter.uuid, obj.id)
            if vm_uuid not in known_vms:
                LOG.debug("Skipping disks of unknown VM %s", obj.id)
                continue
            seen_vms.add(vm_uuid)
            for disk in obj.properties.get(GUEST_DISK_PROPERTY) or []:
                path = _disk_attr(disk, "diskPath")
                if path is None:
                    continue
                wanted[(vm_uuid, str(path))] = (
                    int(_disk_attr(disk, "capacity") or 0),
                    int(_disk_attr(disk, "freeSpace") or 0),
                )

        result = SyncResult(fetched=len(objects))
        with transaction(conn) as cur:
            for key, values in wanted.items():
                if key not in existing:
                    result.created += 1
                elif existing[key] != values:
                    result.modified += 1
                else:
                    continue
                upsert_disk(cur, key[0], key[1], values[0], values[1])

            gone = [key for key in existing if key[0] in seen_vms and key not in wanted]
            result.deleted = delete_disks(cur, gone)
    except Exception as exc:
        LOG.exception("Synchronizing %s for vCenter %s failed", DISK_USAGE_TYPE, vcenter.uuid.hex())
        save_sync_run(conn, vcenter.uuid, DISK_USAGE_TYPE, STATUS_FAILED, started_at, datetime.utcnow().isoformat(), {"error": str(exc)})
        raise

    save_sync_run(conn, vcenter.uuid, DISK_USAGE_TYPE, STATUS_COMPLETED, started_at, datetime.utcnow().isoformat(), result.as_dict())
    LOG.debug(
        "%s: %d new, %d modified, %d deleted (got %d from API)",
        DISK_USAGE_TYPE,
        result.created,
        result.modified,
        result.deleted,
        result.fetched,
    )
    return result


def _disk_row(disk_path: str, capacity: int, free_space: int) -> Dict[str, Any]:
    used = capacity - free_space
    return {
        "disk_path": disk_path,
        "capacity": capacity,
        "free_space": free_space,
        "used": used,
        "size": format_bytes(capacity),
        "free": format_free_space(free_space, capacity),
        "usage_percent": round(percentage(used, capacity), 3),
    }


def disk_usage_report(conn, vm_uuid: bytes) -> Dict[str, Any]:
    """Return disks of a VM plus a totals row.

    Raises ValueError when the VM does not exist.
    """
    vm = get_record(conn, VIRTUAL_MACHINE.table, ["name"], vm_uuid)
    if vm is None:
        raise ValueError(f"Virtual machine not found: {vm_uuid.hex()}")

    disks: List[Dict[str, Any]] = []
    total_size = 0
    total_free = 0
    for d in list_disk_usage(conn, vm_uuid):
        disks.append(_disk_row(d["disk_path"], d["capacity"], d["free_space"]))
        total_size += d["capacity"]
        total_free += d["free_space"]

    return {
        "vm": {"uuid": vm_uuid.hex(), "name": vm.get("name")},
        "disks": disks,
        "total": _disk_row(TOTAL_LABEL, total_size, total_free),
    }


def generate_disk_usage_xlsx(conn, vm_uuid: bytes, out_path: Optional[str] = None) -> str:
    """Write the disk usage report of a VM to XLSX and return the path."""
    report = disk_usage_report(conn, vm_uuid)
    rows = report["disks"] + [report["total"]]
    df = pd.DataFrame(
        [
            {
                "Disk": r["disk_path"],
                "Size": r["size"],
                "Free space": r["free"],
                "Usage (%)": r["usage_percent"],
                "Capacity (bytes)": r["capacity"],
                "Free (bytes)": r["free_space"],
            }
            for r in rows
        ]
    )
    if out_path is None:
        out_path = str(Path(export_dir()) / f"vm_disk_usage_{vm_uuid.hex()}.xlsx")
    return export_to_excel(df, out_path)


__all__ = ["DISK_USAGE_TYPE", "sync_disk_usage", "disk_usage_report", "generate_disk_usage_xlsx"]
