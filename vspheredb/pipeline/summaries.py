"""Per-vCenter inventory summaries."""
from __future__ import annotations

from typing import Any, Dict

from ..repo.sync_runs import latest_sync_runs
from ..repo.vcenters import VCenter


def _scalar(conn, sql: str, params: tuple) -> int:
    cur = conn.cursor()
    cur.execute(sql, params)
    row = cur.fetchone()
    return int(row[0] or 0) if row else 0


def vcenter_summary(conn, vcenter: VCenter) -> Dict[str, Any]:
    """Return host/VM counts, resource totals and the latest sync runs."""
    uuid = vcenter.uuid
    hosts = {
        "total": _scalar(conn, "SELECT COUNT(1) FROM host_system WHERE vcenter_uuid = ?", (uuid,)),
        "in_maintenance": _scalar(
            conn,
            "SELECT COUNT(1) FROM host_system WHERE vcenter_uuid = ? AND in_maintenance_mode = 'y'",
            (uuid,),
        ),
        "powered_on": _scalar(
            conn,
            "SELECT COUNT(1) FROM host_system WHERE vcenter_uuid = ? AND power_state = 'poweredOn'",
            (uuid,),
        ),
        "cpu_cores": _scalar(conn, "SELECT SUM(hardware_cpu_cores) FROM host_system WHERE vcenter_uuid = ?", (uuid,)),
        "memory_size": _scalar(conn, "SELECT SUM(hardware_memory_size) FROM host_system WHERE vcenter_uuid = ?", (uuid,)),
    }
    vms = {
        "total": _scalar(conn, "SELECT COUNT(1) FROM virtual_machine WHERE vcenter_uuid = ?", (uuid,)),
        "templates": _scalar(
            conn,
            "SELECT COUNT(1) FROM virtual_machine WHERE vcenter_uuid = ? AND template = 'y'",
            (uuid,),
        ),
        "powered_on": _scalar(
            conn,
            "SELECT COUNT(1) FROM virtual_machine WHERE vcenter_uuid = ? AND runtime_power_state = 'poweredOn'",
            (uuid,),
        ),
    }
    return {
        "vcenter": vcenter.to_dict(),
        "hosts": hosts,
        "vms": vms,
        "sync_runs": latest_sync_runs(conn, uuid),
    }


__all__ = ["vcenter_summary"]
