"""Database schema for repository layer.

Defines SQL for the inventory tables and a helper to create them.
All inventory tables are keyed by a 16 byte derived `uuid` and carry the
owning `vcenter_uuid`.
"""
from __future__ import annotations

from typing import Any
import sqlite3


VCENTER_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS vcenter (
    uuid BLOB PRIMARY KEY,
    instance_uuid TEXT NOT NULL UNIQUE,
    name TEXT,
    version TEXT,
    api_type TEXT,
    created_at TEXT,
    updated_at TEXT
);
"""


VCENTER_SERVER_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS vcenter_server (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    vcenter_uuid BLOB REFERENCES vcenter(uuid) ON DELETE SET NULL,
    host TEXT NOT NULL,
    scheme TEXT NOT NULL DEFAULT 'https',
    username TEXT NOT NULL,
    password TEXT NOT NULL,
    ssl_verify INTEGER NOT NULL DEFAULT 1,
    enabled INTEGER NOT NULL DEFAULT 1,
    created_at TEXT,
    UNIQUE(host, username)
);
"""


HOST_SYSTEM_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS host_system (
    uuid BLOB PRIMARY KEY,
    vcenter_uuid BLOB NOT NULL REFERENCES vcenter(uuid) ON DELETE CASCADE,
    name TEXT,
    parent_uuid BLOB,
    sysinfo_uuid TEXT,
    sysinfo_vendor TEXT,
    sysinfo_model TEXT,
    hardware_cpu_mhz INTEGER,
    hardware_cpu_cores INTEGER,
    hardware_memory_size INTEGER,
    power_state TEXT,
    in_maintenance_mode TEXT,
    product_version TEXT
);
"""


VIRTUAL_MACHINE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS virtual_machine (
    uuid BLOB PRIMARY KEY,
    vcenter_uuid BLOB NOT NULL REFERENCES vcenter(uuid) ON DELETE CASCADE,
    name TEXT,
    parent_uuid BLOB,
    annotation TEXT,
    hardware_numcpu INTEGER,
    hardware_memorymb INTEGER,
    template TEXT,
    bios_uuid TEXT,
    instance_uuid TEXT,
    runtime_host_uuid BLOB,
    runtime_power_state TEXT,
    guest_host_name TEXT,
    guest_ip_address TEXT,
    guest_tools_running_status TEXT
);
"""


VM_DISK_USAGE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS vm_disk_usage (
    vm_uuid BLOB NOT NULL REFERENCES virtual_machine(uuid) ON DELETE CASCADE,
    disk_path TEXT NOT NULL,
    capacity INTEGER NOT NULL,
    free_space INTEGER NOT NULL,
    PRIMARY KEY (vm_uuid, disk_path)
);
"""


SYNC_RUNS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS sync_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    vcenter_uuid BLOB NOT NULL,
    object_type TEXT NOT NULL,
    status TEXT NOT NULL,
    started_at TEXT,
    finished_at TEXT,
    summary_json TEXT
);
"""


INDEXES_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_host_system_vcenter ON host_system (vcenter_uuid)",
    "CREATE INDEX IF NOT EXISTS idx_virtual_machine_vcenter ON virtual_machine (vcenter_uuid)",
    "CREATE INDEX IF NOT EXISTS idx_sync_runs_vcenter ON sync_runs (vcenter_uuid, id)",
)


def create_tables(conn: sqlite3.Connection | Any) -> None:
    """Create required tables on the given SQLite connection.

    Safe to call repeatedly; every statement is `IF NOT EXISTS`.
    """
    cur = conn.cursor()
    cur.execute(VCENTER_TABLE_SQL)
    cur.execute(VCENTER_SERVER_TABLE_SQL)
    cur.execute(HOST_SYSTEM_TABLE_SQL)
    cur.execute(VIRTUAL_MACHINE_TABLE_SQL)
    cur.execute(VM_DISK_USAGE_TABLE_SQL)
    cur.execute(SYNC_RUNS_TABLE_SQL)
    for stmt in INDEXES_SQL:
        cur.execute(stmt)
    conn.commit()


__all__ = [
    "VCENTER_TABLE_SQL",
    "VCENTER_SERVER_TABLE_SQL",
    "HOST_SYSTEM_TABLE_SQL",
    "VIRTUAL_MACHINE_TABLE_SQL",
    "VM_DISK_USAGE_TABLE_SQL",
    "SYNC_RUNS_TABLE_SQL",
    "create_tables",
]
