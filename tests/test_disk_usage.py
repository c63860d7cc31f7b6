from pathlib import Path
from types import SimpleNamespace

import pandas as pd
import pytest

from vspheredb.core.identity import make_binary_global_uuid
from vspheredb.pipeline.disk_usage import disk_usage_report, generate_disk_usage_xlsx, sync_disk_usage
from vspheredb.pipeline.object_types import VIRTUAL_MACHINE, RemoteObject
from vspheredb.pipeline.sync import reconcile
from vspheredb.repo.disk_usage import list_disk_usage

from conftest import FakeApi


GiB = 1024 ** 3


def _with_vm(conn, vcenter, moref="vm-10", name="db01"):
    reconcile(conn, vcenter, VIRTUAL_MACHINE, {}, [RemoteObject(moref, {"name": name})])
    return make_binary_global_uuid(vcenter.uuid, moref)


def test_sync_disk_usage_creates_updates_and_deletes(conn, vcenter):
    vm_uuid = _with_vm(conn, vcenter)
    disks = [
        {"diskPath": "/", "capacity": 20 * GiB, "freeSpace": 5 * GiB},
        SimpleNamespace(diskPath="/var", capacity=10 * GiB, freeSpace=8 * GiB),
    ]
    result = sync_disk_usage(conn, vcenter, FakeApi(disks={"vm-10": disks}))
    assert (result.created, result.modified, result.deleted) == (2, 0, 0)

    changed = [{"diskPath": "/", "capacity": 20 * GiB, "freeSpace": 4 * GiB}]
    result = sync_disk_usage(conn, vcenter, FakeApi(disks={"vm-10": changed}))
    assert (result.created, result.modified, result.deleted) == (0, 1, 1)

    assert list_disk_usage(conn, vm_uuid) == [{"disk_path": "/", "capacity": 20 * GiB, "free_space": 4 * GiB}]


def test_sync_disk_usage_skips_unknown_and_unreported_vms(conn, vcenter):
    vm_uuid = _with_vm(conn, vcenter)
    sync_disk_usage(conn, vcenter, FakeApi(disks={"vm-10": [{"diskPath": "/", "capacity": 100, "freeSpace": 50}]}))

    class PartialApi:
        def collect_object_properties(self, type_name, path_set):
            # vm-10 without guest.disk, vm-99 not stored locally
            return [
                RemoteObject("vm-10", {}),
                RemoteObject("vm-99", {"guest.disk": [{"diskPath": "C:\\", "capacity": 1, "freeSpace": 1}]}),
            ]

    result = sync_disk_usage(conn, vcenter, PartialApi())
    assert (result.created, result.modified, result.deleted) == (0, 0, 0)
    assert len(list_disk_usage(conn, vm_uuid)) == 1


def test_disk_usage_report_totals(conn, vcenter):
    vm_uuid = _with_vm(conn, vcenter)
    disks = [
        {"diskPath": "/", "capacity": 20 * GiB, "freeSpace": 5 * GiB},
        {"diskPath": "/boot", "capacity": 1024 * 1024 * 1024 * 4, "freeSpace": 3 * GiB},
    ]
    sync_disk_usage(conn, vcenter, FakeApi(disks={"vm-10": disks}))

    report = disk_usage_report(conn, vm_uuid)
    assert report["vm"] == {"uuid": vm_uuid.hex(), "name": "db01"}
    assert [d["disk_path"] for d in report["disks"]] == ["/", "/boot"]

    root = report["disks"][0]
    assert root["size"] == "20.00 GiB"
    assert root["free"] == "5.00 GiB (25.000%)"
    assert root["used"] == 15 * GiB
    assert root["usage_percent"] == 75.0

    total = report["total"]
    assert total["disk_path"] == "Total"
    assert total["capacity"] == 24 * GiB
    assert total["free_space"] == 8 * GiB
    assert total["free"] == "8.00 GiB (33.333%)"


def test_disk_usage_report_without_disks(conn, vcenter):
    vm_uuid = _with_vm(conn, vcenter)
    report = disk_usage_report(conn, vm_uuid)
    assert report["disks"] == []
    assert report["total"]["free"] == "0 B (0.000%)"


def test_disk_usage_report_unknown_vm(conn, vcenter):
    with pytest.raises(ValueError):
        disk_usage_report(conn, b"\x00" * 16)


def test_generate_disk_usage_xlsx(conn, vcenter, tmp_path):
    vm_uuid = _with_vm(conn, vcenter)
    sync_disk_usage(conn, vcenter, FakeApi(disks={"vm-10": [{"diskPath": "/", "capacity": 100, "freeSpace": 25}]}))

    path = generate_disk_usage_xlsx(conn, vm_uuid)
    assert Path(path).exists()
    assert Path(path).parent == (tmp_path / "storage" / "exports").resolve()

    df = pd.read_excel(path)
    assert df["Disk"].tolist() == ["/", "Total"]
    assert df["Capacity (bytes)"].tolist() == [100, 100]
