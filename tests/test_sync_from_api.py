import pytest

from vspheredb.pipeline.object_types import HOST_SYSTEM, VIRTUAL_MACHINE, ObjectType, RemoteObject
from vspheredb.pipeline.runner import sync_all, sync_server
from vspheredb.pipeline.sync import SyncError, fetch_all_from_api, load_all_for_object_type, sync_from_api
from vspheredb.repo.sync_runs import query_sync_runs
from vspheredb.repo.vcenter_servers import create_vcenter_server, get_vcenter_server, update_vcenter_server

from conftest import FakeApi, INSTANCE_UUID


def _inventory():
    return {
        "HostSystem": [
            RemoteObject("host-1", {"name": "esx1", "summary.runtime.powerState": "poweredOn"}),
            RemoteObject("host-2", {"name": "esx2", "summary.runtime.powerState": "poweredOn"}),
        ],
        "VirtualMachine": [
            RemoteObject("vm-10", {"name": "db01", "runtime.host": "host-1", "config.template": False}),
        ],
    }


def test_sync_from_api_requests_the_property_set(conn, vcenter):
    api = FakeApi(objects=_inventory())
    result = sync_from_api(conn, vcenter, HOST_SYSTEM, api)

    assert result.created == 2
    assert api.calls == [("HostSystem", HOST_SYSTEM.property_set)]


def test_sync_from_api_records_completed_run(conn, vcenter):
    sync_from_api(conn, vcenter, HOST_SYSTEM, FakeApi(objects=_inventory()))

    runs = query_sync_runs(conn, vcenter.uuid)
    assert runs["total"] == 1
    run = runs["runs"][0]
    assert run["object_type"] == "HostSystem"
    assert run["status"] == "completed"
    assert run["summary"] == {"created": 2, "modified": 0, "deleted": 0, "fetched": 2}


def test_failing_fetch_records_failed_run_and_keeps_data(conn, vcenter):
    sync_from_api(conn, vcenter, HOST_SYSTEM, FakeApi(objects=_inventory()))

    with pytest.raises(SyncError):
        sync_from_api(conn, vcenter, HOST_SYSTEM, FakeApi(fail=True))

    assert len(load_all_for_object_type(conn, vcenter, HOST_SYSTEM)) == 2
    latest = query_sync_runs(conn, vcenter.uuid, limit=1)["runs"][0]
    assert latest["status"] == "failed"
    assert "vCenter unreachable" in latest["summary"]["error"]


def test_fetch_returning_nothing_is_an_empty_inventory():
    class NoneApi:
        def collect_object_properties(self, type_name, path_set):
            return None

    assert fetch_all_from_api(NoneApi(), HOST_SYSTEM) == []


def test_on_store_sync_hook_runs_after_commit(conn, vcenter):
    seen = []

    def hook(connection):
        cur = connection.cursor()
        cur.execute("SELECT COUNT(1) FROM host_system")
        seen.append(cur.fetchone()[0])

    object_type = ObjectType(HOST_SYSTEM.type_name, HOST_SYSTEM.table, HOST_SYSTEM.fields, on_store_sync=hook)
    sync_from_api(conn, vcenter, object_type, FakeApi(objects=_inventory()))

    assert seen == [2]


def test_failing_hook_keeps_committed_data_and_completed_run(conn, vcenter):
    def hook(connection):
        raise RuntimeError("refresh failed")

    object_type = ObjectType(HOST_SYSTEM.type_name, HOST_SYSTEM.table, HOST_SYSTEM.fields, on_store_sync=hook)
    with pytest.raises(RuntimeError, match="refresh failed"):
        sync_from_api(conn, vcenter, object_type, FakeApi(objects=_inventory()))

    assert len(load_all_for_object_type(conn, vcenter, HOST_SYSTEM)) == 2
    run = query_sync_runs(conn, vcenter.uuid)["runs"][0]
    assert run["status"] == "completed"
    assert run["summary"]["created"] == 2
    assert run["summary"]["hook_error"] == "refresh failed"


def test_sync_all_runs_types_in_order_and_disk_usage(conn, vcenter):
    api = FakeApi(
        objects=_inventory(),
        disks={"vm-10": [{"diskPath": "/", "capacity": 100, "freeSpace": 40}]},
    )
    results = sync_all(conn, vcenter, api)

    assert list(results) == ["HostSystem", "VirtualMachine", "VmDiskUsage"]
    assert results["VirtualMachine"].created == 1
    assert results["VmDiskUsage"].created == 1
    assert [c[0] for c in api.calls] == ["HostSystem", "VirtualMachine", "VirtualMachine"]


def test_sync_server_registers_vcenter_and_links_server(conn):
    server_id = create_vcenter_server(conn, "vc1.example.com", "admin", "secret")
    api = FakeApi(objects=_inventory())

    summary = sync_server(conn, server_id, api_factory=lambda server: api)

    assert summary["vcenter"]["instance_uuid"] == INSTANCE_UUID
    assert summary["results"]["HostSystem"]["created"] == 2
    assert get_vcenter_server(conn, server_id)["vcenter_uuid"] == summary["vcenter"]["uuid"]
    assert api.connected is False


def test_sync_server_passes_password_to_factory(conn):
    server_id = create_vcenter_server(conn, "vc1.example.com", "admin", "secret")
    seen = {}

    def factory(server):
        seen.update(server)
        return FakeApi()

    sync_server(conn, server_id, api_factory=factory)
    assert seen["password"] == "secret"


def test_sync_server_rejects_unknown_or_disabled(conn):
    with pytest.raises(ValueError):
        sync_server(conn, 999, api_factory=lambda server: FakeApi())

    server_id = create_vcenter_server(conn, "vc2.example.com", "admin", "secret", enabled=False)
    with pytest.raises(ValueError):
        sync_server(conn, server_id, api_factory=lambda server: FakeApi())


def test_vms_removed_remotely_lose_their_disks(conn, vcenter):
    inventory = _inventory()
    api = FakeApi(objects=inventory, disks={"vm-10": [{"diskPath": "/", "capacity": 100, "freeSpace": 40}]})
    sync_all(conn, vcenter, api)

    inventory["VirtualMachine"] = []
    sync_all(conn, vcenter, FakeApi(objects=inventory))

    cur = conn.cursor()
    cur.execute("SELECT COUNT(1) FROM vm_disk_usage")
    assert cur.fetchone()[0] == 0
    assert load_all_for_object_type(conn, vcenter, VIRTUAL_MACHINE) == {}


def test_update_vcenter_server_keeps_password_unless_given(conn):
    server_id = create_vcenter_server(conn, "vc1.example.com", "admin", "secret")

    assert update_vcenter_server(conn, server_id, username="root", password=None, enabled=False) is True
    server = get_vcenter_server(conn, server_id, include_password=True)
    assert server["username"] == "root"
    assert server["password"] == "secret"
    assert server["enabled"] is False

    update_vcenter_server(conn, server_id, password="changed")
    assert get_vcenter_server(conn, server_id, include_password=True)["password"] == "changed"

    assert update_vcenter_server(conn, 999, host="nowhere") is False
