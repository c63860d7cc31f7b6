import pytest

from vspheredb.core.config import settings
from vspheredb.core.db import init_db, get_connection
from vspheredb.pipeline.object_types import RemoteObject
from vspheredb.repo.schema import create_tables
from vspheredb.repo.vcenters import register_vcenter


INSTANCE_UUID = "5b2c7a1e-8f4d-4c3b-9a6e-1d2f3a4b5c6d"
OTHER_INSTANCE_UUID = "0f0e0d0c-0b0a-4909-8807-060504030201"


class FakeApi:
    """Stands in for VSphereApi: returns canned objects per type name."""

    def __init__(self, objects=None, disks=None, about=None, fail=False):
        self.objects = objects or {}
        self.disks = disks or {}
        self.about_info = about or {
            "instance_uuid": INSTANCE_UUID,
            "name": "VMware vCenter Server 8.0.2",
            "version": "8.0.2",
            "api_type": "VirtualCenter",
        }
        self.fail = fail
        self.calls = []
        self.connected = False

    def connect(self):
        self.connected = True
        return self

    def disconnect(self):
        self.connected = False

    def about(self):
        return dict(self.about_info)

    def collect_object_properties(self, type_name, path_set):
        self.calls.append((type_name, list(path_set)))
        if self.fail:
            raise ConnectionError("vCenter unreachable")
        if list(path_set) == ["guest.disk"]:
            return [RemoteObject(vm_id, {"guest.disk": disks}) for vm_id, disks in self.disks.items()]
        return list(self.objects.get(type_name, []))


@pytest.fixture
def conn(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "test.db"))
    monkeypatch.setattr(settings, "STORAGE_PATH", str(tmp_path / "storage"))
    init_db()
    connection = get_connection()
    create_tables(connection)
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture
def vcenter(conn):
    return register_vcenter(conn, INSTANCE_UUID, name="vc1", version="8.0.2", api_type="VirtualCenter")


@pytest.fixture
def other_vcenter(conn):
    return register_vcenter(conn, OTHER_INSTANCE_UUID, name="vc2", version="7.0.3", api_type="VirtualCenter")
