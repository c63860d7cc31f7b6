"""Synchronization entry points.

`sync_all` runs one pass per object type (hosts before virtual machines)
followed by the guest disk usage. `sync_server` resolves a configured
server connection, registers its vCenter and runs `sync_all`; it is what
the CLI and the HTTP trigger call.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Optional

from ..repo.vcenter_servers import get_vcenter_server, link_vcenter_server
from ..repo.vcenters import VCenter, register_vcenter
from .api_client import VSphereApi
from .disk_usage import DISK_USAGE_TYPE, sync_disk_usage
from .object_types import DEFAULT_OBJECT_TYPES, ObjectType
from .sync import SyncResult, sync_from_api


LOG = logging.getLogger(__name__)


def sync_all(
    conn,
    vcenter: VCenter,
    api: Any,
    object_types: Iterable[ObjectType] = DEFAULT_OBJECT_TYPES,
    include_disk_usage: bool = True,
) -> Dict[str, SyncResult]:
    """Synchronize every object type in order; stops at the first failure."""
    results: Dict[str, SyncResult] = {}
    for object_type in object_types:
        results[object_type.type_name] = sync_from_api(conn, vcenter, object_type, api)
    if include_disk_usage:
        results[DISK_USAGE_TYPE] = sync_disk_usage(conn, vcenter, api)
    return results


def register_from_api(conn, api: Any) -> VCenter:
    """Create or refresh the vCenter row from the endpoint's about info."""
    about = api.about()
    return register_vcenter(
        conn,
        instance_uuid=about["instance_uuid"],
        name=about.get("name"),
        version=about.get("version"),
        api_type=about.get("api_type"),
    )


def sync_server(
    conn,
    server_id: int,
    api_factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
) -> Dict[str, Any]:
    """Connect to a configured server and run a full synchronization.

    Raises ValueError when the server does not exist or is disabled.
    """
    server = get_vcenter_server(conn, server_id, include_password=True)
    if server is None:
        raise ValueError(f"vCenter server not found: {server_id}")
    if not server["enabled"]:
        raise ValueError(f"vCenter server is disabled: {server_id}")

    factory = api_factory or VSphereApi.from_server
    api = factory(server)
    api.connect()
    try:
        vcenter = register_from_api(conn, api)
        link_vcenter_server(conn, server_id, vcenter.uuid)
        LOG.info("Synchronizing %s (%s)", server["host"], vcenter.uuid.hex())
        results = sync_all(conn, vcenter, api)
    finally:
        api.disconnect()

    return {
        "vcenter": vcenter.to_dict(),
        "results": {name: r.as_dict() for name, r in results.items()},
    }


__all__ = ["sync_all", "register_from_api", "sync_server"]
