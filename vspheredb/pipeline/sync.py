"""Inventory synchronization.

Mirrors the full object set of one type from the vCenter API into its
local table. A pass loads the stored records of the vCenter, fetches the
current objects from the API and reconciles both sets inside a single
transaction: new objects are inserted, changed ones updated in place and
vanished ones deleted with one batched statement.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Set

from ..core.db import transaction
from ..core.identity import make_binary_global_uuid
from ..repo.objects import delete_records, insert_record, load_all_for_vcenter, update_record
from ..repo.sync_runs import save_sync_run
from ..repo.vcenters import VCenter
from .mapping import map_properties
from .object_types import ObjectType, RemoteObject


LOG = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


class SyncError(RuntimeError):
    """Raised when the remote object set cannot be fetched."""


@dataclass
class SyncResult:
    created: int = 0
    modified: int = 0
    deleted: int = 0
    fetched: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def load_all_for_object_type(conn, vcenter: VCenter, object_type: ObjectType) -> Dict[bytes, Dict[str, Any]]:
    return load_all_for_vcenter(conn, object_type.table, object_type.columns, vcenter.uuid)


def fetch_all_from_api(api: Any, object_type: ObjectType) -> List[RemoteObject]:
    """Collect all objects of `object_type` with its property set.

    A missing result (None) is an empty inventory, not an error.
    """
    try:
        objects = api.collect_object_properties(object_type.type_name, object_type.property_set)
    except Exception as exc:
        raise SyncError(f"Failed to fetch {object_type.type_name} from API: {exc}") from exc
    return list(objects or [])


def reconcile(
    conn,
    vcenter: VCenter,
    object_type: ObjectType,
    existing: Dict[bytes, Dict[str, Any]],
    fetched: Iterable[RemoteObject],
) -> SyncResult:
    """Reconcile stored records of one vCenter with the fetched object set.

    `existing` maps uuid to stored row (as returned by
    `load_all_for_vcenter`). Rows are only written when created or when
    at least one mapped column changed. Every stored uuid not present in
    `fetched` is deleted.

    On success `existing` is updated to reflect the stored state. On any
    error the transaction is rolled back, `existing` is left untouched and
    the exception propagates.
    """
    type_name = object_type.type_name
    table = object_type.table
    vcenter_uuid = vcenter.uuid
    fetched = list(fetched)

    LOG.debug("Ready to store %s", type_name)
    stored: Dict[bytes, Dict[str, Any]] = {}
    created: Set[bytes] = set()
    modified: Set[bytes] = set()
    new_uuids: Set[bytes] = set()

    with transaction(conn) as cur:
        for obj in fetched:
            uuid = make_binary_global_uuid(vcenter_uuid, obj.id)
            new_uuids.add(uuid)
            mapped = map_properties(object_type, obj.properties, vcenter_uuid)

            if uuid in stored:
                record = stored[uuid]
            elif uuid in existing:
                record = stored[uuid] = dict(existing[uuid])
            else:
                record = stored[uuid] = {"uuid": uuid, "vcenter_uuid": vcenter_uuid}
                record.update(mapped)
                insert_record(cur, table, record)
                created.add(uuid)
                continue

            changes = {col: value for col, value in mapped.items() if record.get(col) != value}
            if changes:
                update_record(cur, table, uuid, changes)
                record.update(changes)
                if uuid not in created:
                    modified.add(uuid)

        deleted = [uuid for uuid in existing if uuid not in new_uuids]
        if deleted:
            delete_records(cur, table, deleted)

    for uuid in deleted:
        del existing[uuid]
    existing.update(stored)

    result = SyncResult(
        created=len(created),
        modified=len(modified),
        deleted=len(deleted),
        fetched=len(fetched),
    )
    LOG.debug(
        "%s: %d new, %d modified, %d deleted (got %d from API)",
        type_name,
        result.created,
        result.modified,
        result.deleted,
        result.fetched,
    )
    return result


def sync_from_api(conn, vcenter: VCenter, object_type: ObjectType, api: Any) -> SyncResult:
    """Run one full synchronization pass for `object_type`.

    Persists a `sync_runs` row in both the success and the failure case;
    failures are re-raised after being recorded. A failing `on_store_sync`
    hook runs after the data is committed, so its run stays `completed`
    with a `hook_error` entry in the summary before the error propagates.
    """
    type_name = object_type.type_name
    started_at = datetime.utcnow().isoformat()
    try:
        LOG.debug("Loading existing %s from DB", type_name)
        existing = load_all_for_object_type(conn, vcenter, object_type)
        LOG.debug("Got %d existing %s", len(existing), type_name)
        objects = fetch_all_from_api(api, object_type)
        LOG.debug("Got %d %s from VCenter", len(objects), type_name)
        result = reconcile(conn, vcenter, object_type, existing, objects)
    except Exception as exc:
        LOG.exception("Synchronizing %s for vCenter %s failed", type_name, vcenter.uuid.hex())
        save_sync_run(
            conn,
            vcenter.uuid,
            type_name,
            STATUS_FAILED,
            started_at,
            datetime.utcnow().isoformat(),
            {"error": str(exc)},
        )
        raise

    summary = result.as_dict()
    hook_error = None
    if object_type.on_store_sync is not None:
        try:
            object_type.on_store_sync(conn)
        except Exception as exc:
            LOG.exception("on_store_sync hook for %s failed", type_name)
            summary["hook_error"] = str(exc)
            hook_error = exc

    save_sync_run(
        conn,
        vcenter.uuid,
        type_name,
        STATUS_COMPLETED,
        started_at,
        datetime.utcnow().isoformat(),
        summary,
    )
    if hook_error is not None:
        raise hook_error
    LOG.info(
        "Synchronized %s for vCenter %s: %d new, %d modified, %d deleted",
        type_name,
        vcenter.name or vcenter.uuid.hex(),
        result.created,
        result.modified,
        result.deleted,
    )
    return result


__all__ = [
    "SyncError",
    "SyncResult",
    "STATUS_COMPLETED",
    "STATUS_FAILED",
    "load_all_for_object_type",
    "fetch_all_from_api",
    "reconcile",
    "sync_from_api",
]
