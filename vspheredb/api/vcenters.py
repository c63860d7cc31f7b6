"""API endpoints to browse synchronized vCenters and their sync history."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, status

from ..core.db import init_db, get_connection
from ..core.identity import hex_to_uuid
from ..pipeline.summaries import vcenter_summary
from ..repo.schema import create_tables
from ..repo.sync_runs import query_sync_runs
from ..repo.vcenters import find_vcenter, list_vcenters

router = APIRouter()


def _init_db_conn():
    init_db()
    conn = get_connection()
    create_tables(conn)
    cur = conn.cursor()
    return conn, cur


def _parse_uuid(hex_uuid: str) -> bytes:
    try:
        return hex_to_uuid(hex_uuid)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid uuid") from exc


@router.get("/health")
def health_check():
    """Simple health check endpoint."""
    return {"status": "ok"}


@router.get("/vcenters")
def get_vcenters():
    """Return all known vCenters."""
    conn, _ = _init_db_conn()
    try:
        return {"vcenters": [v.to_dict() for v in list_vcenters(conn)]}
    finally:
        conn.close()


@router.get("/vcenters/{hex_uuid}")
def get_vcenter_summary(hex_uuid: str):
    """Return a vCenter with host/VM counts and its latest sync runs."""
    uuid = _parse_uuid(hex_uuid)
    conn, _ = _init_db_conn()
    try:
        vcenter = find_vcenter(conn, uuid)
        if vcenter is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="vCenter not found")
        return vcenter_summary(conn, vcenter)
    finally:
        conn.close()


@router.get("/vcenters/{hex_uuid}/sync-runs")
def get_sync_runs(hex_uuid: str, object_type: Optional[str] = None, limit: int = 100, offset: int = 0):
    """Paginated synchronization history, newest first."""
    uuid = _parse_uuid(hex_uuid)
    conn, _ = _init_db_conn()
    try:
        if find_vcenter(conn, uuid) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="vCenter not found")
        return query_sync_runs(conn, uuid, object_type=object_type, limit=limit, offset=offset)
    finally:
        conn.close()


__all__ = ["router"]
