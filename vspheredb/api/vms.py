"""API endpoints for virtual machine disk usage."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from ..core.db import init_db, get_connection
from ..core.identity import hex_to_uuid
from ..pipeline.disk_usage import disk_usage_report, generate_disk_usage_xlsx
from ..repo.schema import create_tables

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


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


@router.get("/vms/{hex_uuid}/disk-usage")
def get_disk_usage(hex_uuid: str):
    """Return guest disks of a VM with formatted sizes and a totals row."""
    uuid = _parse_uuid(hex_uuid)
    conn, _ = _init_db_conn()
    try:
        return disk_usage_report(conn, uuid)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    finally:
        conn.close()


@router.get("/vms/{hex_uuid}/disk-usage/export")
def export_disk_usage(hex_uuid: str):
    uuid = _parse_uuid(hex_uuid)
    conn, _ = _init_db_conn()
    try:
        path = generate_disk_usage_xlsx(conn, uuid)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    finally:
        conn.close()

    filename = f"vm_disk_usage_{hex_uuid}.xlsx"
    return FileResponse(path, filename=filename, media_type=XLSX_MEDIA_TYPE)


__all__ = ["router"]
