"""API endpoints to manage vCenter/ESXi server connections.

Creating or editing a server only stores the connection. `POST
/vcenter-servers/{id}/sync` connects to it and runs a full
synchronization pass.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from ..core.config import settings
from ..core.db import init_db, get_connection
from ..pipeline.runner import sync_server
from ..repo.schema import create_tables
from ..repo.vcenter_servers import (
    create_vcenter_server,
    get_vcenter_server,
    list_vcenter_servers,
    update_vcenter_server,
)

router = APIRouter()

LOG = logging.getLogger(__name__)


def _init_db_conn():
    init_db()
    conn = get_connection()
    create_tables(conn)
    cur = conn.cursor()
    return conn, cur


class VCenterServerCreate(BaseModel):
    host: str
    username: str
    password: str
    scheme: str = "https"
    ssl_verify: Optional[bool] = None
    enabled: bool = True


class VCenterServerUpdate(BaseModel):
    host: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: Optional[str] = None
    ssl_verify: Optional[bool] = None
    enabled: Optional[bool] = None


@router.get("/vcenter-servers")
def get_vcenter_servers():
    conn, _ = _init_db_conn()
    try:
        return {"servers": list_vcenter_servers(conn)}
    finally:
        conn.close()


@router.post("/vcenter-servers")
def post_vcenter_server(payload: VCenterServerCreate):
    """Store a new server connection and return it (without password)."""
    if payload.scheme not in ("https", "http"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="scheme must be http or https")
    ssl_verify = settings.VERIFY_SSL if payload.ssl_verify is None else payload.ssl_verify
    conn, _ = _init_db_conn()
    try:
        server_id = create_vcenter_server(
            conn,
            host=payload.host,
            username=payload.username,
            password=payload.password,
            scheme=payload.scheme,
            ssl_verify=ssl_verify,
            enabled=payload.enabled,
        )
        return {"vcenter_server_id": server_id, "vcenter_server": get_vcenter_server(conn, server_id)}
    except sqlite3.IntegrityError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Server already configured") from exc
    finally:
        conn.close()


@router.get("/vcenter-servers/{server_id}")
def get_single_vcenter_server(server_id: int):
    conn, _ = _init_db_conn()
    try:
        server = get_vcenter_server(conn, server_id)
        if server is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Server not found")
        return server
    finally:
        conn.close()


@router.put("/vcenter-servers/{server_id}")
def put_vcenter_server(server_id: int, payload: VCenterServerUpdate):
    """Edit a server connection. Omitted fields, password included, stay as stored."""
    if payload.scheme is not None and payload.scheme not in ("https", "http"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="scheme must be http or https")
    conn, _ = _init_db_conn()
    try:
        found = update_vcenter_server(
            conn,
            server_id,
            host=payload.host,
            username=payload.username,
            password=payload.password,
            scheme=payload.scheme,
            ssl_verify=payload.ssl_verify,
            enabled=payload.enabled,
        )
        if not found:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Server not found")
        return {"vcenter_server_id": server_id, "vcenter_server": get_vcenter_server(conn, server_id)}
    except sqlite3.IntegrityError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Server already configured") from exc
    finally:
        conn.close()


@router.post("/vcenter-servers/{server_id}/sync")
def post_sync(server_id: int):
    """Connect to the server and synchronize its inventory."""
    conn, _ = _init_db_conn()
    try:
        server = get_vcenter_server(conn, server_id)
        if server is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Server not found")
        if not server["enabled"]:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Server is disabled")
        try:
            return sync_server(conn, server_id)
        except Exception as exc:
            LOG.exception("Synchronization of server %s failed", server_id)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    finally:
        conn.close()


__all__ = ["router"]
