"""Repository helpers for synchronization run history.

Every reconciliation pass leaves one row in `sync_runs` with its status
and a JSON summary of the counts (or the error).
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional
import sqlite3


def save_sync_run(
    conn: sqlite3.Connection,
    vcenter_uuid: bytes,
    object_type: str,
    status: str,
    started_at: str,
    finished_at: str,
    summary: Optional[Dict[str, Any]] = None,
) -> int:
    """Insert a sync run and return its id. Commits the transaction."""
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO sync_runs (vcenter_uuid, object_type, status, started_at, finished_at, summary_json)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (vcenter_uuid, object_type, status, started_at, finished_at, json.dumps(summary) if summary is not None else None),
    )
    conn.commit()
    return int(cur.lastrowid)


def _row_to_dict(r) -> Dict[str, Any]:
    return {
        "id": r[0],
        "vcenter_uuid": bytes(r[1]).hex(),
        "object_type": r[2],
        "status": r[3],
        "started_at": r[4],
        "finished_at": r[5],
        "summary": json.loads(r[6]) if r[6] else None,
    }


def query_sync_runs(
    conn: sqlite3.Connection,
    vcenter_uuid: bytes,
    object_type: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> dict:
    """Query sync runs of one vCenter, newest first, with pagination.

    Returns dict with keys: `runs` (list of dicts) and `total`.
    """
    params: list = [vcenter_uuid]
    where_sql = "WHERE vcenter_uuid = ?"
    if object_type is not None:
        where_sql += " AND object_type = ?"
        params.append(object_type)

    cur = conn.cursor()
    cur.execute(f"SELECT COUNT(1) FROM sync_runs {where_sql}", tuple(params))
    total = int(cur.fetchone()[0])

    cur.execute(
        f"SELECT id, vcenter_uuid, object_type, status, started_at, finished_at, summary_json FROM sync_runs {where_sql} ORDER BY id DESC LIMIT ? OFFSET ?",
        tuple(params) + (int(limit), int(offset)),
    )
    runs: List[Dict[str, Any]] = [_row_to_dict(r) for r in cur.fetchall()]
    return {"runs": runs, "total": total}


def latest_sync_runs(conn: sqlite3.Connection, vcenter_uuid: bytes) -> List[Dict[str, Any]]:
    """Return the most recent run per object type for a vCenter."""
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, vcenter_uuid, object_type, status, started_at, finished_at, summary_json
        FROM sync_runs
        WHERE id IN (SELECT MAX(id) FROM sync_runs WHERE vcenter_uuid = ? GROUP BY object_type)
        ORDER BY object_type
        """,
        (vcenter_uuid,),
    )
    return [_row_to_dict(r) for r in cur.fetchall()]


__all__ = ["save_sync_run", "query_sync_runs", "latest_sync_runs"]
