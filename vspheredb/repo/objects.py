"""Row-level helpers for inventory object tables.

The helpers are generic over the table and its mapped columns. Writers
take a cursor and never commit, so that the caller decides the
transaction boundary.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import sqlite3


# stay below SQLITE_MAX_VARIABLE_NUMBER of older SQLite builds
DELETE_CHUNK_SIZE = 900


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def load_all_for_vcenter(
    conn: sqlite3.Connection,
    table: str,
    columns: Sequence[str],
    vcenter_uuid: bytes,
) -> Dict[bytes, Dict[str, Any]]:
    """Return all rows of `table` owned by `vcenter_uuid`, keyed by uuid.

    Each row is a dict with `uuid`, `vcenter_uuid` and the given columns.
    """
    all_cols = ["uuid", "vcenter_uuid"] + [c for c in columns if c not in ("uuid", "vcenter_uuid")]
    col_sql = ", ".join(_quote_ident(c) for c in all_cols)
    cur = conn.cursor()
    cur.execute(
        f"SELECT {col_sql} FROM {_quote_ident(table)} WHERE vcenter_uuid = ?",
        (vcenter_uuid,),
    )
    rows: Dict[bytes, Dict[str, Any]] = {}
    for r in cur.fetchall():
        record = dict(zip(all_cols, r))
        record["uuid"] = bytes(record["uuid"])
        rows[record["uuid"]] = record
    return rows


def insert_record(cur: sqlite3.Cursor, table: str, values: Mapping[str, Any]) -> None:
    cols = list(values.keys())
    col_sql = ", ".join(_quote_ident(c) for c in cols)
    placeholders = ", ".join("?" for _ in cols)
    cur.execute(
        f"INSERT INTO {_quote_ident(table)} ({col_sql}) VALUES ({placeholders})",
        tuple(values[c] for c in cols),
    )


def update_record(cur: sqlite3.Cursor, table: str, uuid: bytes, changes: Mapping[str, Any]) -> None:
    if not changes:
        return
    cols = list(changes.keys())
    set_sql = ", ".join(f"{_quote_ident(c)} = ?" for c in cols)
    cur.execute(
        f"UPDATE {_quote_ident(table)} SET {set_sql} WHERE uuid = ?",
        tuple(changes[c] for c in cols) + (uuid,),
    )


def delete_records(cur: sqlite3.Cursor, table: str, uuids: Iterable[bytes]) -> int:
    """Delete rows by uuid with `DELETE ... WHERE uuid IN (...)`.

    Returns the number of uuids requested for deletion.
    """
    uuid_list: List[bytes] = list(uuids)
    for start in range(0, len(uuid_list), DELETE_CHUNK_SIZE):
        chunk = uuid_list[start:start + DELETE_CHUNK_SIZE]
        placeholders = ", ".join("?" for _ in chunk)
        cur.execute(
            f"DELETE FROM {_quote_ident(table)} WHERE uuid IN ({placeholders})",
            tuple(chunk),
        )
    return len(uuid_list)


def get_record(conn: sqlite3.Connection, table: str, columns: Sequence[str], uuid: bytes) -> Optional[Dict[str, Any]]:
    """Return a single row as dict (uuid, vcenter_uuid and `columns`) or None."""
    all_cols = ["uuid", "vcenter_uuid"] + [c for c in columns if c not in ("uuid", "vcenter_uuid")]
    col_sql = ", ".join(_quote_ident(c) for c in all_cols)
    cur = conn.cursor()
    cur.execute(f"SELECT {col_sql} FROM {_quote_ident(table)} WHERE uuid = ?", (uuid,))
    row = cur.fetchone()
    return dict(zip(all_cols, row)) if row else None


__all__ = ["load_all_for_vcenter", "insert_record", "update_record", "delete_records", "get_record"]
