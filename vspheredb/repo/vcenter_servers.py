"""Repository helpers for configured vCenter/ESXi connections.

Passwords are only returned when explicitly requested, which the sync
entry points do and the HTTP handlers never do.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional


_PUBLIC_COLUMNS = ("id", "vcenter_uuid", "host", "scheme", "username", "ssl_verify", "enabled", "created_at")


def _row_to_dict(row, include_password: bool = False) -> Dict[str, Any]:
    server = {
        "id": int(row[0]),
        "vcenter_uuid": bytes(row[1]).hex() if row[1] is not None else None,
        "host": row[2],
        "scheme": row[3],
        "username": row[4],
        "ssl_verify": bool(row[5]),
        "enabled": bool(row[6]),
        "created_at": row[7],
    }
    if include_password:
        server["password"] = row[8]
    return server


def create_vcenter_server(
    conn: Any,
    host: str,
    username: str,
    password: str,
    scheme: str = "https",
    ssl_verify: bool = True,
    enabled: bool = True,
) -> int:
    """Insert a new server connection and return its id.

    The (host, username) pair is unique; a duplicate raises
    sqlite3.IntegrityError.
    """
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO vcenter_server (host, scheme, username, password, ssl_verify, enabled, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (host, scheme, username, password, int(bool(ssl_verify)), int(bool(enabled)), datetime.utcnow().isoformat()),
    )
    conn.commit()
    return int(cur.lastrowid)


def get_vcenter_server(conn: Any, server_id: int, include_password: bool = False) -> Optional[Dict[str, Any]]:
    """Return the server as dict or None when it does not exist."""
    cur = conn.cursor()
    cur.execute(
        f"SELECT {', '.join(_PUBLIC_COLUMNS)}, password FROM vcenter_server WHERE id = ?",
        (int(server_id),),
    )
    row = cur.fetchone()
    if not row:
        return None
    return _row_to_dict(row, include_password=include_password)


_UPDATABLE_COLUMNS = ("host", "scheme", "username", "password", "ssl_verify", "enabled")


def update_vcenter_server(conn: Any, server_id: int, **changes: Any) -> bool:
    """Change the given columns of an existing server connection.

    Only keys in _UPDATABLE_COLUMNS are accepted and None values are
    ignored, so the stored password stays unless a new one is passed.
    Returns False when the server does not exist. A (host, username)
    pair clashing with another server raises sqlite3.IntegrityError.
    """
    unknown = set(changes) - set(_UPDATABLE_COLUMNS)
    if unknown:
        raise TypeError(f"Cannot update columns: {sorted(unknown)}")
    values = {k: v for k, v in changes.items() if v is not None}
    for flag in ("ssl_verify", "enabled"):
        if flag in values:
            values[flag] = int(bool(values[flag]))

    cur = conn.cursor()
    cur.execute("SELECT 1 FROM vcenter_server WHERE id = ?", (int(server_id),))
    if cur.fetchone() is None:
        return False
    if values:
        assignments = ", ".join(f"{col} = ?" for col in values)
        cur.execute(
            f"UPDATE vcenter_server SET {assignments} WHERE id = ?",
            (*values.values(), int(server_id)),
        )
        conn.commit()
    return True


def list_vcenter_servers(conn: Any) -> List[Dict[str, Any]]:
    cur = conn.cursor()
    cur.execute(f"SELECT {', '.join(_PUBLIC_COLUMNS)} FROM vcenter_server ORDER BY host, id")
    return [_row_to_dict(r) for r in cur.fetchall()]


def link_vcenter_server(conn: Any, server_id: int, vcenter_uuid: bytes) -> None:
    """Remember which vCenter a server connection resolved to."""
    cur = conn.cursor()
    cur.execute("UPDATE vcenter_server SET vcenter_uuid = ? WHERE id = ?", (vcenter_uuid, int(server_id)))
    conn.commit()


__all__ = [
    "create_vcenter_server",
    "get_vcenter_server",
    "update_vcenter_server",
    "list_vcenter_servers",
    "link_vcenter_server",
]
