#!/usr/bin/env python3
"""Run one synchronization pass for a configured vCenter server.

Usage:
  python scripts/sync_vcenter.py <server_id> [--debug]

Meant to be invoked periodically by an external scheduler (cron, systemd
timer). Exits with status 1 when the pass fails.
"""
import json
import logging
import sys

from vspheredb.core.db import init_db, get_connection
from vspheredb.pipeline.runner import sync_server
from vspheredb.repo.schema import create_tables


def main(server_id: int) -> dict:
    init_db()
    conn = get_connection()
    try:
        create_tables(conn)
        return sync_server(conn, int(server_id))
    finally:
        conn.close()


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if len(args) < 1:
        print("Usage: python scripts/sync_vcenter.py <server_id> [--debug]")
        sys.exit(1)
    logging.basicConfig(
        level=logging.DEBUG if "--debug" in sys.argv else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        summary = main(int(args[0]))
    except Exception:
        logging.getLogger("sync_vcenter").exception("Synchronization failed")
        sys.exit(1)
    print(json.dumps(summary, indent=2))
