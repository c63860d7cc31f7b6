"""Top-level package for the vSphere inventory mirror.

Keeps the vCenter inventory (hosts, virtual machines, disk usage) in a local
SQLite database and exposes it through a small JSON API.
"""
__all__ = ["api", "core", "pipeline", "repo"]
__version__ = "0.1.0"
