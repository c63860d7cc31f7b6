"""Pipeline utilities.

Small presentation helpers shared by the disk usage report, summaries
and exports:
- format_bytes
- percentage
- format_free_space
"""
from __future__ import annotations

from typing import Optional, Sequence


IEC_UNITS: Sequence[str] = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")
SI_UNITS: Sequence[str] = ("B", "kB", "MB", "GB", "TB", "PB", "EB")


def format_bytes(value: Optional[float], iec: bool = True) -> str:
    """Format a byte count with binary (IEC) or decimal (SI) units.

    Values below 2 of a unit are shown in the next smaller unit, so
    1536 bytes stay "1536 B" while 2048 become "2.00 KiB". Plain bytes
    carry no decimals.
    """
    if value is None:
        return ""
    units = IEC_UNITS if iec else SI_UNITS
    base = 1024 if iec else 1000

    sign = "-" if value < 0 else ""
    value = abs(value)

    power = 0
    while power < len(units) - 1 and value >= base ** (power + 1):
        power += 1
    result = value / (base ** power)
    if power > 0 and result < 2:
        power -= 1
        result = value / (base ** power)

    if power == 0:
        return f"{sign}{result:.0f} {units[0]}"
    return f"{sign}{result:.2f} {units[power]}"


def percentage(part: Optional[float], total: Optional[float]) -> float:
    """Return part/total*100, or 0.0 when total is empty."""
    if not total:
        return 0.0
    return (float(part or 0) / float(total)) * 100


def format_free_space(free_space: int, capacity: int) -> str:
    return f"{format_bytes(free_space)} ({percentage(free_space, capacity):.3f}%)"


__all__ = ["IEC_UNITS", "SI_UNITS", "format_bytes", "percentage", "format_free_space"]
