"""Simple file storage helpers.

Exports are written below `settings.STORAGE_PATH/exports`.
"""
from __future__ import annotations

from pathlib import Path
from typing import Union

import pandas as pd

from .config import settings


def export_dir() -> Path:
    """Return the export directory, creating it when missing."""
    out = Path(settings.STORAGE_PATH) / "exports"
    out.mkdir(parents=True, exist_ok=True)
    return out


def export_to_excel(df: pd.DataFrame, path: Union[str, Path]) -> str:
    """Export a DataFrame to an Excel file at `path`.

    Ensures the parent directory exists. Returns the absolute path to the
    written file as a string.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    df.to_excel(file_path, index=False)

    return str(file_path.resolve())


__all__ = ["export_dir", "export_to_excel"]
