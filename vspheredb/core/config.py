"""Configuration settings for the application.

This module provides a small Settings container used by other
components. Tests override single fields with `monkeypatch.setattr`.
"""
from dataclasses import dataclass


@dataclass
class Settings:
    DB_PATH: str = "data/vspheredb.db"
    STORAGE_PATH: str = "storage"
    # default for newly configured servers
    VERIFY_SSL: bool = True
    # PropertyCollector page size (RetrieveOptions.maxObjects)
    API_PAGE_SIZE: int = 1000
    API_TIMEOUT: int = 60


settings = Settings()
