"""Where the phenotype store and HTTP cache live on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "termrequester"
DATABASE_FILENAME: Final[str] = "termrequester.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


def _platform_data_home() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory holding the SQLite store and the optional HTTP cache."""

    data_dir: Path

    def resolve_data_dir(self, *, create: bool = True) -> Path:
        path = self.data_dir.expanduser().resolve()
        if create:
            path.mkdir(parents=True, exist_ok=True)
        return path

    def database_path(self) -> Path:
        return self.resolve_data_dir() / DATABASE_FILENAME

    def http_cache_path(self) -> Path:
        return self.resolve_data_dir() / HTTP_CACHE_FILENAME


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    override = os.getenv("TERMREQUESTER_DATA_DIR")
    data_dir = Path(override) if override else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    uri = os.getenv("DATABASE_URI")
    if not uri:
        database = (storage or get_storage_config()).database_path()
        uri = f"sqlite+pysqlite:///{database}"
    return DatabaseConfig(uri=uri)
