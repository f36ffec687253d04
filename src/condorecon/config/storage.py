"""Where the reconciliation database lives.

``DATABASE_URI`` wins when set. Otherwise a SQLite file is kept under
``CONDORECON_DATA_DIR`` or ``$XDG_DATA_HOME/condorecon``. Deployments that must
never fall back to a local file set ``CONDORECON_REQUIRE_DATABASE_URI``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import require_env_vars

APP_DIR_NAME: Final[str] = "condorecon"
DEFAULT_DB_FILENAME: Final[str] = "condorecon.db"
_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def database_path(self) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    explicit = os.getenv("CONDORECON_DATA_DIR")
    if explicit:
        return StorageConfig(data_dir=Path(explicit))
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return StorageConfig(data_dir=base / APP_DIR_NAME)


def database_uri_required() -> bool:
    return os.getenv("CONDORECON_REQUIRE_DATABASE_URI", "").strip().lower() in _TRUTHY


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    if database_uri_required():
        return DatabaseConfig(uri=require_env_vars(["DATABASE_URI"])["DATABASE_URI"])
    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    storage_config = storage or get_storage_config()
    return DatabaseConfig(uri=storage_config.database_uri())
