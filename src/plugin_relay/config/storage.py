"""Data storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_str

APP_DIR_NAME: Final[str] = "plugin-relay"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
DEFAULT_STATE_PATH: Final[str] = "plugins-state.json"
STATE_SCHEMA_VERSION: Final[int] = 1


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    state_path: Path
    state_version: int = STATE_SCHEMA_VERSION
    http_cache_filename: str = HTTP_CACHE_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.http_cache_filename


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    """Resolve the state file (relative to the working directory) and data dir."""

    env_dir = os.getenv("PLUGIN_RELAY_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    state_path = Path(env_str("PLUGINS_STATE_PATH", DEFAULT_STATE_PATH))
    return StorageConfig(data_dir=data_dir, state_path=state_path)
