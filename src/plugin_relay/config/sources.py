"""Upstream catalog locations and network settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .env import env_int, env_str
from .http_resilience import DEFAULT_USER_AGENT, CacheConfig, ResilienceConfig
from .storage import get_storage_config

if TYPE_CHECKING:
    from .storage import StorageConfig

CATALOG_BASE_URL: Final[str] = (
    "https://raw.githubusercontent.com/publicrust/plugins-forum/main/backend/output"
)
BASE_INDEX_URL: Final[str] = f"{CATALOG_BASE_URL}/oxide_plugins.json"
ENRICHED_INDEX_URL: Final[str] = f"{CATALOG_BASE_URL}/crawled_plugins.json"
DELETED_REPOSITORIES_URL: Final[str] = f"{CATALOG_BASE_URL}/deleted_repositories.json"

DEFAULT_TIMEOUT_MS: Final[int] = 30_000
DEFAULT_CONCURRENCY: Final[int] = 6


@dataclass(frozen=True, slots=True)
class SourcesConfig:
    """Where catalogs come from and how hard we may hit the file host."""

    base_index_url: str
    enriched_index_url: str
    deleted_url: str | None
    concurrency: int
    index_resilience: ResilienceConfig
    file_resilience: ResilienceConfig


def get_sources_config(*, storage: StorageConfig | None = None) -> SourcesConfig:
    timeout_seconds = env_int("HTTP_TIMEOUT", DEFAULT_TIMEOUT_MS, minimum=1) / 1000
    concurrency = env_int("PLUGINS_CONCURRENCY", DEFAULT_CONCURRENCY, minimum=1)
    storage_config = storage or get_storage_config()
    headers = {"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"}
    deleted_url = env_str("PLUGINS_DELETED_URL", DELETED_REPOSITORIES_URL)
    return SourcesConfig(
        base_index_url=env_str("PLUGINS_BASE_INDEX_URL", BASE_INDEX_URL),
        enriched_index_url=env_str("PLUGINS_ENRICHED_INDEX_URL", ENRICHED_INDEX_URL),
        deleted_url=None if deleted_url.lower() == "none" else deleted_url,
        concurrency=concurrency,
        index_resilience=ResilienceConfig(
            name="catalog",
            timeout_seconds=timeout_seconds,
            cache=CacheConfig(
                backend="sqlite",
                sqlite_path=str(storage_config.http_cache_path()),
            ),
            default_headers=headers,
        ),
        file_resilience=ResilienceConfig(
            name="plugin-files",
            timeout_seconds=timeout_seconds,
            default_headers={"User-Agent": DEFAULT_USER_AGENT},
        ),
    )
