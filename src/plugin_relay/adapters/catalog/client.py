"""HTTP client for the plugin catalogs and the files they point at."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from plugin_relay.adapters.http_resilience import ResilientClient
from plugin_relay.domain.model import EMPTY_METADATA, FileMetadata

from .schema import CatalogPayload, DeletedRepositoriesPayload
from .translator import to_deleted_repositories, to_plugin_catalog

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from plugin_relay.config.http_resilience import ResilienceConfig
    from plugin_relay.config.sources import SourcesConfig
    from plugin_relay.domain.model import DeletedRepositories, PluginCatalog

log = getLogger(__name__)


class MalformedCatalogError(RuntimeError):
    """Raised when a catalog response does not have the expected envelope."""

    def __init__(self, url: str, detail: str | None = None) -> None:
        message = f"Malformed index: {url}"
        super().__init__(f"{message} ({detail})" if detail else message)
        self.url = url


def normalize_raw_url(raw_url: str) -> str:
    """Percent-encode characters that upstream paths contain but URLs reserve."""

    return raw_url.replace("#", "%23")


def _parse_content_length(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip(), 10)
    except ValueError:
        return None


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class CatalogClient:
    """Reads catalogs, the deleted-repositories list, file metadata and file bodies.

    Catalog requests use the (cached) index client; HEAD probes and downloads use
    the uncached file client. Use as an async context manager.
    """

    def __init__(
        self,
        config: SourcesConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._index: ResilientClient | None = None
        self._files: ResilientClient | None = None

    async def __aenter__(self) -> CatalogClient:
        self._index = self._client_factory(self.config.index_resilience)
        self._files = self._client_factory(self.config.file_resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for client in (self._index, self._files):
            if client is not None:
                await client.aclose()
        self._index = None
        self._files = None

    @property
    def index_client(self) -> ResilientClient:
        if self._index is None:
            raise RuntimeError("CatalogClient is not open; use it as an async context manager")
        return self._index

    @property
    def file_client(self) -> ResilientClient:
        if self._files is None:
            raise RuntimeError("CatalogClient is not open; use it as an async context manager")
        return self._files

    async def fetch_catalog(self, url: str) -> PluginCatalog:
        """Download and validate one catalog; any envelope violation is fatal."""

        response = await self.index_client.get(url)
        response.raise_for_status()
        log.debug("Fetched index %s with status %s", url, response.status_code)
        try:
            payload = CatalogPayload.model_validate_json(response.content)
        except ValidationError as exc:
            raise MalformedCatalogError(url, f"{exc.error_count()} validation errors") from exc
        return to_plugin_catalog(payload)

    async def fetch_deleted(self, url: str | None = None) -> DeletedRepositories | None:
        target = url or self.config.deleted_url
        if not target:
            return None
        try:
            response = await self.index_client.get(target)
            response.raise_for_status()
            payload = DeletedRepositoriesPayload.model_validate_json(response.content)
        except (httpx.HTTPError, httpx.InvalidURL, ValidationError) as exc:
            log.debug("Deleted repositories list unavailable: %s", exc)
            return None
        return to_deleted_repositories(payload)

    async def head(self, url: str) -> FileMetadata:
        try:
            response = await self.file_client.head(normalize_raw_url(url))
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.debug("HEAD metadata unavailable for %s: %s", url, exc)
            return EMPTY_METADATA
        headers = response.headers
        return FileMetadata(
            etag=headers.get("etag") or None,
            last_modified=headers.get("last-modified") or None,
            content_length=_parse_content_length(headers.get("content-length")),
            content_type=headers.get("content-type") or None,
        )

    async def fetch_file(self, url: str) -> bytes:
        response = await self.file_client.get(normalize_raw_url(url))
        response.raise_for_status()
        return response.content

