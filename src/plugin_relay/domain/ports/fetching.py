"""Ports for reading plugin files and their freshness metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from plugin_relay.domain.model import FileMetadata


@runtime_checkable
class MetadataProbe(Protocol):
    """Look up freshness headers for a file without downloading it.

    Implementations must not raise; an unreachable file yields empty metadata.
    """

    async def head(self, url: str) -> FileMetadata: ...


@runtime_checkable
class FileFetcher(Protocol):
    """Download a plugin file body."""

    async def fetch_file(self, url: str) -> bytes: ...


__all__ = ["FileFetcher", "MetadataProbe"]
