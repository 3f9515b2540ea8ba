"""Domain records for plugin catalogs, delivery state and deltas.

Everything here is immutable. Catalog records are produced once by the catalog
adapter or the merge engine and only read afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003
from enum import StrEnum
from types import MappingProxyType

type ExtraValue = (
    str | int | float | bool | None | Mapping[str, ExtraValue] | Sequence[ExtraValue]
)
type ExtraFields = Mapping[str, ExtraValue]

_EMPTY_EXTRA: ExtraFields = MappingProxyType({})


def freeze_extra(values: Mapping[str, ExtraValue] | None) -> ExtraFields:
    """Return a read-only, insertion-ordered copy of an extension map."""

    if not values:
        return _EMPTY_EXTRA
    return MappingProxyType(dict(values))


@dataclass(frozen=True, slots=True)
class FileReference:
    path: str | None = None
    raw_url: str | None = None
    sha: str | None = None
    size: int | None = None


@dataclass(frozen=True, slots=True)
class RepositoryReference:
    name: str | None = None
    full_name: str | None = None
    html_url: str | None = None
    description: str | None = None
    stargazers_count: int | None = None
    archived: bool | None = None


@dataclass(frozen=True, slots=True)
class PluginRecord:
    """One catalog entry."""

    file: FileReference = field(default_factory=FileReference)
    name: str | None = None
    author: str | None = None
    version: str | None = None
    description: str | None = None
    resource_id: str | int | None = None
    categories: tuple[str, ...] = ()
    repository: RepositoryReference | None = None
    extra: ExtraFields = field(default=_EMPTY_EXTRA, hash=False)

    @property
    def raw_url(self) -> str | None:
        return self.file.raw_url or None

    @property
    def display_name(self) -> str:
        return self.name or self.file.path or "Plugin"


@dataclass(frozen=True, slots=True)
class PluginCatalog:
    generated_at: datetime
    items: tuple[PluginRecord, ...]
    count: int
    query: str | None = None


@dataclass(frozen=True, slots=True)
class DeletedRepositories:
    """Repository full names (owner/repo) removed upstream."""

    repositories: tuple[str, ...]
    updated_at: str | None = None


@dataclass(frozen=True, slots=True)
class FileMetadata:
    """Freshness headers returned by a HEAD probe; all empty when the probe failed."""

    etag: str | None = None
    last_modified: str | None = None
    content_length: int | None = None
    content_type: str | None = None


EMPTY_METADATA = FileMetadata()


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Durable record of a confirmed delivery."""

    key: str
    notified_at: datetime
    etag: str | None = None
    last_modified: str | None = None
    content_hash: str | None = None
    file_sha: str | None = None
    file_size: int | None = None


@dataclass(frozen=True, slots=True)
class CacheStats:
    count: int
    updated_at: datetime | None


class DeltaReason(StrEnum):
    NEW = "new"
    UPDATED = "updated"


@dataclass(frozen=True, slots=True)
class DeltaMetadata:
    etag: str | None = None
    last_modified: str | None = None
    content_length: int | None = None
    requires_content_hash_check: bool = False


@dataclass(frozen=True, slots=True)
class DeltaItem:
    plugin: PluginRecord
    reason: DeltaReason
    key: str
    metadata: DeltaMetadata
    previous: CacheEntry | None = None
