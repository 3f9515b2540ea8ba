"""Translate catalog payloads into domain records."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from plugin_relay.domain.model import (
    DeletedRepositories,
    FileReference,
    PluginCatalog,
    PluginRecord,
    RepositoryReference,
    freeze_extra,
)

if TYPE_CHECKING:
    from .schema import (
        CatalogPayload,
        DeletedRepositoriesPayload,
        FilePayload,
        PluginPayload,
        RepositoryPayload,
    )


def parse_timestamp(value: str | None, *, default: datetime) -> datetime:
    if not value:
        return default
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return default
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _file_reference(payload: FilePayload) -> FileReference:
    return FileReference(
        path=payload.path,
        raw_url=payload.raw_url,
        sha=payload.sha,
        size=payload.size,
    )


def _repository_reference(payload: RepositoryPayload | None) -> RepositoryReference | None:
    if payload is None:
        return None
    return RepositoryReference(
        name=payload.name,
        full_name=payload.full_name,
        html_url=payload.html_url,
        description=payload.description,
        stargazers_count=payload.stargazers_count,
        archived=payload.archived,
    )


def to_plugin_record(payload: PluginPayload) -> PluginRecord:
    return PluginRecord(
        name=payload.plugin_name,
        author=payload.plugin_author,
        version=payload.plugin_version,
        description=payload.plugin_description,
        resource_id=payload.plugin_resource_id,
        categories=tuple(payload.categories or ()),
        file=_file_reference(payload.file),
        repository=_repository_reference(payload.repository),
        extra=freeze_extra(payload.model_extra),
    )


def to_plugin_catalog(payload: CatalogPayload, *, now: datetime | None = None) -> PluginCatalog:
    items = tuple(to_plugin_record(item) for item in payload.items)
    fetched_at = now or datetime.now(UTC)
    return PluginCatalog(
        generated_at=parse_timestamp(payload.generated_at, default=fetched_at),
        items=items,
        count=payload.count if payload.count is not None else len(items),
        query=payload.query,
    )


def to_deleted_repositories(payload: DeletedRepositoriesPayload) -> DeletedRepositories:
    return DeletedRepositories(
        repositories=tuple(payload.repositories),
        updated_at=payload.updated_at,
    )
