"""Pydantic models describing the upstream catalog payloads.

Only the envelope is strict: a catalog must be an object with an ``items`` array
whose entries are objects with an object-valued ``file``. Individual fields of
the wrong type are dropped (read as missing) instead of failing the catalog.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


def _str_or_none(value: object) -> object:
    return value if isinstance(value, str) else None


def _int_or_none(value: object) -> object:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    return value if isinstance(value, int) else None


def _bool_or_none(value: object) -> object:
    return value if isinstance(value, bool) else None


class CatalogBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FilePayload(CatalogBaseModel):
    path: str | None = None
    raw_url: str | None = None
    sha: str | None = None
    size: int | None = None

    _normalize_strings = field_validator("path", "raw_url", "sha", mode="before")(_str_or_none)
    _normalize_size = field_validator("size", mode="before")(_int_or_none)


class RepositoryPayload(CatalogBaseModel):
    name: str | None = None
    full_name: str | None = None
    html_url: str | None = None
    description: str | None = None
    stargazers_count: int | None = None
    archived: bool | None = None

    _normalize_strings = field_validator(
        "name", "full_name", "html_url", "description", mode="before"
    )(_str_or_none)
    _normalize_stars = field_validator("stargazers_count", mode="before")(_int_or_none)
    _normalize_archived = field_validator("archived", mode="before")(_bool_or_none)


class PluginPayload(BaseModel):
    """One catalog item; unknown keys are kept in ``model_extra``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    plugin_name: str | None = None
    plugin_author: str | None = None
    plugin_version: str | None = None
    plugin_description: str | None = None
    plugin_resource_id: str | int | None = None
    categories: list[str] | None = None
    file: FilePayload
    repository: RepositoryPayload | None = None

    _normalize_strings = field_validator(
        "plugin_name",
        "plugin_author",
        "plugin_version",
        "plugin_description",
        mode="before",
    )(_str_or_none)

    @field_validator("plugin_resource_id", mode="before")
    @classmethod
    def _normalize_resource_id(cls, value: object) -> object:
        if isinstance(value, bool) or not isinstance(value, str | int):
            return None
        return value

    @field_validator("categories", mode="before")
    @classmethod
    def _normalize_categories(cls, value: object) -> object:
        if not isinstance(value, list):
            return None
        return [item for item in value if isinstance(item, str)]

    @field_validator("repository", mode="before")
    @classmethod
    def _normalize_repository(cls, value: object) -> object:
        return value if isinstance(value, dict) else None


class CatalogPayload(CatalogBaseModel):
    generated_at: str | None = None
    query: str | None = None
    count: int | None = None
    items: list[PluginPayload]

    _normalize_strings = field_validator("generated_at", "query", mode="before")(_str_or_none)
    _normalize_count = field_validator("count", mode="before")(_int_or_none)


class DeletedRepositoriesPayload(CatalogBaseModel):
    repositories: list[str]
    updated_at: str | None = None

    @field_validator("repositories", mode="before")
    @classmethod
    def _keep_strings(cls, value: object) -> object:
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str)]
        return value

    _normalize_updated_at = field_validator("updated_at", mode="before")(_str_or_none)
