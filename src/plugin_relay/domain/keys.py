"""Canonical identity of a plugin record across catalogs and runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .model import PluginRecord

REPOSITORY_PLACEHOLDER: Final[str] = "repository"
FILE_PLACEHOLDER: Final[str] = "file"


def plugin_key(record: PluginRecord) -> str:
    """Return the download URL, or ``"<repo>::<path>"`` when the record has none.

    Changing this derivation invalidates every persisted state entry; bump the
    state schema version alongside it.
    """

    if record.file.raw_url:
        return record.file.raw_url
    repository = record.repository
    repo_name = (
        (repository.full_name or repository.name) if repository is not None else None
    ) or REPOSITORY_PLACEHOLDER
    path = record.file.path or FILE_PLACEHOLDER
    return f"{repo_name}::{path}"
