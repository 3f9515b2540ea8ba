"""JSON file implementation of the delivery state store.

The file is never written in place: ``save`` writes a sibling ``.tmp`` file,
fsyncs it and renames it over the canonical path, so readers only ever see a
complete old or a complete new snapshot.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from plugin_relay.config.storage import STATE_SCHEMA_VERSION
from plugin_relay.domain.model import CacheEntry, CacheStats

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

log = getLogger(__name__)


class StateFileModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CacheEntryModel(StateFileModel):
    key: str
    etag: str | None = None
    last_modified: str | None = Field(default=None, alias="lastModified")
    content_hash: str | None = Field(default=None, alias="contentHash")
    file_sha: str | None = Field(default=None, alias="fileSha")
    file_size: int | None = Field(default=None, alias="fileSize")
    notified_at: datetime = Field(alias="notifiedAt")

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> CacheEntryModel:
        return cls(
            key=entry.key,
            etag=entry.etag,
            last_modified=entry.last_modified,
            content_hash=entry.content_hash,
            file_sha=entry.file_sha,
            file_size=entry.file_size,
            notified_at=entry.notified_at,
        )

    def to_entry(self) -> CacheEntry:
        notified_at = self.notified_at
        if notified_at.tzinfo is None:
            notified_at = notified_at.replace(tzinfo=UTC)
        return CacheEntry(
            key=self.key,
            notified_at=notified_at,
            etag=self.etag,
            last_modified=self.last_modified,
            content_hash=self.content_hash,
            file_sha=self.file_sha,
            file_size=self.file_size,
        )


class StateDocument(StateFileModel):
    entries: dict[str, CacheEntryModel] = Field(default_factory=dict)
    version: int
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("updated_at", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        # Files written before the first save carry an empty string.
        return None if value == "" else value


def _utcnow() -> datetime:
    return datetime.now(UTC)


class JsonStateCache:
    """Key -> CacheEntry store persisted as one JSON document."""

    def __init__(
        self,
        path: Path,
        *,
        version: int = STATE_SCHEMA_VERSION,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.path = path
        self.version = version
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._updated_at: datetime | None = None

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(f"{self.path.name}.tmp")

    def load(self) -> None:
        """Read the state file; any problem leaves an empty state instead of failing."""

        self._reset()
        if not self.path.exists():
            log.debug("Cache file absent, starting with empty state")
            return
        try:
            raw = self.path.read_bytes()
            document = StateDocument.model_validate_json(raw)
        except (OSError, ValidationError, ValueError) as exc:
            log.info("Cache read failed (%s), reinitialising", exc)
            return
        if document.version != self.version:
            log.info(
                "Cache version mismatch (found %s, expected %s), reinitialising",
                document.version,
                self.version,
            )
            return
        self._entries = {key: model.to_entry() for key, model in document.entries.items()}
        self._updated_at = document.updated_at
        log.debug("Cache loaded with %s entries", len(self._entries))

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def set(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry

    def save(self) -> None:
        updated_at = self._clock()
        document = StateDocument(
            entries={key: CacheEntryModel.from_entry(entry) for key, entry in self._entries.items()},
            version=self.version,
            updated_at=updated_at,
        )
        payload = document.model_dump_json(by_alias=True, indent=2)
        self._write_atomic(payload)
        self._updated_at = updated_at
        log.debug("Cache saved with %s entries", len(self._entries))

    def clear(self) -> None:
        self._reset()
        self.save()

    def stats(self) -> CacheStats:
        return CacheStats(count=len(self._entries), updated_at=self._updated_at)

    def entries(self) -> tuple[CacheEntry, ...]:
        return tuple(self._entries.values())

    def _reset(self) -> None:
        self._entries = {}
        self._updated_at = None

    def _write_atomic(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.temp_path
        try:
            with tmp.open("w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            tmp.replace(self.path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

