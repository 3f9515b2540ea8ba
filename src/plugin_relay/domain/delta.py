"""Decide which merged records owe a notification.

Freshness is judged from HEAD metadata and the source-reported file hash and size,
never from file bodies. Records without any reliable marker are conservatively
reported as updated and flagged so the delivery step can compare content hashes.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from .keys import plugin_key
from .model import EMPTY_METADATA, DeltaItem, DeltaMetadata, DeltaReason

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .model import CacheEntry, FileMetadata, PluginRecord
    from .ports import MetadataProbe

log = getLogger(__name__)

DEFAULT_PROBE_CONCURRENCY = 6


def has_reliable_markers(metadata: DeltaMetadata, plugin: PluginRecord) -> bool:
    return bool(metadata.etag or metadata.last_modified or plugin.file.sha)


def _same_marker(current: str | None, previous: str | None) -> bool:
    return bool(current) and bool(previous) and current == previous


def _same_size(current: int | None, previous: int | None) -> bool:
    return current is not None and previous is not None and current == previous


def is_unchanged(metadata: DeltaMetadata, plugin: PluginRecord, previous: CacheEntry) -> bool:
    """Any single matching marker is enough to call a record unchanged."""

    return (
        _same_marker(metadata.etag, previous.etag)
        or _same_marker(metadata.last_modified, previous.last_modified)
        or _same_marker(plugin.file.sha, previous.file_sha)
        or _same_size(metadata.content_length, previous.file_size)
        or _same_size(plugin.file.size, previous.file_size)
    )


def classify(
    plugin: PluginRecord,
    *,
    key: str,
    head: FileMetadata,
    previous: CacheEntry | None,
) -> DeltaItem | None:
    """Classify one record against its cached entry; ``None`` means unchanged."""

    content_length = head.content_length
    if content_length is None:
        content_length = plugin.file.size
    metadata = DeltaMetadata(
        etag=head.etag,
        last_modified=head.last_modified,
        content_length=content_length,
    )
    if previous is None:
        return DeltaItem(plugin=plugin, reason=DeltaReason.NEW, key=key, metadata=metadata)

    if not has_reliable_markers(metadata, plugin):
        log.debug("No reliable metadata for %s, content hash check required", key)
        return DeltaItem(
            plugin=plugin,
            reason=DeltaReason.UPDATED,
            key=key,
            metadata=replace(metadata, requires_content_hash_check=True),
            previous=previous,
        )

    if is_unchanged(metadata, plugin, previous):
        log.debug("Unchanged plugin %s, skipping", key)
        return None

    log.debug("Delta detected: %s marked as updated", key)
    return DeltaItem(
        plugin=plugin,
        reason=DeltaReason.UPDATED,
        key=key,
        metadata=metadata,
        previous=previous,
    )


class _Progress:
    def __init__(self, total: int) -> None:
        self.total = total
        self.processed = 0
        self.interval = max(1, total // 100)

    def tick(self) -> None:
        self.processed += 1
        if self.processed % self.interval == 0 or self.processed == self.total:
            log.debug("Delta progress: %s/%s", self.processed, self.total)


async def compute_delta(
    plugins: Sequence[PluginRecord],
    cache: Mapping[str, CacheEntry],
    *,
    probe: MetadataProbe,
    concurrency: int = DEFAULT_PROBE_CONCURRENCY,
) -> list[DeltaItem]:
    """Return new/updated items in input order; unchanged records are omitted.

    HEAD probes run concurrently, at most ``concurrency`` at a time.
    """

    semaphore = asyncio.Semaphore(max(1, concurrency))
    progress = _Progress(len(plugins))

    async def evaluate(plugin: PluginRecord) -> DeltaItem | None:
        key = plugin_key(plugin)
        async with semaphore:
            head = await probe.head(plugin.raw_url) if plugin.raw_url else EMPTY_METADATA
        progress.tick()
        return classify(plugin, key=key, head=head, previous=cache.get(key))

    results = await asyncio.gather(*(evaluate(plugin) for plugin in plugins))
    delta = [item for item in results if item is not None]
    log.info(
        "Delta computed: %s of %s plugins need notification (%s new)",
        len(delta),
        len(plugins),
        sum(1 for item in delta if item.reason is DeltaReason.NEW),
    )
    return delta
