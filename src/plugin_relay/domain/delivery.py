"""Sequential, resumable notification delivery.

One record is delivered at a time and the state store is saved after every
successful send, so an interrupted run resumes where it stopped. A crash between
a send and the following save re-sends that one record on the next run.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from plugin_relay.common.hashing import sha256_hex
from plugin_relay.config.errors import ConfigurationError

from .keys import plugin_key
from .model import CacheEntry
from .ports import Attachment, NotificationError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from .model import DeltaItem, DeltaMetadata, PluginRecord
    from .ports import FileFetcher, Notifier, StateStore

log = getLogger(__name__)

DEFAULT_ATTACHMENT_STEM = "plugin"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class DeliveryOutcome(StrEnum):
    DELIVERED = "delivered"
    FAILED = "failed"
    SKIPPED = "skipped"
    UNCHANGED = "unchanged"


@dataclass(frozen=True, slots=True)
class AttachmentPolicy:
    """Which files may be attached, under what name, and up to what size."""

    max_bytes: int
    required_extension: str = ".cs"
    restrict_extension: bool = True

    def allows(self, url: str) -> bool:
        return not self.restrict_extension or url.lower().endswith(self.required_extension)

    def attachment_name(self, plugin: PluginRecord) -> str:
        candidate = ""
        if plugin.file.path:
            candidate = plugin.file.path.rsplit("/", 1)[-1]
        elif plugin.name:
            candidate = plugin.name
        candidate = candidate or DEFAULT_ATTACHMENT_STEM
        if not candidate.lower().endswith(self.required_extension):
            candidate = f"{candidate}{self.required_extension}"
        return sanitize_filename(candidate)

    def fits(self, content: bytes) -> bool:
        return len(content) <= self.max_bytes


def sanitize_filename(value: str) -> str:
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", value).strip("._")
    return cleaned or DEFAULT_ATTACHMENT_STEM


@dataclass(slots=True)
class DeliverySummary:
    total: int = 0
    pending: int = 0
    delivered: int = 0
    failed: int = 0
    skipped: int = 0
    unchanged: int = 0

    def record(self, outcome: DeliveryOutcome) -> None:
        match outcome:
            case DeliveryOutcome.DELIVERED:
                self.delivered += 1
            case DeliveryOutcome.FAILED:
                self.failed += 1
            case DeliveryOutcome.SKIPPED:
                self.skipped += 1
            case DeliveryOutcome.UNCHANGED:
                self.unchanged += 1


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _log_failure(raw_url: str, exc: Exception) -> None:
    if isinstance(exc, NotificationError):
        status = exc.status_code if exc.status_code is not None else "unknown"
        reason = f" {exc.reason}" if exc.reason else ""
        log.error("Webhook failed for %s: status %s%s - %s", raw_url, status, reason, exc)
        if exc.body:
            log.debug("Webhook response body: %s", exc.body)
        return
    log.error("Webhook failed for %s: status unknown - %s", raw_url, exc)


@dataclass(slots=True)
class PluginDeliverer:
    """Delivery primitive shared by bulk and delta modes."""

    notifier: Notifier
    files: FileFetcher
    state: StateStore
    policy: AttachmentPolicy
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def deliver(
        self,
        plugin: PluginRecord,
        *,
        key: str | None = None,
        metadata: DeltaMetadata | None = None,
        previous: CacheEntry | None = None,
    ) -> DeliveryOutcome:
        raw_url = plugin.raw_url
        cache_key = key or plugin_key(plugin)
        if raw_url is None:
            log.error("Skipping plugin without raw URL: %s", cache_key)
            return DeliveryOutcome.SKIPPED

        hash_check = bool(
            metadata is not None
            and metadata.requires_content_hash_check
            and previous is not None
            and previous.content_hash
        )
        body: bytes | None = None
        if self.policy.allows(raw_url) or hash_check:
            body = await self._download(raw_url)
        content_hash = sha256_hex(body) if body is not None else None

        if hash_check and previous is not None and content_hash == previous.content_hash:
            log.debug("Content hash unchanged for %s, not notifying", cache_key)
            return DeliveryOutcome.UNCHANGED

        attachment = self._attachment_for(plugin, raw_url, body)
        try:
            await self.notifier.send(plugin, attachment)
        except ConfigurationError:
            raise
        except Exception as exc:  # noqa: BLE001
            _log_failure(raw_url, exc)
            return DeliveryOutcome.FAILED

        self.state.set(
            self._cache_entry(
                plugin,
                key=cache_key,
                metadata=metadata,
                content_hash=content_hash,
                attachment=attachment,
            )
        )
        # Save failures propagate and stop the run.
        self.state.save()
        return DeliveryOutcome.DELIVERED

    async def _download(self, url: str) -> bytes | None:
        try:
            return await self.files.fetch_file(url)
        except Exception as exc:  # noqa: BLE001
            log.error("Download failed for %s: %s", url, exc)  # noqa: TRY400
            return None

    def _attachment_for(
        self, plugin: PluginRecord, raw_url: str, body: bytes | None
    ) -> Attachment | None:
        if body is None or not self.policy.allows(raw_url):
            return None
        if not self.policy.fits(body):
            log.debug("Attachment exceeds limit for %s; sending embed without file", raw_url)
            return None
        return Attachment(name=self.policy.attachment_name(plugin), content=body)

    def _cache_entry(
        self,
        plugin: PluginRecord,
        *,
        key: str,
        metadata: DeltaMetadata | None,
        content_hash: str | None,
        attachment: Attachment | None,
    ) -> CacheEntry:
        return CacheEntry(
            key=key,
            notified_at=self.clock(),
            etag=metadata.etag if metadata else None,
            last_modified=metadata.last_modified if metadata else None,
            content_hash=content_hash,
            file_sha=plugin.file.sha,
            file_size=attachment.size if attachment is not None else plugin.file.size,
        )


def pending_records(plugins: Iterable[PluginRecord], state: StateStore) -> list[PluginRecord]:
    """Records with a download URL whose key has not been delivered yet."""

    delivered = {entry.key for entry in state.entries()}
    return [
        plugin
        for plugin in plugins
        if plugin.raw_url is not None and plugin_key(plugin) not in delivered
    ]


async def deliver_pending(
    plugins: Sequence[PluginRecord],
    *,
    state: StateStore,
    deliverer: PluginDeliverer,
) -> DeliverySummary:
    """Bulk mode: deliver every not-yet-delivered record once, ignoring content changes."""

    pending = pending_records(plugins, state)
    summary = DeliverySummary(total=len(plugins), pending=len(pending))
    already_done = len(state.entries())
    if not pending:
        log.info("Sequential upload complete: no pending plugins to send")
        state.save()
        return summary

    log.info(
        "Sequential upload starting for %s pending plugins (processed %s, total indexed %s)",
        len(pending),
        already_done,
        len(plugins),
    )
    for index, plugin in enumerate(pending, start=1):
        log.info("Uploading %s/%s: %s", already_done + index, len(plugins), plugin.raw_url)
        summary.record(await deliverer.deliver(plugin))
        if index % 100 == 0 or index == len(pending):
            log.debug("Sequential upload progress: %s/%s pending", index, len(pending))

    if summary.delivered == 0:
        state.save()
    log.info(
        "Sequential upload complete: delivered=%s, failed=%s, skipped=%s",
        summary.delivered,
        summary.failed,
        summary.skipped,
    )
    return summary


async def deliver_delta(
    items: Sequence[DeltaItem],
    *,
    state: StateStore,
    deliverer: PluginDeliverer,
) -> DeliverySummary:
    """Delta mode: deliver only new or updated records, in order."""

    summary = DeliverySummary(total=len(items), pending=len(items))
    for index, item in enumerate(items, start=1):
        log.info(
            "Notifying %s/%s (%s): %s", index, len(items), item.reason.value, item.plugin.raw_url
        )
        summary.record(
            await deliverer.deliver(
                item.plugin,
                key=item.key,
                metadata=item.metadata,
                previous=item.previous,
            )
        )

    if summary.delivered == 0:
        state.save()
    log.info(
        "Delta delivery complete: delivered=%s, failed=%s, unchanged=%s, skipped=%s",
        summary.delivered,
        summary.failed,
        summary.unchanged,
        summary.skipped,
    )
    return summary
