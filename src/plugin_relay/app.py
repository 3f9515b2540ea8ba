"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from plugin_relay.adapters.catalog import CatalogClient
from plugin_relay.adapters.discord import DiscordWebhookNotifier
from plugin_relay.adapters.state_file import JsonStateCache
from plugin_relay.config import (
    MissingConfigurationError,
    get_delivery_config,
    get_discord_config,
    get_sources_config,
    get_storage_config,
)
from plugin_relay.domain.delivery import (
    AttachmentPolicy,
    DeliverySummary,
    PluginDeliverer,
    deliver_delta,
    deliver_pending,
    pending_records,
)
from plugin_relay.domain.delta import compute_delta
from plugin_relay.domain.filtering import filter_deleted
from plugin_relay.domain.merge import merge_catalogs

if TYPE_CHECKING:
    from collections.abc import Callable

    from plugin_relay.config import (
        DeliveryConfig,
        DiscordConfig,
        SourcesConfig,
        StorageConfig,
    )
    from plugin_relay.domain.model import CacheStats, DeltaItem, PluginRecord
    from plugin_relay.domain.ports import StateStore

type CatalogClientFactory = Callable[[SourcesConfig], CatalogClient]
type NotifierFactory = Callable[[DiscordConfig], DiscordWebhookNotifier]

log = getLogger(__name__)


class DeliveryMode(StrEnum):
    BULK = "bulk"
    DELTA = "delta"


@dataclass(slots=True)
class NotifyResult:
    mode: DeliveryMode
    indexed: int
    summary: DeliverySummary


@dataclass(slots=True)
class PreviewResult:
    mode: DeliveryMode
    indexed: int
    processed: int
    pending: list[PluginRecord] = field(default_factory=list)
    delta: list[DeltaItem] = field(default_factory=list)


def attachment_policy(config: DeliveryConfig) -> AttachmentPolicy:
    return AttachmentPolicy(
        max_bytes=config.max_attachment_bytes,
        required_extension=config.attachment_extension,
        restrict_extension=config.only_plugin_attachments,
    )


def open_state(storage: StorageConfig | None = None) -> JsonStateCache:
    storage_config = storage or get_storage_config()
    state = JsonStateCache(storage_config.state_path, version=storage_config.state_version)
    state.load()
    return state


async def fetch_plugins(catalogs: CatalogClient) -> list[PluginRecord]:
    """Fetch both catalogs and the deleted list, merge, and drop deleted repositories."""

    sources = catalogs.config
    base, enriched, deleted = await asyncio.gather(
        catalogs.fetch_catalog(sources.base_index_url),
        catalogs.fetch_catalog(sources.enriched_index_url),
        catalogs.fetch_deleted(),
    )
    log.debug(
        "Fetched indices: base=%s enriched=%s deleted=%s",
        base.count,
        enriched.count,
        len(deleted.repositories) if deleted else 0,
    )
    merged = merge_catalogs(base, enriched)
    plugins = filter_deleted(merged.items, deleted)
    log.info("Fetched %s plugins after merge and filtering", len(plugins))
    return plugins


async def _notify(
    mode: DeliveryMode,
    *,
    state: StateStore,
    sources: SourcesConfig,
    discord: DiscordConfig,
    delivery: DeliveryConfig,
    catalog_factory: CatalogClientFactory,
    notifier_factory: NotifierFactory,
) -> NotifyResult:
    async with catalog_factory(sources) as catalogs, notifier_factory(discord) as notifier:
        plugins = await fetch_plugins(catalogs)
        deliverer = PluginDeliverer(
            notifier=notifier,
            files=catalogs,
            state=state,
            policy=attachment_policy(delivery),
        )
        if mode is DeliveryMode.DELTA:
            items = await compute_delta(
                plugins,
                {entry.key: entry for entry in state.entries()},
                probe=catalogs,
                concurrency=sources.concurrency,
            )
            summary = await deliver_delta(items, state=state, deliverer=deliverer)
        else:
            summary = await deliver_pending(plugins, state=state, deliverer=deliverer)
    return NotifyResult(mode=mode, indexed=len(plugins), summary=summary)


def notify_plugins(
    mode: DeliveryMode = DeliveryMode.BULK,
    *,
    state: StateStore | None = None,
    sources: SourcesConfig | None = None,
    discord: DiscordConfig | None = None,
    delivery: DeliveryConfig | None = None,
    catalog_factory: CatalogClientFactory = CatalogClient,
    notifier_factory: NotifierFactory = DiscordWebhookNotifier,
) -> NotifyResult:
    """Fetch the catalogs and deliver notifications using the chosen mode."""

    discord_config = discord or get_discord_config()
    if not discord_config.webhook_url:
        raise MissingConfigurationError("DISCORD_WEBHOOK_URL must be configured.")
    effective_state = state or open_state()
    log.info("Starting plugin notification run: mode=%s", mode.value)
    result = asyncio.run(
        _notify(
            mode,
            state=effective_state,
            sources=sources or get_sources_config(),
            discord=discord_config,
            delivery=delivery or get_delivery_config(),
            catalog_factory=catalog_factory,
            notifier_factory=notifier_factory,
        )
    )
    log.info(
        "Finished plugin notification run: indexed=%s, pending=%s, delivered=%s, failed=%s",
        result.indexed,
        result.summary.pending,
        result.summary.delivered,
        result.summary.failed,
    )
    return result


async def _preview(
    mode: DeliveryMode,
    *,
    state: StateStore,
    sources: SourcesConfig,
    catalog_factory: CatalogClientFactory,
) -> PreviewResult:
    async with catalog_factory(sources) as catalogs:
        plugins = await fetch_plugins(catalogs)
        result = PreviewResult(mode=mode, indexed=len(plugins), processed=len(state.entries()))
        if mode is DeliveryMode.DELTA:
            result.delta = await compute_delta(
                plugins,
                {entry.key: entry for entry in state.entries()},
                probe=catalogs,
                concurrency=sources.concurrency,
            )
        else:
            result.pending = pending_records(plugins, state)
    return result


def preview_plugins(
    mode: DeliveryMode = DeliveryMode.BULK,
    *,
    state: StateStore | None = None,
    sources: SourcesConfig | None = None,
    catalog_factory: CatalogClientFactory = CatalogClient,
) -> PreviewResult:
    """Work out what a notify run would send, without sending anything."""

    return asyncio.run(
        _preview(
            mode,
            state=state or open_state(),
            sources=sources or get_sources_config(),
            catalog_factory=catalog_factory,
        )
    )


def reset_state(*, state: StateStore | None = None) -> None:
    effective_state = state or open_state()
    effective_state.clear()
    log.info("State cache cleared")


def state_stats(*, state: StateStore | None = None) -> CacheStats:
    return (state or open_state()).stats()
