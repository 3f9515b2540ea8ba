"""Pydantic models for Discord webhook payloads and responses."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from plugin_relay.domain.model import PluginRecord

EMBED_COLOR: Final[int] = 0x00ADFF
MAX_DESCRIPTION_CHARS: Final[int] = 500
DEFAULT_DESCRIPTION: Final[str] = "New or updated plugin detected."


class DiscordModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EmbedField(DiscordModel):
    name: str
    value: str
    inline: bool = False


class Embed(DiscordModel):
    title: str
    description: str
    color: int = EMBED_COLOR
    fields: list[EmbedField] = Field(default_factory=list)
    timestamp: datetime


class WebhookPayload(DiscordModel):
    embeds: list[Embed]


class RateLimitResponse(DiscordModel):
    """Body of a 429 response; ``retry_after`` is in seconds."""

    retry_after: float | None = None
    message: str | None = None
    global_: bool | None = Field(default=None, alias="global")


def build_embed(plugin: PluginRecord, *, now: datetime | None = None) -> Embed:
    fields: list[EmbedField] = []
    if plugin.author:
        fields.append(EmbedField(name="👤 Author", value=plugin.author, inline=True))
    if plugin.version:
        fields.append(EmbedField(name="🏷 Version", value=plugin.version, inline=True))
    if plugin.repository is not None and plugin.repository.full_name:
        fields.append(
            EmbedField(name="📦 Repository", value=plugin.repository.full_name, inline=True)
        )
    if plugin.categories:
        fields.append(EmbedField(name="🏷 Categories", value=", ".join(plugin.categories)))
    if plugin.raw_url:
        fields.append(EmbedField(name="🔗 Raw", value=plugin.raw_url))
    description = (
        plugin.description[:MAX_DESCRIPTION_CHARS]
        if plugin.description is not None
        else DEFAULT_DESCRIPTION
    )
    return Embed(
        title=f"🧩 {plugin.display_name}",
        description=description,
        fields=fields,
        timestamp=now or datetime.now(UTC),
    )


def build_payload(plugin: PluginRecord, *, now: datetime | None = None) -> WebhookPayload:
    return WebhookPayload(embeds=[build_embed(plugin, now=now)])
