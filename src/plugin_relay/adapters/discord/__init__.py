"""Public interface for the Discord webhook adapter."""

from __future__ import annotations

from .client import DiscordWebhookNotifier, retry_after_seconds, webhook_schedule
from .schema import Embed, EmbedField, WebhookPayload, build_embed, build_payload

__all__ = [
    "DiscordWebhookNotifier",
    "Embed",
    "EmbedField",
    "WebhookPayload",
    "build_embed",
    "build_payload",
    "retry_after_seconds",
    "webhook_schedule",
]
