"""Discord webhook notifier."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from plugin_relay.adapters.http_resilience import ResilientClient
from plugin_relay.common.retry import RetrySchedule, linear_delay, retrying
from plugin_relay.config.errors import MissingConfigurationError
from plugin_relay.domain.ports import NotificationError

from .schema import RateLimitResponse, build_payload

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from plugin_relay.config.discord import DiscordConfig
    from plugin_relay.config.http_resilience import ResilienceConfig
    from plugin_relay.domain.model import PluginRecord
    from plugin_relay.domain.ports import Attachment

log = getLogger(__name__)

TOO_MANY_REQUESTS = 429


def retry_after_seconds(response: httpx.Response, *, default: float) -> float:
    """Server-dictated wait from a 429 body (``retry_after``) or ``Retry-After`` header."""

    try:
        body = RateLimitResponse.model_validate_json(response.content)
    except ValidationError:
        body = None
    if body is not None and body.retry_after is not None and body.retry_after >= 0:
        return body.retry_after
    header = response.headers.get("retry-after")
    if header is not None:
        try:
            return max(0.0, float(header))
        except ValueError:
            pass
    return default


def is_retryable(error: Exception) -> bool:
    """429, 5xx and network errors are worth another attempt; anything else is terminal."""

    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == TOO_MANY_REQUESTS or 500 <= status < 600  # noqa: PLR2004
    return isinstance(error, httpx.TransportError)


def webhook_schedule(config: DiscordConfig) -> RetrySchedule:
    """Wait what the server asks on 429, grow linearly on 5xx and network errors."""

    server_error_delay = linear_delay(config.server_error_base_delay)

    def delay(attempt: int, error: Exception) -> float:
        if (
            isinstance(error, httpx.HTTPStatusError)
            and error.response.status_code == TOO_MANY_REQUESTS
        ):
            return retry_after_seconds(error.response, default=config.default_retry_after)
        return server_error_delay(attempt, error)

    return RetrySchedule(max_attempts=config.max_attempts, delay=delay, retryable=is_retryable)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _notification_error(message: str, error: BaseException | None) -> NotificationError:
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        return NotificationError(
            message,
            status_code=response.status_code,
            reason=response.reason_phrase,
            body=response.text or None,
        )
    return NotificationError(message)


class DiscordWebhookNotifier:
    """Posts one embed per plugin, optionally with the plugin file attached.

    Use as an async context manager; the underlying client is rate limited to
    Discord's per-webhook bucket.
    """

    def __init__(
        self,
        config: DiscordConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config
        self.schedule = webhook_schedule(config)
        self._client_factory = client_factory
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> DiscordWebhookNotifier:
        self._client = self._client_factory(self.config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, plugin: PluginRecord, attachment: Attachment | None = None) -> None:
        if not self.config.webhook_url:
            raise MissingConfigurationError("DISCORD_WEBHOOK_URL must be configured.")
        if self._client is None:
            raise RuntimeError("DiscordWebhookNotifier is not open; use it as an async context manager")
        client = self._client
        payload_json = build_payload(plugin).model_dump_json(exclude_none=True)
        label = plugin.raw_url or plugin.name or "unknown plugin"

        @retrying(self.schedule, description=f"deliver webhook for {label}")
        async def attempt() -> None:
            if attachment is not None:
                response = await client.post(
                    self.config.webhook_url,
                    data={"payload_json": payload_json},
                    files={"file": (attachment.name, attachment.content, "text/plain")},
                )
            else:
                response = await client.post(
                    self.config.webhook_url,
                    content=payload_json,
                    headers={"Content-Type": "application/json"},
                )
            response.raise_for_status()

        try:
            await attempt()
        except httpx.HTTPError as exc:
            raise _notification_error(f"Webhook rejected for {label}: {exc}", exc) from exc
        log.info("Webhook delivered for %s", label)
