"""Discord webhook configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Final

from .env import env_int, env_str
from .http_resilience import DEFAULT_USER_AGENT, NO_RETRY, RateLimit, ResilienceConfig

DISCORD_TIMEOUT_SECONDS: Final[float] = 30.0
MAX_WEBHOOK_ATTEMPTS: Final[int] = 5
SERVER_ERROR_BASE_DELAY_SECONDS: Final[float] = 0.5
DEFAULT_RETRY_AFTER_SECONDS: Final[float] = 1.0


def _default_resilience() -> ResilienceConfig:
    # Retries are driven by the webhook retry schedule, never by the transport.
    return ResilienceConfig(
        name="discord",
        timeout_seconds=DISCORD_TIMEOUT_SECONDS,
        retry=NO_RETRY,
        ratelimit=RateLimit(max_calls=5, per_seconds=2.0),
        default_headers={"User-Agent": DEFAULT_USER_AGENT},
    )


@dataclass(frozen=True, slots=True)
class DiscordConfig:
    """Holds the webhook endpoint and its retry budget.

    An empty ``webhook_url`` is allowed here so read-only commands work without it;
    the notifier refuses to send until it is set.
    """

    webhook_url: str
    max_attempts: int = MAX_WEBHOOK_ATTEMPTS
    server_error_base_delay: float = SERVER_ERROR_BASE_DELAY_SECONDS
    default_retry_after: float = DEFAULT_RETRY_AFTER_SECONDS
    resilience: ResilienceConfig = field(default_factory=_default_resilience)


def get_discord_config(*, resilience: ResilienceConfig | None = None) -> DiscordConfig:
    timeout_ms = env_int("HTTP_TIMEOUT", int(DISCORD_TIMEOUT_SECONDS * 1000), minimum=1)
    base = resilience or _default_resilience()
    return DiscordConfig(
        webhook_url=env_str("DISCORD_WEBHOOK_URL", ""),
        resilience=replace(base, timeout_seconds=timeout_ms / 1000),
    )
