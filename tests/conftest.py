from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from plugin_relay.config.http_resilience import NO_RETRY, ResilienceConfig, RetryPolicy
from plugin_relay.config.sources import SourcesConfig
from tests.helpers.catalog import BASE_URL, DELETED_URL, ENRICHED_URL

if TYPE_CHECKING:
    from pathlib import Path

_ENV_VARS = (
    "DISCORD_WEBHOOK_URL",
    "HTTP_TIMEOUT",
    "MAX_ATTACHMENT_BYTES",
    "ONLY_CS_ATTACHMENTS",
    "PLUGINS_CONCURRENCY",
    "PLUGINS_STATE_PATH",
    "PLUGINS_LOG_LEVEL",
    "PLUGINS_BASE_INDEX_URL",
    "PLUGINS_ENRICHED_INDEX_URL",
    "PLUGINS_DELETED_URL",
    "PLUGIN_RELAY_DATA_DIR",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PLUGIN_RELAY_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture
def sources_config() -> SourcesConfig:
    """Uncached sources config with instant transport retries."""

    fast_retry = RetryPolicy(total=2, backoff_factor=0.0)
    return SourcesConfig(
        base_index_url=BASE_URL,
        enriched_index_url=ENRICHED_URL,
        deleted_url=DELETED_URL,
        concurrency=2,
        index_resilience=ResilienceConfig(name="catalog-test", retry=fast_retry),
        file_resilience=ResilienceConfig(name="files-test", retry=fast_retry),
    )


@pytest.fixture
def webhook_resilience() -> ResilienceConfig:
    return ResilienceConfig(name="discord-test", retry=NO_RETRY)



@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record retry waits instead of sleeping through them."""

    waits: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        waits.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return waits
