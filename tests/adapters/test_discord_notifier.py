from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import httpx
import pytest

from plugin_relay.adapters.discord import DiscordWebhookNotifier
from plugin_relay.adapters.discord.schema import EMBED_COLOR, build_embed
from plugin_relay.config.discord import DiscordConfig
from plugin_relay.config.errors import MissingConfigurationError
from plugin_relay.domain.ports import Attachment, NotificationError
from tests.helpers.catalog import WEBHOOK_URL, FakeHttp
from tests.helpers.plugins import make_plugin

if TYPE_CHECKING:
    from plugin_relay.config.http_resilience import ResilienceConfig


def _send(
    http: FakeHttp,
    resilience: ResilienceConfig,
    *,
    attachment: Attachment | None = None,
    webhook_url: str = WEBHOOK_URL,
) -> None:
    async def scenario() -> None:
        config = DiscordConfig(webhook_url=webhook_url, resilience=resilience)
        notifier = DiscordWebhookNotifier(config, client_factory=http.client_factory())
        async with notifier:
            await notifier.send(make_plugin(name="Kits", author="X"), attachment)

    asyncio.run(scenario())


def test_embed_only_notification_is_json(webhook_resilience: ResilienceConfig) -> None:
    http = FakeHttp()
    http.add("POST", WEBHOOK_URL, httpx.Response(204))

    _send(http, webhook_resilience)

    (request,) = http.calls("POST", WEBHOOK_URL)
    assert request.headers["content-type"] == "application/json"
    embed = json.loads(request.content)["embeds"][0]
    assert embed["title"] == "🧩 Kits"
    assert embed["color"] == EMBED_COLOR


def test_attachment_is_sent_as_multipart(webhook_resilience: ResilienceConfig) -> None:
    http = FakeHttp()
    http.add("POST", WEBHOOK_URL, httpx.Response(200))

    _send(http, webhook_resilience, attachment=Attachment(name="Kits.cs", content=b"class K {}"))

    (request,) = http.calls("POST", WEBHOOK_URL)
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'name="payload_json"' in request.content
    assert b'filename="Kits.cs"' in request.content
    assert b"class K {}" in request.content


def test_rate_limit_waits_server_dictated_delay(
    webhook_resilience: ResilienceConfig, sleeps: list[float]
) -> None:
    http = FakeHttp()
    http.add(
        "POST",
        WEBHOOK_URL,
        httpx.Response(429, json={"retry_after": 2.5, "global": False}),
        httpx.Response(204),
    )

    _send(http, webhook_resilience)

    assert sleeps == [2.5]
    assert len(http.calls("POST", WEBHOOK_URL)) == 2


def test_rate_limit_without_hint_uses_default(
    webhook_resilience: ResilienceConfig, sleeps: list[float]
) -> None:
    http = FakeHttp()
    http.add("POST", WEBHOOK_URL, httpx.Response(429), httpx.Response(204))

    _send(http, webhook_resilience)

    assert sleeps == [1.0]


def test_server_errors_back_off_linearly(
    webhook_resilience: ResilienceConfig, sleeps: list[float]
) -> None:
    http = FakeHttp()
    http.add(
        "POST",
        WEBHOOK_URL,
        httpx.Response(500),
        httpx.Response(502),
        httpx.Response(204),
    )

    _send(http, webhook_resilience)

    assert sleeps == [0.5, 1.0]


def test_server_errors_exhaust_after_five_attempts(
    webhook_resilience: ResilienceConfig, sleeps: list[float]
) -> None:
    http = FakeHttp()
    http.add("POST", WEBHOOK_URL, httpx.Response(503, text="unavailable"))

    with pytest.raises(NotificationError) as excinfo:
        _send(http, webhook_resilience)

    assert excinfo.value.status_code == 503
    assert excinfo.value.body == "unavailable"
    assert len(http.calls("POST", WEBHOOK_URL)) == 5
    assert sleeps == [0.5, 1.0, 1.5, 2.0]


def test_client_errors_are_terminal(
    webhook_resilience: ResilienceConfig, sleeps: list[float]
) -> None:
    http = FakeHttp()
    http.add("POST", WEBHOOK_URL, httpx.Response(400, json={"message": "Invalid Form Body"}))

    with pytest.raises(NotificationError) as excinfo:
        _send(http, webhook_resilience)

    assert excinfo.value.status_code == 400
    assert excinfo.value.reason == "Bad Request"
    assert len(http.calls("POST", WEBHOOK_URL)) == 1
    assert sleeps == []


def test_network_errors_are_retried(
    webhook_resilience: ResilienceConfig, sleeps: list[float]
) -> None:
    http = FakeHttp()

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    http.add("POST", WEBHOOK_URL, refuse, httpx.Response(204))

    _send(http, webhook_resilience)

    assert sleeps == [0.5]


def test_missing_webhook_url_fails_before_any_request(
    webhook_resilience: ResilienceConfig,
) -> None:
    http = FakeHttp()

    with pytest.raises(MissingConfigurationError):
        _send(http, webhook_resilience, webhook_url="")

    assert http.requests == []


def test_embed_layout() -> None:
    plugin = make_plugin(
        name="Kits",
        author="X",
        version="1.2.3",
        repo="owner/kits",
        categories=("admin", "pvp"),
        description="d" * 600,
    )

    embed = build_embed(plugin, now=datetime(2025, 1, 1, tzinfo=UTC))

    assert len(embed.description) == 500
    assert [field.name for field in embed.fields] == [
        "👤 Author",
        "🏷 Version",
        "📦 Repository",
        "🏷 Categories",
        "🔗 Raw",
    ]
    assert embed.fields[3].value == "admin, pvp"


def test_embed_without_description_uses_default() -> None:
    embed = build_embed(make_plugin(name=None, path="Loose.cs"))

    assert embed.title == "🧩 Loose.cs"
    assert embed.description == "New or updated plugin detected."
    assert [field.name for field in embed.fields] == ["🔗 Raw"]
