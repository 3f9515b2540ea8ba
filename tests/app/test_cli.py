from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from plugin_relay.app import DeliveryMode, NotifyResult, PreviewResult
from plugin_relay.config.errors import MissingConfigurationError
from plugin_relay.domain.delivery import DeliverySummary
from plugin_relay.domain.model import CacheStats
from plugin_relay.ui import cli as cli_module
from tests.helpers.plugins import make_plugin

if TYPE_CHECKING:
    from collections.abc import Callable


def _fake_notify(captured: dict[str, object]) -> Callable[[DeliveryMode], NotifyResult]:
    def fake(mode: DeliveryMode) -> NotifyResult:
        captured["mode"] = mode
        return NotifyResult(mode=mode, indexed=3, summary=DeliverySummary(total=3, delivered=2))

    return fake


def test_notify_defaults_to_bulk(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli_module, "notify_plugins", _fake_notify(captured))

    cli_module.main(["notify"])

    assert captured["mode"] is DeliveryMode.BULK


def test_notify_delta_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(cli_module, "notify_plugins", _fake_notify(captured))

    cli_module.main(["--log-level", "debug", "notify", "--mode", "delta"])

    assert captured["mode"] is DeliveryMode.DELTA


def test_invalid_mode_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["notify", "--mode", "sideways"])

    assert excinfo.value.code == 2


def test_negative_limit_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["dry-run", "--limit", "-1"])

    assert excinfo.value.code == 2


def test_fatal_error_exits_with_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing(_mode: DeliveryMode) -> NotifyResult:
        raise MissingConfigurationError("DISCORD_WEBHOOK_URL must be configured.")

    monkeypatch.setattr(cli_module, "notify_plugins", failing)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["notify"])

    assert excinfo.value.code == 1


def test_dry_run_prints_first_pending_records(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    pending = [
        make_plugin(f"https://raw.example/a/P{index}.cs", name=f"P{index}") for index in range(5)
    ]

    def fake_preview(mode: DeliveryMode) -> PreviewResult:
        return PreviewResult(mode=mode, indexed=7, processed=2, pending=pending)

    monkeypatch.setattr(cli_module, "preview_plugins", fake_preview)

    cli_module.main(["dry-run", "--limit", "2"])

    output = capsys.readouterr().out
    assert "Pending: 5 of 7 indexed (processed 2)" in output
    assert "P0: https://raw.example/a/P0.cs" in output
    assert "P1:" in output
    assert "P2:" not in output


def test_state_and_reset_commands(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    calls: list[str] = []
    monkeypatch.setattr(cli_module, "reset_state", lambda: calls.append("reset"))
    monkeypatch.setattr(
        cli_module,
        "state_stats",
        lambda: CacheStats(count=4, updated_at=datetime(2025, 1, 1, tzinfo=UTC)),
    )

    cli_module.main(["reset"])
    cli_module.main(["state"])

    assert calls == ["reset"]
    output = capsys.readouterr().out
    assert "Entries: 4" in output
    assert "Updated: 2025-01-01T00:00:00+00:00" in output
