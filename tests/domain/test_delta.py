from __future__ import annotations

import asyncio

from plugin_relay.domain.delta import classify, compute_delta
from plugin_relay.domain.model import EMPTY_METADATA, DeltaReason, FileMetadata
from tests.helpers.plugins import FakeProbe, make_entry, make_plugin

URL = "https://raw.example/a/Plugin.cs"


def test_record_without_cache_entry_is_new() -> None:
    plugin = make_plugin(URL)
    probe = FakeProbe(metadata={URL: FileMetadata(etag='"v1"', content_length=10)})

    delta = asyncio.run(compute_delta([plugin], {}, probe=probe))

    assert len(delta) == 1
    item = delta[0]
    assert item.reason is DeltaReason.NEW
    assert item.key == URL
    assert item.metadata.etag == '"v1"'
    assert item.metadata.content_length == 10
    assert item.previous is None


def test_matching_etag_is_unchanged() -> None:
    plugin = make_plugin(URL)
    cache = {URL: make_entry(URL, etag='"v1"')}
    probe = FakeProbe(metadata={URL: FileMetadata(etag='"v1"')})

    assert asyncio.run(compute_delta([plugin], cache, probe=probe)) == []


def test_changed_etag_is_updated() -> None:
    plugin = make_plugin(URL)
    previous = make_entry(URL, etag='"v1"')
    probe = FakeProbe(metadata={URL: FileMetadata(etag='"v2"')})

    delta = asyncio.run(compute_delta([plugin], {URL: previous}, probe=probe))

    assert [item.reason for item in delta] == [DeltaReason.UPDATED]
    assert delta[0].previous == previous
    assert delta[0].metadata.requires_content_hash_check is False


def test_matching_file_sha_is_unchanged_without_headers() -> None:
    plugin = make_plugin(URL, sha="abc")
    cache = {URL: make_entry(URL, file_sha="abc")}

    assert asyncio.run(compute_delta([plugin], cache, probe=FakeProbe())) == []


def test_matching_size_is_enough_when_markers_exist() -> None:
    plugin = make_plugin(URL, sha="new-sha", size=42)
    cache = {URL: make_entry(URL, file_sha="old-sha", file_size=42)}

    assert asyncio.run(compute_delta([plugin], cache, probe=FakeProbe())) == []


def test_no_reliable_markers_requires_content_hash_check() -> None:
    plugin = make_plugin(URL, size=42)
    previous = make_entry(URL, file_size=42, content_hash="h")

    item = classify(plugin, key=URL, head=EMPTY_METADATA, previous=previous)

    assert item is not None
    assert item.reason is DeltaReason.UPDATED
    assert item.metadata.requires_content_hash_check is True
    assert item.metadata.content_length == 42


def test_records_without_url_are_not_probed() -> None:
    plugin = make_plugin(None, repo="owner/x", path="A.cs")
    probe = FakeProbe()

    delta = asyncio.run(compute_delta([plugin], {}, probe=probe))

    assert probe.probed == []
    assert [item.key for item in delta] == ["owner/x::A.cs"]


def test_delta_preserves_input_order_and_bounds_concurrency() -> None:
    urls = [f"https://raw.example/a/P{index}.cs" for index in range(10)]
    plugins = [make_plugin(url) for url in urls]
    probe = FakeProbe(delay=0.01)

    delta = asyncio.run(compute_delta(plugins, {}, probe=probe, concurrency=3))

    assert [item.key for item in delta] == urls
    assert 1 <= probe.peak <= 3


def test_matching_last_modified_is_unchanged() -> None:
    stamp = "Mon, 01 Jan 2024 00:00:00 GMT"
    plugin = make_plugin(URL)
    cache = {URL: make_entry(URL, last_modified=stamp)}
    probe = FakeProbe(metadata={URL: FileMetadata(last_modified=stamp)})

    assert asyncio.run(compute_delta([plugin], cache, probe=probe)) == []


def test_changed_last_modified_alone_is_a_reliable_update() -> None:
    plugin = make_plugin(URL)
    previous = make_entry(URL, last_modified="Mon, 01 Jan 2024 00:00:00 GMT")
    probe = FakeProbe(metadata={URL: FileMetadata(last_modified="Tue, 02 Jan 2024 00:00:00 GMT")})

    delta = asyncio.run(compute_delta([plugin], {URL: previous}, probe=probe))

    assert [item.reason for item in delta] == [DeltaReason.UPDATED]
    assert delta[0].metadata.last_modified == "Tue, 02 Jan 2024 00:00:00 GMT"
    assert delta[0].metadata.requires_content_hash_check is False
