from __future__ import annotations

from plugin_relay.domain.filtering import filter_deleted
from plugin_relay.domain.model import DeletedRepositories
from tests.helpers.plugins import make_plugin


def test_records_from_deleted_repositories_are_dropped_case_insensitively() -> None:
    kept = make_plugin("https://raw.example/a/Keep.cs", repo="owner/keep")
    gone = make_plugin("https://raw.example/a/Gone.cs", repo="Owner/Gone")
    no_repo = make_plugin("https://raw.example/a/Loose.cs")

    result = filter_deleted(
        [kept, gone, no_repo],
        DeletedRepositories(repositories=("owner/gone",)),
    )

    assert result == [kept, no_repo]


def test_missing_deleted_list_keeps_everything() -> None:
    records = [make_plugin(repo="owner/a"), make_plugin("https://raw.example/b.cs")]

    assert filter_deleted(records, None) == records
