"""Drop catalog entries that belong to repositories deleted upstream."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .model import DeletedRepositories, PluginRecord

log = getLogger(__name__)


def filter_deleted(
    records: Sequence[PluginRecord],
    deleted: DeletedRepositories | None,
) -> list[PluginRecord]:
    """Remove records whose repository full name is on the deleted list (case-insensitive)."""

    if deleted is None:
        return list(records)
    banned = {name.lower() for name in deleted.repositories}
    kept = [
        record
        for record in records
        if record.repository is None
        or not record.repository.full_name
        or record.repository.full_name.lower() not in banned
    ]
    log.debug("Filtered out %s plugins due to deleted repositories list", len(records) - len(kept))
    return kept
