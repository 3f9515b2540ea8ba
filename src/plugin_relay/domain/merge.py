"""Merge the base and enriched catalogs into one deduplicated catalog.

Rules, per key:
- the first base record for a key wins over later base duplicates
- enriched records with an unseen key are taken as-is
- otherwise fields are merged with enriched-side precedence, see ``merge_records``
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .keys import plugin_key
from .model import PluginCatalog, PluginRecord, freeze_extra

if TYPE_CHECKING:
    from collections.abc import Iterable


def _prefer[T](base: T | None, enriched: T | None) -> T | None:
    if enriched is None or enriched == "":
        return base
    return enriched


def merge_records(base: PluginRecord, enriched: PluginRecord) -> PluginRecord:
    """Combine two records sharing a key, preferring populated enriched fields.

    Categories and the file reference are replaced wholesale, never unioned; the
    enriched file reference only wins when it carries a download URL.
    """

    return PluginRecord(
        name=_prefer(base.name, enriched.name),
        author=_prefer(base.author, enriched.author),
        version=_prefer(base.version, enriched.version),
        description=_prefer(base.description, enriched.description),
        resource_id=_prefer(base.resource_id, enriched.resource_id),
        categories=enriched.categories if enriched.categories else base.categories,
        file=enriched.file if enriched.file.raw_url else base.file,
        repository=enriched.repository if enriched.repository is not None else base.repository,
        extra=freeze_extra({**base.extra, **enriched.extra}),
    )


def dedupe_records(
    base: Iterable[PluginRecord],
    enriched: Iterable[PluginRecord],
) -> list[PluginRecord]:
    merged: dict[str, PluginRecord] = {}
    for record in base:
        merged.setdefault(plugin_key(record), record)
    for record in enriched:
        key = plugin_key(record)
        existing = merged.get(key)
        merged[key] = record if existing is None else merge_records(existing, record)
    return list(merged.values())


def merge_catalogs(
    base: PluginCatalog,
    enriched: PluginCatalog,
    *,
    now: datetime | None = None,
) -> PluginCatalog:
    items = tuple(dedupe_records(base.items, enriched.items))
    return PluginCatalog(
        generated_at=now or datetime.now(UTC),
        items=items,
        count=len(items),
        query=f"Merged base({base.count}) + enriched({enriched.count})",
    )
