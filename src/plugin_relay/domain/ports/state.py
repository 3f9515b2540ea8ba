"""Port for the persisted record of delivered notifications."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from plugin_relay.domain.model import CacheEntry, CacheStats


@runtime_checkable
class StateStore(Protocol):
    """Key -> CacheEntry store with explicit, atomic persistence."""

    def load(self) -> None: ...

    def get(self, key: str) -> CacheEntry | None: ...

    def set(self, entry: CacheEntry) -> None: ...

    def save(self) -> None: ...

    def clear(self) -> None: ...

    def stats(self) -> CacheStats: ...

    def entries(self) -> tuple[CacheEntry, ...]: ...


__all__ = ["StateStore"]
