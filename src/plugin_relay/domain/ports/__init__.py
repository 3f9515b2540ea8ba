"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import FileFetcher, MetadataProbe
from .notification import Attachment, NotificationError, Notifier
from .state import StateStore

__all__ = [
    "Attachment",
    "FileFetcher",
    "MetadataProbe",
    "NotificationError",
    "Notifier",
    "StateStore",
]
