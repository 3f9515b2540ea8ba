"""Public interface for the plugin catalog adapter."""

from __future__ import annotations

from .client import CatalogClient, MalformedCatalogError, normalize_raw_url
from .schema import CatalogPayload, DeletedRepositoriesPayload, PluginPayload
from .translator import to_plugin_catalog, to_plugin_record

__all__ = [
    "CatalogClient",
    "CatalogPayload",
    "DeletedRepositoriesPayload",
    "MalformedCatalogError",
    "PluginPayload",
    "normalize_raw_url",
    "to_plugin_catalog",
    "to_plugin_record",
]
