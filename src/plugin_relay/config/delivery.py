"""Attachment limits applied while delivering notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_bool, env_int

DEFAULT_MAX_ATTACHMENT_BYTES: Final[int] = 8_000_000
PLUGIN_FILE_EXTENSION: Final[str] = ".cs"


@dataclass(frozen=True, slots=True)
class DeliveryConfig:
    max_attachment_bytes: int = DEFAULT_MAX_ATTACHMENT_BYTES
    only_plugin_attachments: bool = True
    attachment_extension: str = PLUGIN_FILE_EXTENSION


def get_delivery_config() -> DeliveryConfig:
    return DeliveryConfig(
        max_attachment_bytes=env_int(
            "MAX_ATTACHMENT_BYTES", DEFAULT_MAX_ATTACHMENT_BYTES, minimum=0
        ),
        only_plugin_attachments=env_bool("ONLY_CS_ATTACHMENTS", True),  # noqa: FBT003
    )
