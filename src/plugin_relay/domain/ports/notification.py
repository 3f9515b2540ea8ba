"""Port for delivering one plugin notification to the sink."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from plugin_relay.domain.model import PluginRecord


@dataclass(frozen=True, slots=True)
class Attachment:
    name: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class NotificationError(RuntimeError):
    """Raised by notifiers when the sink rejected a notification for good."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body


@runtime_checkable
class Notifier(Protocol):
    """Send a notification, retrying as the sink requires.

    Raises ``NotificationError`` once retries are exhausted or on a terminal response.
    """

    async def send(self, plugin: PluginRecord, attachment: Attachment | None = None) -> None: ...


__all__ = ["Attachment", "NotificationError", "Notifier"]
