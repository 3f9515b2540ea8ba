from __future__ import annotations

from .hashing import sha256_hex
from .retry import RetrySchedule, linear_delay, retrying

__all__ = [
    "RetrySchedule",
    "linear_delay",
    "retrying",
    "sha256_hex",
]
