# CacheBackend port
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """Anything with a Redis-compatible ``set``; must be safe for concurrent use."""

    def set(self, name: str, value: bytes) -> Any: ...


class DryRunCacheBackend:
    """Logs writes instead of sending them to a cache."""

    def __init__(self, address: str, logger: Optional[logging.Logger] = None):
        self.address = address
        self._logger = logger or logging.getLogger(__name__)

    def set(self, name: str, value: bytes) -> bool:
        self._logger.debug("%s - %s -> %r", self.address, name, value)
        return True

    def close(self) -> None:
        return None


__all__ = [
    "CacheBackend",
    "DryRunCacheBackend",
]
