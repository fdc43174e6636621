"""
Cache writer: routes one encoded record to the backend for its device type
with a bounded, fixed-delay retry.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Optional

from redis.exceptions import (
    BusyLoadingError,
    ConnectionError as RedisConnectionError,
    RedisError,
    TimeoutError as RedisTimeoutError,
)

from appsload_exceptions import (
    TransientBackendError,
    UnknownDeviceType,
)
from config.constant import CACHE_ATTEMPT_DELAY_S, CACHE_MAX_ATTEMPTS
from interfaces import CacheBackend
from .encoder import encode_user_apps
from .parser import AppsInstalled
from .stats import LoadStats

TRANSIENT_ERRORS = (
    RedisConnectionError,
    RedisTimeoutError,
    BusyLoadingError,
    TransientBackendError,
)


class CacheWriter:
    """
    Writes payloads to the backend selected by device type.

    The client mapping is read-only and shared by every worker; each client
    must tolerate concurrent use. Retries sleep on the calling thread only.
    """

    def __init__(
        self,
        clients: Mapping[str, CacheBackend],
        *,
        max_attempts: int = CACHE_MAX_ATTEMPTS,
        attempt_delay_s: float = CACHE_ATTEMPT_DELAY_S,
        stats: Optional[LoadStats] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._clients = clients
        self._max_attempts = int(max_attempts)
        self._attempt_delay_s = float(attempt_delay_s)
        self.stats = stats if stats is not None else LoadStats()
        self._logger = logger or logging.getLogger(__name__)
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def write(self, dev_type: str, key: str, payload: bytes) -> bool:
        """
        Store ``payload`` under ``key``.

        Returns False once retries are exhausted.

        Raises:
            UnknownDeviceType: no backend configured for ``dev_type``
        """
        client = self._clients.get(dev_type)
        if client is None:
            self.stats.record_unknown_device(dev_type)
            raise UnknownDeviceType(dev_type)

        for attempt in range(1, self._max_attempts + 1):
            if attempt > 1:
                self.stats.record_retry(dev_type)
            try:
                if client.set(key, payload):
                    self.stats.record_write(dev_type)
                    return True
                self._logger.debug(
                    "Backend %s rejected %s (attempt %d/%d)",
                    dev_type, key, attempt, self._max_attempts,
                )
            except TRANSIENT_ERRORS as error:
                self._logger.debug(
                    "Backend %s write failed for %s (attempt %d/%d): %s",
                    dev_type, key, attempt, self._max_attempts, error,
                )
            except RedisError as error:
                self._logger.warning(
                    "Cannot write to %s, not retrying: %s", dev_type, error)
                self.stats.record_write_failure(dev_type)
                return False

            if attempt < self._max_attempts:
                self._sleep(self._attempt_delay_s)

        self._logger.warning(
            "Cannot write to %s after %d attempts: %s",
            dev_type, self._max_attempts, key,
        )
        self.stats.record_write_failure(dev_type)
        return False

    def write_record(self, record: AppsInstalled) -> bool:
        """Encode and store one record."""
        return self.write(record.dev_type, record.key, encode_user_apps(record))


__all__ = [
    "CacheWriter",
    "TRANSIENT_ERRORS",
]
