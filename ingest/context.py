"""
Load Context module.
This module defines the LoadContext class, which serves as a container
for all load dependencies. It provides dependency injection for
cleaner, testable code.
"""
import logging
import threading
from collections.abc import Mapping
from typing import Optional

from clients import build_device_clients, close_device_clients
from config import LoadConfig
from interfaces import CacheBackend, EventSink, JsonlPrometheusEventSink
from .stats import LoadStats


# ============================================================================
# LOAD CONTEXT
# ============================================================================


def setup_logging(config: LoadConfig) -> None:
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(message)s",
        filename=config.log_file or None,
    )


class LoadContext:
    """
    Container for all load dependencies.
    Provides dependency injection for cleaner, testable code.
    """

    def __init__(
        self,
        config: LoadConfig,
        *,
        clients: Optional[Mapping[str, CacheBackend]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialise load context.

        Args:
            config: Load configuration
            clients: Pre-built device backends (tests); built lazily otherwise
            logger: Logger to use instead of this module's logger
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self._clients = clients
        self._owns_clients = clients is None
        self._event_sink: EventSink | None = None

        # Thread-safe utilities
        self.stats = LoadStats()
        self.export_events_lock = threading.Lock()

    @property
    def clients(self) -> Mapping[str, CacheBackend]:
        """Device type -> backend mapping, read-only after first access."""
        if self._clients is None:
            self._clients = build_device_clients(self.config, logger=self.logger)
        return self._clients

    @property
    def event_sink(self) -> EventSink:
        """Get event sink (lazy init)."""
        if self._event_sink is None:
            events_path = (
                self.config.export_events_file if self.config.export_events else ""
            )
            self._event_sink = JsonlPrometheusEventSink(
                events_path=events_path,
                lock=self.export_events_lock,
            )
        return self._event_sink

    def close(self) -> None:
        if self._owns_clients and self._clients is not None:
            close_device_clients(self._clients)
            self._clients = None
