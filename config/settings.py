#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration settings for the appsinstalled loader.
Enhanced with validation and type safety.
"""

from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

from appsload_exceptions import ConfigError
from .constant import (
    CACHE_ATTEMPT_DELAY_S,
    CACHE_MAX_ATTEMPTS,
    DEFAULT_DEVICE_ADDRESSES,
    DEFAULT_EVENTS_FILE,
    DEFAULT_LOAD_WORKERS,
    DEFAULT_PATTERN,
    DEFAULT_TASK_QUEUE_SIZE,
    DEVICE_TYPES,
    LOAD_PROGRESS_LOG_INTERVAL,
    NORMAL_ERR_RATE,
    REDIS_POOL_HEALTH_CHECK_INTERVAL_S,
    REDIS_POOL_MAX_CONNECTIONS,
    REDIS_POOL_SOCKET_CONNECT_TIMEOUT_S,
    REDIS_POOL_SOCKET_TIMEOUT_S,
    REDIS_POOL_TIMEOUT_S,
)


load_dotenv()

# ===========================================================================
# ADDRESS UTILITIES
# ===========================================================================


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` backend address."""
    host, sep, port = (address or "").strip().rpartition(":")
    if not sep or not host:
        raise ConfigError(f"Invalid backend address (expected host:port): {address!r}")
    try:
        port_num = int(port)
    except ValueError as exc:
        raise ConfigError(f"Invalid backend port: {address!r}") from exc
    if not 0 < port_num < 65536:
        raise ConfigError(f"Backend port out of range: {address!r}")
    return host, port_num


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


# ===========================================================================
# LOAD CONFIGURATION
# ===========================================================================


@dataclass
class LoadConfig:
    """Centralised configuration for a load run."""

    pattern: str = DEFAULT_PATTERN
    device_addresses: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DEVICE_ADDRESSES)
    )

    workers: int = DEFAULT_LOAD_WORKERS
    queue_size: int = DEFAULT_TASK_QUEUE_SIZE
    error_rate_threshold: float = NORMAL_ERR_RATE
    max_attempts: int = CACHE_MAX_ATTEMPTS
    attempt_delay_s: float = CACHE_ATTEMPT_DELAY_S

    redis_password: str = ""
    redis_max_connections: int = REDIS_POOL_MAX_CONNECTIONS
    redis_socket_timeout: float = REDIS_POOL_SOCKET_TIMEOUT_S
    redis_connect_timeout: float = REDIS_POOL_SOCKET_CONNECT_TIMEOUT_S
    redis_health_check_interval: float = REDIS_POOL_HEALTH_CHECK_INTERVAL_S
    redis_pool_timeout: float = REDIS_POOL_TIMEOUT_S

    dry_run: bool = False
    log_level: str = "INFO"
    log_file: str = ""
    progress_log_interval: int = LOAD_PROGRESS_LOG_INTERVAL

    export_events: bool = False
    export_events_file: str = DEFAULT_EVENTS_FILE
    prometheus_metrics_file: str = ""

    # -----------------------------------------------------------------------
    # ENVIRONMENT LOADERS
    # -----------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "LoadConfig":
        defaults = cls()
        addresses = {
            dev_type: os.getenv(
                f"{dev_type.upper()}_ADDR", defaults.device_addresses[dev_type])
            for dev_type in DEVICE_TYPES
        }
        try:
            return cls(
                pattern=os.getenv("LOAD_PATTERN", defaults.pattern),
                device_addresses=addresses,
                workers=int(os.getenv("LOAD_WORKERS", str(defaults.workers))),
                queue_size=int(
                    os.getenv("LOAD_QUEUE_SIZE", str(defaults.queue_size))),
                error_rate_threshold=float(
                    os.getenv("NORMAL_ERR_RATE", str(defaults.error_rate_threshold))),
                max_attempts=int(
                    os.getenv("CACHE_MAX_ATTEMPTS", str(defaults.max_attempts))),
                attempt_delay_s=float(
                    os.getenv("CACHE_ATTEMPT_DELAY", str(defaults.attempt_delay_s))),
                redis_password=os.getenv("REDIS_PASSWORD", ""),
                redis_max_connections=int(
                    os.getenv("REDIS_MAX_CONNECTIONS",
                              str(defaults.redis_max_connections))),
                redis_socket_timeout=float(
                    os.getenv("REDIS_SOCKET_TIMEOUT",
                              str(defaults.redis_socket_timeout))),
                redis_connect_timeout=float(
                    os.getenv("REDIS_CONNECT_TIMEOUT",
                              str(defaults.redis_connect_timeout))),
                redis_pool_timeout=float(
                    os.getenv("REDIS_POOL_TIMEOUT",
                              str(defaults.redis_pool_timeout))),
                dry_run=_env_flag("DRY_RUN", defaults.dry_run),
                log_level=os.getenv("LOG_LEVEL", defaults.log_level),
                log_file=os.getenv("LOG_FILE", defaults.log_file),
                progress_log_interval=int(
                    os.getenv("PROGRESS_LOG_INTERVAL",
                              str(defaults.progress_log_interval))),
                export_events=_env_flag("EXPORT_EVENTS", defaults.export_events),
                export_events_file=os.getenv(
                    "EXPORT_EVENTS_FILE", defaults.export_events_file),
                prometheus_metrics_file=os.getenv(
                    "PROMETHEUS_METRICS_FILE", defaults.prometheus_metrics_file),
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric setting in environment: {exc}") from exc

    def validate(self) -> None:
        if not self.pattern:
            raise ConfigError("pattern must not be empty")

        if not self.device_addresses:
            raise ConfigError("at least one device backend address is required")
        for dev_type, address in self.device_addresses.items():
            if not dev_type:
                raise ConfigError("device type must not be empty")
            parse_address(address)

        if self.workers < 1:
            raise ConfigError("workers must be >= 1")
        if self.queue_size < 1:
            raise ConfigError("queue_size must be >= 1")

        if not 0.0 <= self.error_rate_threshold <= 1.0:
            raise ConfigError("error_rate_threshold out of range (0-1)")

        if self.max_attempts < 1:
            raise ConfigError("max_attempts must be >= 1")
        if self.attempt_delay_s < 0:
            raise ConfigError("attempt_delay_s must be >= 0")

        if self.redis_max_connections < 1:
            raise ConfigError("redis_max_connections must be >= 1")
        if self.redis_socket_timeout <= 0:
            raise ConfigError("redis_socket_timeout must be > 0")
        if self.redis_connect_timeout <= 0:
            raise ConfigError("redis_connect_timeout must be > 0")
        if self.redis_pool_timeout <= 0:
            raise ConfigError("redis_pool_timeout must be > 0")

        if self.progress_log_interval < 1:
            raise ConfigError("progress_log_interval must be >= 1")

        if self.export_events and not self.export_events_file:
            raise ConfigError("export_events requires export_events_file")


__all__ = [
    "LoadConfig",
    "parse_address",
]
