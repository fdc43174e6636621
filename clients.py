#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cache client initialisation, one Redis connection pool per device type.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Optional

from redis import BlockingConnectionPool, Redis

from config import LoadConfig, parse_address
from interfaces import CacheBackend, DryRunCacheBackend


def create_redis_client(address: str, config: LoadConfig) -> Redis:
    """
    Create a Redis client for a ``host:port`` address.
    The client owns its own connection pool and is safe to share
    across worker threads. The pool is capped at ``redis_max_connections``;
    when every connection is in use a worker waits up to
    ``redis_pool_timeout`` seconds for one to be released.
    """
    host, port = parse_address(address)
    pool = BlockingConnectionPool(
        host=host,
        port=port,
        password=config.redis_password or None,
        max_connections=config.redis_max_connections,
        timeout=config.redis_pool_timeout,
        socket_timeout=config.redis_socket_timeout,
        socket_connect_timeout=config.redis_connect_timeout,
        health_check_interval=config.redis_health_check_interval,
        decode_responses=False,
    )
    return Redis(connection_pool=pool)


def build_device_clients(
    config: LoadConfig,
    *,
    logger: Optional[logging.Logger] = None,
) -> Mapping[str, CacheBackend]:
    """
    Build the read-only device type -> backend mapping for one run.
    Dry runs get logging backends and never open a connection.
    """
    log = logger or logging.getLogger(__name__)
    clients: dict[str, CacheBackend] = {}
    for dev_type, address in config.device_addresses.items():
        if config.dry_run:
            clients[dev_type] = DryRunCacheBackend(address, logger=log)
        else:
            clients[dev_type] = create_redis_client(address, config)
        log.debug("Backend for %s: %s", dev_type, address)
    return MappingProxyType(clients)


def close_device_clients(clients: Mapping[str, CacheBackend]) -> None:
    """Close every backend that supports it."""
    for client in clients.values():
        close = getattr(client, "close", None)
        if callable(close):
            close()
