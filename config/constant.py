#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Constants for the appsinstalled loader configuration.
"""

from __future__ import annotations

# ===========================================================================
# INPUT DISCOVERY
# ===========================================================================
DEFAULT_PATTERN = "./data/appsinstalled/*.tsv.gz"
PROCESSED_FILE_PREFIX = "."

# ===========================================================================
# LINE FORMAT
# ===========================================================================
LINE_FIELD_SEPARATOR = "\t"
LINE_FIELD_COUNT = 5
APPS_SEPARATOR = ","
UINT32_MAX = 0xFFFFFFFF

# ===========================================================================
# DEVICE ROUTING
# ===========================================================================
DEVICE_TYPES: tuple[str, ...] = ("idfa", "gaid", "adid", "dvid")
DEFAULT_DEVICE_ADDRESSES: dict[str, str] = {
    "idfa": "127.0.0.1:33013",
    "gaid": "127.0.0.1:33014",
    "adid": "127.0.0.1:33015",
    "dvid": "127.0.0.1:33016",
}

# ===========================================================================
# LOAD POLICY
# ===========================================================================
NORMAL_ERR_RATE = 0.01
CACHE_MAX_ATTEMPTS = 3
CACHE_ATTEMPT_DELAY_S = 0.2
DEFAULT_LOAD_WORKERS = 4
DEFAULT_TASK_QUEUE_SIZE = 8

# ===========================================================================
# REDIS CONNECTION POOLS
# ===========================================================================
REDIS_POOL_MAX_CONNECTIONS = 3
REDIS_POOL_SOCKET_TIMEOUT_S = 0.1
REDIS_POOL_SOCKET_CONNECT_TIMEOUT_S = 1.0
REDIS_POOL_TIMEOUT_S = 5.0
REDIS_POOL_HEALTH_CHECK_INTERVAL_S = 30.0

# ===========================================================================
# PROGRESS & EXPORT
# ===========================================================================
LOAD_PROGRESS_LOG_INTERVAL = 10
DEFAULT_EVENTS_FILE = "load_events.jsonl"

__all__ = [
    "DEFAULT_PATTERN",
    "PROCESSED_FILE_PREFIX",
    "LINE_FIELD_SEPARATOR",
    "LINE_FIELD_COUNT",
    "APPS_SEPARATOR",
    "UINT32_MAX",
    "DEVICE_TYPES",
    "DEFAULT_DEVICE_ADDRESSES",
    "NORMAL_ERR_RATE",
    "CACHE_MAX_ATTEMPTS",
    "CACHE_ATTEMPT_DELAY_S",
    "DEFAULT_LOAD_WORKERS",
    "DEFAULT_TASK_QUEUE_SIZE",
    "REDIS_POOL_MAX_CONNECTIONS",
    "REDIS_POOL_SOCKET_TIMEOUT_S",
    "REDIS_POOL_SOCKET_CONNECT_TIMEOUT_S",
    "REDIS_POOL_HEALTH_CHECK_INTERVAL_S",
    "REDIS_POOL_TIMEOUT_S",
    "LOAD_PROGRESS_LOG_INTERVAL",
    "DEFAULT_EVENTS_FILE",
]
