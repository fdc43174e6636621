"""
Line parser for appsinstalled logs.

Each line holds five tab-separated fields::

    dev_type \t dev_id \t lat \t lon \t app1,app2,...

Malformed app ids are dropped; anything else wrong with the line is an error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from appsload_exceptions import InvalidCoordinate, MalformedLine
from config.constant import (
    APPS_SEPARATOR,
    LINE_FIELD_COUNT,
    LINE_FIELD_SEPARATOR,
    UINT32_MAX,
)


@dataclass(frozen=True)
class AppsInstalled:
    dev_type: str
    dev_id: str
    lat: float
    lon: float
    apps: tuple[int, ...] = ()

    @property
    def key(self) -> str:
        return cache_key(self.dev_type, self.dev_id)


def cache_key(dev_type: str, dev_id: str) -> str:
    return f"{dev_type}:{dev_id}"


def _parse_coordinate(name: str, value: str) -> float:
    # float() would also accept padding and "1_0"
    if not value or value != value.strip() or "_" in value:
        raise InvalidCoordinate(name, value)
    try:
        number = float(value)
    except ValueError as exc:
        raise InvalidCoordinate(name, value) from exc
    if not math.isfinite(number):
        raise InvalidCoordinate(name, value)
    return number


def parse_app_id(token: str) -> int | None:
    """Return the app id as an int, or None if it is not a base-10 uint32."""
    if not token.isascii() or not token.isdigit():
        return None
    app_id = int(token)
    if app_id > UINT32_MAX:
        return None
    return app_id


def parse_apps(raw_apps: str) -> tuple[int, ...]:
    apps = []
    for token in raw_apps.split(APPS_SEPARATOR):
        app_id = parse_app_id(token)
        if app_id is not None:
            apps.append(app_id)
    return tuple(apps)


def parse_appsinstalled(line: str) -> AppsInstalled:
    """
    Parse one log line.

    Raises:
        MalformedLine: wrong field count or empty device type / id
        InvalidCoordinate: lat or lon is not a finite base-10 float
    """
    parts = line.rstrip("\r\n").split(LINE_FIELD_SEPARATOR)
    if len(parts) != LINE_FIELD_COUNT:
        raise MalformedLine(
            f"invalid format line: expected {LINE_FIELD_COUNT} fields, got {len(parts)}"
        )

    dev_type, dev_id, raw_lat, raw_lon, raw_apps = parts
    if not dev_type or not dev_id:
        raise MalformedLine("invalid format line: empty device type or id")

    lat = _parse_coordinate("lat", raw_lat)
    lon = _parse_coordinate("lon", raw_lon)

    return AppsInstalled(
        dev_type=dev_type,
        dev_id=dev_id,
        lat=lat,
        lon=lon,
        apps=parse_apps(raw_apps),
    )


__all__ = [
    "AppsInstalled",
    "cache_key",
    "parse_app_id",
    "parse_apps",
    "parse_appsinstalled",
]
