"""
Payload serialisation for cached records.

The payload carries only ``{apps, lat, lon}``; the device identity lives in
the cache key.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from appsload_exceptions import EncodingError
from .parser import AppsInstalled


@dataclass(frozen=True)
class UserApps:
    lat: float
    lon: float
    apps: tuple[int, ...] = ()


def encode_user_apps(record: AppsInstalled) -> bytes:
    """Serialise a record to compact, key-sorted JSON bytes."""
    payload = {
        "apps": list(record.apps),
        "lat": record.lat,
        "lon": record.lon,
    }
    try:
        text = json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"Could not serialise record {record.key}: {exc}") from exc
    return text.encode("utf-8")


def decode_user_apps(payload: bytes | str) -> UserApps:
    try:
        data = json.loads(payload)
        return UserApps(
            lat=float(data["lat"]),
            lon=float(data["lon"]),
            apps=tuple(int(app) for app in data["apps"]),
        )
    except (TypeError, ValueError, KeyError, UnicodeDecodeError) as exc:
        raise EncodingError(f"Could not decode payload: {exc}") from exc


__all__ = [
    "UserApps",
    "encode_user_apps",
    "decode_user_apps",
]
