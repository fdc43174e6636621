"""Shared fixtures for the loader tests."""
from __future__ import annotations

import gzip
import threading
from pathlib import Path

import pytest


class FakeBackend:
    """In-memory stand-in for a Redis client; records every set() call."""

    def __init__(self, failures: list[Exception | bool] | None = None):
        self._lock = threading.Lock()
        self._failures = list(failures or [])
        self.calls: list[tuple[str, bytes]] = []
        self.data: dict[str, bytes] = {}

    def set(self, name, value):
        with self._lock:
            self.calls.append((name, value))
            if self._failures:
                failure = self._failures.pop(0)
                if isinstance(failure, Exception):
                    raise failure
                return failure
            self.data[name] = value
            return True


@pytest.fixture()
def make_backend():
    return FakeBackend


@pytest.fixture()
def backends():
    return {dev_type: FakeBackend() for dev_type in ("idfa", "gaid", "adid", "dvid")}


@pytest.fixture()
def write_gz(tmp_path):
    """Write lines to a gzip file under tmp_path and return its path as str."""

    def _write(name: str, lines: list[str]) -> str:
        path = Path(tmp_path) / name
        with gzip.open(path, "wt", encoding="utf-8") as handle:
            for line in lines:
                handle.write(line + "\n")
        return str(path)

    return _write
