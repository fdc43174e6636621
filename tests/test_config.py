"""Tests for LoadConfig and the CLI flag overrides."""
import gzip
from pathlib import Path

import pytest

from appsload_exceptions import ConfigError
from cli.memc_load import build_config, main, parse_args
from config import DEFAULT_DEVICE_ADDRESSES, LoadConfig, parse_address


ENV_VARS = [
    "LOAD_PATTERN", "LOAD_WORKERS", "LOAD_QUEUE_SIZE", "NORMAL_ERR_RATE",
    "CACHE_MAX_ATTEMPTS", "CACHE_ATTEMPT_DELAY", "DRY_RUN", "LOG_FILE",
    "IDFA_ADDR", "GAID_ADDR", "ADID_ADDR", "DVID_ADDR", "EXPORT_EVENTS",
    "PROMETHEUS_METRICS_FILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize("address,expected", [
    ("127.0.0.1:33013", ("127.0.0.1", 33013)),
    ("cache.local:6379", ("cache.local", 6379)),
])
def test_parse_address(address, expected):
    assert parse_address(address) == expected


@pytest.mark.parametrize("address", ["", "localhost", ":6379", "host:port", "host:70000"])
def test_parse_address_rejects_bad_values(address):
    with pytest.raises(ConfigError):
        parse_address(address)


def test_defaults_are_valid():
    config = LoadConfig()
    config.validate()

    assert config.device_addresses == DEFAULT_DEVICE_ADDRESSES
    assert config.error_rate_threshold == 0.01
    assert (config.max_attempts, config.attempt_delay_s) == (3, 0.2)


@pytest.mark.parametrize("overrides", [
    {"workers": 0},
    {"queue_size": 0},
    {"error_rate_threshold": 1.5},
    {"max_attempts": 0},
    {"attempt_delay_s": -1},
    {"device_addresses": {}},
    {"device_addresses": {"idfa": "nowhere"}},
    {"pattern": ""},
])
def test_validate_rejects(overrides):
    with pytest.raises(ConfigError):
        LoadConfig(**overrides).validate()


def test_from_env(monkeypatch):
    monkeypatch.setenv("LOAD_PATTERN", "/logs/*.gz")
    monkeypatch.setenv("LOAD_WORKERS", "7")
    monkeypatch.setenv("NORMAL_ERR_RATE", "0.05")
    monkeypatch.setenv("GAID_ADDR", "10.0.0.2:6379")
    monkeypatch.setenv("DRY_RUN", "yes")

    config = LoadConfig.from_env()

    assert config.pattern == "/logs/*.gz"
    assert config.workers == 7
    assert config.error_rate_threshold == 0.05
    assert config.device_addresses["gaid"] == "10.0.0.2:6379"
    assert config.device_addresses["idfa"] == DEFAULT_DEVICE_ADDRESSES["idfa"]
    assert config.dry_run is True


def test_from_env_rejects_non_numeric(monkeypatch):
    monkeypatch.setenv("LOAD_WORKERS", "many")
    with pytest.raises(ConfigError):
        LoadConfig.from_env()


def test_flags_override_environment(monkeypatch):
    monkeypatch.setenv("LOAD_WORKERS", "7")
    args = parse_args([
        "--pattern", "/in/*.tsv.gz",
        "--idfa", "10.0.0.1:1111",
        "--workers", "2",
        "--error-rate", "0.02",
        "--attempts", "5",
        "--attempt-delay", "0",
        "--dry",
        "--log-level", "debug",
    ])

    config = build_config(args)

    assert config.pattern == "/in/*.tsv.gz"
    assert config.device_addresses["idfa"] == "10.0.0.1:1111"
    assert config.workers == 2
    assert config.error_rate_threshold == 0.02
    assert config.max_attempts == 5
    assert config.attempt_delay_s == 0.0
    assert config.dry_run is True
    assert config.log_level == "DEBUG"


def test_main_rejects_bad_config():
    assert main(["--workers", "0", "--no-progress"]) == 1


def test_main_dry_run_marks_files(tmp_path):
    path = tmp_path / "20170929000000.tsv.gz"
    with gzip.open(path, "wt", encoding="utf-8") as handle:
        handle.write("idfa\tabc123\t55.55\t37.37\t42,43,bad,44\n")
        handle.write("gaid\tdef456\t1.0\t2.0\t1\n")

    code = main([
        "--pattern", str(tmp_path / "*.tsv.gz"),
        "--dry",
        "--no-progress",
        "--log", str(tmp_path / "load.log"),
    ])

    assert code == 0
    assert (tmp_path / ".20170929000000.tsv.gz").exists()
    assert not Path(path).exists()
