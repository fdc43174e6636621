"""Tests for discovery, progress, client construction and metrics export."""
import pytest
from redis import BlockingConnectionPool, Redis

from appsload_exceptions import ConfigError
from clients import build_device_clients, create_redis_client
from config import LoadConfig
from ingest.stats import LoadStats
from ingest.utils import LoadProgressTracker, list_log_files
from interfaces import CacheBackend, DryRunCacheBackend, MetricsExporter


def test_list_log_files_skips_marked_and_sorts(tmp_path):
    for name in ["20170929000200.tsv.gz", ".20170929000000.tsv.gz",
                 "20170929000100.tsv.gz", "notes.txt"]:
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "dir.tsv.gz").mkdir()

    files = list_log_files(str(tmp_path / "*.tsv.gz"))

    assert files == [
        str(tmp_path / "20170929000100.tsv.gz"),
        str(tmp_path / "20170929000200.tsv.gz"),
    ]


def test_list_log_files_no_match(tmp_path):
    assert list_log_files(str(tmp_path / "*.tsv.gz")) == []


def test_progress_tracker_counts_without_tqdm():
    tracker = LoadProgressTracker(3, use_tqdm=False, progress_log_interval=1)
    tracker.update("a", lines=10, status="completed")
    tracker.update("b", lines=5, status="aborted")
    tracker.update("c", status="failed")
    tracker.close()

    assert (tracker.completed, tracker.aborted, tracker.failed) == (1, 1, 1)
    assert tracker.lines == 15



def test_progress_tracker_counts_cancelled_separately():
    tracker = LoadProgressTracker(3, use_tqdm=False, progress_log_interval=1)
    tracker.update("a", lines=4, status="completed")
    tracker.update("b", status="cancelled")
    tracker.update("c", status="cancelled")
    tracker.close()

    assert (tracker.completed, tracker.failed, tracker.cancelled) == (1, 0, 2)


def test_dry_run_clients_do_not_connect():
    clients = build_device_clients(LoadConfig(dry_run=True))

    assert set(clients) == {"idfa", "gaid", "adid", "dvid"}
    assert all(isinstance(c, DryRunCacheBackend) for c in clients.values())
    assert clients["idfa"].set("idfa:x", b"{}") is True


def test_redis_clients_are_built_per_device_type():
    config = LoadConfig(device_addresses={"idfa": "127.0.0.1:33013"})
    clients = build_device_clients(config)

    client = clients["idfa"]
    assert isinstance(client, Redis)
    assert isinstance(client, CacheBackend)
    kwargs = client.connection_pool.connection_kwargs
    assert (kwargs["host"], kwargs["port"]) == ("127.0.0.1", 33013)
    client.close()



def test_redis_pool_waits_for_a_free_connection_when_workers_outnumber_it():
    config = LoadConfig(workers=4, redis_max_connections=3, redis_pool_timeout=2.5)
    client = create_redis_client("127.0.0.1:33013", config)

    pool = client.connection_pool
    assert isinstance(pool, BlockingConnectionPool)
    assert pool.max_connections == 3
    assert pool.timeout == 2.5
    client.close()


def test_redis_pool_timeout_must_be_positive():
    with pytest.raises(ConfigError):
        LoadConfig(redis_pool_timeout=0).validate()


def test_client_mapping_is_read_only():
    clients = build_device_clients(LoadConfig(dry_run=True))
    try:
        clients["new"] = DryRunCacheBackend("x")
    except TypeError:
        pass
    else:
        raise AssertionError("client mapping should be read-only")


def test_metrics_exporter_writes_prometheus_text(tmp_path):
    stats = LoadStats(run_id="r1")
    stats.record_file_outcome("completed", "/data/a.tsv.gz")
    stats.record_file_outcome("completed", "/data/b.tsv.gz")
    stats.record_file_lines(40, 1, 0.5)
    stats.record_write("idfa")
    stats.record_retry("gaid")
    stats.record_write_failure("gaid")
    out = tmp_path / "metrics" / "load.prom"

    MetricsExporter().export_prometheus(
        snapshot=stats.snapshot(),
        output_path=str(out),
        duration_seconds=2.0,
        lines_per_second=20.0,
        pattern="/data/*.tsv.gz",
        dry_run=False,
        workers=4,
        device_types=["idfa", "gaid", "adid", "dvid"],
    )

    text = out.read_text()
    labels = 'run_id="r1",dry_run="false",workers="4"'
    assert "# TYPE appsload_files_total counter" in text
    assert f'appsload_files_total{{{labels},status="completed"}} 2' in text
    assert f'appsload_files_total{{{labels},status="cancelled"}} 0' in text
    assert f"appsload_lines_processed_total{{{labels}}} 40" in text
    assert f'appsload_records_written_total{{{labels},dev_type="idfa"}} 1' in text
    assert f'appsload_records_written_total{{{labels},dev_type="dvid"}} 0' in text
    assert f'appsload_write_retries_total{{{labels},dev_type="gaid"}} 1' in text
    assert f'appsload_write_failures_total{{{labels},dev_type="gaid"}} 1' in text
    assert 'pattern="/data/*.tsv.gz"' in text
    assert "appsload_file_seconds_max{" in text
    assert not (tmp_path / "metrics" / "load.prom.tmp").exists()


def test_stats_snapshot_is_a_copy():
    stats = LoadStats()
    stats.record_write("idfa")
    before = stats.snapshot()
    stats.record_write("idfa")
    stats.record_file_outcome("failed", "/data/x.tsv.gz", failed=True)

    assert before.records_written == {"idfa": 1}
    assert before.failed_files == ()
    after = stats.snapshot()
    assert after.total_records_written == 2
    assert after.files("failed") == 1
    assert after.failed_files == ("/data/x.tsv.gz",)
