# Prometheus text exporter for load runs
from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from ingest.stats import StatsSnapshot

METRIC_PREFIX = "appsload"

FILE_STATUSES = ("completed", "aborted", "failed", "cancelled")

DEVICE_COUNTERS = [
    ("records_written_total", "records_written", "Records stored in the cache."),
    ("write_retries_total", "write_retries", "Cache write retries."),
    ("write_failures_total", "write_failures", "Cache writes that gave up."),
    ("unknown_device_total", "unknown_devices", "Records with an unknown device type."),
]


def _esc_label(value: object) -> str:
    s = str(value)
    return s.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _labels(base: Mapping[str, str], **extra: str) -> str:
    return ",".join(
        f'{k}="{_esc_label(v)}"' for k, v in {**base, **extra}.items()
    )


def _write_metric(
    f: TextIO,
    name: str,
    help_text: str,
    metric_type: str,
    samples: Iterable[tuple[str, int | float]],
) -> None:
    full_name = f"{METRIC_PREFIX}_{name}"
    f.write(f"# HELP {full_name} {help_text}\n")
    f.write(f"# TYPE {full_name} {metric_type}\n")
    for label_text, value in samples:
        f.write(f"{full_name}{{{label_text}}} {value}\n")


class MetricsExporter:
    """
    Export load metrics in Prometheus text exposition format.

    This format works well with the node_exporter textfile collector.
    """

    def export_prometheus(
        self,
        *,
        snapshot: "StatsSnapshot",
        output_path: str,
        duration_seconds: float,
        lines_per_second: float,
        pattern: str,
        dry_run: bool,
        workers: int | None = None,
        device_types: Iterable[str] = (),
    ) -> None:
        labels = {
            "run_id": snapshot.run_id,
            "dry_run": str(dry_run).lower(),
        }
        if workers is not None:
            labels["workers"] = str(workers)
        label_text = _labels(labels)

        # configured device types always get a sample, even at zero
        devices = sorted(set(device_types).union(
            *(getattr(snapshot, attr) for _, attr, _ in DEVICE_COUNTERS)))

        out = Path(output_path)
        out.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write so Prometheus never reads a partially written file
        tmp_path = out.with_suffix(out.suffix + ".tmp")

        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write("# --- Run Info ---\n")
            _write_metric(f, "run_info", "Load run metadata.", "gauge",
                          [(_labels(labels, pattern=pattern), 1)])

            f.write("\n# --- Files ---\n")
            _write_metric(
                f, "files_total", "Input files by outcome.", "counter",
                [(_labels(labels, status=status), snapshot.files(status))
                 for status in FILE_STATUSES],
            )

            f.write("\n# --- Lines ---\n")
            _write_metric(f, "lines_processed_total",
                          "Lines read from input files.", "counter",
                          [(label_text, snapshot.lines_processed)])
            _write_metric(f, "lines_failed_total",
                          "Lines that failed to parse or store.", "counter",
                          [(label_text, snapshot.lines_failed)])

            f.write("\n# --- Cache Writes ---\n")
            for name, attr, help_text in DEVICE_COUNTERS:
                per_device = getattr(snapshot, attr)
                _write_metric(
                    f, name, help_text, "counter",
                    [(_labels(labels, dev_type=dev), per_device.get(dev, 0))
                     for dev in devices],
                )

            f.write("\n# --- Throughput ---\n")
            _write_metric(f, "duration_seconds", "Load duration in seconds.",
                          "gauge", [(label_text, float(duration_seconds))])
            _write_metric(f, "lines_per_second", "Average lines per second.",
                          "gauge", [(label_text, float(lines_per_second))])

            if snapshot.file_seconds_count:
                f.write("\n# --- File Timing ---\n")
                _write_metric(f, "file_seconds_count", "Files timed.",
                              "counter",
                              [(label_text, snapshot.file_seconds_count)])
                _write_metric(f, "file_seconds_sum",
                              "Total seconds spent per file.", "counter",
                              [(label_text, snapshot.file_seconds_sum)])
                _write_metric(f, "file_seconds_max",
                              "Slowest file in seconds.", "gauge",
                              [(label_text, snapshot.file_seconds_max)])

        tmp_path.replace(out)


__all__ = [
    "MetricsExporter",
]
