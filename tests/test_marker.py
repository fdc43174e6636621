"""Tests for dot-renaming and the ordered completion coordinator."""
import logging
import threading
from pathlib import Path

from ingest.marker import CompletionCoordinator, dot_rename, is_marked, marked_path
from ingest.worker_pool import (
    OUTCOME_ABORTED,
    OUTCOME_CANCELLED,
    OUTCOME_COMPLETED,
    OUTCOME_FAILED,
    CompletionSlot,
    FileOutcome,
)


def _resolved(index: int, status: str, path: str | None = None) -> CompletionSlot:
    slot = CompletionSlot(index)
    slot.set(FileOutcome(path=path or f"/data/f{index}.tsv.gz",
                         slot_index=index, status=status))
    return slot


def test_marked_path_prefixes_basename():
    assert marked_path("/data/logs/a.tsv.gz") == "/data/logs/.a.tsv.gz"
    assert is_marked("/data/logs/.a.tsv.gz")
    assert not is_marked("/data/.hidden/a.tsv.gz")


def test_dot_rename(tmp_path):
    source = tmp_path / "20170929000000.tsv.gz"
    source.write_bytes(b"x")

    target = dot_rename(str(source))

    assert target == str(tmp_path / ".20170929000000.tsv.gz")
    assert not source.exists()
    assert Path(target).read_bytes() == b"x"


def test_dot_rename_failure_is_logged(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert dot_rename(str(tmp_path / "gone.tsv.gz")) is None
    assert "Error when renaming" in caplog.text


def test_only_completed_outcomes_are_marked():
    marked = []
    slots = [
        _resolved(0, OUTCOME_COMPLETED),
        _resolved(1, OUTCOME_ABORTED),
        _resolved(2, OUTCOME_FAILED),
        _resolved(3, OUTCOME_CANCELLED),
        _resolved(4, OUTCOME_COMPLETED),
    ]
    coordinator = CompletionCoordinator(
        slots, marker=lambda p: marked.append(p) or p)

    outcomes = coordinator.run()

    assert [o.slot_index for o in outcomes] == [0, 1, 2, 3, 4]
    assert marked == ["/data/f0.tsv.gz", "/data/f4.tsv.gz"]
    assert coordinator.marked == marked
    assert coordinator.pending == 0


def test_waits_in_submission_order_even_if_later_slots_finish_first():
    slots = [CompletionSlot(i) for i in range(3)]
    marked = []
    coordinator = CompletionCoordinator(
        slots, marker=lambda p: marked.append(p) or p)

    # resolve in reverse order from another thread
    def resolve():
        for slot in reversed(slots):
            slot.set(FileOutcome(path=f"f{slot.slot_index}",
                                 slot_index=slot.slot_index,
                                 status=OUTCOME_COMPLETED))

    thread = threading.Thread(target=resolve)
    thread.start()
    coordinator.run()
    thread.join()

    assert marked == ["f0", "f1", "f2"]


def test_failed_marker_is_not_recorded():
    coordinator = CompletionCoordinator(
        [_resolved(0, OUTCOME_COMPLETED)], marker=lambda p: None)

    coordinator.run()

    assert coordinator.marked == []


def test_aborted_file_warns(caplog):
    coordinator = CompletionCoordinator([_resolved(0, OUTCOME_ABORTED)],
                                        marker=lambda p: p)
    with caplog.at_level(logging.WARNING):
        coordinator.run()
    assert "error rate too high" in caplog.text


def test_resume_after_interrupted_mark_records_each_outcome_once():
    calls = []

    def marker(path):
        calls.append(path)
        if len(calls) == 1:
            raise KeyboardInterrupt
        return path

    seen = []
    coordinator = CompletionCoordinator(
        [_resolved(0, OUTCOME_COMPLETED), _resolved(1, OUTCOME_COMPLETED)],
        marker=marker,
        on_outcome=seen.append,
    )

    try:
        coordinator.run()
    except KeyboardInterrupt:
        pass
    assert coordinator.outcomes == []
    assert coordinator.pending == 2

    coordinator.run()

    assert calls == ["/data/f0.tsv.gz", "/data/f0.tsv.gz", "/data/f1.tsv.gz"]
    assert coordinator.marked == ["/data/f0.tsv.gz", "/data/f1.tsv.gz"]
    assert [o.slot_index for o in coordinator.outcomes] == [0, 1]
    assert [o.slot_index for o in seen] == [0, 1]
    assert coordinator.pending == 0
