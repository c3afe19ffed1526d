import orjson

from retail_assistant.telemetry.recorder import log_resolution
from retail_assistant.utils.timing import LatencyTracker, timer


def test_latency_tracker_stats() -> None:
    tracker = LatencyTracker("faq")
    for value in (0.3, 0.1, 0.2):
        tracker.record(value)

    stats = tracker.get_stats()

    assert stats["count"] == 3
    assert stats["min"] == 0.1
    assert stats["max"] == 0.3
    assert stats["median"] == 0.2


def test_latency_tracker_empty_and_reset() -> None:
    tracker = LatencyTracker("agent")
    with tracker.measure():
        pass
    assert tracker.get_stats()["count"] == 1

    tracker.reset()
    assert tracker.get_stats() == {
        "count": 0, "min": 0.0, "max": 0.0, "mean": 0.0, "median": 0.0, "p95": 0.0, "p99": 0.0
    }


def test_timer_reports_milliseconds() -> None:
    with timer() as elapsed_ms:
        pass
    assert elapsed_ms() >= 0.0


def test_log_resolution_appends(tmp_path) -> None:
    path = tmp_path / "nested" / "resolutions.jsonl"

    log_resolution("hi", {"outcome": {"type": "greeting"}}, path=path)
    log_resolution("bye", {"outcome": {"type": "greeting"}, "ts": 1.0}, path=path)

    records = [orjson.loads(line) for line in path.read_bytes().splitlines()]
    assert [r["question"] for r in records] == ["hi", "bye"]
    assert records[1]["ts"] == 1.0
    assert isinstance(records[0]["ts"], float)


def test_latency_tracker_keeps_recent_window() -> None:
    tracker = LatencyTracker("total", window=3)
    for value in (5.0, 4.0, 0.3, 0.1, 0.2):
        tracker.record(value)

    stats = tracker.get_stats()

    assert stats["count"] == 3
    assert stats["max"] == 0.3
    assert stats["min"] == 0.1
