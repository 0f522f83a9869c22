"""Tests for detection history and statistics."""

from datetime import datetime, timedelta

import pytest

from signalert.backend.core.history import DetectionHistory
from signalert.backend.core.types import DetectionResult

from helpers import make_sign

NOW = datetime(2024, 5, 15, 14, 30)
HELLO = make_sign("Hello", "left", voice_alert="Hello!")
STOP = make_sign("Stop", "right")


def detection(sign, confidence=0.8, at=NOW):
    return DetectionResult(sign=sign, confidence=confidence, timestamp=at)


def test_newest_first():
    history = DetectionHistory()
    history.add(detection(HELLO, at=NOW - timedelta(minutes=5)))
    history.add(detection(STOP))

    assert [e["signName"] for e in history.entries] == ["Stop", "Hello"]
    assert history.entries[1]["voiceAlert"] == "Hello!"


def test_max_entries():
    history = DetectionHistory(max_entries=3)
    for i in range(5):
        history.add(detection(HELLO, confidence=i / 10))

    assert len(history.entries) == 3
    assert history.entries[0]["confidence"] == pytest.approx(0.4)


def test_stats():
    history = DetectionHistory()
    history.add(detection(HELLO, 0.9, NOW - timedelta(days=10)))
    history.add(detection(HELLO, 0.7, NOW - timedelta(days=3)))
    history.add(detection(STOP, 0.8, NOW - timedelta(hours=2)))

    stats = history.stats(NOW)

    assert stats["total"] == 3
    assert stats["today"] == 1
    assert stats["thisWeek"] == 2
    assert stats["avgConfidence"] == pytest.approx(0.8)


def test_stats_empty():
    assert DetectionHistory().stats(NOW) == {"total": 0, "today": 0, "thisWeek": 0, "avgConfidence": 0.0}


def test_most_used_today():
    history = DetectionHistory()
    assert history.most_used_today(NOW) is None

    history.add(detection(HELLO, at=NOW - timedelta(days=1)))
    history.add(detection(HELLO, at=NOW - timedelta(days=1)))
    history.add(detection(STOP, at=NOW - timedelta(hours=1)))

    assert history.most_used_today(NOW) == ("Stop", 1)


def test_between():
    history = DetectionHistory()
    history.add(detection(HELLO, at=NOW - timedelta(days=2)))
    history.add(detection(STOP, at=NOW))

    found = history.between(NOW - timedelta(hours=1), NOW)
    assert [e["signName"] for e in found] == ["Stop"]


def test_persists_and_clears(tmp_path):
    path = tmp_path / "history.json"
    history = DetectionHistory(path)
    history.add(detection(HELLO, 0.75))

    reopened = DetectionHistory(path)
    assert reopened.entries[0]["signName"] == "Hello"
    assert reopened.entries[0]["timestamp"] == NOW

    reopened.clear()
    assert DetectionHistory(path).entries == []


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("{not json")
    assert DetectionHistory(path).entries == []


def test_to_json_uses_iso_timestamps():
    history = DetectionHistory()
    history.add(detection(HELLO))
    assert history.to_json()[0]["timestamp"] == NOW.isoformat()


def test_save_replaces_file_without_leftovers(tmp_path):
    path = tmp_path / "nested" / "history.json"
    history = DetectionHistory(path)
    history.add(detection(HELLO))
    history.add(detection(STOP))

    assert [e["signName"] for e in DetectionHistory(path).entries] == ["Stop", "Hello"]
    assert [p.name for p in path.parent.iterdir()] == ["history.json"]
