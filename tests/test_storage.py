"""Tests for the shared JSON writer."""

import json

from signalert.backend.core.storage import write_json_atomic


def test_creates_parent_directories(tmp_path):
    path = tmp_path / "a" / "b" / "data.json"
    write_json_atomic(path, {"signs": []})
    assert json.loads(path.read_text()) == {"signs": []}


def test_overwrites_existing_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text("{broken")

    write_json_atomic(path, [1, 2])

    assert json.loads(path.read_text()) == [1, 2]
    assert not (tmp_path / "data.json.tmp").exists()
