"""
JSON file helpers shared by the sign library and the detection history.
"""
import json
import os
from pathlib import Path


def write_json_atomic(path, payload):
    """
    Write JSON through a temporary file so a crash never leaves a truncated file.

    Args:
        path: destination file; parent directories are created
        payload: JSON-serializable data
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(payload, f)
    os.replace(tmp_path, path)
