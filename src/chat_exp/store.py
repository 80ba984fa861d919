"""Flat JSON data files for chat-exp.

Both persisted records (the EXP ledger and the double-EXP config) are small,
human-diffable JSON objects. Reads degrade to None; writes are atomic.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def read_json(path: Path) -> dict | None:
    """Read a JSON object from path.

    Returns None if the file is missing, unreadable, or not a JSON object.
    A missing file is normal on first run; anything else is logged.
    """
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
        logger.warning("Could not read %s, starting empty: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object, got %s", path, type(data).__name__)
        return None
    return data


def write_json(data: dict, path: Path) -> None:
    """Write data as JSON to path using atomic write. Raises OSError on failure."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
