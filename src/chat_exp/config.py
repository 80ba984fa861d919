"""Configuration file management for chat-exp.

Reads and writes ~/.chat-exp/config.json for settings that don't belong in
the data stores (where the stores live, how long the EXP cooldown is).
"""
from __future__ import annotations

import json
from pathlib import Path

from chat_exp.cooldowns import EXP_COOLDOWN_MS

DEFAULT_CONFIG_PATH: Path = Path.home() / ".chat-exp" / "config.json"
DEFAULT_DATA_DIR: Path = Path.home() / ".chat-exp" / "data"


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def get_data_dir(config_path: Path | None = None) -> Path:
    """Return the configured data directory, or DEFAULT_DATA_DIR if not set."""
    config = load_config(config_path)
    raw = config.get("data_dir")
    if raw:
        return Path(raw)
    return DEFAULT_DATA_DIR


def set_data_dir(directory: Path, config_path: Path | None = None) -> None:
    """Persist the data directory path to config."""
    config = load_config(config_path)
    config["data_dir"] = str(directory)
    save_config(config, config_path)


def get_cooldown_ms(config_path: Path | None = None) -> int:
    """Return the self-grant cooldown in ms; falls back to the default when unset or invalid."""
    value = load_config(config_path).get("cooldown_ms")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return EXP_COOLDOWN_MS
    return value
