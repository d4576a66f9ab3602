"""
SymParse — configuration.

Defaults live in ``DEFAULT_SETTINGS``; overrides are read from
``<project>/data/symparse.json`` when the file exists.
"""

import json
import os

_DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "data")
_SETTINGS_FILE = os.path.join(_DATA_DIR, "symparse.json")

DEFAULT_SETTINGS = {
    "expand_power_limit": 10,      # (x+1)^n is expanded for 1 < n <= limit
    "sum_expand_limit": 1000,      # sum() with more terms keeps its node
    "fraction_epsilon": 1e-13,
    "fraction_max_steps": 30,
    "fraction_hard_cap": 10000,
    "number_precision": 15,        # significant digits in rendered numbers
    "log_level": "WARNING",
}

_cache = None


def _load_overrides() -> dict:
    if os.path.exists(_SETTINGS_FILE):
        try:
            with open(_SETTINGS_FILE, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            return {}
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if k in DEFAULT_SETTINGS}
    return {}


def get_settings() -> dict:
    """Return the merged settings (defaults overlaid with the JSON file)."""
    global _cache
    if _cache is None:
        merged = dict(DEFAULT_SETTINGS)
        merged.update(_load_overrides())
        _cache = merged
    return dict(_cache)


def get_setting(key: str):
    return get_settings()[key]


def save_settings(overrides: dict) -> dict:
    """Persist *overrides* (unknown keys are dropped) and refresh the cache."""
    clean = {k: v for k, v in overrides.items() if k in DEFAULT_SETTINGS}
    os.makedirs(os.path.dirname(_SETTINGS_FILE), exist_ok=True)
    with open(_SETTINGS_FILE, "w", encoding="utf-8") as f:
        json.dump(clean, f, indent=2)
    reload_settings()
    return get_settings()


def reload_settings() -> None:
    global _cache
    _cache = None
