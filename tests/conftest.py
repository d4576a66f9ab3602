import sys
from pathlib import Path

import pytest

# Ensure the project root is on sys.path so `symparse` and `main` are importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from symparse import settings  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the settings file at a temp dir so a local data/ file never leaks in."""
    monkeypatch.setattr(settings, "_SETTINGS_FILE", str(tmp_path / "symparse.json"))
    settings.reload_settings()
    yield
    settings.reload_settings()
