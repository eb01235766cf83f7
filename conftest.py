"""Pytest configuration: ensures the project root is importable."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep a developer's PKV_* environment out of the test run."""
    for name in ("PKV_DOTENV_PATH", "PKV_VAR_NAME", "PKV_PREVIEW_LIMIT", "PKV_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
