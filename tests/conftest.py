"""Pytest configuration for labcli tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`).
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user tokens, editors and colors out of every test."""
    for name in (
        "LAB_PRIVATE_TOKEN",
        "GITLAB_TOKEN",
        "LAB_CONFIG",
        "LAB_LOG_JSON",
        "GIT_EDITOR",
        "VISUAL",
        "EDITOR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NO_COLOR", "1")


@pytest.fixture(autouse=True)
def _fresh_logger() -> None:
    """Bind the global logger to this test's captured stderr."""
    from labcli.logging import configure_logging

    configure_logging()
