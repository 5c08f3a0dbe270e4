from __future__ import annotations

import pytest

from prism.visibility import cursor_guard


@pytest.fixture(autouse=True)
def plain_environment(monkeypatch: pytest.MonkeyPatch):
    """Uncoloured output and a fresh cursor guard for every test."""
    monkeypatch.setenv("NO_COLOR", "1")
    for name in ("FORCE_COLOR", "PRISM_TTY", "PRISM_WRITE_LOG", "PRISM_LOG_FILE", "PRISM_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    cursor_guard.reset()
    yield
    cursor_guard.reset()
