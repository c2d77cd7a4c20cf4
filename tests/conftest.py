"""Pytest configuration for test isolation.

Settings are read from ``STATEMENT_INGEST_*`` environment variables (and a
developer's local ``.env`` may set passwords or a model). To keep tests
hermetic, an autouse fixture removes every such variable, plus
``OPENAI_API_KEY``, before each test.
"""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("STATEMENT_INGEST_") or key == "OPENAI_API_KEY":
            monkeypatch.delenv(key, raising=False)
