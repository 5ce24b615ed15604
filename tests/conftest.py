from __future__ import annotations

import os
from pathlib import Path

import pytest

from config import reset_config

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    for key in list(os.environ):
        if key.startswith("JOCR_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES
