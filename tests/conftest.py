"""Shared fixtures for gzlog tests."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

FIXED_TIME = datetime(2024, 3, 9, 14, 5, 7)


@pytest.fixture
def populate_log() -> Callable[[Path, str], Path]:
    def _populate(path: Path, text: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _populate


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_TIME
