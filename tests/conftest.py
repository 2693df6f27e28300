"""Shared fixtures for the bootstrap test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
for _path in (ROOT / "packages" / "core", ROOT / "installers" / "bootstrap"):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from cefboot_core.progress import InitProgress  # noqa: E402


class RecordingProgress:
    """Collects progress notifications, optionally into a shared event list."""

    def __init__(self, events: list[str] | None = None) -> None:
        self.events = events if events is not None else []
        self.fractions: list[float] = []

    def _record(self, name: str):
        return lambda: self.events.append(name)

    def _downloading(self, fraction: float) -> None:
        self.fractions.append(fraction)
        self.events.append(f"downloading:{fraction:g}")

    def hooks(self) -> InitProgress:
        return InitProgress(
            locating=self._record("locating"),
            downloading=self._downloading,
            extracting=self._record("extracting"),
            install=self._record("install"),
            initializing=self._record("initializing"),
            initialized=self._record("initialized"),
        )


@pytest.fixture
def progress_recorder() -> RecordingProgress:
    return RecordingProgress()
