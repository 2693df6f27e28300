"""Install/initialization progress hooks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


ProgressCallback = Callable[[], None]
FractionCallback = Callable[[float], None]


def _noop() -> None:
    return None


def _noop_fraction(_fraction: float) -> None:
    return None


@dataclass(frozen=True)
class InitProgress:
    """Six notification points; any hook left out does nothing.

    ``downloading`` receives a fraction in ``[0, 1]``.
    """

    locating: ProgressCallback = _noop
    downloading: FractionCallback = _noop_fraction
    extracting: ProgressCallback = _noop
    install: ProgressCallback = _noop
    initializing: ProgressCallback = _noop
    initialized: ProgressCallback = _noop


NO_PROGRESS = InitProgress()


def logging_progress(logger) -> InitProgress:
    """Progress hooks that only write to ``logger``."""

    last = {"pct": -1}

    def _downloading(fraction: float) -> None:
        pct = int(max(0.0, min(1.0, fraction)) * 100)
        if pct // 10 != last["pct"] // 10:
            last["pct"] = pct
            logger.info("downloading %s%%", pct, extra={"event": "downloading"})

    return InitProgress(
        locating=lambda: logger.info("locating runtime bundle", extra={"event": "locating"}),
        downloading=_downloading,
        extracting=lambda: logger.info("extracting runtime bundle", extra={"event": "extracting"}),
        install=lambda: logger.info("installing runtime bundle", extra={"event": "install"}),
        initializing=lambda: logger.info("initializing native runtime", extra={"event": "initializing"}),
        initialized=lambda: logger.info("native runtime initialized", extra={"event": "initialized"}),
    )
