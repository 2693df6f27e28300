"""On-disk install state: the ``install.lock`` marker and its directory."""

from __future__ import annotations

import shutil
from pathlib import Path

from cefboot_core.logging_setup import get_logger


MARKER_NAME = "install.lock"

_LOGGER = get_logger("state")


def marker_path(directory: Path) -> Path:
    return Path(directory) / MARKER_NAME


def is_installed(directory: Path) -> bool:
    try:
        return marker_path(directory).is_file()
    except OSError:
        return False


def mark_installed(directory: Path) -> bool:
    try:
        marker_path(directory).touch(exist_ok=True)
    except OSError as exc:
        _LOGGER.error("could not write install marker in %s: %s", directory, exc)
        return False
    return True


def reset(directory: Path) -> None:
    """Remove ``directory`` and everything under it; a missing directory is fine."""

    path = Path(directory)
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)


def ensure_dir(directory: Path) -> bool:
    try:
        Path(directory).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        _LOGGER.error("could not create %s: %s", directory, exc)
        return False
    return Path(directory).is_dir()
