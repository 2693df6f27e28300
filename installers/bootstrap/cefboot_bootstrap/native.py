"""Seams to the native runtime: handle/backend protocols and library loading."""

from __future__ import annotations

import ctypes
import ctypes.util
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Protocol, Sequence

from cefboot_core.logging_setup import get_logger


AWT_LIBRARY = "jawt"
GPU_LIBRARIES = ("EGL", "GLESv2", "vk_swiftshader")
RUNTIME_LIBRARIES = ("libcef", "cef", "jcef")
DISABLE_GPU_ARG = "--disable-gpu"

_LOGGER = get_logger("native")


class RuntimeState(str, Enum):
    NEW = "New"
    INITIALIZING = "Initializing"
    INITIALIZED = "Initialized"
    SHUTTING_DOWN = "ShuttingDown"
    TERMINATED = "Terminated"


class RuntimeHandle(Protocol):
    def dispose(self) -> None:
        ...

    def on_initialization(self, callback: Callable[[RuntimeState], None]) -> None:
        """Call ``callback`` with each state the runtime reports."""


class NativeBackend(Protocol):
    """Everything the bootstrapper needs from the native runtime binding."""

    def initialize(self, install_dir: Path, args: Sequence[str], settings: dict[str, Any]) -> RuntimeHandle:
        ...

    def startup(self, args: Sequence[str]) -> bool:
        ...

    def instance_if_any(self) -> RuntimeHandle | None:
        ...

    def create_instance(self, settings: dict[str, Any] | None = None) -> RuntimeHandle:
        ...


def load_library(name: str) -> bool:
    """Load a shared library already resolvable by the OS loader."""

    path = ctypes.util.find_library(name) or name
    try:
        ctypes.CDLL(path, mode=getattr(ctypes, "RTLD_GLOBAL", 0))
    except OSError as exc:
        _LOGGER.debug("could not load %s: %s", name, exc)
        return False
    return True


def gpu_disabled(args: Sequence[str]) -> bool:
    return any(arg.strip().lower() == DISABLE_GPU_ARG for arg in args)
