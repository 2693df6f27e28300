"""Process-wide single initialization of the native runtime."""

from __future__ import annotations

import atexit
import threading
from typing import Callable

from cefboot_core.logging_setup import get_logger

from .installer import InstallConfig, RuntimeInstaller
from .models import CefBootError
from .native import (
    AWT_LIBRARY,
    GPU_LIBRARIES,
    RUNTIME_LIBRARIES,
    NativeBackend,
    RuntimeHandle,
    RuntimeState,
    gpu_disabled,
    load_library,
)


_LOGGER = get_logger("builder")


class RuntimeBuilder:
    """Build the native runtime at most once, however many threads ask.

    The first caller installs (outside the lock, it may take minutes) and then
    initializes the runtime under the lock. Callers arriving meanwhile wait on
    the condition and get the same handle, or the same exception when the
    build fails. A failed build can be retried by calling again.
    """

    def __init__(
        self,
        config: InstallConfig,
        backend: NativeBackend,
        installer: RuntimeInstaller | None = None,
        *,
        exit_hook: Callable[[Callable[[], None]], object] = atexit.register,
        library_loader: Callable[[str], bool] = load_library,
    ) -> None:
        self.config = config
        self._backend = backend
        self._installer = installer or RuntimeInstaller(config)
        self._exit_hook = exit_hook
        self._load_library = library_loader

        self._instance: RuntimeHandle | None = None
        self._cond = threading.Condition(threading.Lock())
        self._building = False
        self._generation = 0
        self._last_error: BaseException | None = None

    @property
    def instance(self) -> RuntimeHandle | None:
        return self._instance

    def get_or_build(self) -> RuntimeHandle:
        instance = self._instance
        if instance is not None:
            return instance

        with self._cond:
            if self._instance is not None:
                return self._instance
            if self._building:
                return self._wait_for_build()
            self._building = True

        try:
            self._installer.ensure_installed()
            self.config.progress.initializing()
            with self._cond:
                instance = self._initialize_locked()
        except BaseException as exc:
            with self._cond:
                attached = self._instance
                if attached is not None and isinstance(exc, Exception):
                    # init_from_runtime won the race; everyone gets its handle.
                    _LOGGER.debug("build failed after attach: %s", exc)
                    self._finish_locked(error=None)
                    return attached
                self._finish_locked(error=exc)
            _LOGGER.error("runtime build failed: %s", exc, extra={"event": "build_failed"})
            raise
        return instance

    def _wait_for_build(self) -> RuntimeHandle:
        # Caller holds self._cond.
        generation = self._generation
        _LOGGER.debug("waiting for runtime build in progress", extra={"event": "build_wait"})
        while self._generation == generation:
            self._cond.wait()
        if self._instance is not None:
            return self._instance
        if self._last_error is None:
            raise CefBootError("runtime build finished without a handle")
        raise self._last_error

    def _initialize_locked(self) -> RuntimeHandle:
        if self._instance is not None:
            # Attached by init_from_runtime while this build was installing.
            self._finish_locked(error=None)
            return self._instance

        config = self.config
        instance = self._backend.initialize(
            config.install_dir,
            list(config.args),
            config.settings.as_native_dict(),
        )
        self._observe_initialization(instance)
        self._exit_hook(instance.dispose)
        # Publish last.
        self._instance = instance
        self._finish_locked(error=None)
        _LOGGER.info("native runtime created", extra={"event": "build_complete"})
        return instance

    def _finish_locked(self, error: BaseException | None) -> None:
        self._building = False
        self._last_error = error
        self._generation += 1
        self._cond.notify_all()

    def _observe_initialization(self, instance: RuntimeHandle) -> None:
        fired = threading.Event()
        progress = self.config.progress

        def _on_state(state: RuntimeState) -> None:
            if state == RuntimeState.INITIALIZED and not fired.is_set():
                fired.set()
                progress.initialized()

        instance.on_initialization(_on_state)

    def init_from_runtime(self) -> RuntimeHandle | None:
        """Attach to a runtime whose libraries the host already loaded.

        Returns None on any failure so the caller can fall back to
        :meth:`get_or_build`. Never installs anything.
        """

        if self._instance is not None:
            return self._instance

        args = list(self.config.args)
        if not self._try_load(AWT_LIBRARY):
            return None

        if not gpu_disabled(args):
            for name in GPU_LIBRARIES:
                self._try_load(name)

        if not any(self._try_load(name) for name in RUNTIME_LIBRARIES):
            return None

        try:
            started = bool(self._backend.startup(args))
        except Exception as exc:
            _LOGGER.debug("native startup failed: %s", exc)
            started = False
        if not started:
            return None

        instance = self._existing_or_new_instance()
        if instance is None:
            return None

        try:
            self._observe_initialization(instance)
        except Exception as exc:
            _LOGGER.debug("could not observe native initialization: %s", exc)
            return None
        with self._cond:
            if self._instance is None:
                self._instance = instance
            return self._instance

    def _try_load(self, name: str) -> bool:
        try:
            return bool(self._load_library(name))
        except Exception as exc:
            _LOGGER.debug("loading %s failed: %s", name, exc)
            return False

    def _existing_or_new_instance(self) -> RuntimeHandle | None:
        attempts: tuple[Callable[[], RuntimeHandle | None], ...] = (
            self._backend.instance_if_any,
            lambda: self._backend.create_instance(self.config.settings.as_native_dict()),
            lambda: self._backend.create_instance(None),
        )
        for attempt in attempts:
            try:
                instance = attempt()
            except Exception as exc:
                _LOGGER.debug("native instance lookup failed: %s", exc)
                continue
            if instance is not None:
                return instance
        return None
