"""Installation orchestrator: turns an empty directory into an unpacked runtime bundle."""

from __future__ import annotations

import dataclasses
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from cefboot_core.config import DEFAULT_EXTRACT_BUFFER, BootstrapConfig, ConfigError, NativeSettings
from cefboot_core.logging_setup import get_logger
from cefboot_core.progress import NO_PROGRESS, InitProgress

from . import service, state
from .models import InstallationDirectoryError, InstallationLockError
from .resolver import Platform
from .service import ReleaseClient
from .source import DownloadSpec


_LOGGER = get_logger("installer")

Downloader = Callable[[DownloadSpec, InitProgress, Path], Path]
Extractor = Callable[[Path, Path, int], None]
Flattener = Callable[[Path], object]
Unquarantiner = Callable[[Path], object]


@dataclass(frozen=True)
class InstallConfig:
    install_dir: Path = Path("jcef-bundle")
    download: DownloadSpec = field(default_factory=DownloadSpec.github)
    extract_buffer_size: int = DEFAULT_EXTRACT_BUFFER
    progress: InitProgress = NO_PROGRESS
    args: tuple[str, ...] = ()
    settings: NativeSettings = field(default_factory=NativeSettings)

    def with_args(self, *args: str) -> "InstallConfig":
        """Drop all configured arguments and use ``args`` instead."""
        return dataclasses.replace(self, args=tuple(args))

    def add_args(self, *args: str) -> "InstallConfig":
        return dataclasses.replace(self, args=self.args + tuple(args))


def validate_config(config: InstallConfig) -> InstallConfig:
    if not str(config.install_dir).strip():
        raise ConfigError("install_dir must not be empty")
    if config.extract_buffer_size <= 0:
        raise ConfigError(f"extract_buffer_size must be positive, got {config.extract_buffer_size}")
    if config.download.buffer_size <= 0:
        raise ConfigError(f"download buffer_size must be positive, got {config.download.buffer_size}")
    if not config.download.url:
        raise ConfigError("download url must not be empty")
    if any(not isinstance(arg, str) for arg in config.args):
        raise ConfigError("native arguments must be strings")
    return config


def install_config_from(
    cfg: BootstrapConfig,
    progress: InitProgress = NO_PROGRESS,
    client: ReleaseClient | None = None,
) -> InstallConfig:
    return validate_config(
        InstallConfig(
            install_dir=Path(cfg.install_dir).expanduser(),
            download=DownloadSpec.from_config(cfg.download, client=client),
            extract_buffer_size=cfg.extract_buffer_size,
            progress=progress,
            args=tuple(cfg.args),
            settings=cfg.settings,
        )
    )


class RuntimeInstaller:
    """Download and unpack the runtime once; later calls are no-ops.

    The ``install.lock`` marker is written only after every step succeeded,
    so a failed run leaves nothing that a retry would trust.
    """

    def __init__(
        self,
        config: InstallConfig,
        *,
        downloader: Downloader = service.download_package,
        extractor: Extractor = service.extract_tar_gz,
        flattener: Flattener = service.flatten_top_level_dir,
        unquarantiner: Unquarantiner = service.unquarantine,
        target: Platform | None = None,
    ) -> None:
        self.config = validate_config(config)
        self._downloader = downloader
        self._extractor = extractor
        self._flattener = flattener
        self._unquarantiner = unquarantiner
        self._target = target
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def ensure_installed(self) -> None:
        if self._installed:
            return

        progress = self.config.progress
        install_dir = Path(self.config.install_dir)

        progress.locating()
        if state.is_installed(install_dir):
            _LOGGER.info("runtime already installed in %s", install_dir, extra={"event": "install_found"})
            self._installed = True
            return

        _LOGGER.info("installing runtime into %s", install_dir, extra={"event": "install_start"})
        state.reset(install_dir)
        if not state.ensure_dir(install_dir):
            raise InstallationDirectoryError(install_dir)

        progress.downloading(0.0)
        with tempfile.TemporaryDirectory(prefix="cefboot-download-") as tmp:
            archive = self._downloader(self.config.download, progress, Path(tmp))

            progress.extracting()
            self._extractor(install_dir, archive, self.config.extract_buffer_size)
        self._flattener(install_dir)

        progress.install()
        target = self._target or Platform.current()
        if target.is_macosx:
            self._unquarantiner(install_dir)

        if not state.mark_installed(install_dir):
            raise InstallationLockError(state.marker_path(install_dir))

        _LOGGER.info("runtime installed in %s", install_dir, extra={"event": "install_complete"})
        self._installed = True
