"""Core services shared by the runtime bootstrapper: settings, progress hooks, logging."""

from .config import (
    BootstrapConfig,
    ConfigError,
    DownloadConfig,
    LogSeverity,
    NativeSettings,
    config_path,
    load_config,
    save_config,
)
from .logging_setup import configure_logging, get_logger, install_crash_hooks
from .progress import NO_PROGRESS, InitProgress, logging_progress

__all__ = [
    "BootstrapConfig",
    "ConfigError",
    "DownloadConfig",
    "InitProgress",
    "LogSeverity",
    "NO_PROGRESS",
    "NativeSettings",
    "config_path",
    "configure_logging",
    "get_logger",
    "install_crash_hooks",
    "load_config",
    "logging_progress",
    "save_config",
]
