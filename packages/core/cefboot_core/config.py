"""Persistent bootstrap settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


CONFIG_VERSION = 1

DEFAULT_INSTALL_DIR = "jcef-bundle"
DEFAULT_DOWNLOAD_BUFFER = 16 * 1024
DEFAULT_EXTRACT_BUFFER = 4096

GITHUB_JB_OWNER = "JetBrains"
GITHUB_JB_REPO = "JetBrainsRuntime"

INSTALL_DIR_ENV = "CEFBOOT_INSTALL_DIR"


class ConfigError(ValueError):
    """Raised when a bootstrap configuration cannot be used."""


class LogSeverity(str, Enum):
    DEFAULT = "default"
    VERBOSE = "verbose"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"
    DISABLE = "disable"

    @classmethod
    def parse(cls, value: Any) -> "LogSeverity":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.DEFAULT


@dataclass
class NativeSettings:
    """Settings handed untouched to the native runtime when it is created.

    Mirrors the CEF settings record. Empty values leave the native default in
    place.
    """

    cache_path: str | None = None
    background_color: int | None = None
    browser_subprocess_path: str | None = None
    command_line_args_disabled: bool = False
    cookieable_schemes_exclude_defaults: bool = False
    cookieable_schemes_list: str | None = None
    javascript_flags: str | None = None
    locale: str | None = None
    locales_dir_path: str | None = None
    log_file: str | None = None
    log_severity: LogSeverity = LogSeverity.DEFAULT
    pack_loading_disabled: bool = False
    persist_session_cookies: bool = False
    remote_debugging_port: int = 0
    resources_dir_path: str | None = None
    uncaught_exception_stack_size: int = 0
    user_agent: str | None = None
    user_agent_product: str | None = None
    windowless_rendering_enabled: bool = False
    no_sandbox: bool = False

    def as_native_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["log_severity"] = self.log_severity.value
        return data


@dataclass
class DownloadConfig:
    owner: str = GITHUB_JB_OWNER
    repo: str = GITHUB_JB_REPO
    release: str | None = None
    url: str | None = None
    buffer_size: int = DEFAULT_DOWNLOAD_BUFFER


@dataclass
class BootstrapConfig:
    config_version: int = CONFIG_VERSION
    install_dir: str = DEFAULT_INSTALL_DIR
    args: list[str] = field(default_factory=list)
    extract_buffer_size: int = DEFAULT_EXTRACT_BUFFER
    download: DownloadConfig = field(default_factory=DownloadConfig)
    settings: NativeSettings = field(default_factory=NativeSettings)


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "CefBoot"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "CefBoot"
    return Path.home() / ".config" / "cefboot"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _normalize_download(cfg: BootstrapConfig) -> None:
    size = _as_int(cfg.download.buffer_size, DEFAULT_DOWNLOAD_BUFFER)
    cfg.download.buffer_size = size if size > 0 else DEFAULT_DOWNLOAD_BUFFER
    if not cfg.download.release:
        cfg.download.release = None
    if not cfg.download.url:
        cfg.download.url = None


def _normalize_extract(cfg: BootstrapConfig) -> None:
    size = _as_int(cfg.extract_buffer_size, DEFAULT_EXTRACT_BUFFER)
    # Non-positive sizes keep the previous value, which is the default here.
    cfg.extract_buffer_size = size if size > 0 else DEFAULT_EXTRACT_BUFFER


def _normalize_settings(cfg: BootstrapConfig) -> None:
    cfg.settings.log_severity = LogSeverity.parse(cfg.settings.log_severity)
    cfg.settings.remote_debugging_port = max(0, _as_int(cfg.settings.remote_debugging_port, 0))
    cfg.settings.uncaught_exception_stack_size = max(0, _as_int(cfg.settings.uncaught_exception_stack_size, 0))


def load_config(path: Path | None = None) -> BootstrapConfig:
    path = path or config_path()
    cfg = BootstrapConfig()

    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            raw = None

        if isinstance(raw, dict):
            raw_args = raw.get("args")
            cfg = BootstrapConfig(
                config_version=_as_int(raw.get("config_version"), CONFIG_VERSION),
                install_dir=str(raw.get("install_dir") or DEFAULT_INSTALL_DIR),
                args=[str(a) for a in raw_args] if isinstance(raw_args, list) else [],
                extract_buffer_size=raw.get("extract_buffer_size", DEFAULT_EXTRACT_BUFFER),
                download=_merge(DownloadConfig, raw.get("download", {})),
                settings=_merge(NativeSettings, raw.get("settings", {})),
            )

    override = os.environ.get(INSTALL_DIR_ENV, "").strip()
    if override:
        cfg.install_dir = override

    _normalize_download(cfg)
    _normalize_extract(cfg)
    _normalize_settings(cfg)
    return cfg


def save_config(cfg: BootstrapConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = asdict(cfg)
    data["settings"] = cfg.settings.as_native_dict()
    path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
    return path
