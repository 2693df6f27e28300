"""Doctor payload describing the host and the local runtime install."""

from __future__ import annotations

import platform
import re
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cefboot_core.config import BootstrapConfig, config_path

from . import state
from .resolver import Platform


_SECRET_RE = re.compile(r"(token|secret|password|apikey|api_key|auth)", re.IGNORECASE)


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if _SECRET_RE.search(k):
                out[k] = "***REDACTED***"
            else:
                out[k] = redact(v)
        return out
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def build_doctor_payload(cfg: BootstrapConfig, target: Platform | None = None) -> dict[str, Any]:
    target = target or Platform.current()
    install_dir = Path(cfg.install_dir).expanduser()
    config_data = asdict(cfg)
    config_data["settings"] = cfg.settings.as_native_dict()
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "host": platform.platform(),
        "python": platform.python_version(),
        "platform": {
            "os": str(target.os),
            "arch": str(target.arch),
            "os_tokens": list(target.os.tokens),
            "arch_tokens": list(target.arch.tokens),
        },
        "config_path": str(config_path()),
        "install_dir": str(install_dir.resolve()),
        "installed": state.is_installed(install_dir),
        "config": redact(config_data),
    }
