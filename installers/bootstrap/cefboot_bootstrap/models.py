"""Release manifest models and bootstrap errors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class CefBootError(RuntimeError):
    """Base class for fatal bootstrap failures."""


class InstallationDirectoryError(CefBootError):
    def __init__(self, path: Any) -> None:
        super().__init__(f"Could not create installation directory {path}")
        self.path = path


class InstallationLockError(CefBootError):
    def __init__(self, path: Any) -> None:
        super().__init__(f"Could not write installation marker {path}")
        self.path = path


class UnsupportedPlatformPackageError(CefBootError):
    """No release artifact matched the queried platform."""

    def __init__(self, os_name: str, arch: str) -> None:
        super().__init__(f"No runtime package available for {os_name}/{arch}")
        self.os_name = os_name
        self.arch = arch


class DownloadError(CefBootError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to download {url}: {reason}")
        self.url = url
        self.reason = reason


class ExtractionError(CefBootError):
    """Raised when the runtime archive cannot be unpacked safely."""


@dataclass(frozen=True)
class ReleaseAsset:
    name: str
    download_url: str


@dataclass(frozen=True)
class ReleaseManifest:
    body: str
    assets: tuple[ReleaseAsset, ...] = ()

    @classmethod
    def from_json(cls, payload: Any) -> "ReleaseManifest":
        """Build a manifest from a GitHub release payload, ignoring unknown fields."""

        if not isinstance(payload, dict):
            return cls(body="")
        assets = []
        for item in payload.get("assets") or []:
            if not isinstance(item, dict):
                continue
            assets.append(
                ReleaseAsset(
                    name=str(item.get("name") or ""),
                    download_url=str(item.get("browser_download_url") or ""),
                )
            )
        return cls(body=str(payload.get("body") or ""), assets=tuple(assets))
