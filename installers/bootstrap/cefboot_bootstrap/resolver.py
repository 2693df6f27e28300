"""Release asset resolution for OS/architecture specific runtime bundles."""

from __future__ import annotations

import platform as _platform
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from .models import ReleaseManifest, UnsupportedPlatformPackageError


URL_PATTERN = re.compile(r"(https?://|www.)[-a-zA-Z0-9+&@#/%?=~_|!:.;]*[-a-zA-Z0-9+&@#/%=~_|]")

PACKAGE_MARKER = "jcef"
SDK_MARKER = "sdk"
CHECKSUM_SUFFIX = ".checksum"
ARCHIVE_SUFFIX = ".tar.gz"


class OSFamily(Enum):
    WINDOWS = ("windows", "win32", "win64")
    MACOSX = ("macosx", "macos", "osx", "mac", "darwin")
    LINUX = ("linux",)

    @property
    def tokens(self) -> tuple[str, ...]:
        return self.value

    def __str__(self) -> str:
        return self.name


class Architecture(Enum):
    X86 = ("x86", "i386", "i686")
    X64 = ("x64", "x86_64", "amd64")
    ARM32 = ("arm32", "armv7", "armhf")
    ARM64 = ("aarch64", "arm64")
    UNKNOWN = ()

    @property
    def tokens(self) -> tuple[str, ...]:
        return self.value

    def __str__(self) -> str:
        return self.name


def _normalize_os(system: str) -> OSFamily:
    s = system.lower()
    if s.startswith("win"):
        return OSFamily.WINDOWS
    if s.startswith("darwin") or s.startswith("mac"):
        return OSFamily.MACOSX
    return OSFamily.LINUX


def _normalize_arch(machine: str) -> Architecture:
    m = machine.lower()
    if m in ("x86_64", "amd64", "x64"):
        return Architecture.X64
    if m in ("aarch64", "arm64", "armv8l"):
        return Architecture.ARM64
    if m in ("i386", "i486", "i586", "i686", "x86"):
        return Architecture.X86
    if m.startswith("armv7") or m in ("arm", "armhf", "arm32"):
        return Architecture.ARM32
    return Architecture.UNKNOWN


@dataclass(frozen=True)
class Platform:
    os: OSFamily
    arch: Architecture

    @classmethod
    def from_strings(cls, system: str, machine: str) -> "Platform":
        return cls(os=_normalize_os(system), arch=_normalize_arch(machine))

    @classmethod
    def current(cls) -> "Platform":
        return _current_platform()

    @property
    def is_macosx(self) -> bool:
        return self.os is OSFamily.MACOSX

    def matches_os(self, text: str) -> bool:
        lower = text.lower()
        return any(token in lower for token in self.os.tokens)

    def matches_arch(self, text: str) -> bool:
        lower = text.lower()
        return any(token in lower for token in self.arch.tokens)


@lru_cache(maxsize=1)
def _current_platform() -> Platform:
    return Platform.from_strings(_platform.system(), _platform.machine())


def scan_body_links(body: str) -> list[str]:
    """Return runtime package links mentioned in free-text release notes."""

    candidates = []
    for match in URL_PATTERN.finditer(body or ""):
        url = match.group(0)
        if not url.strip() or url.lower().endswith(CHECKSUM_SUFFIX):
            continue
        if PACKAGE_MARKER in url.lower():
            candidates.append(url)
    return candidates


def _asset_fallback(manifest: ReleaseManifest, target: Platform) -> list[str]:
    out = []
    for asset in manifest.assets:
        if not asset.download_url.strip():
            continue
        if not (target.matches_os(asset.name) or target.matches_os(asset.download_url)):
            continue
        if not (target.matches_arch(asset.name) or target.matches_arch(asset.download_url)):
            continue
        out.append(asset.download_url)
    return out


def _rank(url: str) -> tuple[int, int]:
    lower = url.lower()
    sdk_score = 1 if SDK_MARKER in lower else 0
    format_score = 0 if lower.endswith(ARCHIVE_SUFFIX) else 1
    return (sdk_score, format_score)


def resolve_package_url(manifest: ReleaseManifest, target: Platform) -> str:
    """Pick the one runtime archive URL for ``target`` out of ``manifest``.

    Links in the release body win; the structured asset list is only consulted
    when the body names nothing for the target OS. Plain builds rank before
    SDK builds, then ``.tar.gz`` before any other packaging.
    """

    os_candidates = [url for url in scan_body_links(manifest.body) if target.matches_os(url)]
    if os_candidates:
        candidates = [url for url in os_candidates if target.matches_arch(url)]
    else:
        # Assets are already filtered on architecture by name or URL.
        candidates = _asset_fallback(manifest, target)

    if not candidates:
        raise UnsupportedPlatformPackageError(str(target.os), str(target.arch))

    candidates.sort(key=_rank)
    return candidates[0]
