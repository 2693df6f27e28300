"""Bootstrapper that installs and initializes the native runtime bundle."""

from .builder import RuntimeBuilder
from .installer import InstallConfig, RuntimeInstaller, install_config_from, validate_config
from .models import (
    CefBootError,
    DownloadError,
    ExtractionError,
    InstallationDirectoryError,
    InstallationLockError,
    ReleaseAsset,
    ReleaseManifest,
    UnsupportedPlatformPackageError,
)
from .native import NativeBackend, RuntimeHandle, RuntimeState
from .resolver import Architecture, OSFamily, Platform, resolve_package_url
from .service import ReleaseClient
from .source import DownloadSpec, fetch_release_manifest, github_release_url, github_transform

__all__ = [
    "Architecture",
    "CefBootError",
    "DownloadError",
    "DownloadSpec",
    "ExtractionError",
    "InstallConfig",
    "InstallationDirectoryError",
    "InstallationLockError",
    "NativeBackend",
    "OSFamily",
    "Platform",
    "ReleaseAsset",
    "ReleaseClient",
    "ReleaseManifest",
    "RuntimeBuilder",
    "RuntimeHandle",
    "RuntimeInstaller",
    "RuntimeState",
    "UnsupportedPlatformPackageError",
    "fetch_release_manifest",
    "github_release_url",
    "github_transform",
    "install_config_from",
    "resolve_package_url",
    "validate_config",
]
