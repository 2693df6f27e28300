"""Package download, extraction and post-install fixups used by the installer."""

from __future__ import annotations

import json
import os
import shutil
import ssl
import subprocess
import tarfile
import tempfile
import urllib.error
import urllib.request
import uuid
import zipfile
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import certifi
from cefboot_core.logging_setup import get_logger
from cefboot_core.progress import NO_PROGRESS, InitProgress

from .models import DownloadError, ExtractionError


USER_AGENT = "CefBoot/0.1 (+https://github.com/JetBrains/JetBrainsRuntime)"
GITHUB_JSON = "application/vnd.github+json"
DEFAULT_ARCHIVE_NAME = "runtime.tar.gz"
QUARANTINE_ATTRIBUTE = "com.apple.quarantine"

_LOGGER = get_logger("service")


def _build_ssl_context() -> ssl.SSLContext:
    """Create TLS context for release queries with explicit CA handling."""
    if os.environ.get("CEFBOOT_ALLOW_INSECURE_TLS", "").strip() == "1":
        return ssl._create_unverified_context()

    ca_bundle = os.environ.get("CEFBOOT_CA_BUNDLE", "").strip()
    if ca_bundle:
        return ssl.create_default_context(cafile=ca_bundle)

    return ssl.create_default_context(cafile=certifi.where())


class ReleaseClient:
    """HTTP client for release queries and package downloads.

    Constructed by the caller and passed along with the download spec; nothing
    here is shared process-wide.
    """

    def __init__(
        self,
        timeout: int = 30,
        user_agent: str = USER_AGENT,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl_context

    @property
    def ssl_context(self) -> ssl.SSLContext:
        if self._ssl_context is None:
            self._ssl_context = _build_ssl_context()
        return self._ssl_context

    def open(self, url: str, accept: str = "*/*", timeout: int | None = None):
        request = urllib.request.Request(
            url,
            headers={
                "User-Agent": self.user_agent,
                "Accept": accept,
            },
        )
        try:
            return urllib.request.urlopen(request, timeout=timeout or self.timeout, context=self.ssl_context)
        except urllib.error.HTTPError as exc:
            raise DownloadError(url, f"HTTP {exc.code}") from exc
        except urllib.error.URLError as exc:
            raise DownloadError(url, str(exc.reason)) from exc

    def get_json(self, url: str, accept: str = GITHUB_JSON) -> Any:
        with self.open(url, accept=accept) as response:
            raw = response.read()
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DownloadError(url, f"invalid JSON response: {exc}") from exc


def archive_name(url: str) -> str:
    name = Path(unquote(urlparse(url).path)).name
    return name or DEFAULT_ARCHIVE_NAME


def _content_length(response) -> int | None:
    raw = response.headers.get("Content-Length") if response.headers is not None else None
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def resolve_download_url(spec) -> str:
    """Return the package URL for ``spec``, running its response transform if any."""

    if spec.transform is None:
        return spec.url
    with spec.client.open(spec.url, accept=spec.accept) as response:
        url = spec.transform(spec.client, response)
    _LOGGER.info("resolved runtime package %s", url, extra={"event": "package_resolved"})
    return url


def download_package(
    spec,
    progress: InitProgress = NO_PROGRESS,
    destination_dir: Path | None = None,
) -> Path:
    """Download the runtime package described by ``spec`` and return its local path."""

    url = resolve_download_url(spec)
    target_dir = destination_dir or Path(tempfile.mkdtemp(prefix="cefboot-download-"))
    target_dir.mkdir(parents=True, exist_ok=True)
    target_path = target_dir / archive_name(url)

    _LOGGER.info("downloading %s", url, extra={"event": "download_start"})
    with spec.client.open(url) as response, target_path.open("wb") as fh:
        total = _content_length(response)
        received = 0
        try:
            for chunk in iter(lambda: response.read(spec.buffer_size), b""):
                fh.write(chunk)
                received += len(chunk)
                if total:
                    progress.downloading(min(1.0, received / total))
        except OSError as exc:
            raise DownloadError(url, str(exc)) from exc

    if not total:
        progress.downloading(1.0)
    _LOGGER.info(
        "downloaded %s bytes to %s",
        received,
        target_path,
        extra={"event": "download_complete"},
    )
    return target_path


def _extract_zip(destination: Path, archive_path: Path) -> None:
    root = destination.resolve()
    with zipfile.ZipFile(archive_path) as archive:
        for member in archive.infolist():
            if not member.filename:
                continue
            path = Path(member.filename)
            if path.is_absolute():
                raise ExtractionError("Runtime archive contained an absolute path entry")
            target = (root / path).resolve()
            try:
                target.relative_to(root)
            except ValueError:
                raise ExtractionError("Runtime archive contained an unsafe relative path") from None
            archive.extract(member, root)


def extract_tar_gz(destination: Path, archive_path: Path, buffer_size: int = 4096) -> None:
    """Unpack ``archive_path`` into ``destination``.

    Tar members go through the ``data`` extraction filter, which rejects
    absolute paths and links escaping ``destination`` and keeps owner
    permissions such as the executable bit.
    """

    _LOGGER.info("extracting %s", archive_path, extra={"event": "extract_start"})
    try:
        if zipfile.is_zipfile(archive_path):
            _extract_zip(destination, archive_path)
        else:
            with tarfile.open(archive_path, "r:*", copybufsize=buffer_size) as tar:
                tar.extractall(destination, filter="data")
    except (tarfile.TarError, zipfile.BadZipFile, OSError) as exc:
        raise ExtractionError(f"Failed to extract runtime archive: {exc}") from exc
    _LOGGER.info("extracted into %s", destination, extra={"event": "extract_complete"})


def flatten_top_level_dir(destination: Path) -> bool:
    """Lift the contents of a single wrapping directory into ``destination``.

    Hidden entries are ignored when deciding. Only applies when exactly one
    visible entry remains and it is a real directory; one level only.
    Returns True when the tree was flattened.
    """

    visible = [p for p in destination.iterdir() if not p.name.startswith(".")]
    if len(visible) != 1:
        return False
    wrapper = visible[0]
    if wrapper.is_symlink() or not wrapper.is_dir():
        return False

    # Rename first so a child sharing the wrapper's name can move up.
    staging = destination / f".cefboot-flatten-{uuid.uuid4().hex}"
    wrapper.rename(staging)
    for child in sorted(staging.iterdir()):
        shutil.move(str(child), str(destination / child.name))
    staging.rmdir()
    _LOGGER.info("flattened %s", wrapper.name, extra={"event": "flattened"})
    return True


def unquarantine(directory: Path) -> int:
    """Recursively drop the macOS quarantine attribute so the bundle can execute."""

    code = subprocess.call(["xattr", "-r", "-d", QUARANTINE_ATTRIBUTE, str(directory)])
    if code != 0:
        # xattr also exits non-zero for files that never carried the attribute.
        _LOGGER.debug("xattr exited with %s for %s", code, directory)
    return code
