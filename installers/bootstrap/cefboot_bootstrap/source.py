"""Release source descriptions: where the runtime package comes from."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

from cefboot_core.config import DEFAULT_DOWNLOAD_BUFFER, GITHUB_JB_OWNER, GITHUB_JB_REPO, DownloadConfig

from .models import DownloadError, ReleaseManifest
from .resolver import Platform, resolve_package_url
from .service import GITHUB_JSON, ReleaseClient


Transform = Callable[[ReleaseClient, Any], str]


def github_release_url(owner: str, repo: str, release: str | None = None) -> str:
    if not release:
        return f"https://api.github.com/repos/{owner}/{repo}/releases/latest"
    return f"https://api.github.com/repos/{owner}/{repo}/releases/tags/{release}"


def github_transform(target: Platform | None = None) -> Transform:
    """Transform reading a GitHub release response into the package URL for ``target``."""

    def _transform(_client: ReleaseClient, response: Any) -> str:
        try:
            payload = json.loads(response.read().decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DownloadError(getattr(response, "url", "release manifest"), f"invalid JSON response: {exc}") from exc
        manifest = ReleaseManifest.from_json(payload)
        return resolve_package_url(manifest, target or Platform.current())

    return _transform


@dataclass(frozen=True)
class DownloadSpec:
    url: str
    client: ReleaseClient = field(default_factory=ReleaseClient)
    transform: Transform | None = None
    buffer_size: int = DEFAULT_DOWNLOAD_BUFFER
    accept: str = "*/*"

    @classmethod
    def github(
        cls,
        owner: str = GITHUB_JB_OWNER,
        repo: str = GITHUB_JB_REPO,
        release: str | None = None,
        *,
        client: ReleaseClient | None = None,
        buffer_size: int = DEFAULT_DOWNLOAD_BUFFER,
        target: Platform | None = None,
    ) -> "DownloadSpec":
        return cls(
            url=github_release_url(owner, repo, release),
            client=client or ReleaseClient(),
            transform=github_transform(target),
            buffer_size=buffer_size,
            accept=GITHUB_JSON,
        )

    @classmethod
    def custom(
        cls,
        url: str,
        transform: Transform | None = None,
        *,
        client: ReleaseClient | None = None,
        buffer_size: int = DEFAULT_DOWNLOAD_BUFFER,
    ) -> "DownloadSpec":
        """A direct package link, or one whose response ``transform`` turns into one."""
        return cls(
            url=url,
            client=client or ReleaseClient(),
            transform=transform,
            buffer_size=buffer_size,
        )

    @classmethod
    def from_config(cls, cfg: DownloadConfig, client: ReleaseClient | None = None) -> "DownloadSpec":
        if cfg.url:
            return cls.custom(cfg.url, client=client, buffer_size=cfg.buffer_size)
        return cls.github(cfg.owner, cfg.repo, cfg.release, client=client, buffer_size=cfg.buffer_size)


def fetch_release_manifest(owner: str, repo: str, release: str | None = None, client: ReleaseClient | None = None) -> ReleaseManifest:
    client = client or ReleaseClient()
    return ReleaseManifest.from_json(client.get_json(github_release_url(owner, repo, release)))
