"""CLI for resolving, installing and inspecting the native runtime bundle."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path

from cefboot_core.config import ConfigError, config_path, load_config
from cefboot_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from cefboot_core.progress import logging_progress

from .diagnostics import build_doctor_payload
from .installer import RuntimeInstaller, install_config_from
from .models import CefBootError
from .resolver import Architecture, OSFamily, Platform, resolve_package_url
from .source import fetch_release_manifest


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _target_from_args(args: argparse.Namespace) -> Platform:
    current = Platform.current()
    os_family = OSFamily[args.os.upper()] if args.os else current.os
    arch = Architecture[args.arch.upper()] if args.arch else current.arch
    return Platform(os=os_family, arch=arch)


def cmd_resolve(args: argparse.Namespace) -> int:
    cfg = load_config(Path(args.config) if args.config else None)
    target = _target_from_args(args)
    owner = args.owner or cfg.download.owner
    repo = args.repo or cfg.download.repo
    release = args.release or cfg.download.release

    manifest = fetch_release_manifest(owner, repo, release)
    url = resolve_package_url(manifest, target)
    _print_json(
        {
            "repo": f"{owner}/{repo}",
            "release": release or "latest",
            "target_os": str(target.os),
            "target_arch": str(target.arch),
            "url": url,
        }
    )
    return 0


def cmd_install(args: argparse.Namespace) -> int:
    cfg = load_config(Path(args.config) if args.config else None)
    if args.install_dir:
        cfg.install_dir = args.install_dir

    installer = RuntimeInstaller(install_config_from(cfg, progress=logging_progress(get_logger("cli"))))
    installer.ensure_installed()
    _print_json({"install_dir": str(installer.config.install_dir.resolve()), "installed": installer.installed})
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    cfg = load_config(Path(args.config) if args.config else None)
    _print_json(build_doctor_payload(cfg))
    return 0


def cmd_config_show(args: argparse.Namespace) -> int:
    cfg = load_config(Path(args.config) if args.config else None)
    data = asdict(cfg)
    data["settings"] = cfg.settings.as_native_dict()
    _print_json(data)
    return 0


def cmd_config_path(_args: argparse.Namespace) -> int:
    print(config_path())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cefboot", description="Native runtime bundle bootstrapper")
    parser.add_argument("--config", default=None, help="Path to config JSON (defaults to the per-user config)")
    parser.add_argument("--verbose", action="store_true", help="Echo log records to the console")
    sub = parser.add_subparsers(dest="command", required=True)

    resolve_cmd = sub.add_parser("resolve", help="Print the runtime package URL for a platform")
    resolve_cmd.add_argument("--owner", default=None, help="GitHub owner")
    resolve_cmd.add_argument("--repo", default=None, help="GitHub repository")
    resolve_cmd.add_argument("--release", default=None, help="Release tag (default: latest)")
    resolve_cmd.add_argument("--os", choices=[o.name.lower() for o in OSFamily], default=None)
    resolve_cmd.add_argument(
        "--arch",
        choices=[a.name.lower() for a in Architecture if a is not Architecture.UNKNOWN],
        default=None,
    )
    resolve_cmd.set_defaults(func=cmd_resolve)

    install_cmd = sub.add_parser("install", help="Download and unpack the runtime if missing")
    install_cmd.add_argument("--install-dir", default=None, help="Override the install directory")
    install_cmd.set_defaults(func=cmd_install)

    doctor_cmd = sub.add_parser("doctor", help="Print platform and install diagnostics")
    doctor_cmd.set_defaults(func=cmd_doctor)

    config_cmd = sub.add_parser("config", help="Inspect bootstrap configuration")
    config_sub = config_cmd.add_subparsers(dest="config_cmd", required=True)
    show_cmd = config_sub.add_parser("show", help="Print the effective configuration")
    show_cmd.set_defaults(func=cmd_config_show)
    path_cmd = config_sub.add_parser("path", help="Print the default config file location")
    path_cmd.set_defaults(func=cmd_config_path)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(console=args.verbose)
    install_crash_hooks()
    try:
        return int(args.func(args))
    except (CefBootError, ConfigError) as exc:
        get_logger("cli").error("%s", exc, extra={"event": "cli_error"})
        _print_json({"success": False, "error": str(exc), "type": type(exc).__name__})
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
