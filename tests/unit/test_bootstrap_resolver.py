import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "installers" / "bootstrap"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from cefboot_bootstrap.models import ReleaseAsset, ReleaseManifest, UnsupportedPlatformPackageError
from cefboot_bootstrap.resolver import (
    Architecture,
    OSFamily,
    Platform,
    resolve_package_url,
    scan_body_links,
)

LINUX_X64 = Platform(OSFamily.LINUX, Architecture.X64)
MAC_ARM64 = Platform(OSFamily.MACOSX, Architecture.ARM64)
WIN_X64 = Platform(OSFamily.WINDOWS, Architecture.X64)

BASE = "https://cache-redirector.jetbrains.com/intellij-jbr"


class PlatformTests(unittest.TestCase):
    def test_from_strings(self):
        target = Platform.from_strings("Windows", "AMD64")
        self.assertIs(target.os, OSFamily.WINDOWS)
        self.assertIs(target.arch, Architecture.X64)

    def test_from_strings_darwin_arm(self):
        target = Platform.from_strings("Darwin", "arm64")
        self.assertTrue(target.is_macosx)
        self.assertIs(target.arch, Architecture.ARM64)

    def test_unknown_system_falls_back_to_linux(self):
        target = Platform.from_strings("FreeBSD", "riscv64")
        self.assertIs(target.os, OSFamily.LINUX)
        self.assertIs(target.arch, Architecture.UNKNOWN)

    def test_current_is_cached(self):
        self.assertIs(Platform.current(), Platform.current())

    def test_token_match_is_case_insensitive(self):
        self.assertTrue(LINUX_X64.matches_os("JBR-LINUX-X64.tar.gz"))
        self.assertTrue(LINUX_X64.matches_arch("jbr-linux-X86_64.tar.gz"))


class ResolverTests(unittest.TestCase):
    def test_body_link_preferred_over_checksum(self):
        body = (
            f"Download: {BASE}/jbr_jcef-17.0.8-linux-x64-b1000.tar.gz\n"
            f"Checksum: {BASE}/jbr_jcef-17.0.8-linux-x64-b1000.tar.gz.checksum\n"
        )
        url = resolve_package_url(ReleaseManifest(body=body), LINUX_X64)
        self.assertEqual(url, f"{BASE}/jbr_jcef-17.0.8-linux-x64-b1000.tar.gz")

    def test_scan_ignores_links_without_package_marker(self):
        body = f"See https://github.com/JetBrains/JetBrainsRuntime and {BASE}/jbr_jcef-linux-x64.tar.gz"
        self.assertEqual(scan_body_links(body), [f"{BASE}/jbr_jcef-linux-x64.tar.gz"])

    def test_prefers_tar_gz_over_other_packaging(self):
        body = f"{BASE}/jbr_jcef-windows-x64.zip {BASE}/jbr_jcef-windows-x64.tar.gz"
        url = resolve_package_url(ReleaseManifest(body=body), WIN_X64)
        self.assertTrue(url.endswith("jbr_jcef-windows-x64.tar.gz"))

    def test_prefers_plain_build_over_sdk(self):
        body = f"{BASE}/jbrsdk_jcef-osx-aarch64.tar.gz {BASE}/jbr_jcef-osx-aarch64.tar.gz"
        url = resolve_package_url(ReleaseManifest(body=body), MAC_ARM64)
        self.assertTrue(url.endswith("jbr_jcef-osx-aarch64.tar.gz"))
        self.assertNotIn("sdk", url)

    def test_sdk_rank_beats_packaging_rank(self):
        body = f"{BASE}/jbrsdk_jcef-linux-x64.tar.gz {BASE}/jbr_jcef-linux-x64.zip"
        url = resolve_package_url(ReleaseManifest(body=body), LINUX_X64)
        self.assertTrue(url.endswith("jbr_jcef-linux-x64.zip"))

    def test_never_returns_other_platform(self):
        body = (
            f"{BASE}/jbr_jcef-osx-x64.tar.gz\n"
            f"{BASE}/jbr_jcef-linux-aarch64.tar.gz\n"
            f"{BASE}/jbr_jcef-linux-x64.zip\n"
        )
        url = resolve_package_url(ReleaseManifest(body=body), LINUX_X64)
        self.assertEqual(url, f"{BASE}/jbr_jcef-linux-x64.zip")

    def test_falls_back_to_assets_when_body_has_no_os_match(self):
        manifest = ReleaseManifest(
            body=f"Only mac here: {BASE}/jbr_jcef-osx-x64.tar.gz",
            assets=(
                ReleaseAsset(name="jcef-windows-x64.tar.gz", download_url="https://example/win.tar.gz"),
                ReleaseAsset(name="jcef-linux-x64.tar.gz", download_url="https://example/dl/1"),
                ReleaseAsset(name="jcef-linux-arm64.tar.gz", download_url="https://example/dl/2"),
                ReleaseAsset(name="jcef-linux-x64.tar.gz", download_url="   "),
            ),
        )
        url = resolve_package_url(manifest, LINUX_X64)
        # The URL carries no tokens; the asset name alone qualifies it.
        self.assertEqual(url, "https://example/dl/1")

    def test_unsupported_platform_carries_target(self):
        manifest = ReleaseManifest(
            body=f"{BASE}/jbr_jcef-osx-x64.tar.gz",
            assets=(ReleaseAsset(name="jcef-windows-x64.zip", download_url="https://example/w.zip"),),
        )
        with self.assertRaises(UnsupportedPlatformPackageError) as ctx:
            resolve_package_url(manifest, LINUX_X64)
        self.assertEqual(ctx.exception.os_name, "LINUX")
        self.assertEqual(ctx.exception.arch, "X64")

    def test_unknown_architecture_never_matches(self):
        body = f"{BASE}/jbr_jcef-linux-x64.tar.gz"
        with self.assertRaises(UnsupportedPlatformPackageError):
            resolve_package_url(ReleaseManifest(body=body), Platform(OSFamily.LINUX, Architecture.UNKNOWN))

    def test_manifest_from_json_ignores_unknown_fields(self):
        manifest = ReleaseManifest.from_json(
            {
                "tag_name": "jbr-release-17.0.8b1000",
                "body": None,
                "assets": [{"name": "a.tar.gz", "browser_download_url": "https://example/a", "size": 12}],
            }
        )
        self.assertEqual(manifest.body, "")
        self.assertEqual(manifest.assets, (ReleaseAsset(name="a.tar.gz", download_url="https://example/a"),))


if __name__ == "__main__":
    unittest.main()
