import io
import sys
import tarfile
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "installers" / "bootstrap"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from cefboot_bootstrap import state
from cefboot_bootstrap.models import ExtractionError
from cefboot_bootstrap.service import archive_name, extract_tar_gz, flatten_top_level_dir


def _make_tar_gz(path: Path, members: dict[str, bytes], modes: dict[str, int] | None = None) -> Path:
    modes = modes or {}
    with tarfile.open(path, "w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = modes.get(name, 0o644)
            tar.addfile(info, io.BytesIO(data))
    return path


class ArchiveTests(unittest.TestCase):
    def test_archive_name(self):
        self.assertEqual(
            archive_name("https://example.org/dl/jbr_jcef-linux-x64.tar.gz?sig=1"),
            "jbr_jcef-linux-x64.tar.gz",
        )
        self.assertEqual(archive_name("https://example.org/"), "runtime.tar.gz")

    def test_extract_and_flatten_wrapped_bundle(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            archive = _make_tar_gz(
                root / "bundle.tar.gz",
                {
                    "jbr/lib/libcef.so": b"elf",
                    "jbr/bin/java": b"#!/bin/sh\n",
                    "jbr/release": b"JAVA_VERSION=17\n",
                },
                modes={"jbr/bin/java": 0o755},
            )
            dest = root / "install"
            dest.mkdir()

            extract_tar_gz(dest, archive, buffer_size=1024)
            self.assertTrue((dest / "jbr" / "lib" / "libcef.so").is_file())

            self.assertTrue(flatten_top_level_dir(dest))
            self.assertEqual(sorted(p.name for p in dest.iterdir()), ["bin", "lib", "release"])
            self.assertTrue((dest / "bin" / "java").stat().st_mode & 0o100)

    def test_flatten_handles_child_named_like_wrapper(self):
        with tempfile.TemporaryDirectory() as tmp:
            dest = Path(tmp)
            (dest / "jbr" / "jbr").mkdir(parents=True)
            (dest / "jbr" / "jbr" / "file.txt").write_text("x", encoding="utf-8")
            (dest / "jbr" / "other.txt").write_text("y", encoding="utf-8")

            self.assertTrue(flatten_top_level_dir(dest))
            self.assertTrue((dest / "jbr" / "file.txt").is_file())
            self.assertTrue((dest / "other.txt").is_file())

    def test_flatten_ignores_hidden_entries_and_multiple_roots(self):
        with tempfile.TemporaryDirectory() as tmp:
            dest = Path(tmp)
            (dest / "bundle").mkdir()
            (dest / "bundle" / "a").write_text("a", encoding="utf-8")
            (dest / ".DS_Store").write_text("", encoding="utf-8")
            self.assertTrue(flatten_top_level_dir(dest))
            self.assertTrue((dest / "a").is_file())
            self.assertTrue((dest / ".DS_Store").is_file())

            (dest / "b").mkdir()
            self.assertFalse(flatten_top_level_dir(dest))

    def test_flatten_leaves_single_file_alone(self):
        with tempfile.TemporaryDirectory() as tmp:
            dest = Path(tmp)
            (dest / "libcef.so").write_bytes(b"elf")
            self.assertFalse(flatten_top_level_dir(dest))

    def test_extract_rejects_escaping_member(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            archive = _make_tar_gz(root / "evil.tar.gz", {"../escape.txt": b"x"})
            dest = root / "install"
            dest.mkdir()
            with self.assertRaises(ExtractionError):
                extract_tar_gz(dest, archive)
            self.assertFalse((root / "escape.txt").exists())

    def test_extract_rejects_garbage(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            archive = root / "broken.tar.gz"
            archive.write_bytes(b"not an archive")
            with self.assertRaises(ExtractionError):
                extract_tar_gz(root, archive)


class InstallStateTests(unittest.TestCase):
    def test_marker_lifecycle(self):
        with tempfile.TemporaryDirectory() as tmp:
            install_dir = Path(tmp) / "jcef-bundle"
            self.assertFalse(state.is_installed(install_dir))
            self.assertTrue(state.ensure_dir(install_dir))
            self.assertTrue(state.mark_installed(install_dir))
            self.assertTrue(state.is_installed(install_dir))
            self.assertEqual((install_dir / "install.lock").stat().st_size, 0)

            state.reset(install_dir)
            self.assertFalse(install_dir.exists())
            state.reset(install_dir)

    def test_mark_installed_fails_without_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertFalse(state.mark_installed(Path(tmp) / "missing"))

    def test_ensure_dir_fails_when_file_in_the_way(self):
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_text("", encoding="utf-8")
            self.assertFalse(state.ensure_dir(blocker / "child"))


if __name__ == "__main__":
    unittest.main()
