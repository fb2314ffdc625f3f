# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

import stat
import tempfile
import unittest
from pathlib import Path

from optimizectl.lib._util.fs import ensure_private_dir, write_private_file


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class PrivateFileTests(unittest.TestCase):
    def test_missing_parents_created_private(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            target = Path(td) / "a" / "b"
            ensure_private_dir(target)
            self.assertTrue(target.is_dir())
            self.assertEqual(_mode(Path(td) / "a"), 0o700)
            self.assertEqual(_mode(target), 0o700)

    def test_not_a_directory(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            f = Path(td) / "file"
            f.write_text("x", encoding="utf-8")
            with self.assertRaises(NotADirectoryError):
                ensure_private_dir(f)

    def test_write_private_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "stormforge" / "config"
            write_private_file(path, "one\n")
            write_private_file(path, "two\n")
            self.assertEqual(path.read_text(encoding="utf-8"), "two\n")
            self.assertEqual(_mode(path), 0o600)
            self.assertEqual(_mode(path.parent), 0o700)

    def test_existing_file_permissions_tightened(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "config"
            path.write_text("", encoding="utf-8")
            path.chmod(0o644)
            write_private_file(path, "x\n")
            self.assertEqual(_mode(path), 0o600)
