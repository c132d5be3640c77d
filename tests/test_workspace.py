"""
Unit tests for the workspace folder.
"""

import tempfile
import unittest
from pathlib import Path

from didact.errors import NoWorkspaceError
from didact.workspace import WORKSPACE_FOLDER_NAME, Workspace


class TestWorkspace(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.folder = Path(self.tmp.name)

    def test_existing_root_is_returned(self) -> None:
        ws = Workspace(self.folder)
        self.assertEqual(ws.create_folder(), self.folder)
        self.assertEqual(list(self.folder.iterdir()), [])

    def test_missing_root_is_created(self) -> None:
        root = self.folder / "later" / "ws"
        ws = Workspace(root)
        self.assertFalse(ws.folder_exists())
        self.assertEqual(ws.create_folder(), root)
        self.assertTrue(ws.folder_exists())

    def test_no_root_uses_fallback_folder(self) -> None:
        ws = Workspace(None, fallback_parent=self.folder)
        created = ws.create_folder()
        self.assertEqual(created, self.folder / WORKSPACE_FOLDER_NAME)
        self.assertEqual(ws.root, created)
        self.assertTrue(created.is_dir())

    def test_uncreatable_folder(self) -> None:
        blocker = self.folder / "file"
        blocker.write_text("x", encoding="utf-8")
        with self.assertRaises(NoWorkspaceError):
            Workspace(blocker / "ws").create_folder()

    def test_resolve(self) -> None:
        ws = Workspace(self.folder)
        self.assertEqual(ws.resolve("src/app.py"), self.folder / "src" / "app.py")
        absolute = self.folder / "abs.txt"
        self.assertEqual(Workspace(None).resolve(absolute), absolute)
        with self.assertRaises(NoWorkspaceError):
            Workspace(None).resolve("relative.txt")


if __name__ == "__main__":
    unittest.main()
