"""
End-to-end tests of a tutorial session on the bundled demo tutorials.

Terminals are fake and requirement probes are mocked; scaffolding writes
into a temporary workspace.
"""

import logging
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from asciidoc.api import AsciiDocError

from didact import capabilities
from didact.dispatch import RESOURCES_DIR, ActionState
from didact.errors import DispatchError, DuplicateTutorialError, NotFoundError, ParseError
from didact.model import DocumentFormat
from didact.probes import ProbeResult
from didact.session import DEMO_TUTORIAL, TutorialSession
from didact.settings import DEFAULT_URL_SETTING, NOTIFICATION_SETTING, MemorySettingsStore
from didact.terminals import TerminalManager
from didact.workspace import Workspace
from tests.helpers import FakeSpawner

DEMO_ADOC = RESOURCES_DIR / "demo.didact.adoc"


class SessionTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.workspace = Path(self.tmp.name)
        self.settings = MemorySettingsStore()
        self.spawner = FakeSpawner()
        self.session = TutorialSession(
            self.settings,
            workspace=Workspace(self.workspace),
            terminals=TerminalManager(spawn=self.spawner),
        )

    def probe(self, satisfied: bool = True) -> mock.AsyncMock:
        return mock.AsyncMock(return_value=ProbeResult(satisfied=satisfied, return_code=0 if satisfied else 1))

    def write(self, name: str, text: str) -> str:
        path = self.workspace / name
        path.write_text(text, encoding="utf-8")
        return str(path)


class TestOpening(SessionTestCase):
    async def test_default_opens_bundled_demo(self) -> None:
        doc = await self.session.open_tutorial()
        self.assertEqual(doc.uri, str(DEMO_TUTORIAL))
        self.assertEqual(doc.title, "Didact demo tutorial")
        self.assertIs(doc.format, DocumentFormat.MARKDOWN)
        self.assertIsNotNone(self.session.view)

        headings = doc.headings()
        self.assertEqual(len(headings), 5)
        self.assertEqual([h.time_estimate for h in headings[1:4]], [2.0, 3.0, 5.0])

    async def test_default_url_setting(self) -> None:
        path = self.write("mine.didact.md", "# Mine\n")
        self.settings.update(DEFAULT_URL_SETTING, path)
        doc = await self.session.open_tutorial()
        self.assertEqual(doc.title, "Mine")

    async def test_open_failure_keeps_nothing_open(self) -> None:
        with self.assertRaises(NotFoundError):
            await self.session.open_tutorial(str(self.workspace / "missing.didact.md"))
        self.assertIsNone(self.session.document)

        broken = self.write("broken.didact.adoc", "== Step\n")
        with mock.patch("didact.adoc.AsciiDocAPI") as api:
            api.return_value.execute.side_effect = AsciiDocError("FAILED: <stdin>: line 1: unexpected error")
            with self.assertRaises(ParseError):
                await self.session.start_tutorial_from_file(broken)
        self.assertIsNone(self.session.document)

    async def test_reload_rereads_the_document(self) -> None:
        path = self.write("t.didact.md", "# Before\n")
        await self.session.start_tutorial_from_file(path)
        Path(path).write_text("# After\n", encoding="utf-8")
        doc = await self.session.reload()
        self.assertEqual(doc.title, "After")

    async def test_reload_without_document(self) -> None:
        with self.assertRaises(DispatchError):
            await self.session.reload()

    async def test_asciidoc_demo(self) -> None:
        doc = await self.session.open_tutorial(str(DEMO_ADOC))
        self.assertIs(doc.format, DocumentFormat.ASCIIDOC)
        self.assertEqual(doc.title, "Didact demo tutorial (AsciiDoc)")
        self.assertEqual([h.time_estimate for h in doc.headings()], [2.0, 3.0, 5.0, None])
        self.assertEqual(len(self.session.gather_all_requirements()), 2)
        self.assertEqual(len(self.session.gather_all_commands()), 4)

        requirement = self.session.gather_all_requirements()[0]
        self.assertEqual(requirement.parameters, ("python-requirements-status", "python3 -V", "Python 3"))
        badge = self.session.view.tree.find(id="python-requirements-status")
        self.assertEqual(badge.get_text(), "Status: unknown")


class TestRunning(SessionTestCase):
    async def test_run_whole_demo(self) -> None:
        await self.session.open_tutorial()
        with mock.patch.object(capabilities, "run_probe", self.probe(True)):
            outcomes = await self.session.run_all()

        self.assertEqual(len(outcomes), 9)
        self.assertTrue(all(o.succeeded for o in outcomes), [o.error for o in outcomes])

        view = self.session.view
        self.assertEqual(view.requirement_status("python-requirements-status"), "available")
        self.assertEqual(view.requirement_status("workspace-folder-status"), "available")
        self.assertIn("Created the demo project.", view.notifications)
        self.assertTrue((self.workspace / "hello" / "src" / "hello.py").is_file())

        shell = self.spawner.shell("demo")
        self.assertEqual(shell.sent, ["echo Hello from didact"])
        self.assertEqual(shell.interrupts, 1)
        self.assertFalse(shell.running)

    async def test_notifications_disabled(self) -> None:
        self.settings.update(NOTIFICATION_SETTING, True)
        await self.session.open_tutorial()
        with mock.patch.object(capabilities, "run_probe", self.probe(True)):
            await self.session.run_all()
        self.assertEqual(self.session.view.notifications, ["Created the demo project."])

    async def test_validate_all_requirements_reports_every_failure(self) -> None:
        await self.session.open_tutorial()
        with mock.patch.object(capabilities, "run_probe", self.probe(False)):
            with self.assertLogs("didact.session", level=logging.WARNING):
                report = await self.session.validate_all_requirements()

        self.assertEqual(len(report.outcomes), 3)
        self.assertFalse(report.ok)
        self.assertEqual(
            report.messages(),
            ["python-requirements-status: unavailable", "git-requirements-status: unavailable"],
        )
        self.assertEqual(self.session.view.requirement_status("git-requirements-status"), "unavailable")

    async def test_close_stops_the_run(self) -> None:
        path = self.write(
            "close.didact.md",
            "[Stop](didact://?commandId=vscode.didact.stopTutorial)\n\n"
            "[Terminal](didact://?commandId=vscode.didact.startTerminalWithName&text=later)\n",
        )

        @self.session.capabilities.capability("didact.stopTutorial")
        async def stop(ctx):
            self.session.close()

        await self.session.start_tutorial_from_file(path)
        outcomes = await self.session.run_all()
        self.assertEqual([o.state for o in outcomes], [ActionState.SUCCEEDED, ActionState.PENDING])
        self.assertEqual(self.spawner.spawned, [])
        self.assertIsNone(self.session.document)

        with self.assertRaises(DispatchError):
            await self.session.run_all()

    async def test_run_link(self) -> None:
        await self.session.open_tutorial()
        href = "didact://?commandId=vscode.didact.startTerminalWithName&text=demo"
        outcome = await self.session.run_link(href)
        self.assertTrue(outcome.succeeded)
        self.assertEqual(outcome.action.index, 5)
        self.assertEqual(self.session.view.tree.find("a", href=href)["data-didact-status"], "succeeded")

        outcome = await self.session.run_link("didact://didact.startTerminalWithName/extra")
        self.assertTrue(outcome.succeeded)
        self.assertEqual(outcome.action.index, -1)
        self.assertEqual(self.session.terminals.names(), ["demo", "extra"])

    async def test_failed_link_outside_the_document_names_its_href(self) -> None:
        await self.session.open_tutorial()
        href = "didact://?commandId=vscode.didact.noSuchCommand"
        outcome = await self.session.run_link(href)
        self.assertTrue(outcome.failed)
        failure = str(self.session.view.failures[-1])
        self.assertIn(f"link '{href}'", failure)
        self.assertNotIn("#0", failure)

    async def test_session_commands_are_capabilities(self) -> None:
        await self.session.open_tutorial()
        outcome = await self.session.run_link("didact://?commandId=vscode.didact.gatherAllRequirements")
        self.assertTrue(outcome.succeeded)
        self.assertEqual(len(outcome.result), 3)

        outcome = await self.session.run_link(
            f"didact://?commandId=vscode.didact.register&text=Demo$${DEMO_TUTORIAL}$$Basics"
        )
        self.assertTrue(outcome.succeeded)
        self.assertEqual(self.session.registry.list_tutorials("Basics"), ["Demo"])


class TestRegistryCommands(SessionTestCase):
    async def test_register_refreshes_the_tree(self) -> None:
        self.session.register_tutorial("Demo", str(DEMO_TUTORIAL), "Basics")
        roots = await self.session.tree.get_children()
        self.assertEqual([r.label for r in roots], ["Basics"])
        tutorials = await self.session.tree.get_children(roots[0])
        self.assertEqual(tutorials[0].description, "(~10 mins)")

        with self.assertRaises(DuplicateTutorialError):
            self.session.register_tutorial("demo", "other.md", "BASICS")

    async def test_terminal_commands(self) -> None:
        await self.session.start_terminal("t")
        await self.session.send_terminal_text("t", "ls")
        await self.session.interrupt_terminal("t")
        await self.session.close_terminal("t")
        shell = self.spawner.shell("t")
        self.assertEqual((shell.sent, shell.interrupts, shell.running), (["ls"], 1, False))

    async def test_scaffold_from_file(self) -> None:
        result = await self.session.scaffold_from_file(RESOURCES_DIR / "project.json")
        self.assertEqual(result.root, self.workspace)
        self.assertTrue((self.workspace / "hello" / "README.md").is_file())

    async def test_shutdown_closes_terminals(self) -> None:
        await self.session.open_tutorial()
        await self.session.start_terminal("t")
        await self.session.shutdown()
        self.assertFalse(self.spawner.shell("t").running)
        self.assertIsNone(self.session.view)


if __name__ == "__main__":
    unittest.main()
