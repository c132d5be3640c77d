"""
Unit tests for requirement probes.

Probes run real (tiny) subprocesses using the current interpreter, so they
do not depend on what else is installed.
"""

import shlex
import sys
import unittest

from didact.probes import extension_installed, run_probe


def python_command(code: str) -> str:
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


@unittest.skipIf(sys.platform == "win32", "probe commands use POSIX shell quoting")
class TestRunProbe(unittest.IsolatedAsyncioTestCase):
    async def test_satisfied_when_expected_text_is_printed(self) -> None:
        result = await run_probe(python_command("print('Tool version 1.2')"), "Tool version")
        self.assertTrue(result.satisfied)
        self.assertEqual(result.return_code, 0)
        self.assertIn("Tool version 1.2", result.output)

    async def test_expected_text_missing(self) -> None:
        result = await run_probe(python_command("print('something else')"), "Tool version")
        self.assertFalse(result.satisfied)

    async def test_stderr_counts_as_output(self) -> None:
        result = await run_probe(python_command("import sys; sys.stderr.write('java 17')"), "java")
        self.assertTrue(result.satisfied)

    async def test_non_zero_exit_is_unsatisfied(self) -> None:
        result = await run_probe(python_command("print('Tool version'); raise SystemExit(3)"), "Tool version")
        self.assertFalse(result.satisfied)
        self.assertEqual(result.return_code, 3)

    async def test_missing_command_is_unsatisfied(self) -> None:
        result = await run_probe("definitely-not-a-didact-command --version")
        self.assertFalse(result.satisfied)

    async def test_timeout_is_unsatisfied(self) -> None:
        result = await run_probe(python_command("import time; time.sleep(5)"), timeout=0.2)
        self.assertFalse(result.satisfied)
        self.assertEqual(result.output, "timed out")


class TestExtensionInstalled(unittest.TestCase):
    def test_configured_extension(self) -> None:
        self.assertTrue(extension_installed("redhat.vscode-yaml", ["Redhat.VSCode-YAML"]))

    def test_installed_distribution(self) -> None:
        self.assertTrue(extension_installed("requests"))

    def test_unknown_extension(self) -> None:
        self.assertFalse(extension_installed("no-such-didact-extension", []))
        self.assertFalse(extension_installed("  "))


if __name__ == "__main__":
    unittest.main()
