from __future__ import annotations

from pathlib import Path
import sys
import tempfile
import unittest

from sourcebuild.command_runner import (
    CommandError,
    CommandResult,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)
from sourcebuild.errors import CommandExecError


class SubprocessCommandRunnerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = SubprocessCommandRunner()

    def test_captures_stdout_and_stderr(self) -> None:
        result = self.runner.run(
            [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"],
        )
        self.assertEqual(result.returncode, 0)
        self.assertTrue(result.succeeded)
        self.assertEqual(result.stdout.strip(), "out")
        self.assertEqual(result.stderr.strip(), "err")

    def test_check_raises_command_error(self) -> None:
        with self.assertRaises(CommandError) as ctx:
            self.runner.run([sys.executable, "-c", "import sys; sys.exit(3)"])
        self.assertEqual(ctx.exception.result.returncode, 3)
        self.assertIn("exit code 3", str(ctx.exception))

    def test_unchecked_failure_returns_result(self) -> None:
        result = self.runner.run([sys.executable, "-c", "import sys; sys.exit(4)"], check=False)
        self.assertEqual(result.returncode, 4)
        self.assertFalse(result.succeeded)

    def test_missing_executable_raises_command_exec_error(self) -> None:
        with self.assertRaises(CommandExecError) as ctx:
            self.runner.run(["/nonexistent/sourcebuild-test-binary"], check=False)
        self.assertIsInstance(ctx.exception.__cause__, OSError)
        self.assertEqual(ctx.exception.command, ["/nonexistent/sourcebuild-test-binary"])

    def test_environment_is_merged_over_host(self) -> None:
        result = self.runner.run(
            [sys.executable, "-c", "import os; print(os.environ['SOURCEBUILD_TEST_VALUE'], bool(os.environ.get('PATH')))"],
            env={"SOURCEBUILD_TEST_VALUE": "hello"},
        )
        self.assertEqual(result.stdout.split(), ["hello", "True"])

    def test_runs_in_requested_directory(self) -> None:
        with tempfile.TemporaryDirectory() as temp:
            result = self.runner.run(
                [sys.executable, "-c", "import os; print(os.getcwd())"],
                cwd=Path(temp),
            )
            self.assertEqual(Path(result.stdout.strip()).resolve(), Path(temp).resolve())


class RecordingCommandRunnerTests(unittest.TestCase):
    def test_records_commands_without_running(self) -> None:
        runner = RecordingCommandRunner()
        result = runner.run(["make", "install"], cwd=Path("/tmp/build"), env={"CC": "clang"}, note="make install")
        self.assertEqual(result.returncode, 0)
        self.assertEqual(len(runner.commands), 1)
        record = runner.commands[0]
        self.assertEqual(record.command, ["make", "install"])
        self.assertEqual(record.cwd, "/tmp/build")
        self.assertEqual(record.env, {"CC": "clang"})
        self.assertEqual(record.note, "make install")

    def test_responder_controls_result(self) -> None:
        def responder(record):
            if record.command[0] == "make":
                return CommandResult(command=record.command, returncode=2, stdout="", stderr="boom")
            return None

        runner = RecordingCommandRunner(responder)
        self.assertEqual(runner.run(["configure"], check=False).returncode, 0)
        failed = runner.run(["make"], check=False)
        self.assertEqual(failed.returncode, 2)
        self.assertEqual(failed.stderr, "boom")
        with self.assertRaises(CommandError):
            runner.run(["make"])

    def test_iter_formatted_includes_note_and_cwd(self) -> None:
        runner = RecordingCommandRunner()
        runner.run(["./configure", "--prefix=/opt/my app"], cwd=Path("/src"), note="configure")
        runner.run(["make"])
        lines = list(runner.iter_formatted(workspace=Path("/work")))
        self.assertEqual(lines[0], "[dry-run] configure (cwd=/src) ./configure '--prefix=/opt/my app'")
        self.assertEqual(lines[1], "[dry-run] (cwd=/work) make")


if __name__ == "__main__":
    unittest.main()
