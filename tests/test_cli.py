from __future__ import annotations

from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
import io
import stat
import tempfile
import unittest
from unittest.mock import patch

from core.command_runner import RecordingCommandRunner
from qtbuild import cli

AVAILABLE_TOOLS = {"cmake", "ninja", "clang", "clang++"}


def _fake_which(tool: str) -> str | None:
    return f"/usr/bin/{tool}" if tool in AVAILABLE_TOOLS else None


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name) / "project"
        self.workspace.mkdir()
        self.qt_path = Path(self.temp_dir.name) / "Qt"
        self.qt_path.mkdir()
        self.environ = {"HOME": self.temp_dir.name, "QT_PATH": str(self.qt_path)}
        for target in ("qtbuild.validation.shutil.which", "qtbuild.config.shutil.which"):
            patcher = patch(target, side_effect=_fake_which)
            patcher.start()
            self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _main(self, *argv: str) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = cli.main([*argv, "-C", str(self.workspace)], environ=self.environ)
        return code, stdout.getvalue(), stderr.getvalue()

    def _seed_artifacts(self) -> None:
        for build_type in ("Debug", "Release"):
            build_dir = self.workspace / "build" / build_type
            build_dir.mkdir(parents=True)
            (build_dir / "CMakeCache.txt").write_text("")
            (build_dir / "compile_commands.json").write_text("[]")
            (self.workspace / "logs").mkdir(exist_ok=True)
            (self.workspace / "logs" / f"build_{build_type}.log").write_text("log\n")
        (self.workspace / "compile_commands.json").symlink_to("build/Debug/compile_commands.json")

    def test_help_exits_nonzero(self) -> None:
        code, stdout, _ = self._main("-h")
        self.assertEqual(code, 1)
        self.assertIn("Usage:", stdout)

    def test_missing_action_prints_usage(self) -> None:
        code, _, stderr = self._main()
        self.assertEqual(code, 1)
        self.assertIn("Missing action", stderr)
        self.assertIn("Usage:", stderr)

    def test_unknown_flag_is_a_usage_error(self) -> None:
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["build", "--frobnicate"], environ=self.environ)
        self.assertEqual(ctx.exception.code, 2)

    def test_unknown_action_is_a_usage_error(self) -> None:
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["deploy"], environ=self.environ)
        self.assertEqual(ctx.exception.code, 2)

    def test_all_flag_rejected_outside_clean(self) -> None:
        code, _, stderr = self._main("build", "--all")
        self.assertEqual(code, 2)
        self.assertIn("--all", stderr)

    def test_invalid_build_type(self) -> None:
        code, _, stderr = self._main("build", "-t", "Profile")
        self.assertEqual(code, 2)
        self.assertIn("Invalid build type", stderr)

    def test_lowercase_build_type_name_is_rejected(self) -> None:
        release_dir = self.workspace / "build" / "Release"
        release_dir.mkdir(parents=True)
        code, _, stderr = self._main("clean", "-t", "release")
        self.assertEqual(code, 2)
        self.assertIn("Invalid build type", stderr)
        self.assertTrue(release_dir.is_dir())

    def test_malformed_yaml_project_file_exits_with_config_error(self) -> None:
        (self.workspace / ".project.yaml").write_text("APP_NAME: [unclosed\n")
        code, _, stderr = self._main("clean")
        self.assertEqual(code, 2)
        self.assertIn(".project.yaml", stderr)

    def test_play_without_app_name_fails_before_touching_anything(self) -> None:
        with patch.object(cli, "_make_runner") as make_runner:
            code, _, stderr = self._main("play")
        self.assertEqual(code, 1)
        self.assertIn("Missing application name", stderr)
        make_runner.assert_not_called()
        self.assertEqual(list(self.workspace.iterdir()), [])

    def test_build_with_missing_qt_path(self) -> None:
        code, _, stderr = self._main("build", "-p", str(self.qt_path / "nope"))
        self.assertEqual(code, 1)
        self.assertIn("Invalid Qt path", stderr)
        self.assertFalse((self.workspace / "logs").exists())

    def test_build_with_missing_compiler(self) -> None:
        self.environ["CXX"] = "g++-99"
        code, _, stderr = self._main("build")
        self.assertEqual(code, 1)
        self.assertIn("Missing compiler: g++-99", stderr)

    def test_clean_all_removes_every_artifact(self) -> None:
        self._seed_artifacts()
        code, _, _ = self._main("clean", "--all")
        self.assertEqual(code, 0)
        self.assertFalse((self.workspace / "build").exists())
        self.assertFalse((self.workspace / "logs").exists())
        self.assertFalse((self.workspace / "compile_commands.json").is_symlink())

    def test_clean_release_keeps_debug_link(self) -> None:
        self._seed_artifacts()
        code, _, _ = self._main("clean", "-t", "r", "-p", "/does/not/matter")
        self.assertEqual(code, 0)
        self.assertFalse((self.workspace / "build" / "Release").exists())
        self.assertTrue((self.workspace / "build" / "Debug").exists())
        self.assertTrue((self.workspace / "compile_commands.json").is_symlink())
        self.assertTrue((self.workspace / "logs" / "build_Debug.log").exists())

    def test_clean_debug_drops_debug_link(self) -> None:
        self._seed_artifacts()
        code, _, _ = self._main("clean", "-t", "D")
        self.assertEqual(code, 0)
        self.assertFalse((self.workspace / "compile_commands.json").is_symlink())
        self.assertTrue((self.workspace / "build" / "Release").exists())

    def test_dry_run_build_prints_commands(self) -> None:
        code, stdout, _ = self._main("-n", "build", "-t", "Release")
        self.assertEqual(code, 0)
        self.assertIn("[dry-run] Configuration", stdout)
        self.assertIn("-DCMAKE_BUILD_TYPE=Release", stdout)
        self.assertIn("cmake --build build/Release --parallel", stdout)
        self.assertFalse((self.workspace / "logs").exists())
        self.assertFalse((self.workspace / "build").exists())

    def test_app_name_flag_beats_environment(self) -> None:
        self.environ["APP_NAME"] = "from-env"
        (self.workspace / ".project.ini").write_text("APP_NAME=from-file\n")
        code, stdout, _ = self._main("-n", "play", "-a", "from-flag")
        self.assertEqual(code, 0)
        self.assertIn("build/Debug/from-flag", stdout)

        code, stdout, _ = self._main("-n", "play")
        self.assertIn("build/Debug/from-env", stdout)

    def test_run_does_not_play_when_build_fails(self) -> None:
        runner = RecordingCommandRunner(returncodes={"cmake": 2})
        exe = self.workspace / "build" / "Debug" / "demo"
        exe.parent.mkdir(parents=True)
        (exe.parent / "CMakeCache.txt").write_text("")
        exe.write_text("#!/bin/sh\nexit 0\n")
        exe.chmod(exe.stat().st_mode | stat.S_IXUSR)

        with patch.object(cli, "_make_runner", return_value=runner):
            code, _, stderr = self._main("run", "-a", "demo")

        self.assertEqual(code, 1)
        self.assertIn("logs/build_Debug.log", stderr)
        self.assertEqual([record.note for record in runner.iter_commands()], ["Build"])
        log = (self.workspace / "logs" / "build_Debug.log").read_text()
        self.assertIn("--- Build started ---", log)
        self.assertIn("--- Build failed ---", log)

    def test_run_builds_and_plays(self) -> None:
        runner = RecordingCommandRunner()
        exe = self.workspace / "build" / "Debug" / "demo"
        exe.parent.mkdir(parents=True)
        (exe.parent / "CMakeCache.txt").write_text("")
        exe.write_text("#!/bin/sh\nexit 0\n")
        exe.chmod(exe.stat().st_mode | stat.S_IXUSR)

        with patch.object(cli, "_make_runner", return_value=runner):
            code, _, _ = self._main("run", "-a", "demo")

        self.assertEqual(code, 0)
        self.assertEqual([record.note for record in runner.iter_commands()], ["Build", "Play"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
