"""Tests for launch argument construction and the launcher."""

import subprocess
import sys

import pytest

from workspacer.errors import ErrorType
from workspacer.models import LaunchDirective
from workspacer.panes import SubprocessExecutor, build_launch_args, launch_workspace

from conftest import RecordingExecutor


class TestBuildLaunchArgs:
    def test_separator_and_mode_only_after_first(self):
        directives = [
            LaunchDirective(title="A", starting_directory="/x", split_pane=False, is_first_overall=True),
            LaunchDirective(title=None, starting_directory="/y", split_pane=True, is_first_overall=False),
        ]
        assert build_launch_args(directives) == [
            "--title", "A", "--startingDirectory", "/x",
            ";", "split-pane", "--startingDirectory", "/y",
        ]

    def test_new_tab_mode(self):
        directives = [
            LaunchDirective(starting_directory="/x", is_first_overall=True),
            LaunchDirective(starting_directory="/y"),
        ]
        assert build_launch_args(directives)[2:] == [";", "new-tab", "--startingDirectory", "/y"]

    def test_commands_are_trailing_tokens(self):
        directive = LaunchDirective(
            starting_directory="C:\\work dir",
            commands=("pwsh", "-NoExit"),
            is_first_overall=True,
        )
        assert build_launch_args([directive]) == [
            "--startingDirectory", "C:\\work dir", "pwsh", "-NoExit",
        ]

    def test_empty_commands_add_nothing(self):
        directive = LaunchDirective(starting_directory="/x", commands=(), is_first_overall=True)
        assert build_launch_args([directive]) == ["--startingDirectory", "/x"]

    def test_no_directives(self):
        assert build_launch_args([]) == []


class TestLaunchWorkspace:
    directives = [LaunchDirective(starting_directory="/x", is_first_overall=True)]

    def test_success_passes_tokens_to_executor(self):
        executor = RecordingExecutor()
        result = launch_workspace(self.directives, executor)
        assert result.is_ok()
        assert executor.calls == [["--startingDirectory", "/x"]]

    def test_nonzero_exit_is_launch_failure(self):
        result = launch_workspace(self.directives, RecordingExecutor(exit_status=2))
        assert result.is_err()
        assert result.error.error_type is ErrorType.LAUNCH_FAILURE
        assert result.error.context["exit_status"] == 2

    def test_spawn_failure_is_launch_failure(self):
        def executor(_args):
            raise FileNotFoundError("wt")

        result = launch_workspace(self.directives, executor)
        assert result.error.error_type is ErrorType.LAUNCH_FAILURE

    def test_timeout_is_launch_failure(self):
        def executor(args):
            raise subprocess.TimeoutExpired(cmd=args, timeout=1)

        result = launch_workspace(self.directives, executor)
        assert result.error.error_type is ErrorType.LAUNCH_FAILURE


class TestSubprocessExecutor:
    def test_returns_exit_status(self):
        executor = SubprocessExecutor(sys.executable)
        assert executor(["-c", "import sys; sys.exit(3)"]) == 3

    def test_missing_executable_raises(self):
        executor = SubprocessExecutor("definitely-not-a-real-terminal-binary")
        result = launch_workspace(
            [LaunchDirective(starting_directory="/x", is_first_overall=True)], executor
        )
        assert result.error.error_type is ErrorType.LAUNCH_FAILURE

    def test_no_timeout_by_default(self):
        assert SubprocessExecutor().timeout is None

    def test_long_running_launcher_is_waited_for(self, monkeypatch):
        seen = {}

        def fake_run(cmd, **kwargs):
            seen.update(kwargs, cmd=cmd)
            return subprocess.CompletedProcess(cmd, 0)

        monkeypatch.setattr(subprocess, "run", fake_run)
        assert SubprocessExecutor("wt")(["--startingDirectory", "/x"]) == 0
        assert seen["cmd"] == ["wt", "--startingDirectory", "/x"]
        assert seen["timeout"] is None

    def test_child_is_not_killed_before_it_finishes(self, tmp_path):
        marker = tmp_path / "done"
        script = f"import time, pathlib; time.sleep(0.5); pathlib.Path({str(marker)!r}).write_text('ok')"
        assert SubprocessExecutor(sys.executable)(["-c", script]) == 0
        assert marker.read_text() == "ok"

    def test_explicit_timeout_still_bounds_the_wait(self):
        executor = SubprocessExecutor(sys.executable, timeout=0.2)
        with pytest.raises(subprocess.TimeoutExpired):
            executor(["-c", "import time; time.sleep(5)"])
