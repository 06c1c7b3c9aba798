"""
Tests for asynchronous process execution and the execution path.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from odinkit.core.exceptions import ProcessLaunchError
from odinkit.core.process import ExecutionPath, ProcessRunner, WhichResolver


# ============================================================================
# ExecutionPath
# ============================================================================


class TestExecutionPath:
    """Test the per-run search path."""

    def test_from_environment(self):
        path = ExecutionPath.from_environment({"PATH": os.pathsep.join(["/usr/bin", "/bin"])})

        assert path.base == ["/usr/bin", "/bin"]
        assert path.added == []

    def test_empty_entries_dropped(self):
        path = ExecutionPath.from_environment({"PATH": os.pathsep.join(["", "/bin", ""])})

        assert path.base == ["/bin"]

    def test_prepend_puts_directory_first(self):
        path = ExecutionPath(["/usr/bin"], environ={})
        path.prepend(Path("/opt/a"))
        path.prepend(Path("/opt/b"))

        assert path.entries() == [str(Path("/opt/b")), str(Path("/opt/a")), "/usr/bin"]
        assert path.added == [Path("/opt/b"), Path("/opt/a")]

    def test_prepend_twice_is_noop(self):
        path = ExecutionPath(["/usr/bin"], environ={})
        path.prepend("/opt/a")
        path.prepend("/opt/a")

        assert path.added == [Path("/opt/a")]

    def test_environment_sets_path(self):
        path = ExecutionPath(["/usr/bin"], environ={"HOME": "/home/ci", "PATH": "/ignored"})
        path.prepend("/opt/odin")

        env = path.environment({"LC_ALL": "C"})

        assert env["PATH"] == os.pathsep.join([str(Path("/opt/odin")), "/usr/bin"])
        assert env["HOME"] == "/home/ci"
        assert env["LC_ALL"] == "C"

    def test_process_environment_untouched(self, monkeypatch):
        """Test that prepending never changes os.environ."""
        monkeypatch.setenv("PATH", "/usr/bin")
        path = ExecutionPath.from_environment()
        path.prepend("/opt/odin")

        assert os.environ["PATH"] == "/usr/bin"


class TestWhichResolver:
    """Test executable lookup on an execution path."""

    def test_resolves_on_added_directory(self, temp_dir):
        name = "llvm-17.exe" if sys.platform == "win32" else "llvm-17"
        tool = temp_dir / name
        tool.write_text("#!/bin/sh\n")
        tool.chmod(0o755)

        path = ExecutionPath([], environ={})
        resolver = WhichResolver(path)
        assert resolver.resolve("llvm-17") is None

        path.prepend(temp_dir)
        assert resolver.resolve("llvm-17") == tool

    def test_missing_returns_none(self, temp_dir):
        resolver = WhichResolver(ExecutionPath([str(temp_dir)], environ={}))

        assert resolver.resolve("definitely-not-a-tool") is None


# ============================================================================
# ProcessRunner
# ============================================================================


class TestProcessRunner:
    """Test running commands as asyncio subprocesses."""

    @pytest.mark.asyncio
    async def test_exec_output_captures_stdout(self):
        runner = ProcessRunner(ExecutionPath.from_environment())

        result = await runner.exec_output(sys.executable, ["-c", "print('Already up to date.')"])

        assert result.exit_code == 0
        assert "Already up to date." in result.stdout

    @pytest.mark.asyncio
    async def test_exec_returns_exit_code(self):
        runner = ProcessRunner(ExecutionPath.from_environment())

        code = await runner.exec(sys.executable, ["-c", "import sys; sys.exit(3)"])

        assert code == 3

    @pytest.mark.asyncio
    async def test_captures_stderr(self):
        runner = ProcessRunner(ExecutionPath.from_environment())

        result = await runner.exec_output(
            sys.executable, ["-c", "import sys; sys.stderr.write('boom\\n')"]
        )

        assert result.stderr.strip() == "boom"

    @pytest.mark.asyncio
    async def test_child_sees_execution_path(self, temp_dir):
        path = ExecutionPath.from_environment()
        path.prepend(temp_dir)
        runner = ProcessRunner(path)

        result = await runner.exec_output(
            sys.executable, ["-c", "import os; print(os.environ['PATH'])"]
        )

        assert result.stdout.strip().split(os.pathsep)[0] == str(temp_dir)

    @pytest.mark.asyncio
    async def test_extra_env_passed(self):
        runner = ProcessRunner(ExecutionPath.from_environment())

        result = await runner.exec_output(
            sys.executable,
            ["-c", "import os; print(os.environ['LC_ALL'])"],
            env={"LC_ALL": "C"},
        )

        assert result.stdout.strip() == "C"

    @pytest.mark.asyncio
    async def test_cwd(self, temp_dir):
        runner = ProcessRunner(ExecutionPath.from_environment())

        result = await runner.exec_output(
            sys.executable, ["-c", "import os; print(os.getcwd())"], cwd=temp_dir
        )

        assert Path(result.stdout.strip()).resolve() == temp_dir

    @pytest.mark.asyncio
    async def test_unknown_command_raises(self):
        runner = ProcessRunner(ExecutionPath([], environ={}))

        with pytest.raises(ProcessLaunchError) as exc_info:
            await runner.exec("definitely-not-a-tool")

        assert "definitely-not-a-tool" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_relative_script_raises(self, temp_dir):
        runner = ProcessRunner(ExecutionPath.from_environment())

        with pytest.raises(ProcessLaunchError):
            await runner.exec("./build_odin.sh", ["release"], cwd=temp_dir)

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="shell script")
    async def test_relative_script_runs_in_cwd(self, temp_dir):
        script = temp_dir / "build_odin.sh"
        script.write_text("#!/bin/sh\necho \"building $1\"\n")
        script.chmod(0o755)
        runner = ProcessRunner(ExecutionPath.from_environment())

        result = await runner.exec_output("./build_odin.sh", ["release"], cwd=temp_dir)

        assert result.exit_code == 0
        assert result.stdout.strip() == "building release"


class TestProcessOutput:
    """Test capture and logging of large or unterminated output."""

    @pytest.mark.asyncio
    async def test_long_output_without_newline(self):
        """Output far beyond a single read is captured whole and the command succeeds."""
        runner = ProcessRunner(ExecutionPath.from_environment())

        result = await runner.exec_output(
            sys.executable, ["-c", "import sys; sys.stdout.write('#' * 200000)"]
        )

        assert result.exit_code == 0
        assert result.stdout == "#" * 200000

    @pytest.mark.asyncio
    async def test_carriage_return_progress(self, caplog):
        caplog.set_level(logging.INFO, logger="odinkit.core.process")
        runner = ProcessRunner(ExecutionPath.from_environment())

        code = await runner.exec(
            sys.executable,
            ["-c", "import sys; sys.stdout.write('10%\\r50%\\r100%\\ndone\\n')"],
        )

        assert code == 0
        messages = [r.getMessage() for r in caplog.records]
        assert "50%" in messages
        assert "100%" in messages
        assert "done" in messages

    @pytest.mark.asyncio
    async def test_child_reaped_when_reading_fails(self):
        started = []
        original = asyncio.create_subprocess_exec

        async def spawn(*args, **kwargs):
            process = await original(*args, **kwargs)
            started.append(process)
            return process

        runner = ProcessRunner(ExecutionPath.from_environment())

        with patch("odinkit.core.process.asyncio.create_subprocess_exec", side_effect=spawn), patch.object(
            ProcessRunner, "_pump", side_effect=RuntimeError("read failed")
        ):
            with pytest.raises(RuntimeError):
                await runner.exec(sys.executable, ["-c", "import time; time.sleep(30)"])

        assert started[0].returncode is not None
