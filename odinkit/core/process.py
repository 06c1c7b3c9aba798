"""
Asynchronous process execution for OdinKit.

Provisioning waits on git, package managers and build scripts. Commands run
as asyncio subprocesses so the cache/clone branch and the dependency branch
can wait on their processes at the same time on one event loop.

The search path handed to child processes is an explicit ExecutionPath value
owned by one run rather than the process-wide PATH, so a run can be exercised
in isolation and the entries it added can be published to the CI host later.

Example:
    >>> path = ExecutionPath.from_environment()
    >>> path.prepend(Path('/usr/local/opt/llvm@17/bin'))
    >>> runner = ProcessRunner(path)
    >>> code = await runner.exec('brew', ['install', 'llvm@17'])
"""

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from odinkit.core.exceptions import ProcessLaunchError

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class ExecutionPath:
    """
    Search path used for child processes of one provisioning run.

    Attributes:
        base: Directories inherited from the launching environment
        added: Directories prepended during the run, most recent first
    """

    def __init__(self, base: Sequence[str] = (), environ: Optional[Mapping[str, str]] = None):
        self.base: List[str] = [entry for entry in base if entry]
        self.added: List[Path] = []
        self._environ: Dict[str, str] = dict(os.environ if environ is None else environ)

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "ExecutionPath":
        """Create a path seeded from ``PATH`` of the given (or current) environment."""
        environ = os.environ if environ is None else environ
        return cls(environ.get("PATH", "").split(os.pathsep), environ=environ)

    def prepend(self, directory: Union[str, Path]) -> None:
        """Put a directory in front of the search path. Adding twice is a no-op."""
        directory = Path(directory)
        if directory in self.added:
            return
        self.added.insert(0, directory)
        logger.debug(f"Added to execution path: {directory}")

    def entries(self) -> List[str]:
        """All search directories in lookup order."""
        return [str(p) for p in self.added] + self.base

    def search_path(self) -> str:
        """The path as a ``PATH`` string."""
        return os.pathsep.join(self.entries())

    def environment(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Environment for a child process.

        Args:
            extra: Variables layered on top of the inherited environment

        Returns:
            Environment mapping whose ``PATH`` is this execution path
        """
        env = dict(self._environ)
        if extra:
            env.update(extra)
        env["PATH"] = self.search_path()
        return env


class WhichResolver:
    """Resolve executable names against an ExecutionPath."""

    def __init__(self, execution_path: ExecutionPath):
        self.execution_path = execution_path

    def resolve(self, name: str) -> Optional[Path]:
        """
        Find an executable.

        Returns:
            Path to the executable, or None if it is not on the path
        """
        found = shutil.which(name, path=self.execution_path.search_path())
        return Path(found) if found else None


@dataclass(frozen=True)
class ExecOutput:
    """Result of a command whose output was captured."""

    exit_code: int
    stdout: str
    stderr: str


class ProcessRunner:
    """
    Run external commands as asyncio subprocesses.

    Output is streamed line by line to the logger while the command runs, and
    also captured for callers that need to inspect it.
    """

    def __init__(self, execution_path: Optional[ExecutionPath] = None):
        self.execution_path = execution_path or ExecutionPath.from_environment()

    async def exec(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> int:
        """
        Run a command and return its exit code.

        Raises:
            ProcessLaunchError: If the command cannot be started
        """
        result = await self.exec_output(command, args, cwd=cwd, env=env)
        return result.exit_code

    async def exec_output(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> ExecOutput:
        """
        Run a command and capture its output.

        Args:
            command: Executable name or path
            args: Command arguments
            cwd: Working directory
            env: Extra environment variables

        Returns:
            ExecOutput with exit code and decoded stdout/stderr

        Raises:
            ProcessLaunchError: If the command cannot be started
        """
        executable = self._locate(command, cwd)
        logger.info(f"[command]{command} {' '.join(args)}".rstrip())

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *args,
                cwd=str(cwd) if cwd else None,
                env=self.execution_path.environment(env),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessLaunchError(command, str(e)) from e

        try:
            stdout, stderr = await asyncio.gather(
                self._pump(process.stdout),
                self._pump(process.stderr),
            )
            exit_code = await process.wait()
        finally:
            # Never leave the child running if reading its output failed
            if process.returncode is None:
                process.kill()
                await process.wait()
        logger.debug(f"{command} exited with {exit_code}")

        return ExecOutput(exit_code=exit_code, stdout=stdout, stderr=stderr)

    def _locate(self, command: str, cwd: Optional[Path]) -> str:
        """Resolve bare names on the execution path; explicit paths go against cwd."""
        if os.sep in command or (os.altsep and os.altsep in command):
            candidate = Path(cwd or Path.cwd()) / command
            if not candidate.exists():
                raise ProcessLaunchError(command, f"no such file {candidate}")
            return str(candidate)

        found = shutil.which(command, path=self.execution_path.search_path())
        if found is None:
            raise ProcessLaunchError(command, "executable not found on the execution path")
        return found

    async def _pump(self, stream: Optional[asyncio.StreamReader]) -> str:
        """
        Read a stream to EOF, logging each completed line as it arrives.

        Reads fixed-size chunks rather than lines, so output without newlines
        (progress bars redrawn with \\r) has no length limit.
        """
        if stream is None:
            return ""
        data = bytearray()
        logged = 0
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            data.extend(chunk)
            end = max(data.rfind(b"\n", logged), data.rfind(b"\r", logged)) + 1
            if end > logged:
                _log_lines(data[logged:end])
                logged = end
        if logged < len(data):
            _log_lines(data[logged:])
        return data.decode("utf-8", errors="replace")


def _log_lines(data: bytes) -> None:
    for line in data.decode("utf-8", errors="replace").splitlines():
        if line.strip():
            logger.info(line)
