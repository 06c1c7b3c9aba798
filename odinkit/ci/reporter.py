"""
Result reporting and path publishing for the CI host.

Under GitHub Actions, outputs, state and path additions are written to the
files named by ``GITHUB_OUTPUT``, ``GITHUB_STATE`` and ``GITHUB_PATH``, and
failures are surfaced as ``::error::`` workflow commands. Elsewhere, outputs
are logged and state is kept in ``<workspace>/.odinkit/state.json`` so the
post step of a local run can still read it.
"""

import json
import logging
import os
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, TextIO, Union

from odinkit.core.filesystem import atomic_write

logger = logging.getLogger(__name__)


def to_command_value(value: Any) -> str:
    """Render a value the way the Actions toolkit does (JSON for non-strings)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _append_file_command(file_path: Path, name: str, value: str) -> None:
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name or delimiter in value:
        raise ValueError(f"Unexpected input: name or value contains delimiter {delimiter}")
    with open(file_path, "a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


class OutputReporter:
    """
    Outputs, persisted state, log messages and the failure sink of one run.

    Attributes:
        failed: Whether set_failed() was called
        outputs: Every output set during the run
    """

    def __init__(
        self,
        state_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        stream: Optional[TextIO] = None,
    ):
        """
        Args:
            state_file: Local state file used when GITHUB_STATE is not set
            environ: Environment to read file-command locations from
            stream: Where workflow commands are printed (default: stdout)
        """
        self.environ = os.environ if environ is None else environ
        self.state_file = state_file
        self.stream = stream
        self.failed = False
        self.outputs: Dict[str, str] = {}

    @property
    def in_actions(self) -> bool:
        return self.environ.get("GITHUB_ACTIONS") == "true"

    def set_output(self, name: str, value: Any) -> None:
        text = to_command_value(value)
        self.outputs[name] = text

        output_file = self.environ.get("GITHUB_OUTPUT")
        if output_file:
            _append_file_command(Path(output_file), name, text)
        logger.info(f"Output {name}={text}")

    def save_state(self, name: str, value: Any) -> None:
        text = to_command_value(value)

        state_file = self.environ.get("GITHUB_STATE")
        if state_file:
            _append_file_command(Path(state_file), name, text)
        elif self.state_file is not None:
            state = self._load_local_state()
            state[name] = text
            atomic_write(self.state_file, json.dumps(state, indent=2))
        logger.debug(f"Saved state {name}={text}")

    def get_state(self, name: str) -> str:
        """
        Read state saved by an earlier step.

        Returns:
            The saved value, or an empty string if none was saved
        """
        value = self.environ.get(f"STATE_{name}")
        if value is not None:
            return value
        if self.state_file is not None:
            return self._load_local_state().get(name, "")
        return ""

    def info(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)
        if self.in_actions:
            self._command("warning", message)

    def set_failed(self, message: str) -> None:
        """Report the run as failed. The CLI turns this into exit code 1."""
        self.failed = True
        logger.error(message)
        if self.in_actions:
            self._command("error", message)

    def _command(self, command: str, message: str) -> None:
        escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        print(f"::{command}::{escaped}", file=self.stream or sys.stdout)

    def _load_local_state(self) -> Dict[str, str]:
        if self.state_file is None or not self.state_file.exists():
            return {}
        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable state file {self.state_file}: {e}")
            return {}


class ExecutionPathRegistry:
    """Publish directories to the PATH of later workflow steps."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def add_path(self, path: Union[str, Path]) -> None:
        path_file = self.environ.get("GITHUB_PATH")
        if path_file:
            with open(path_file, "a", encoding="utf-8") as f:
                f.write(f"{path}\n")
            logger.debug(f"Published {path} to GITHUB_PATH")
        else:
            logger.info(f"Add to PATH: {path}")
