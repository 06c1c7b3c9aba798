"""
Shared utilities for CLI commands.

Builds the run's collaborators from parsed arguments so every command
resolves inputs, state and the cache store the same way.
"""

import logging
import os
from typing import Any, Dict

from odinkit.cache.store import LocalCacheStore
from odinkit.ci.reporter import OutputReporter
from odinkit.config.inputs import Inputs
from odinkit.config.loader import ConfigLoader
from odinkit.core.directory import get_state_file

logger = logging.getLogger(__name__)

_INPUT_ARGUMENTS = {
    "repository": "repository",
    "odin_version": "odin-version",
    "llvm_version": "llvm-version",
    "build_type": "build-type",
    "cache": "cache",
    "workspace": "workspace",
    "cache_dir": "cache-dir",
}


def input_overrides(args) -> Dict[str, Any]:
    """Input values given on the command line, keyed by input name."""
    overrides = {}
    for attr, name in _INPUT_ARGUMENTS.items():
        value = getattr(args, attr, None)
        if value is not None:
            overrides[name] = value
    return overrides


def load_inputs(args) -> Inputs:
    """
    Resolve inputs for a command.

    Raises:
        ConfigError: If the configuration is malformed
    """
    loader = ConfigLoader(
        config_file=getattr(args, "config", None),
        overrides=input_overrides(args),
        environ=os.environ,
    )
    return loader.get_inputs()


def create_reporter(inputs: Inputs) -> OutputReporter:
    """Reporter whose local state lives in the workspace."""
    return OutputReporter(state_file=get_state_file(inputs.workspace))


def create_store(inputs: Inputs) -> LocalCacheStore:
    """Local cache store rooted at the workspace."""
    return LocalCacheStore(inputs.cache_dir, root=inputs.workspace)
