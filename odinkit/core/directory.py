"""
Directory layout for OdinKit.

Directory Structure:
    Global Cache (~/.odinkit/ or %USERPROFILE%\\.odinkit\\):
        - cache/          : Cached Odin checkouts (one archive per cache key)
        - lock/           : Concurrent access control files

    Workspace (<workspace>/):
        - odin/           : Odin checkout and build output
        - .odinkit/       : Run state (state.json) when not under GitHub Actions
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from odinkit.core.exceptions import ConfigError

CHECKOUT_DIR_NAME = "odin"
STATE_DIR_NAME = ".odinkit"


class DirectoryError(ConfigError):
    """Raised when a default directory cannot be determined."""

    pass


def get_global_cache_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Get the platform-specific global OdinKit directory.

    Returns:
        Path: ``$ODINKIT_HOME`` if set, otherwise
            - Windows: %USERPROFILE%\\.odinkit
            - Linux/macOS: ~/.odinkit/
    """
    environ = os.environ if environ is None else environ

    override = environ.get("ODINKIT_HOME")
    if override:
        return Path(override)

    if os.name == "nt":
        user_profile = environ.get("USERPROFILE")
        if not user_profile:
            raise DirectoryError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine global cache directory."
            )
        return Path(user_profile) / ".odinkit"
    return Path.home() / ".odinkit"


def get_default_cache_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Directory holding cached checkouts (``$ODINKIT_CACHE_DIR`` wins)."""
    environ = os.environ if environ is None else environ
    override = environ.get("ODINKIT_CACHE_DIR")
    if override:
        return Path(override)
    return get_global_cache_dir(environ) / "cache"


def get_default_workspace(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Runner scratch space if available, else the current directory."""
    environ = os.environ if environ is None else environ
    runner_temp = environ.get("RUNNER_TEMP")
    if runner_temp:
        return Path(runner_temp)
    return Path.cwd()


def get_checkout_dir(workspace: Path) -> Path:
    """Location of the Odin checkout inside a workspace."""
    return Path(workspace) / CHECKOUT_DIR_NAME


def get_state_file(workspace: Path) -> Path:
    """Location of the local run-state file inside a workspace."""
    return Path(workspace) / STATE_DIR_NAME / "state.json"
