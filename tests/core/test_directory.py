"""
Tests for the OdinKit directory layout.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from odinkit.core import directory
from odinkit.core.exceptions import ConfigError
from odinkit.core.directory import (
    DirectoryError,
    get_checkout_dir,
    get_default_cache_dir,
    get_default_workspace,
    get_global_cache_dir,
    get_state_file,
)


class TestGlobalDirectories:
    """Test global and cache directory resolution."""

    def test_odinkit_home_override(self, temp_dir):
        assert get_global_cache_dir({"ODINKIT_HOME": str(temp_dir)}) == temp_dir

    @pytest.mark.skipif(os.name == "nt", reason="POSIX home layout")
    def test_default_under_home(self, monkeypatch, temp_dir):
        monkeypatch.setenv("HOME", str(temp_dir))

        assert get_global_cache_dir({}) == temp_dir / ".odinkit"

    def test_windows_without_userprofile(self):
        """A missing USERPROFILE is a configuration error, not a crash."""
        with patch.object(directory.os, "name", "nt"):
            with pytest.raises(ConfigError, match="USERPROFILE"):
                get_global_cache_dir({})

    def test_directory_error_is_config_error(self):
        assert issubclass(DirectoryError, ConfigError)

    def test_cache_dir_override(self, temp_dir):
        environ = {"ODINKIT_CACHE_DIR": str(temp_dir / "shared")}

        assert get_default_cache_dir(environ) == temp_dir / "shared"

    def test_cache_dir_under_home(self, temp_dir):
        environ = {"ODINKIT_HOME": str(temp_dir)}

        assert get_default_cache_dir(environ) == temp_dir / "cache"


class TestWorkspace:
    """Test workspace-relative locations."""

    def test_runner_temp(self, temp_dir):
        assert get_default_workspace({"RUNNER_TEMP": str(temp_dir)}) == temp_dir

    def test_falls_back_to_cwd(self):
        assert get_default_workspace({}) == Path.cwd()

    def test_checkout_and_state(self, temp_dir):
        assert get_checkout_dir(temp_dir) == temp_dir / "odin"
        assert get_state_file(temp_dir) == temp_dir / ".odinkit" / "state.json"
