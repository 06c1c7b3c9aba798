"""
Configuration loading for OdinKit.

Inputs are merged from several sources, highest precedence first:

1. Command-line overrides
2. Action inputs from the environment (``INPUT_ODIN-VERSION`` etc., the
   naming GitHub Actions uses for ``with:`` values)
3. A YAML file (``odinkit.yaml`` in the working directory, or ``--config``)
4. Built-in defaults

Example:
    >>> loader = ConfigLoader(config_file=Path("odinkit.yaml"))
    >>> inputs = loader.get_inputs()
    >>> inputs.odin_version
    'dev-2024-04'
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from odinkit.config.inputs import (
    BUILD_TYPES,
    DEFAULT_BUILD_TYPE,
    DEFAULT_LLVM_VERSION,
    DEFAULT_ODIN_VERSION,
    DEFAULT_REPOSITORY,
    Inputs,
)
from odinkit.core.directory import get_default_cache_dir, get_default_workspace
from odinkit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "odinkit.yaml"

INPUT_NAMES = (
    "repository",
    "odin-version",
    "llvm-version",
    "build-type",
    "cache",
    "workspace",
    "cache-dir",
)

_TRUE_VALUES = ("true", "yes", "on", "1")
_FALSE_VALUES = ("false", "no", "off", "0")


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        ConfigError: If the file is required but missing, is not valid YAML,
            or is not a mapping
    """
    if not config_file.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    config = config or {}
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration in {config_file} must be a mapping")

    unknown = sorted(set(config) - set(INPUT_NAMES))
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

    return config


def parse_bool(name: str, value: Any) -> bool:
    """
    Interpret a boolean input the way action inputs are written.

    Raises:
        ConfigError: If the value is not a recognized boolean
    """
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"Input '{name}' must be a boolean (true/false), got '{value}'")


class ConfigLoader:
    """Build an Inputs value from overrides, environment and a YAML file."""

    def __init__(
        self,
        config_file: Optional[Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Args:
            config_file: Explicit configuration file (must exist if given)
            overrides: Input values from the command line, keyed by input name
            environ: Environment to read action inputs from (default: os.environ)
        """
        self.config_file = config_file
        self.overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
        self.environ = os.environ if environ is None else environ

    def get_inputs(self) -> Inputs:
        """
        Resolve all inputs.

        Raises:
            ConfigError: If any input is malformed
        """
        raw = self._merge()

        build_type = self._require(raw, "build-type")
        if build_type not in BUILD_TYPES:
            logger.warning(
                f"Unrecognized build-type '{build_type}', passing it to the build script as-is "
                f"(known: {', '.join(BUILD_TYPES)})"
            )

        workspace = Path(raw["workspace"]) if raw.get("workspace") else get_default_workspace(self.environ)
        cache_dir = Path(raw["cache-dir"]) if raw.get("cache-dir") else get_default_cache_dir(self.environ)

        inputs = Inputs(
            repository=self._require(raw, "repository"),
            odin_version=self._require(raw, "odin-version"),
            llvm_version=self._require(raw, "llvm-version"),
            build_type=build_type,
            cache=parse_bool("cache", raw.get("cache", True)),
            workspace=workspace.expanduser().resolve(),
            cache_dir=cache_dir.expanduser().resolve(),
        )
        logger.debug(f"Resolved inputs: {inputs}")
        return inputs

    def _merge(self) -> Dict[str, Any]:
        merged: Dict[str, Any] = {
            "repository": DEFAULT_REPOSITORY,
            "odin-version": DEFAULT_ODIN_VERSION,
            "llvm-version": DEFAULT_LLVM_VERSION,
            "build-type": DEFAULT_BUILD_TYPE,
            "cache": True,
        }

        merged.update(self._load_file())

        for name in INPUT_NAMES:
            value = self.environ.get(f"INPUT_{name.upper()}")
            # Unset action inputs arrive as empty strings
            if value is not None and value.strip() != "":
                merged[name] = value.strip()

        merged.update(self.overrides)
        return merged

    def _load_file(self) -> Dict[str, Any]:
        if self.config_file is not None:
            return load_yaml_config(self.config_file, required=True)
        return load_yaml_config(Path.cwd() / DEFAULT_CONFIG_FILE, required=False)

    @staticmethod
    def _require(raw: Mapping[str, Any], name: str) -> str:
        value = raw.get(name)
        if value is None or str(value).strip() == "":
            raise ConfigError(f"Input '{name}' must not be empty")
        return str(value).strip()
