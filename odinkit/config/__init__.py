"""
Configuration for OdinKit: the Inputs record and the loader that resolves it.
"""

from .inputs import (
    BUILD_TYPES,
    DEFAULT_BUILD_TYPE,
    DEFAULT_LLVM_VERSION,
    DEFAULT_ODIN_VERSION,
    DEFAULT_REPOSITORY,
    Inputs,
)
from .loader import ConfigLoader, load_yaml_config, parse_bool

__all__ = [
    "BUILD_TYPES",
    "DEFAULT_BUILD_TYPE",
    "DEFAULT_LLVM_VERSION",
    "DEFAULT_ODIN_VERSION",
    "DEFAULT_REPOSITORY",
    "Inputs",
    "ConfigLoader",
    "load_yaml_config",
    "parse_bool",
]
