"""
Core functionality for OdinKit.

This package contains the foundational modules that other components depend on.
"""

from .exceptions import (
    OdinKitError,
    ConfigError,
    ProcessLaunchError,
    RepositoryError,
    VersionNotFoundError,
    RepositorySyncError,
    UnsupportedPlatformError,
    DependencyInstallError,
    BuildError,
    CacheError,
    CacheLockTimeout,
)

from .platform import (
    HostOS,
    HostInfo,
    detect_host,
    clear_host_cache,
)

from .process import (
    ExecutionPath,
    ExecOutput,
    ProcessRunner,
    WhichResolver,
)

__all__ = [
    "OdinKitError",
    "ConfigError",
    "ProcessLaunchError",
    "RepositoryError",
    "VersionNotFoundError",
    "RepositorySyncError",
    "UnsupportedPlatformError",
    "DependencyInstallError",
    "BuildError",
    "CacheError",
    "CacheLockTimeout",
    "HostOS",
    "HostInfo",
    "detect_host",
    "clear_host_cache",
    "ExecutionPath",
    "ExecOutput",
    "ProcessRunner",
    "WhichResolver",
]
