"""
Centralized exception hierarchy for OdinKit.

Every failure that ends a provisioning run derives from OdinKitError so the
orchestrator can turn it into a single failure report.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class OdinKitError(Exception):
    """Base exception for all OdinKit errors."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigError(OdinKitError):
    """Raised when action inputs or the configuration file are malformed."""

    pass


# ============================================================================
# Process Exceptions
# ============================================================================


class ProcessLaunchError(OdinKitError):
    """Raised when an external command cannot be started at all."""

    def __init__(self, command: str, reason: str):
        self.command = command
        super().__init__(f"Unable to run '{command}': {reason}")


# ============================================================================
# Repository Exceptions
# ============================================================================


class RepositoryError(OdinKitError):
    """Base exception for git operations on the Odin checkout."""

    pass


class VersionNotFoundError(RepositoryError):
    """Raised when cloning the requested Odin version fails."""

    def __init__(self, version: str, exit_code: int):
        self.version = version
        self.exit_code = exit_code
        super().__init__(
            f"Git clone failed with exit code: {exit_code}, "
            f"are you sure that version exists? (version: {version})"
        )


class RepositorySyncError(RepositoryError):
    """Raised when pulling updates into a restored checkout fails."""

    def __init__(self, version: str, exit_code: int):
        self.version = version
        self.exit_code = exit_code
        super().__init__(
            f"Git pull of {version} failed with exit code: {exit_code}"
        )


# ============================================================================
# Platform and Dependency Exceptions
# ============================================================================


class UnsupportedPlatformError(OdinKitError):
    """Raised when the host operating system is not one OdinKit can provision."""

    def __init__(self, system: str):
        self.system = system
        super().__init__(f"Operating system {system} is not supported by odinkit")


class DependencyInstallError(OdinKitError):
    """Raised when the package manager fails to install LLVM."""

    def __init__(self, exit_code: int):
        self.exit_code = exit_code
        super().__init__(
            f"Installing Odin dependencies failed with exit code: {exit_code}"
        )


# ============================================================================
# Build Exceptions
# ============================================================================


class BuildError(OdinKitError):
    """Raised when the Odin build script exits with a nonzero status."""

    def __init__(self, exit_code: int):
        self.exit_code = exit_code
        super().__init__(f"Building Odin failed with exit code: {exit_code}")


# ============================================================================
# Cache Exceptions
# ============================================================================


class CacheError(OdinKitError):
    """Base exception for cache store errors."""

    pass


class CacheLockTimeout(CacheError):
    """Raised when the cache directory lock cannot be acquired within timeout."""

    pass
