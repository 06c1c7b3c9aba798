"""
Host platform detection for OdinKit.

The host operating system decides how LLVM is installed and which build script
is run. Only three families are recognized; anything else is rejected before
any provisioning work starts.

Usage:
    from odinkit.core.platform import detect_host

    host = detect_host()
    print(f"Provisioning on {host.platform_string()}")
"""

import functools
import platform
from dataclasses import dataclass
from enum import Enum

from odinkit.core.exceptions import UnsupportedPlatformError


class HostOS(Enum):
    """Operating system families OdinKit can provision."""

    MACOS = "macos"
    LINUX = "linux"
    WINDOWS = "windows"

    @classmethod
    def from_system(cls, system: str) -> "HostOS":
        """
        Map a ``platform.system()`` / ``sys.platform`` style name to a family.

        Args:
            system: System name such as 'Linux', 'Darwin', 'win32'

        Returns:
            Matching HostOS member

        Raises:
            UnsupportedPlatformError: If the system is not recognized
        """
        normalized = system.lower()
        if normalized in ("darwin", "macos"):
            return cls.MACOS
        if normalized == "linux":
            return cls.LINUX
        if normalized in ("windows", "win32"):
            return cls.WINDOWS
        raise UnsupportedPlatformError(system)


@dataclass(frozen=True)
class HostInfo:
    """
    Host information relevant to provisioning.

    Attributes:
        os: Operating system family
        arch: Normalized CPU architecture ('x64', 'arm64', 'x86', 'arm')
    """

    os: HostOS
    arch: str

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-arm64').

        Example:
            >>> HostInfo(HostOS.LINUX, 'x64').platform_string()
            'linux-x64'
        """
        return f"{self.os.value}-{self.arch}"

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_host() -> HostInfo:
    """
    Detect the current host.

    This function is cached - it only runs detection once per process.

    Raises:
        UnsupportedPlatformError: If the operating system is not recognized
    """
    return HostInfo(os=HostOS.from_system(platform.system()), arch=_detect_architecture())


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        Normalized architecture: 'x64', 'arm64', 'x86', 'arm'
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        # Unknown architectures keep their raw name
        return machine


def clear_host_cache():
    """
    Clear the host detection cache.

    Forces the next call to detect_host() to re-detect. Useful for testing.
    """
    detect_host.cache_clear()


__all__ = [
    "HostOS",
    "HostInfo",
    "detect_host",
    "clear_host_cache",
]
