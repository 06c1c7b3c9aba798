"""
LLVM installation for building Odin.

Each HostOS member has exactly one installer. Adding a platform means adding
an enum member and an installer class; ``installer_for`` fails loudly for a
member without one.

Example:
    >>> installer = installer_for(HostOS.LINUX, runner, WhichResolver(path))
    >>> await installer.install('17')
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Type

from odinkit.core.exceptions import DependencyInstallError, UnsupportedPlatformError
from odinkit.core.platform import HostOS
from odinkit.core.process import ProcessRunner, WhichResolver

logger = logging.getLogger(__name__)


class DependencyInstaller(ABC):
    """
    Install the LLVM version Odin links against.

    Attributes:
        runner: Process runner; its execution path is the run's path
        which: Resolver bound to the same execution path
    """

    def __init__(self, runner: ProcessRunner, which: WhichResolver):
        self.runner = runner
        self.which = which

    @abstractmethod
    async def install(self, llvm_version: str) -> None:
        """
        Make ``llvm_version`` available to the build.

        Raises:
            DependencyInstallError: If the package manager fails
        """
        pass

    @staticmethod
    def _check(code: int) -> None:
        if code != 0:
            raise DependencyInstallError(code)


class MacOSDependencyInstaller(DependencyInstaller):
    """Homebrew keg-only ``llvm@N``."""

    @staticmethod
    def llvm_bin_dir(llvm_version: str) -> Path:
        return Path(f"/usr/local/opt/llvm@{llvm_version}/bin")

    async def install(self, llvm_version: str) -> None:
        # Keg-only formulae are not linked into the default prefix
        self.runner.execution_path.prepend(self.llvm_bin_dir(llvm_version))

        code = await self.runner.exec("brew", ["install", f"llvm@{llvm_version}"])
        self._check(code)


class LinuxDependencyInstaller(DependencyInstaller):
    """apt packages ``llvm-N-dev`` and ``clang-N``, unless already present."""

    async def install(self, llvm_version: str) -> None:
        if self.which.resolve(f"llvm-{llvm_version}") is not None:
            logger.info(f"LLVM {llvm_version} comes pre-installed on this runner")
            return

        code = await self.runner.exec(
            "sudo",
            ["apt-fast", "install", f"llvm-{llvm_version}-dev", f"clang-{llvm_version}"],
        )
        self._check(code)


class WindowsDependencyInstaller(DependencyInstaller):
    """The Windows build uses the LLVM shipped in the Odin tree."""

    async def install(self, llvm_version: str) -> None:
        logger.debug("No separate LLVM installation needed on Windows")


INSTALLERS: Dict[HostOS, Type[DependencyInstaller]] = {
    HostOS.MACOS: MacOSDependencyInstaller,
    HostOS.LINUX: LinuxDependencyInstaller,
    HostOS.WINDOWS: WindowsDependencyInstaller,
}


def installer_for(host_os: HostOS, runner: ProcessRunner, which: WhichResolver) -> DependencyInstaller:
    """
    Get the installer for a host OS family.

    Raises:
        UnsupportedPlatformError: If no installer is registered for ``host_os``
    """
    try:
        installer_cls = INSTALLERS[host_os]
    except KeyError:
        raise UnsupportedPlatformError(str(host_os)) from None
    return installer_cls(runner, which)
