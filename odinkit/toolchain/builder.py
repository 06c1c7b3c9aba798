"""
Invocation of the build scripts shipped in the Odin tree.
"""

import logging
from pathlib import Path
from typing import List, Tuple

from odinkit.core.exceptions import BuildError
from odinkit.core.platform import HostOS
from odinkit.core.process import ProcessRunner

logger = logging.getLogger(__name__)


def build_command(host_os: HostOS, build_type: str) -> Tuple[str, List[str]]:
    """
    Command that builds Odin on a host OS family.

    Example:
        >>> build_command(HostOS.LINUX, 'release')
        ('./build_odin.sh', ['release'])
    """
    if host_os is HostOS.WINDOWS:
        return "cmd", ["/c", "build.bat", build_type]
    return "./build_odin.sh", [build_type]


class OdinBuilder:
    """Run the OS-appropriate build script inside a checkout."""

    def __init__(self, runner: ProcessRunner, host_os: HostOS):
        self.runner = runner
        self.host_os = host_os

    async def build(self, checkout_dir: Path, build_type: str) -> None:
        """
        Build the compiler in ``checkout_dir``.

        Raises:
            BuildError: If the build script exits with a nonzero status
        """
        command, args = build_command(self.host_os, build_type)
        logger.info(f"Building Odin ({build_type}) in {checkout_dir}")

        code = await self.runner.exec(command, args, cwd=Path(checkout_dir))
        if code != 0:
            raise BuildError(code)
