"""
Resolved action inputs.

An Inputs value is built once per run by the ConfigLoader and read by every
provisioning component; it is never mutated.
"""

from dataclasses import dataclass
from pathlib import Path

from odinkit.core.directory import get_checkout_dir

DEFAULT_REPOSITORY = "https://github.com/odin-lang/Odin"
DEFAULT_ODIN_VERSION = "master"
DEFAULT_LLVM_VERSION = "17"
DEFAULT_BUILD_TYPE = "release"

# Arguments understood by build_odin.sh / build.bat
BUILD_TYPES = ("debug", "release", "release-native", "nightly")


@dataclass(frozen=True)
class Inputs:
    """
    Provisioning configuration for one run.

    Attributes:
        repository: Git URL the Odin sources are cloned from
        odin_version: Branch or tag to build
        llvm_version: LLVM major version the build links against
        build_type: Build profile passed to the build script
        cache: Whether cached checkouts may be restored and saved
        workspace: Directory the checkout is placed in
        cache_dir: Directory of the local cache store
    """

    repository: str
    odin_version: str
    llvm_version: str
    build_type: str
    cache: bool
    workspace: Path
    cache_dir: Path

    @property
    def odin_path(self) -> Path:
        """Directory holding the Odin checkout and the built compiler."""
        return get_checkout_dir(self.workspace)
