"""
Odin toolchain provisioning: sources, LLVM, build and the orchestrating state machine.
"""

from .builder import OdinBuilder, build_command
from .dependencies import (
    DependencyInstaller,
    LinuxDependencyInstaller,
    MacOSDependencyInstaller,
    WindowsDependencyInstaller,
    installer_for,
)
from .orchestrator import (
    BuildOrchestrator,
    BuildOutcome,
    CacheValidator,
    OutcomeKind,
    RestoreResult,
)
from .repository import ALREADY_UP_TO_DATE, RepositorySync

__all__ = [
    "OdinBuilder",
    "build_command",
    "DependencyInstaller",
    "LinuxDependencyInstaller",
    "MacOSDependencyInstaller",
    "WindowsDependencyInstaller",
    "installer_for",
    "BuildOrchestrator",
    "BuildOutcome",
    "CacheValidator",
    "OutcomeKind",
    "RestoreResult",
    "ALREADY_UP_TO_DATE",
    "RepositorySync",
]
