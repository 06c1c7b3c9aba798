"""
Git operations on the Odin checkout.
"""

import logging
from pathlib import Path

from odinkit.core.exceptions import RepositorySyncError, VersionNotFoundError
from odinkit.core.filesystem import safe_rmtree
from odinkit.core.process import ProcessRunner

logger = logging.getLogger(__name__)

# Printed by `git pull` when nothing was fetched. Matching it is locale and
# version sensitive, hence git always runs with LC_ALL=C.
ALREADY_UP_TO_DATE = "Already up to date."

GIT_ENV = {"LC_ALL": "C", "GIT_TERMINAL_PROMPT": "0"}


class RepositorySync:
    """
    Clone and update the Odin sources.

    Attributes:
        runner: Process runner used for git
        checkout_dir: Where fresh clones are placed
    """

    def __init__(self, runner: ProcessRunner, checkout_dir: Path):
        self.runner = runner
        self.checkout_dir = Path(checkout_dir)

    async def clone_fresh(self, repository: str, version: str) -> None:
        """
        Shallow-clone a single branch or tag into the checkout directory.

        Whatever is already in the checkout directory (a restore for another
        key, a previous run) is removed first.

        Raises:
            VersionNotFoundError: If git exits with a nonzero status
        """
        logger.info(f"Cloning {repository} at {version}")
        safe_rmtree(self.checkout_dir, require_prefix=self.checkout_dir.parent)
        self.checkout_dir.parent.mkdir(parents=True, exist_ok=True)

        code = await self.runner.exec(
            "git",
            [
                "clone",
                repository,
                str(self.checkout_dir),
                "--branch",
                version,
                "--depth=1",
                "--single-branch",
                "--no-tags",
            ],
            env=GIT_ENV,
        )
        if code != 0:
            raise VersionNotFoundError(version, code)

    async def sync_to_latest(self, path: Path, version: str) -> bool:
        """
        Pull the latest commits of ``version`` into an existing checkout.

        Returns:
            True if git reported nothing new was fetched

        Raises:
            RepositorySyncError: If git exits with a nonzero status
        """
        output = await self.runner.exec_output(
            "git", ["pull", "origin", version], cwd=Path(path), env=GIT_ENV
        )
        if output.exit_code != 0:
            raise RepositorySyncError(version, output.exit_code)

        return ALREADY_UP_TO_DATE in output.stdout
