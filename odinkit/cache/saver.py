"""
Post-run cache save.

Runs as the post step after the workflow's own steps. Only a run that built
the compiler leaves something worth saving; a confirmed hit already matches
the stored entry.
"""

import logging
from typing import Optional

from odinkit.cache.key import cache_paths, compose_cache_key
from odinkit.cache.store import CacheStore
from odinkit.ci.reporter import OutputReporter
from odinkit.config.inputs import Inputs
from odinkit.core.exceptions import CacheError
from odinkit.core.platform import HostInfo, HostOS, detect_host

logger = logging.getLogger(__name__)

CACHE_HIT_STATE = "cache-hit"


def compiler_name(host_os: HostOS) -> str:
    """File name of the compiler the build script leaves in the checkout."""
    return "odin.exe" if host_os is HostOS.WINDOWS else "odin"


class CacheSaver:
    """Save the built checkout under the run's cache key."""

    def __init__(
        self,
        inputs: Inputs,
        store: Optional[CacheStore],
        reporter: OutputReporter,
        host: Optional[HostInfo] = None,
    ):
        self.inputs = inputs
        self.store = store
        self.reporter = reporter
        self.host = host

    async def save(self) -> bool:
        """
        Save the checkout if this run rebuilt it.

        Save failures are logged as warnings; the post step never fails.

        Returns:
            True if an entry was written (or already existed)
        """
        if not self.inputs.cache:
            logger.info("Caching is disabled, not saving")
            return False

        if self.store is None or not self.store.is_available():
            logger.info("Cache is not available, not saving")
            return False

        state = self.reporter.get_state(CACHE_HIT_STATE)
        if state != "false":
            if state == "true":
                logger.info("Cache was hit and up-to-date, not saving")
            else:
                logger.info("Setup did not reach the build, not saving")
            return False

        if not self.inputs.odin_path.is_dir():
            logger.warning(f"Odin checkout {self.inputs.odin_path} is missing, not saving")
            return False

        host = self.host or detect_host()
        if not (self.inputs.odin_path / compiler_name(host.os)).is_file():
            logger.info("Odin compiler was not built, not saving")
            return False

        key = compose_cache_key(self.inputs, host)
        try:
            await self.store.save(cache_paths(self.inputs), key)
        except CacheError as e:
            self.reporter.warning(f"Failed to save cache: {e}")
            return False

        return True
