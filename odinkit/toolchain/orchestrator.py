"""
Provisioning state machine for the Odin compiler.

    START -> RESTORING | CLONING -> CONFIRMED_HIT | REBUILDING -> BUILDING -> DONE | FAILED

With caching enabled the cached checkout is restored and then checked
against upstream with ``git pull``; only a checkout that pulled nothing new
is trusted as a hit, since branch names move. A restored checkout that did
pull changes is rebuilt in place. Without a usable cache the sources are
cloned fresh.

LLVM installation runs alongside restore/clone in every case. Both branches
are awaited before either result is looked at. When the cache hit is
confirmed no build happens, so an installation failure is only logged.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from odinkit.cache.key import cache_paths, compose_cache_key
from odinkit.cache.store import CacheStore
from odinkit.ci.reporter import ExecutionPathRegistry, OutputReporter
from odinkit.config.inputs import Inputs
from odinkit.core.exceptions import OdinKitError
from odinkit.core.platform import HostInfo, detect_host
from odinkit.core.process import ExecutionPath, ProcessRunner, WhichResolver
from odinkit.toolchain.builder import OdinBuilder
from odinkit.toolchain.dependencies import DependencyInstaller, installer_for
from odinkit.toolchain.repository import RepositorySync

logger = logging.getLogger(__name__)

CACHE_HIT_OUTPUT = "cache-hit"


class OutcomeKind(Enum):
    """How a provisioning run ended."""

    CACHE_HIT_FRESH = "cache-hit-fresh"
    CACHE_HIT_STALE_REBUILT = "cache-hit-stale-rebuilt"
    CACHE_MISS_REBUILT = "cache-miss-rebuilt"
    CACHE_DISABLED_REBUILT = "cache-disabled-rebuilt"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildOutcome:
    """
    Terminal result of one run.

    Attributes:
        kind: Which path the run took
        reason: Failure message when kind is FAILED
    """

    kind: OutcomeKind
    reason: Optional[str] = None

    @classmethod
    def failed(cls, reason: str) -> "BuildOutcome":
        return cls(OutcomeKind.FAILED, reason)

    @property
    def succeeded(self) -> bool:
        return self.kind is not OutcomeKind.FAILED

    @property
    def cache_hit(self) -> bool:
        return self.kind is OutcomeKind.CACHE_HIT_FRESH


class RestoreResult(Enum):
    """Verdict on a cache lookup."""

    CONFIRMED_HIT = "confirmed-hit"
    STALE_HIT = "stale-hit"
    MISS = "miss"


class CacheValidator:
    """
    Decide whether a restored checkout can be used as-is.

    A matching key only makes the checkout a candidate; it is confirmed when
    pulling the requested version from upstream brings in nothing new.
    """

    def __init__(self, inputs: Inputs, store: CacheStore, repository: RepositorySync):
        self.inputs = inputs
        self.store = store
        self.repository = repository

    async def restore(self, key: str) -> RestoreResult:
        """
        Restore the checkout for ``key`` and validate it.

        On a miss whatever was restored is discarded and the sources are
        cloned fresh, so the checkout is ready for a build whatever the result.

        Raises:
            VersionNotFoundError: If the fresh clone fails
            RepositorySyncError: If pulling into the restored checkout fails
        """
        restored_key = await self.store.restore(cache_paths(self.inputs), key)

        if restored_key == key:
            logger.info("Cache HIT, checking if it is still up-to-date")
            if await self.repository.sync_to_latest(self.inputs.odin_path, self.inputs.odin_version):
                logger.info("Cache is still up-to-date")
                return RestoreResult.CONFIRMED_HIT

            logger.info("Cache is not up-to-date, rebuilding the compiler now")
            return RestoreResult.STALE_HIT

        logger.info("Cache MISS")
        await self.repository.clone_fresh(self.inputs.repository, self.inputs.odin_version)
        return RestoreResult.MISS


class BuildOrchestrator:
    """
    Provision the Odin compiler for one run.

    Collaborators not passed in are created for the detected host.

    Example:
        >>> orchestrator = BuildOrchestrator(inputs, reporter, store, ExecutionPathRegistry())
        >>> outcome = await orchestrator.run()
        >>> outcome.cache_hit
        False
    """

    def __init__(
        self,
        inputs: Inputs,
        reporter: OutputReporter,
        store: Optional[CacheStore],
        path_registry: ExecutionPathRegistry,
        host: Optional[HostInfo] = None,
        execution_path: Optional[ExecutionPath] = None,
        repository: Optional[RepositorySync] = None,
        installer: Optional[DependencyInstaller] = None,
        builder: Optional[OdinBuilder] = None,
    ):
        self.inputs = inputs
        self.reporter = reporter
        self.store = store
        self.path_registry = path_registry
        self.host = host
        self.execution_path = execution_path or ExecutionPath.from_environment()
        self.runner = ProcessRunner(self.execution_path)
        self.repository = repository or RepositorySync(self.runner, inputs.odin_path)
        self.installer = installer
        self.builder = builder

    async def run(self) -> BuildOutcome:
        """
        Run provisioning to a terminal state.

        Every error ends the run as FAILED and is reported once through the
        reporter's failure sink; nothing is raised.
        """
        try:
            outcome = await self._provision()
        except OdinKitError as e:
            self.reporter.set_failed(str(e))
            return BuildOutcome.failed(str(e))
        except Exception as e:
            logger.debug("Unexpected provisioning error", exc_info=True)
            message = f"Unexpected error during provisioning: {e}"
            self.reporter.set_failed(message)
            return BuildOutcome.failed(message)

        for directory in reversed(self.execution_path.added):
            self.path_registry.add_path(directory)

        logger.debug(f"Provisioning finished: {outcome.kind.value}")
        return outcome

    def cache_enabled(self) -> bool:
        """Whether this run restores from (and later saves to) the cache."""
        if not self.inputs.cache:
            logger.info("Caching is disabled")
            return False
        if self.store is None or not self.store.is_available():
            logger.info("Cache is not available, building without it")
            return False
        return True

    async def _provision(self) -> BuildOutcome:
        host = self.host or detect_host()
        installer = self.installer or installer_for(
            host.os, self.runner, WhichResolver(self.execution_path)
        )
        builder = self.builder or OdinBuilder(self.runner, host.os)

        self.execution_path.prepend(self.inputs.odin_path)

        if self.cache_enabled():
            key = compose_cache_key(self.inputs, host)
            logger.debug(f"Cache key: {key}")
            validator = CacheValidator(self.inputs, self.store, self.repository)

            restored, installed = await asyncio.gather(
                validator.restore(key),
                installer.install(self.inputs.llvm_version),
                return_exceptions=True,
            )
            if isinstance(restored, BaseException):
                raise restored

            if restored is RestoreResult.CONFIRMED_HIT:
                if isinstance(installed, BaseException):
                    logger.warning(f"Ignoring dependency installation failure on cache hit: {installed}")
                self.reporter.set_output(CACHE_HIT_OUTPUT, True)
                self.reporter.save_state(CACHE_HIT_OUTPUT, "true")
                self.reporter.info("Successfully set up Odin compiler")
                return BuildOutcome(OutcomeKind.CACHE_HIT_FRESH)

            if restored is RestoreResult.STALE_HIT:
                kind = OutcomeKind.CACHE_HIT_STALE_REBUILT
            else:
                kind = OutcomeKind.CACHE_MISS_REBUILT
        else:
            cloned, installed = await asyncio.gather(
                self.repository.clone_fresh(self.inputs.repository, self.inputs.odin_version),
                installer.install(self.inputs.llvm_version),
                return_exceptions=True,
            )
            if isinstance(cloned, BaseException):
                raise cloned
            kind = OutcomeKind.CACHE_DISABLED_REBUILT

        if isinstance(installed, BaseException):
            raise installed

        self.reporter.set_output(CACHE_HIT_OUTPUT, False)
        self.reporter.save_state(CACHE_HIT_OUTPUT, "false")

        await builder.build(self.inputs.odin_path, self.inputs.build_type)

        self.reporter.info("Successfully set up Odin compiler")
        return BuildOutcome(kind)
