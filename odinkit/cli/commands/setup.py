"""
Setup command implementation.

Provisions the Odin compiler: restore or clone, install LLVM, build, and add
the compiler to PATH.
"""

import asyncio
import logging

from odinkit.ci.reporter import ExecutionPathRegistry, OutputReporter
from odinkit.cli.utils import create_reporter, create_store, load_inputs
from odinkit.core.exceptions import ConfigError
from odinkit.toolchain.orchestrator import BuildOrchestrator

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the setup command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 if provisioning failed)
    """
    try:
        inputs = load_inputs(args)
    except ConfigError as e:
        OutputReporter().set_failed(str(e))
        return 1

    reporter = create_reporter(inputs)
    orchestrator = BuildOrchestrator(
        inputs,
        reporter,
        create_store(inputs) if inputs.cache else None,
        ExecutionPathRegistry(),
    )

    outcome = asyncio.run(orchestrator.run())
    logger.debug(f"Setup outcome: {outcome}")

    return 0 if outcome.succeeded else 1
