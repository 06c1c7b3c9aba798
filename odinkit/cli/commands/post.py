"""
Post command implementation.

Saves the Odin checkout to the cache after setup rebuilt it. Never fails the
job: problems are reported as warnings.
"""

import asyncio
import logging

from odinkit.cache.saver import CacheSaver
from odinkit.cli.utils import create_reporter, create_store, load_inputs
from odinkit.core.exceptions import OdinKitError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the post command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (always 0)
    """
    try:
        inputs = load_inputs(args)
        saver = CacheSaver(inputs, create_store(inputs), create_reporter(inputs))
        asyncio.run(saver.save())
    except OdinKitError as e:
        logger.warning(f"Skipping cache save: {e}")

    return 0
