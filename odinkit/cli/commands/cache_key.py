"""
Cache-key command implementation.

Prints the key setup restores and post saves, for debugging cache misses.
"""

import logging

from odinkit.cache.key import compose_cache_key
from odinkit.cli.utils import load_inputs
from odinkit.core.platform import detect_host

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the cache-key command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    inputs = load_inputs(args)
    host = detect_host()

    logger.debug(f"Host: {host}, inputs: {inputs}")
    print(compose_cache_key(inputs, host))

    return 0
