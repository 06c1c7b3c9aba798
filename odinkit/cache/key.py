"""Cache key derivation."""

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, List

from odinkit.config.inputs import Inputs
from odinkit.core.platform import HostInfo

KEY_PREFIX = "odin"


def compose_cache_key(inputs: Inputs, host: HostInfo) -> str:
    """
    Derive the cache key for a build.

    The key covers everything that changes the built compiler: where the
    sources come from, which version, the build profile and the host. The
    LLVM version and local directories are not part of it.

    Example:
        >>> compose_cache_key(inputs, HostInfo(HostOS.LINUX, 'x64'))
        'odin-linux-x64-3f9a0c...'
    """
    canonical = json.dumps(_to_payload(inputs, host), sort_keys=True, separators=(",", ":"))
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{key_prefix(host)}{digest[:32]}"


def key_prefix(host: HostInfo) -> str:
    """Readable part shared by every key built on this host."""
    return f"{KEY_PREFIX}-{host.platform_string()}-"


def cache_paths(inputs: Inputs) -> List[Path]:
    """Paths saved and restored together as one cache entry."""
    return [inputs.odin_path]


def _to_payload(inputs: Inputs, host: HostInfo) -> Dict[str, Any]:
    return {
        "repository": inputs.repository,
        "odin_version": inputs.odin_version,
        "build_type": inputs.build_type,
        "os": host.os.value,
        "arch": host.arch,
    }
