"""
Cache stores for Odin checkouts.

A cache entry is the set of cache paths packed into one archive under one key.
Entries are always written and restored whole: a restore extracts into a
scratch directory first and only then swaps the paths into place.

LocalCacheStore keeps entries in a directory (typically shared by all jobs on
a self-hosted runner) and tracks them in an index file, guarded by a file lock
so concurrent runner processes do not see half-written entries.
"""

import asyncio
import json
import logging
import re
import shutil
import tempfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from filelock import FileLock, Timeout

from odinkit.core.exceptions import CacheError, CacheLockTimeout
from odinkit.core.filesystem import (
    FilesystemError,
    atomic_write,
    create_tar_gz,
    extract_tar_gz,
    safe_rmtree,
)

logger = logging.getLogger(__name__)

MAX_KEY_LENGTH = 512
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


def validate_key(key: str) -> None:
    """
    Check that a key can be used as an entry name.

    Raises:
        CacheError: If the key is empty, too long or has unsafe characters
    """
    if not key or len(key) > MAX_KEY_LENGTH:
        raise CacheError(f"Cache key must be 1-{MAX_KEY_LENGTH} characters, got {len(key)}")
    if not _KEY_PATTERN.match(key):
        raise CacheError(f"Cache key contains unsupported characters: {key}")


class CacheStore(ABC):
    """Interface the orchestrator uses to restore and save cache entries."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the store can be used in this run."""
        pass

    @abstractmethod
    async def restore(self, paths: Sequence[Path], key: str) -> Optional[str]:
        """
        Restore an entry into ``paths``.

        Only an exact key match is restored.

        Args:
            paths: Paths making up the entry
            key: Key to look for

        Returns:
            The key that was actually restored, or None when nothing was.
            Store failures are reported as None.
        """
        pass

    @abstractmethod
    async def save(self, paths: Sequence[Path], key: str) -> None:
        """
        Save ``paths`` as one entry under ``key``.

        Raises:
            CacheError: If the entry cannot be written
        """
        pass


class LocalCacheStore(CacheStore):
    """
    Directory-backed cache store.

    Example:
        >>> store = LocalCacheStore(Path('~/.odinkit/cache'), root=Path('/tmp/work'))
        >>> restored = await store.restore([Path('/tmp/work/odin')], 'odin-linux-x64-ab12')
    """

    def __init__(self, cache_dir: Path, root: Path, lock_timeout: int = 300):
        """
        Args:
            cache_dir: Directory holding archives and the index
            root: Directory cache paths are stored relative to
            lock_timeout: Seconds to wait for the cache directory lock
        """
        self.cache_dir = Path(cache_dir)
        self.root = Path(root)
        self.index_path = self.cache_dir / "index.json"
        self.lock_path = self.cache_dir / "lock" / "cache.lock"
        self.lock_timeout = lock_timeout

    def is_available(self) -> bool:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            probe = self.cache_dir / ".write_test"
            probe.touch()
            probe.unlink()
            return True
        except OSError as e:
            logger.warning(f"Cache directory {self.cache_dir} is not usable: {e}")
            return False

    async def restore(self, paths: Sequence[Path], key: str) -> Optional[str]:
        try:
            validate_key(key)
            return await asyncio.to_thread(self._restore_blocking, list(paths), key)
        except (CacheError, FilesystemError, OSError) as e:
            logger.warning(f"Failed to restore cache: {e}")
            return None

    async def save(self, paths: Sequence[Path], key: str) -> None:
        validate_key(key)
        try:
            await asyncio.to_thread(self._save_blocking, list(paths), key)
        except (FilesystemError, OSError) as e:
            raise CacheError(f"Failed to save cache entry {key}: {e}") from e

    def entries(self) -> Dict[str, dict]:
        """Snapshot of the index, keyed by cache key."""
        with self._lock():
            return self._load_index()["entries"]

    # ------------------------------------------------------------------
    # Blocking implementation (runs off the event loop)
    # ------------------------------------------------------------------

    def _restore_blocking(self, paths: List[Path], key: str) -> Optional[str]:
        with self._lock():
            entries = self._load_index()["entries"]
            if key not in entries:
                logger.debug(f"No cache entry for {key}")
                return None
            archive = self.cache_dir / entries[key]["archive"]

            self.root.mkdir(parents=True, exist_ok=True)
            scratch = Path(tempfile.mkdtemp(dir=self.root, prefix=".odinkit-restore-"))
            try:
                extract_tar_gz(archive, scratch)
                for path in paths:
                    relative = Path(path).resolve().relative_to(self.root.resolve())
                    if not (scratch / relative).exists():
                        raise CacheError(f"Cache entry {key} does not contain {relative}")
                for path in paths:
                    relative = Path(path).resolve().relative_to(self.root.resolve())
                    safe_rmtree(path, require_prefix=self.root)
                    Path(path).parent.mkdir(parents=True, exist_ok=True)
                    (scratch / relative).replace(path)
            finally:
                shutil.rmtree(scratch, ignore_errors=True)

        size_mb = archive.stat().st_size / (1024 * 1024)
        logger.info(f"Cache restored from key: {key} ({size_mb:.1f} MB)")
        return key

    def _save_blocking(self, paths: List[Path], key: str) -> None:
        with self._lock():
            data = self._load_index()
            if key in data["entries"]:
                logger.info(f"Cache entry {key} already exists, not saving")
                return

            archive_name = f"{key}.tar.gz"
            archive = self.cache_dir / archive_name
            create_tar_gz(archive, self.root, paths)

            data["entries"][key] = {
                "archive": archive_name,
                "created": datetime.now().isoformat(),
                "size_mb": archive.stat().st_size / (1024 * 1024),
                "paths": [str(Path(p).resolve().relative_to(self.root.resolve())) for p in paths],
            }
            self._save_index(data)

        logger.info(f"Cache saved with key: {key}")

    def _load_index(self) -> dict:
        if not self.index_path.exists():
            return {"version": 1, "entries": {}}

        try:
            with open(self.index_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise CacheError(f"Failed to load cache index: {e}") from e

        if "version" not in data or "entries" not in data:
            logger.warning("Invalid cache index format, resetting")
            return {"version": 1, "entries": {}}

        # Drop entries whose archive disappeared
        data["entries"] = {
            k: v for k, v in data["entries"].items() if (self.cache_dir / v["archive"]).exists()
        }
        return data

    def _save_index(self, data: dict) -> None:
        atomic_write(self.index_path, json.dumps(data, indent=2, ensure_ascii=False))

    @contextmanager
    def _lock(self):
        """
        Exclusive lock on the cache directory.

        Raises:
            CacheLockTimeout: If lock cannot be acquired within timeout
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.lock_path, timeout=self.lock_timeout)

        try:
            with lock:
                logger.debug("Acquired cache lock")
                yield
            logger.debug("Released cache lock")
        except Timeout as e:
            raise CacheLockTimeout(
                f"Could not acquire cache lock within {self.lock_timeout} seconds"
            ) from e
