"""
File system utilities for OdinKit.

This module provides the file operations the cache store and state file need:
- Safe file operations (atomic writes, safe deletion)
- Archive creation and validated extraction (tar.gz)
"""

import os
import shutil
import sys
import tarfile
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Union

from odinkit.core.exceptions import OdinKitError

IS_WINDOWS = os.name == "nt"


class FilesystemError(OdinKitError):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Raised when archive extraction fails."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Raised when an archive member would be written outside the destination."""

    pass


# ============================================================================
# Archive Handling
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Prevents directory traversal attacks (e.g., paths containing '../').

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not member_path.is_relative_to(destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def create_tar_gz(
    archive_path: Union[str, Path], root: Union[str, Path], members: Iterable[Path]
) -> None:
    """
    Pack directories into a .tar.gz archive, atomically.

    Members are stored relative to ``root`` so the archive can be restored
    into another root with the same layout.

    Args:
        archive_path: Archive file to create (replaced if it exists)
        root: Directory the member paths are made relative to
        members: Paths under ``root`` to include

    Raises:
        FilesystemError: If a member is missing or outside ``root``
    """
    archive_path = Path(archive_path)
    root = Path(root).resolve()
    archive_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=archive_path.parent, prefix=f".{archive_path.name}.", suffix=".tmp"
    )
    os.close(temp_fd)
    temp_path = Path(temp_path_str)

    try:
        with tarfile.open(temp_path, "w:gz") as tar:
            for member in members:
                member = Path(member).resolve()
                if not member.is_relative_to(root):
                    raise FilesystemError(f"Cache path '{member}' is not under '{root}'")
                if not member.exists():
                    raise FilesystemError(f"Cache path does not exist: {member}")
                tar.add(member, arcname=member.relative_to(root).as_posix())

        temp_path.replace(archive_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def extract_tar_gz(archive_path: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Extract a .tar.gz archive after validating every member path.

    Raises:
        ArchiveExtractionError: If the archive is missing or unreadable
        InsecureArchiveError: If the archive contains malicious paths
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)

    try:
        with tarfile.open(archive_path, "r:gz") as tar:
            for member in tar.getmembers():
                _validate_archive_path(member.name, destination)

            if sys.version_info >= (3, 12):
                tar.extractall(destination, filter="data")
            else:
                tar.extractall(destination)
    except InsecureArchiveError:
        raise
    except (tarfile.TarError, OSError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    If the write fails, the original file (if any) remains unchanged.

    Example:
        >>> atomic_write('state.json', '{"cache-hit": "false"}')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/tmp/work/odin', require_prefix='/tmp/work')
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not path.is_relative_to(require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:
            # git marks pack files read-only
            def handle_remove_readonly(func, failed_path, exc):
                if not os.access(failed_path, os.W_OK):
                    os.chmod(failed_path, 0o777)
                    func(failed_path)
                else:
                    raise exc

            if sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=handle_remove_readonly)
            else:
                shutil.rmtree(
                    path,
                    onerror=lambda func, p, info: handle_remove_readonly(func, p, info[1]),
                )
        else:
            shutil.rmtree(path)

    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e
