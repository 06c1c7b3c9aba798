"""
Unit tests for filesystem utilities.

Tests the operations the cache store relies on:
- Archive creation and validated extraction
- Atomic writes
- Safe directory removal
"""

import io
import tarfile
from pathlib import Path

import pytest

from odinkit.core.exceptions import OdinKitError
from odinkit.core.filesystem import (
    ArchiveExtractionError,
    FilesystemError,
    InsecureArchiveError,
    atomic_write,
    create_tar_gz,
    extract_tar_gz,
    safe_rmtree,
)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def checkout(temp_dir):
    """A small directory tree standing in for an Odin checkout."""
    root = temp_dir / "workspace"
    odin = root / "odin"
    (odin / "core").mkdir(parents=True)
    (odin / "odin").write_text("compiler")
    (odin / "core" / "fmt.odin").write_text("package fmt")
    return root


# ============================================================================
# Archives
# ============================================================================


class TestArchives:
    """Test tar.gz creation and extraction."""

    def test_create_and_extract(self, checkout, temp_dir):
        archive = temp_dir / "cache" / "entry.tar.gz"
        create_tar_gz(archive, checkout, [checkout / "odin"])

        destination = temp_dir / "restored"
        extract_tar_gz(archive, destination)

        assert (destination / "odin" / "odin").read_text() == "compiler"
        assert (destination / "odin" / "core" / "fmt.odin").read_text() == "package fmt"

    def test_no_temp_files_left(self, checkout, temp_dir):
        archive = temp_dir / "cache" / "entry.tar.gz"
        create_tar_gz(archive, checkout, [checkout / "odin"])

        assert [p.name for p in archive.parent.iterdir()] == ["entry.tar.gz"]

    def test_missing_member_rejected(self, checkout, temp_dir):
        archive = temp_dir / "entry.tar.gz"

        with pytest.raises(FilesystemError, match="does not exist"):
            create_tar_gz(archive, checkout, [checkout / "missing"])

        assert not archive.exists()

    def test_member_outside_root_rejected(self, checkout, temp_dir):
        outside = temp_dir / "elsewhere"
        outside.mkdir()

        with pytest.raises(FilesystemError, match="is not under"):
            create_tar_gz(temp_dir / "entry.tar.gz", checkout, [outside])

    def test_extract_missing_archive(self, temp_dir):
        with pytest.raises(ArchiveExtractionError, match="not found"):
            extract_tar_gz(temp_dir / "missing.tar.gz", temp_dir / "out")

    def test_extract_corrupt_archive(self, temp_dir):
        archive = temp_dir / "corrupt.tar.gz"
        archive.write_bytes(b"not a tarball")

        with pytest.raises(ArchiveExtractionError):
            extract_tar_gz(archive, temp_dir / "out")

    def test_extract_blocks_traversal(self, temp_dir):
        archive = temp_dir / "evil.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            data = b"pwned"
            info = tarfile.TarInfo("../escape.txt")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))

        with pytest.raises(InsecureArchiveError):
            extract_tar_gz(archive, temp_dir / "out")

        assert not (temp_dir / "escape.txt").exists()

    def test_errors_are_odinkit_errors(self):
        assert issubclass(FilesystemError, OdinKitError)


# ============================================================================
# Safe File Operations
# ============================================================================


class TestAtomicWrite:
    """Test atomic file writes."""

    def test_write_text(self, temp_dir):
        target = temp_dir / "state" / "state.json"
        atomic_write(target, '{"cache-hit": "false"}')

        assert target.read_text(encoding="utf-8") == '{"cache-hit": "false"}'

    def test_write_bytes(self, temp_dir):
        target = temp_dir / "blob"
        atomic_write(target, b"\x00\x01")

        assert target.read_bytes() == b"\x00\x01"

    def test_overwrite(self, temp_dir):
        target = temp_dir / "file.txt"
        target.write_text("old")
        atomic_write(target, "new")

        assert target.read_text() == "new"
        assert len(list(temp_dir.iterdir())) == 1


class TestSafeRmtree:
    """Test guarded directory removal."""

    def test_removes_tree(self, checkout):
        safe_rmtree(checkout / "odin", require_prefix=checkout)

        assert not (checkout / "odin").exists()

    def test_missing_is_noop(self, temp_dir):
        safe_rmtree(temp_dir / "missing", require_prefix=temp_dir)

    def test_outside_prefix_refused(self, checkout, temp_dir):
        with pytest.raises(ValueError, match="Refusing to delete"):
            safe_rmtree(checkout / "odin", require_prefix=temp_dir / "other")

        assert (checkout / "odin").exists()

    def test_file_rejected(self, temp_dir):
        target = temp_dir / "file.txt"
        target.write_text("x")

        with pytest.raises(FilesystemError, match="not a directory"):
            safe_rmtree(target)

    def test_read_only_files(self, checkout):
        read_only = checkout / "odin" / "pack.idx"
        read_only.write_text("pack")
        read_only.chmod(0o444)

        safe_rmtree(checkout / "odin")

        assert not Path(checkout / "odin").exists()
