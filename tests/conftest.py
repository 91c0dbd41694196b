"""
Shared fixtures for keepone tests.
Creates isolated temporary directories with controlled test files.
"""
import hashlib
import pytest
import tempfile
from pathlib import Path
from typing import Dict

from keepone.core.models import FileCandidate, DuplicateGroup


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # resolved so scanner output compares equal on systems with symlinked /tmp
        yield Path(tmpdir).resolve()


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Creates controlled test files for duplicate detection scenarios:
    - 3 identical 1KB files (two in root, one in subdir)
    - 2 identical 2KB files
    - 2 unique files (sizes 1500 and 2500)
    - 2 empty files (never grouped)
    """
    files = {}

    # Duplicate set #1 (1KB of 'A')
    content_a = b"A" * 1024
    files["dup1_a"] = temp_dir / "dup1_a.txt"
    files["dup1_b"] = temp_dir / "dup1_b.txt"
    files["dup1_a"].write_bytes(content_a)
    files["dup1_b"].write_bytes(content_a)

    # Duplicate pair #2 (2KB of 'B')
    content_b = b"B" * 2048
    files["dup2_a"] = temp_dir / "dup2_a.txt"
    files["dup2_b"] = temp_dir / "dup2_b.txt"
    files["dup2_a"].write_bytes(content_b)
    files["dup2_b"].write_bytes(content_b)

    # Unique files
    files["unique1"] = temp_dir / "unique1.txt"
    files["unique1"].write_bytes(b"C" * 1500)
    files["unique2"] = temp_dir / "unique2.txt"
    files["unique2"].write_bytes(b"D" * 2500)

    # Empty files
    files["empty"] = temp_dir / "empty.txt"
    files["empty"].write_bytes(b"")
    files["empty2"] = temp_dir / "empty2.txt"
    files["empty2"].write_bytes(b"")

    # Subdirectory with a third copy of content_a
    subdir = temp_dir / "subdir"
    subdir.mkdir()
    files["sub_dup"] = subdir / "dup_in_subdir.txt"
    files["sub_dup"].write_bytes(content_a)

    return files


def make_group(paths, size=10, fingerprint=b"\x01" * 32, keeper_index=0) -> DuplicateGroup:
    """Build an in-memory group without touching the filesystem."""
    files = [FileCandidate(path=p, size=size, fingerprint=fingerprint) for p in paths]
    return DuplicateGroup(fingerprint=fingerprint, size=size, files=files, keeper_index=keeper_index)


def write_group(directory: Path, names, content: bytes) -> DuplicateGroup:
    """Write identical files to disk and return them as a group with the default keeper."""
    fingerprint = hashlib.sha256(content).digest()
    paths = []
    for name in names:
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        paths.append(str(path))
    return make_group(sorted(paths), size=len(content), fingerprint=fingerprint)
