"""
Integration tests for DeduplicatorImpl: index → size → quick check → full hash.
"""
import pytest
from pathlib import Path

from keepone.core.scanner import FileScannerImpl
from keepone.core.deduplicator import DeduplicatorImpl
from keepone.core.models import DeduplicationParams, KeeperPolicy


def find(root, **kwargs):
    params = DeduplicationParams(roots=[str(root)], **kwargs)
    files = FileScannerImpl(params.roots).scan()
    errors = []
    groups, stats = DeduplicatorImpl().find_duplicates(files, params, hash_errors=errors)
    return groups, stats, errors


class TestDeduplicatorImpl:

    @pytest.mark.parametrize("quick_check", [True, False])
    def test_finds_expected_groups(self, test_files, temp_dir, quick_check):
        groups, _, errors = find(temp_dir, quick_check=quick_check)

        assert errors == []
        assert sorted(len(g.files) for g in groups) == [2, 3]
        triple = next(g for g in groups if len(g.files) == 3)
        assert set(triple.paths) == {str(test_files["dup1_a"]), str(test_files["dup1_b"]),
                                     str(test_files["sub_dup"])}

    def test_zero_byte_files_never_grouped(self, test_files, temp_dir):
        groups, _, _ = find(temp_dir)
        for group in groups:
            assert group.size > 0
            assert str(test_files["empty"]) not in group.paths

    def test_identical_content_across_directories(self, temp_dir):
        content = b"identical bytes " * 100
        for d in ("x", "y/z", "w"):
            (temp_dir / d).mkdir(parents=True)
            (temp_dir / d / f"copy_{d.replace('/', '_')}.bin").write_bytes(content)

        groups, _, _ = find(temp_dir)

        assert len(groups) == 1
        assert len(groups[0].files) == 3

    def test_same_size_one_byte_difference(self, temp_dir):
        (temp_dir / "a.bin").write_bytes(b"\x00" * 200_000)
        (temp_dir / "b.bin").write_bytes(b"\x00" * 199_999 + b"\x01")

        groups, _, _ = find(temp_dir)

        assert groups == []

    def test_large_files_same_prefix_different_tail(self, temp_dir):
        prefix = b"P" * (128 * 1024)
        (temp_dir / "a.bin").write_bytes(prefix + b"1")
        (temp_dir / "b.bin").write_bytes(prefix + b"2")
        (temp_dir / "c.bin").write_bytes(prefix + b"1")

        groups, _, _ = find(temp_dir, chunk_size=4096)

        assert len(groups) == 1
        assert sorted(Path(p).name for p in groups[0].paths) == ["a.bin", "c.bin"]

    def test_keeper_policy_from_params(self, temp_dir):
        (temp_dir / "deep" / "er").mkdir(parents=True)
        (temp_dir / "deep" / "er" / "a.txt").write_bytes(b"dup content")
        (temp_dir / "z.txt").write_bytes(b"dup content")

        lexi, _, _ = find(temp_dir)
        shallow, _, _ = find(temp_dir, keeper_policy=KeeperPolicy.SHORTEST_PATH)

        assert lexi[0].keeper.path == str(temp_dir / "deep" / "er" / "a.txt")
        assert shallow[0].keeper.path == str(temp_dir / "z.txt")

    def test_stats_cover_every_stage(self, test_files, temp_dir):
        _, stats, _ = find(temp_dir)
        assert list(stats.stage_stats) == ["size", "quick", "full"]
        assert stats.stage_stats["full"]["groups"] == 2

    def test_repeated_runs_are_identical(self, test_files, temp_dir):
        first, _, _ = find(temp_dir, workers=4)
        second, _, _ = find(temp_dir, workers=1)
        assert [g.to_dict() for g in first] == [g.to_dict() for g in second]
