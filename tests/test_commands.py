"""
Integration tests for DeduplicationCommand, the orchestration layer between callers and core.
Verifies scanner → deduplicator → resolution wiring, idempotence and fatal root errors.
"""
import pytest
from pathlib import Path
from unittest import mock

from keepone import DeduplicationParams, ResolutionMode, DeduplicationCommand, InvalidRootError, run
from keepone.core.models import GroupStatus


class AlwaysYes:
    def confirm(self, summary):
        return True


def snapshot(root: Path):
    return sorted((str(p), p.read_bytes()) for p in root.rglob("*") if p.is_file())


class TestDeduplicationCommand:

    def test_dry_run_report(self, test_files, temp_dir):
        report = DeduplicationCommand().execute(DeduplicationParams(roots=[str(temp_dir)]))

        assert report.files_examined == 9
        assert len(report.groups) == 2
        assert report.removable_count == 3
        assert report.bytes_would_free == 2 * 1024 + 2048
        assert all(g.status is GroupStatus.WOULD_DELETE for g in report.groups)
        assert report.succeeded

    def test_groups_ordered_by_potential_savings(self, test_files, temp_dir):
        report = run([str(temp_dir)])
        # 1KB x3 saves 2048, 2KB x2 saves 2048: tie broken by larger size
        assert [g.group.size for g in report.groups] == [2048, 1024]

    def test_dry_run_twice_is_identical_and_read_only(self, test_files, temp_dir):
        before = snapshot(temp_dir)
        first = run([str(temp_dir)]).to_dict()
        second = run([str(temp_dir)]).to_dict()

        assert first == second
        assert snapshot(temp_dir) == before

    def test_batch_confirm_then_rerun_finds_nothing(self, test_files, temp_dir):
        report = run([str(temp_dir)], ResolutionMode.BATCH_CONFIRM, confirmer=AlwaysYes())

        assert report.files_deleted == 3
        assert report.bytes_freed == sum(r.group.size * r.files_deleted for r in report.groups)
        assert test_files["dup1_a"].exists()
        assert not test_files["dup1_b"].exists()
        assert not test_files["sub_dup"].exists()

        again = run([str(temp_dir)], ResolutionMode.BATCH_CONFIRM, confirmer=AlwaysYes())
        assert again.groups == []
        assert again.files_deleted == 0

    def test_empty_directory_is_not_an_error(self, temp_dir):
        report = run([str(temp_dir)])
        assert report.files_examined == 0
        assert report.groups == []
        assert report.succeeded

    def test_invalid_root_aborts_before_hashing(self, temp_dir):
        params = DeduplicationParams(roots=[str(temp_dir), str(temp_dir / "missing")])
        command = DeduplicationCommand()
        with pytest.raises(InvalidRootError):
            command.execute(params)
        assert command.get_files() == []

    def test_progress_callbacks_invoked(self, test_files, temp_dir):
        stages = set()
        hash_updates = []
        DeduplicationCommand().execute(
            DeduplicationParams(roots=[str(temp_dir)]),
            progress_callback=lambda stage, current, total: stages.add(stage),
            hash_progress_callback=hash_updates.append,
        )
        assert {"Indexing", "Size grouping", "Full Hash"} <= stages
        assert hash_updates[-1].files_done == hash_updates[-1].files_total == 5

    def test_stats_include_indexing(self, test_files, temp_dir):
        command = DeduplicationCommand()
        command.execute(DeduplicationParams(roots=[str(temp_dir)]))
        assert list(command.stats.stage_stats)[0] == "index"
        assert command.stats.stage_stats["index"]["files"] == 9

    def test_unreadable_file_recorded_and_siblings_grouped(self, temp_dir):
        for name in ("a", "b", "c"):
            (temp_dir / name).write_bytes(b"shared content")
        locked = temp_dir / "d"
        locked.write_bytes(b"shared content")

        real_open = open

        # readable at index time, unreadable when hashed
        def guarded_open(file, *args, **kwargs):
            if str(file) == str(locked):
                raise PermissionError(13, "Permission denied", str(file))
            return real_open(file, *args, **kwargs)

        with mock.patch("builtins.open", side_effect=guarded_open):
            report = run([str(temp_dir)])

        assert [e.path for e in report.hash_errors] == [str(locked)]
        assert len(report.groups) == 1
        assert len(report.groups[0].group.files) == 3
        assert not report.succeeded
