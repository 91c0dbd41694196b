"""
CLI tests: focus on data safety, correct keeper selection and exit codes.
Argument lists are passed to CLIApplication.run() directly; stdin is mocked
wherever a terminal matters.
"""
import json
from unittest import mock

import pytest

from keepone.cli import CLIApplication, EXIT_OK, EXIT_FAILURE, EXIT_ABORTED
from keepone.services.file_service import FileService


def tty(is_tty=True):
    stdin = mock.MagicMock()
    stdin.isatty.return_value = is_tty
    return mock.patch("sys.stdin", stdin)


def run_cli(*argv):
    return CLIApplication().run([str(a) for a in argv])


class TestDryRunOutput:

    def test_lists_keep_and_delete_without_touching_files(self, test_files, temp_dir, capsys):
        code = run_cli(temp_dir)

        out = capsys.readouterr().out
        assert code == EXIT_OK
        assert "Found 2 duplicate groups (5 files)" in out
        assert f"[KEEP] {test_files['dup1_a']}" in out
        assert f"[DEL]  {test_files['dup1_b']}" in out
        assert "3 files can be removed" in out
        assert all(p.exists() for p in test_files.values())

    def test_no_duplicates(self, temp_dir, capsys):
        (temp_dir / "only.txt").write_text("alone")
        assert run_cli(temp_dir) == EXIT_OK
        assert "No duplicate groups found." in capsys.readouterr().out

    def test_quiet_prints_nothing_on_stdout(self, test_files, temp_dir, capsys):
        assert run_cli(temp_dir, "--quiet") == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_no_color_drops_markers(self, test_files, temp_dir, capsys, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        run_cli(temp_dir)
        assert "📁" not in capsys.readouterr().out

    def test_min_size_filters_small_groups(self, test_files, temp_dir, capsys):
        run_cli(temp_dir, "--min-size", "2KB")
        out = capsys.readouterr().out
        assert "Found 1 duplicate groups (2 files)" in out
        assert str(test_files["dup1_b"]) not in out


class TestJsonOutput:

    def test_report_written_with_parents(self, test_files, temp_dir, tmp_path):
        destination = tmp_path / "reports" / "run.json"
        assert run_cli(temp_dir, "--json-output", destination) == EXIT_OK

        data = json.loads(destination.read_text(encoding="utf-8"))
        assert data["dry_run"] is True
        assert data["files_examined"] == 9
        assert data["removable_count"] == 3
        assert data["savings_bytes"] == 4096
        assert len(data["duplicate_groups"]) == 2

    def test_json_forces_dry_run(self, test_files, temp_dir, tmp_path, capsys):
        destination = tmp_path / "run.json"
        with tty():
            run_cli(temp_dir, "--mode", "interactive", "--json-output", destination)

        assert "implies dry-run" in capsys.readouterr().err
        assert all(p.exists() for p in test_files.values())
        assert json.loads(destination.read_text(encoding="utf-8"))["mode"] == "dry-run"


class TestBatchConfirm:

    def test_yes_deletes_all_but_keeper(self, test_files, temp_dir, capsys):
        code = run_cli(temp_dir, "--mode", "confirm", "--yes")

        assert code == EXIT_OK
        assert test_files["dup1_a"].exists()
        assert not test_files["dup1_b"].exists()
        assert not test_files["sub_dup"].exists()
        assert test_files["dup2_a"].exists()
        assert not test_files["dup2_b"].exists()
        assert test_files["unique1"].exists() and test_files["empty"].exists()
        assert "Removed 3 files from 2 groups." in capsys.readouterr().out

    def test_refusal_deletes_nothing(self, test_files, temp_dir, capsys):
        with tty(), mock.patch("builtins.input", return_value="n"):
            code = run_cli(temp_dir, "--mode", "confirm")

        assert code == EXIT_OK
        assert all(p.exists() for p in test_files.values())
        assert "Deletion cancelled by user." in capsys.readouterr().out

    def test_trash_flag_routes_through_send2trash(self, test_files, temp_dir):
        with mock.patch("keepone.services.file_service.send2trash") as trash:
            run_cli(temp_dir, "--mode", "confirm", "--yes", "--trash")

        trashed = {call.args[0] for call in trash.call_args_list}
        assert trashed == {str(test_files["dup1_b"]), str(test_files["sub_dup"]), str(test_files["dup2_b"])}

    def test_failed_deletion_sets_exit_code(self, test_files, temp_dir, capsys):
        with mock.patch.object(FileService, "remove_file",
                               side_effect=PermissionError(13, "Permission denied")):
            code = run_cli(temp_dir, "--mode", "confirm", "--yes")

        assert code == EXIT_FAILURE
        assert "Failed to delete 3 file(s)" in capsys.readouterr().out


class TestInteractive:

    def test_choice_and_abort(self, test_files, temp_dir):
        # group order: 2KB pair first, then the 1KB triple
        with tty(), mock.patch("builtins.input", side_effect=["2", "q"]):
            code = run_cli(temp_dir, "--mode", "interactive")

        assert code == EXIT_ABORTED
        assert not test_files["dup2_a"].exists()
        assert test_files["dup2_b"].exists()
        assert test_files["dup1_a"].exists() and test_files["dup1_b"].exists()
        assert test_files["sub_dup"].exists()

    def test_enter_keeps_default_and_skip(self, test_files, temp_dir):
        with tty(), mock.patch("builtins.input", side_effect=["", "s"]):
            code = run_cli(temp_dir, "--mode", "interactive")

        assert code == EXIT_OK
        assert test_files["dup2_a"].exists()
        assert not test_files["dup2_b"].exists()
        assert test_files["dup1_b"].exists() and test_files["sub_dup"].exists()


class TestKeeperSelection:

    @pytest.fixture
    def layout(self, temp_dir):
        deep = temp_dir / "deep" / "z" / "a.bin"
        deep.parent.mkdir(parents=True)
        deep.write_bytes(b"same bytes")
        shallow = temp_dir / "zz.bin"
        shallow.write_bytes(b"same bytes")
        return deep, shallow

    @pytest.mark.parametrize("policy, kept", [
        ("lexicographic", 0),
        ("shortest-path", 1),
        ("shortest-filename", 0),
    ])
    def test_policies(self, layout, temp_dir, policy, kept):
        run_cli(temp_dir, "--mode", "confirm", "--yes", "--keep", policy)
        assert [p.exists() for p in layout] == [i == kept for i in range(2)]

    def test_priority_dir_wins_over_policy(self, layout, temp_dir):
        deep, shallow = layout
        run_cli(temp_dir, "--mode", "confirm", "--yes", "--keep", "shortest-path",
                "--priority-dirs", temp_dir / "deep")
        assert deep.exists()
        assert not shallow.exists()


class TestArgumentValidation:

    def test_yes_requires_confirm_mode(self, temp_dir, capsys):
        with pytest.raises(SystemExit) as exc:
            run_cli(temp_dir, "--yes")
        assert exc.value.code == EXIT_FAILURE
        assert "--yes can only be used with --mode confirm" in capsys.readouterr().err

    @pytest.mark.parametrize("mode", ["confirm", "interactive"])
    def test_prompting_modes_refuse_non_tty(self, test_files, temp_dir, mode, capsys):
        with tty(False), pytest.raises(SystemExit) as exc:
            run_cli(temp_dir, "--mode", mode)
        assert exc.value.code == EXIT_FAILURE
        assert "non-interactive" in capsys.readouterr().err
        assert all(p.exists() for p in test_files.values())

    def test_invalid_root(self, temp_dir, capsys):
        with pytest.raises(SystemExit) as exc:
            run_cli(temp_dir / "missing")
        assert exc.value.code == EXIT_FAILURE
        assert "missing" in capsys.readouterr().err

    @pytest.mark.parametrize("argv", [
        ["--min-size", "lots"],
        ["--min-size", "2MB", "--max-size", "1MB"],
        ["--workers", "0"],
    ])
    def test_bad_options(self, temp_dir, argv):
        with pytest.raises(SystemExit) as exc:
            run_cli(temp_dir, *argv)
        assert exc.value.code == EXIT_FAILURE

    def test_unknown_mode_rejected_by_argparse(self, temp_dir):
        with pytest.raises(SystemExit) as exc:
            run_cli(temp_dir, "--mode", "yolo")
        assert exc.value.code == 2

    def test_missing_priority_dir_is_only_a_warning(self, test_files, temp_dir, capsys):
        assert run_cli(temp_dir, "-p", temp_dir / "nowhere") == EXIT_OK
        assert "Priority directory not found" in capsys.readouterr().err

    def test_verbose_prints_stage_stats(self, test_files, temp_dir, capsys):
        run_cli(temp_dir, "--verbose")
        assert "Completed in" in capsys.readouterr().out


class TestHelpAndQuiet:

    def test_help_warns_about_file_symlinks(self, capsys):
        with pytest.raises(SystemExit) as exc:
            CLIApplication.parse_args(["--help"])
        assert exc.value.code == 0
        assert "symlink to a file is treated as its target" in capsys.readouterr().out

    def test_quiet_confirm_yes_prints_no_preview(self, test_files, temp_dir, capsys):
        assert run_cli(temp_dir, "--mode", "confirm", "--yes", "--quiet") == EXIT_OK
        assert capsys.readouterr().out == ""
        assert not test_files["dup1_b"].exists()
