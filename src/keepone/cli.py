#!/usr/bin/env python3
"""
keepone CLI: find duplicate files and keep exactly one copy of each.
Default mode is a dry run; nothing is deleted unless --mode confirm or
--mode interactive is given.
"""
from __future__ import annotations
import argparse
import json
import sys
import os
import time
from pathlib import Path
from typing import Optional, NoReturn
import logging

LOG_FORMAT = "%(levelname)-8s | %(name)-25s | %(message)s"

logging.basicConfig(
    level=logging.ERROR,
    format=LOG_FORMAT
)

# Fail fast with an install hint instead of a traceback
_MISSING_DEPS = []
try:
    import send2trash  # noqa: F401
except ImportError:
    _MISSING_DEPS.append("send2trash")

try:
    import xxhash  # noqa: F401
except ImportError:
    _MISSING_DEPS.append("xxhash")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    sys.exit(1)

from keepone.core.models import (
    DeduplicationParams, ResolutionMode, KeeperPolicy, RunReport, GroupStatus, HashProgress
)
from keepone.core.errors import KeepOneError
from keepone.commands import DeduplicationCommand
from keepone.prompts import ConsoleConfirmer, ConsolePrompter
from keepone.utils.convert_utils import ConvertUtils
from keepone.aliases import (
    MODE_ALIASES, MODE_CHOICES, MODE_HELP_TEXT,
    KEEP_ALIASES, KEEP_CHOICES, KEEP_HELP_TEXT,
    EPILOG_TEXT
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ABORTED = 3
EXIT_INTERRUPTED = 130


class CLIApplication:
    """argparse front end over DeduplicationCommand; owns all terminal output."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.plain: bool = "NO_COLOR" in os.environ
        self.command: Optional[DeduplicationCommand] = None

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="keepone",
            description="keepone: find duplicate files and keep only one copy",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "roots",
            nargs="+",
            type=str,
            help="Directories to scan for duplicates"
        )

        # Filtering options
        parser.add_argument(
            "--min-size", "-m",
            default="0",
            type=str,
            metavar='',
            help="Minimum file size (e.g., 500KB, 1MB). Default: 0"
        )
        parser.add_argument(
            "--max-size", "-M",
            default="",
            type=str,
            metavar='',
            help="Maximum file size (e.g., 10MB, 1GB). Default: no limit"
        )
        parser.add_argument(
            "--priority-dirs", '-p',
            nargs="+",
            default=[],
            type=str,
            metavar='',
            dest="priority_dirs",
            help="Directories (space separated) whose files are kept in preference to others"
        )
        parser.add_argument(
            "--excluded-dirs", '-e',
            nargs="+",
            default=[],
            type=str,
            metavar='',
            dest="excluded_dirs",
            help="Excluded/ignored directories (space separated)"
        )

        # Resolution options
        parser.add_argument(
            "--mode",
            choices=MODE_CHOICES,
            default="dry-run",
            type=str,
            help=MODE_HELP_TEXT
        )
        parser.add_argument(
            "--keep",
            choices=KEEP_CHOICES,
            default="lexicographic",
            type=str,
            help=KEEP_HELP_TEXT
        )
        parser.add_argument(
            "--trash",
            action="store_true",
            help="Move duplicates to the system trash instead of deleting them"
        )
        parser.add_argument(
            "--yes", "-y",
            action="store_true",
            help="Skip the confirmation prompt in --mode confirm (for automation/scripts)"
        )

        # Performance options
        parser.add_argument(
            "--workers", "-w",
            type=int,
            default=None,
            metavar='',
            help="Number of parallel hashing threads. Default: CPU count, at most 8"
        )
        parser.add_argument(
            "--no-quick-check",
            action="store_false",
            dest="quick_check",
            help="Skip the first-chunk pre-filter and hash every candidate in full"
        )

        # Output options
        parser.add_argument(
            "--json-output",
            type=str,
            default=None,
            metavar='FILE',
            help="Write the run report as JSON to FILE (implies dry-run)"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show detailed statistics and progress"
        )
        parser.add_argument(
            "--debug",
            action="store_true",
            help="Enable debug logging"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Reject inconsistent options before anything touches the disk."""
        mode = MODE_ALIASES[args.mode]

        if args.json_output and mode != ResolutionMode.DRY_RUN:
            self.warning("--json-output implies dry-run; nothing will be deleted")
            args.mode = "dry-run"
            mode = ResolutionMode.DRY_RUN

        if args.yes and mode != ResolutionMode.BATCH_CONFIRM:
            self.error_exit("--yes can only be used with --mode confirm")

        # Prevent interactive prompts in non-TTY environments
        needs_tty = mode == ResolutionMode.INTERACTIVE or (mode == ResolutionMode.BATCH_CONFIRM and not args.yes)
        if needs_tty and not sys.stdin.isatty():
            self.error_exit(
                "Cannot prompt for input in a non-interactive session.\n"
                "Use --mode confirm --yes to delete without prompting, or --mode dry-run to preview."
            )

        if args.workers is not None and args.workers < 1:
            self.error_exit("--workers must be at least 1")

        # Validate size formats
        try:
            min_size = ConvertUtils.human_to_bytes(args.min_size)
            if args.max_size:
                max_size = ConvertUtils.human_to_bytes(args.max_size)
                if max_size < min_size:
                    self.error_exit("Maximum size cannot be less than minimum size")
        except ValueError as e:
            self.error_exit(f"Invalid size format: {e}")

        self._check_dirs("Priority", args.priority_dirs)
        self._check_dirs("Excluded", args.excluded_dirs)

    def _check_dirs(self, label: str, dirs) -> None:
        for entry in dirs:
            path = Path(entry).expanduser()
            if not path.exists():
                self.warning(f"{label} directory not found: {entry}")
            elif not path.is_dir():
                self.warning(f"{label} path is not a directory: {entry}")

    def create_params(self, args: argparse.Namespace) -> DeduplicationParams:
        extra = {"quick_check": args.quick_check, "use_trash": args.trash}
        if args.workers is not None:
            extra["workers"] = args.workers
        try:
            return DeduplicationParams.from_human_readable(
                roots=args.roots,
                mode=MODE_ALIASES[args.mode],
                min_size_str=args.min_size,
                max_size_str=args.max_size,
                keeper_policy=KEEP_ALIASES.get(args.keep, KeeperPolicy.LEXICOGRAPHIC),
                priority_dirs=[str(Path(d.strip()).resolve()) for d in args.priority_dirs],
                excluded_dirs=[str(Path(d.strip()).resolve()) for d in args.excluded_dirs],
                **extra
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def icon(self, symbol: str) -> str:
        """Decorative marker, dropped under NO_COLOR or --quiet."""
        return "" if self.plain else f"{symbol} "

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """Single-line stage progress on stderr (--verbose only)."""
        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(f"\r  [{stage}] {current}/{total} ({percent:.1f}%)")
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
        sys.stderr.flush()

    @staticmethod
    def hash_progress_callback(progress: HashProgress) -> None:
        name = os.path.basename(progress.current_path)
        sys.stderr.write(
            f"\r  [Hashing] {progress.files_done}/{progress.files_total} "
            f"({progress.percent:.1f}%) {name[:40]:<40}"
        )
        sys.stderr.flush()

    def run_deduplication(self, params: DeduplicationParams, assume_yes: bool) -> RunReport:
        """Execute the whole run and return its report."""
        self.command = DeduplicationCommand()
        if self.verbose:
            print(f"Finding duplicates (mode: {params.mode.display_name})...")

        report = self.command.execute(
            params,
            confirmer=ConsoleConfirmer(assume_yes=assume_yes, quiet=self.quiet),
            chooser=ConsolePrompter(),
            progress_callback=self.progress_callback if self.verbose else None,
            hash_progress_callback=self.hash_progress_callback if self.verbose else None
        )

        if self.verbose:
            sys.stderr.write("\n")
            print()
            print(self.command.stats.print_summary())

        return report

    def output_preview(self, report: RunReport) -> None:
        """List every group with its keeper and the files that would go."""
        if self.quiet:
            return

        if not report.groups:
            print("No duplicate groups found.")
            return

        total_files = sum(len(g.group.files) for g in report.groups)
        print(f"\nFound {len(report.groups)} duplicate groups ({total_files} files)")

        for idx, result in enumerate(report.groups, 1):
            group = result.group
            size_str = ConvertUtils.bytes_to_human(group.size)
            print(f"\n{self.icon('📁')}Group {idx} | Size: {size_str} | Files: {len(group.files)}")
            print(f"   [KEEP] {result.decision.keeper.path}")
            for file in result.decision.files_to_delete:
                print(f"   [DEL]  {file.path}")

        print()
        print("=" * 60)
        print(f"Summary: {report.removable_count} files can be removed, "
              f"{ConvertUtils.bytes_to_human(report.bytes_would_free)} would be freed")

    def output_results(self, report: RunReport) -> None:
        """Final summary after a mutating run."""
        if report.confirmed is False:
            print("Deletion cancelled by user.")
            return

        if not report.groups:
            if not self.quiet:
                print("No duplicate groups found.")
            return

        skipped = sum(1 for g in report.groups if g.status is GroupStatus.SKIPPED)
        failures = report.failures

        if report.aborted:
            print(f"{self.icon('⚠️ ')}Stopped by user after {report.groups_processed} group(s).")

        if failures:
            print(f"\n{self.icon('⚠️ ')}Partial success: {report.files_deleted}/"
                  f"{report.files_deleted + len(failures)} files removed.")
            print(f"Failed to delete {len(failures)} file(s):")
            for outcome in failures[:5]:
                print(f"  • {outcome.path}: {outcome.reason}")
            if len(failures) > 5:
                print(f"  ...and {len(failures) - 5} more files")
        elif not self.quiet:
            print(f"{self.icon('✅')}Removed {report.files_deleted} files from "
                  f"{report.groups_processed} groups.")

        if not self.quiet:
            if skipped:
                print(f"Skipped {skipped} group(s).")
            print(f"Total space freed: {ConvertUtils.bytes_to_human(report.bytes_freed)}")

    def output_warnings(self, report: RunReport) -> None:
        for warning in report.traversal_warnings:
            self.warning(f"Skipped {warning.path}: {warning.reason}")
        for error in report.hash_errors:
            self.warning(f"Could not hash {error.path}: {error.reason}")

    def write_json(self, report: RunReport, destination: str) -> None:
        path = Path(destination).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2)
        except OSError as e:
            self.error_exit(f"Cannot write JSON report to {path}: {e}")
        if not self.quiet:
            print(f"Report written to {path}")

    @staticmethod
    def exit_code(report: RunReport) -> int:
        if report.aborted:
            return EXIT_ABORTED
        if not report.succeeded:
            return EXIT_FAILURE
        return EXIT_OK

    def warning(self, message: str) -> None:
        if not self.quiet:
            print(f"{self.icon('⚠️ ')}{message}", file=sys.stderr)

    def error_exit(self, message: str, code: int = EXIT_FAILURE) -> NoReturn:
        """Report a fatal problem on stderr and exit."""
        print(f"{self.icon('❌')}Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv=None) -> int:
        """Main entry point; returns the process exit code."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        self.plain = self.plain or self.quiet

        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        self.validate_args(args)
        params = self.create_params(args)

        if not self.quiet:
            print(f"Scanning: {', '.join(params.roots)}")

        try:
            report = self.run_deduplication(params, assume_yes=args.yes)
        except KeepOneError as e:
            self.error_exit(str(e))

        if params.mode == ResolutionMode.DRY_RUN:
            self.output_preview(report)
        else:
            self.output_results(report)
        self.output_warnings(report)

        if args.json_output:
            self.write_json(report, args.json_output)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n{self.icon('✅')}Completed in {elapsed:.2f} seconds")

        return self.exit_code(report)


def main(argv=None) -> None:
    """Application entry point."""
    # Windows consoles default to a legacy code page
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, "reconfigure"):
            stream.reconfigure(encoding='utf-8')

    app = CLIApplication()
    try:
        sys.exit(app.run(argv))
    except KeyboardInterrupt:
        print(f"\n{app.icon('⚠️ ')}Operation cancelled by user (Ctrl+C)")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"{app.icon('❌')}Unexpected error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
