"""
Unified command orchestrator for a keepone run.
This is the single place where indexing, detection and resolution are wired together;
the CLI and library callers both go through it.
"""
import logging
import time
from typing import List, Optional, Callable

from keepone.core.models import (
    DeduplicationParams,
    DeduplicationStats,
    FileCandidate,
    HashProgress,
    ResolutionMode,
    RunReport,
)
from keepone.core.interfaces import Confirmer, GroupChooser
from keepone.core.scanner import FileScannerImpl
from keepone.core.deduplicator import DeduplicatorImpl
from keepone.core.resolver import ResolutionEngine
from keepone.services.deletion_service import DeletionExecutor

logger = logging.getLogger(__name__)


class DeduplicationCommand:
    """
    Orchestrates the entire workflow:
    1. Validate roots (InvalidRootError before any hashing)
    2. Index files
    3. Find duplicate groups
    4. Resolve them according to params.mode

    Usage:
        params = DeduplicationParams(roots=["~/Downloads"], mode=ResolutionMode.DRY_RUN)
        report = DeduplicationCommand().execute(params)

        # batch confirmation with a custom yes/no channel
        report = DeduplicationCommand().execute(params, confirmer=my_confirmer)
    """

    def __init__(self):
        self._deduplicator = DeduplicatorImpl()
        self._files: List[FileCandidate] = []
        self.stats: Optional[DeduplicationStats] = None

    def execute(
            self,
            params: DeduplicationParams,
            confirmer: Optional[Confirmer] = None,
            chooser: Optional[GroupChooser] = None,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None,
            hash_progress_callback: Optional[Callable[[HashProgress], None]] = None,
            stopped_flag: Optional[Callable[[], bool]] = None
    ) -> RunReport:
        """
        Run one full pass and return the finalized RunReport.

        Raises:
            InvalidRootError: If any root is missing or not a directory
            ValueError: If the mode needs a confirmer/chooser that was not given
        """
        scanner = FileScannerImpl(
            roots=params.roots,
            min_size=params.min_size_bytes,
            max_size=params.max_size_bytes,
            excluded_dirs=params.excluded_dirs
        )
        roots = scanner.validate_roots()

        start_time = time.time()
        self._files = scanner.scan(stopped_flag=stopped_flag, progress_callback=progress_callback)
        index_time = time.time() - start_time

        report = RunReport(
            mode=params.mode,
            roots=[str(r) for r in roots],
            files_examined=len(self._files),
            traversal_warnings=list(scanner.warnings),
        )

        groups, stats = self._deduplicator.find_duplicates(
            self._files,
            params,
            hash_errors=report.hash_errors,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback,
            hash_progress_callback=hash_progress_callback
        )
        stats.prepend_stage("index", 0, len(self._files), index_time)
        self.stats = stats

        logger.debug(f"{len(groups)} duplicate groups in {len(self._files)} files")

        engine = ResolutionEngine(
            executor=DeletionExecutor(use_trash=params.use_trash),
            confirmer=confirmer,
            chooser=chooser
        )
        return engine.resolve(groups, params.mode, report)

    def get_files(self) -> List[FileCandidate]:
        """Get indexed files after execution."""
        return self._files.copy()


def run(roots: List[str], mode: ResolutionMode = ResolutionMode.DRY_RUN, **kwargs) -> RunReport:
    """
    Convenience entry point: {roots, mode} in, RunReport out.
    Extra keyword arguments go to DeduplicationCommand.execute().
    """
    params = DeduplicationParams(roots=list(roots), mode=mode)
    return DeduplicationCommand().execute(params, **kwargs)
