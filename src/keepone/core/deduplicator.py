"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

deduplicator.py
Implements the pipeline-based duplicate detection:
    size → quick check (optional) → full hash
"""
import time
from typing import List, Tuple, Optional, Callable, Sequence
from keepone.core.models import (
    FileCandidate,
    DuplicateGroup,
    DeduplicationStats,
    DeduplicationParams,
    HashError,
    HashProgress,
)
from keepone.core.grouper import FileGrouperImpl
from keepone.core.hasher import HasherImpl
from keepone.core.interfaces import Deduplicator
from keepone.core.stages import SizeStageImpl, QuickCheckStage, FullHashStage


# =============================
# Main Deduplicator Class
# =============================
class DeduplicatorImpl(Deduplicator):
    """
    Runs the detection stages in sequence and collects per-stage statistics.
    Grouper and hasher default to ones configured from the run parameters.
    """
    def __init__(self, grouper: FileGrouperImpl = None, hasher: HasherImpl = None):
        self.grouper = grouper
        self.hasher = hasher

    def find_duplicates(
        self,
        files: List[FileCandidate],
        params: DeduplicationParams,
        hash_errors: Optional[List[HashError]] = None,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None,
        hash_progress_callback: Optional[Callable[[HashProgress], None]] = None
    ) -> Tuple[List[DuplicateGroup], DeduplicationStats]:
        """
        Main detection pipeline.
        Args:
            files: Indexed candidates
            params: Run parameters (keeper policy, workers, quick check, chunk size)
            hash_errors: Receives one entry per file that could not be read
            stopped_flag (Optional[Callable[[], bool]]): Function that returns True if operation should be stopped.
            progress_callback (Optional[Callable[[str, int, int], None]]): Reports progress per stage.
            hash_progress_callback: Receives byte-level HashProgress during the full hash
        Returns:
            Tuple[List[DuplicateGroup], DeduplicationStats]
        """
        if hash_errors is None:
            hash_errors = []
        grouper = self.grouper or FileGrouperImpl(params.keeper_policy, params.priority_dirs)
        hasher = self.hasher or HasherImpl(chunk_size=params.chunk_size)

        stats = DeduplicationStats()
        total_start_time = time.time()

        # Initial stage: group by size
        start_time = time.time()
        buckets = SizeStageImpl(grouper).process(
            files,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback
        )
        DeduplicatorImpl._update_stats(stats, "size", time.time() - start_time, buckets)

        if params.quick_check:
            start_time = time.time()
            buckets = QuickCheckStage(grouper, hasher).process(
                buckets,
                hash_errors,
                stopped_flag=stopped_flag,
                progress_callback=progress_callback
            )
            DeduplicatorImpl._update_stats(stats, "quick", time.time() - start_time, buckets)

        start_time = time.time()
        groups = FullHashStage(grouper, hasher, workers=params.workers).process(
            buckets,
            hash_errors,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback,
            hash_progress_callback=hash_progress_callback
        )
        DeduplicatorImpl._update_stats(stats, "full", time.time() - start_time, groups)

        stats.total_time = time.time() - total_start_time
        return groups, stats

    @staticmethod
    def _update_stats(
        stats: DeduplicationStats,
        stage: str,
        duration: float,
        groups: Sequence[object]
    ):
        """Helper to update DeduplicationStats from buckets or groups."""
        total_files = sum(len(g.files) for g in groups)
        stats.update_stage(
            stage_name=stage,
            groups_found=len(groups),
            files_processed=total_files,
            duration=duration
        )
