"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/stages.py
Detection pipeline stages for KeepOne.

CLASS HIERARCHY
---------------
HashStageBase    : Shared error recording and progress notification
SizeStageImpl    : Buckets candidates by exact size (SizeStage interface)
QuickCheckStage  : Splits large buckets by an xxHash64 of the first chunk
FullHashStage    : Parallel SHA-256 over whole files, emits DuplicateGroups

STAGE CONTRACTS
---------------
Each stage implements a `process()` method that:
  • Accepts buckets from the previous stage
  • Returns refined buckets (or final groups) for the next one
  • Appends unreadable files to the shared hash_errors list and drops them
  • Reports progress via callback (stage name, processed count, total count)
  • Respects cancellation via stopped_flag callback

Bucket order (most potential savings first) is preserved all the way down
to the returned groups.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Callable, Dict
from keepone.core.models import (
    FileCandidate,
    SizeBucket,
    DuplicateGroup,
    HashError,
    HashProgress,
    Stage,
)
from keepone.core.grouper import FileGrouperImpl
from keepone.core.hasher import HasherImpl
from keepone.core.interfaces import SizeStage, HashStage

logger = logging.getLogger(__name__)


# =============================
# Base Class
# =============================
class HashStageBase:
    """Common plumbing for stages that read file content."""

    def __init__(self, grouper: FileGrouperImpl, hasher: HasherImpl):
        self.grouper = grouper
        self.hasher = hasher

    @staticmethod
    def record_error(hash_errors: List[HashError], file: FileCandidate, error: OSError) -> None:
        reason = error.strerror or str(error)
        logger.warning(f"Cannot hash {file.path}: {reason}")
        hash_errors.append(HashError(path=file.path, reason=reason))

    @staticmethod
    def notify(callback: Optional[Callable], *args) -> None:
        """Progress is a side channel: a failing sink never stops hashing."""
        if not callback:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")


# =============================
# Individual Stages
# =============================
class SizeStageImpl(SizeStage):
    def __init__(self, grouper: FileGrouperImpl):
        self.grouper = grouper

    def process(
            self,
            files: List[FileCandidate],
            stopped_flag: Optional[Callable[[], bool]] = None,
            progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[SizeBucket]:
        """
        Group by file size.
        Returns buckets with 2+ non-empty files, most potential savings first.
        """
        if stopped_flag and stopped_flag():
            return []

        buckets = self.grouper.bucket_by_size(files)

        total_files = len(files)
        HashStageBase.notify(progress_callback, Stage.SIZE.value, total_files, total_files)

        return buckets


class QuickCheckStage(HashStageBase, HashStage):
    """
    Cheap pre-filter: files whose first chunk differs cannot be equal.
    Buckets no larger than one chunk pass through untouched, since the
    full hash reads the same bytes anyway.
    """

    def process(
            self,
            buckets: List[SizeBucket],
            hash_errors: List[HashError],
            stopped_flag: Optional[Callable[[], bool]] = None,
            progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[SizeBucket]:
        if stopped_flag and stopped_flag():
            return []

        refined = []
        total_files = sum(len(b.files) for b in buckets)
        processed_files = 0

        for bucket in buckets:
            if stopped_flag and stopped_flag():
                return []

            if bucket.size <= self.hasher.chunk_size:
                refined.append(bucket)
            else:
                by_front: Dict[bytes, List[FileCandidate]] = {}
                for file in bucket.files:
                    try:
                        digest = self.hasher.compute_front_hash(file)
                    except OSError as e:
                        self.record_error(hash_errors, file, e)
                        continue
                    by_front.setdefault(digest, []).append(file)

                refined.extend(
                    SizeBucket(size=bucket.size, files=members)
                    for members in by_front.values() if len(members) >= 2
                )

            processed_files += len(bucket.files)
            self.notify(progress_callback, Stage.QUICK.value, processed_files, total_files)

        return self.grouper.order_buckets(refined)


class FullHashStage(HashStageBase, HashStage):
    """
    Hashes every remaining candidate on a bounded thread pool.
    Completions are merged on the calling thread, which is the only
    writer of the progress counters and of the result table.
    """

    def __init__(self, grouper: FileGrouperImpl, hasher: HasherImpl, workers: int = 1):
        super().__init__(grouper, hasher)
        self.workers = max(1, workers)

    def process(
            self,
            buckets: List[SizeBucket],
            hash_errors: List[HashError],
            stopped_flag: Optional[Callable[[], bool]] = None,
            progress_callback: Optional[Callable[[str, int, object], None]] = None,
            hash_progress_callback: Optional[Callable[[HashProgress], None]] = None
    ) -> List[DuplicateGroup]:
        if stopped_flag and stopped_flag():
            return []

        files_total = sum(len(b.files) for b in buckets)
        bytes_total = sum(b.size * len(b.files) for b in buckets)
        files_done = 0
        bytes_done = 0

        # results[i][j] is the fingerprinted copy of buckets[i].files[j], or None
        results: List[List[Optional[FileCandidate]]] = [[None] * len(b.files) for b in buckets]

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {}
            for i, bucket in enumerate(buckets):
                for j, file in enumerate(bucket.files):
                    future = executor.submit(self.hasher.compute_full_hash, file)
                    futures[future] = (i, j, file)

            for future in as_completed(futures):
                i, j, file = futures[future]
                try:
                    digest = future.result()
                except OSError as e:
                    self.record_error(hash_errors, file, e)
                else:
                    results[i][j] = file.with_fingerprint(digest)

                files_done += 1
                bytes_done += file.size
                self.notify(progress_callback, Stage.FULL.value, files_done, files_total)
                self.notify(hash_progress_callback, HashProgress(
                    bytes_done=bytes_done,
                    bytes_total=bytes_total,
                    files_done=files_done,
                    files_total=files_total,
                    current_path=file.path,
                ))

                if stopped_flag and stopped_flag():
                    for pending in futures:
                        pending.cancel()
                    logger.debug("Full hash stage cancelled")
                    return []

        groups = []
        for hashed in results:
            groups.extend(self.grouper.build_groups(f for f in hashed if f is not None))
        return groups
