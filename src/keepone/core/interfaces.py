"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Core interfaces (Protocols) used throughout the detection and resolution pipeline.
Structural typing keeps the stages swappable and lets tests inject fakes.

Key Components:
---------------
- HashAlgorithm: Incremental hash factory (SHA-256 for fingerprints, xxHash64 for quick checks).
- Hasher: Streams file content through a HashAlgorithm.
- FileScanner: Walks root directories and yields FileCandidate entries.
- FileGrouper: Buckets candidates by size and by (size, fingerprint).
- Confirmer / GroupChooser: Blocking user-input channels consumed by the ResolutionEngine.
- DecisionExecutor: Applies finalized ResolutionDecisions (the deletion service).
- Deduplicator: Runs the detection stages and returns DuplicateGroups.
"""

from typing import Protocol, List, Dict, Tuple, Optional, Callable, Iterator, Any
from keepone.core.models import (
    FileCandidate,
    SizeBucket,
    DuplicateGroup,
    DeduplicationParams,
    DeduplicationStats,
    HashError,
    HashProgress,
    BatchSummary,
    GroupChoice,
    ResolutionDecision,
    GroupResult,
)


# ===== Interfaces =====

class HashState(Protocol):
    def update(self, data: bytes) -> None: ...
    def digest(self) -> bytes: ...


class HashAlgorithm(Protocol):
    """
    Interface for incremental hash algorithms.

    Allows plugging in different hashing functions like SHA-256 or xxHash
    without affecting the rest of the pipeline.
    """
    name: str
    digest_size: int

    def new(self) -> HashState:
        """Returns a fresh incremental hash state."""
        ...


class Hasher(Protocol):
    """Interface for hashing file content."""
    def compute_full_hash(self, file: FileCandidate) -> bytes: ...
    def compute_front_hash(self, file: FileCandidate) -> bytes: ...


class FileScanner(Protocol):
    """
    Interface for walking file systems and collecting candidates.
    """
    def iter_files(
        self,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> Iterator[FileCandidate]:
        """Lazily yield every regular file reachable from the configured roots."""
        ...

    def scan(
        self,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[FileCandidate]:
        ...


class FileGrouper(Protocol):
    """
    Interface for partitioning candidates by size and by content fingerprint.
    """
    def group_by_size(self, files: List[FileCandidate]) -> Dict[int, List[FileCandidate]]:
        """Group files by their size in bytes (zero-length files excluded)."""
        ...

    def group_by_fingerprint(self, files: List[FileCandidate]) -> Dict[Tuple[int, bytes], List[FileCandidate]]:
        """Group fingerprinted files by (size, fingerprint)."""
        ...

    def bucket_by_size(self, files: List[FileCandidate]) -> List[SizeBucket]:
        ...


# =============================
# Stage Interfaces
# =============================

class SizeStage(Protocol):
    def process(
        self,
        files: List[FileCandidate],
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[SizeBucket]:
        """
        Bucket files by size. Only buckets with 2+ members survive,
        ordered by descending potential savings.
        """
        ...


class HashStage(Protocol):
    def process(
        self,
        buckets: List[SizeBucket],
        hash_errors: List[HashError],
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> Any:
        """
        Hash the members of each bucket. Unreadable files are appended to
        hash_errors and dropped; their siblings keep going.
        """
        ...


# =============================
# User input channels
# =============================

class Confirmer(Protocol):
    """Yes/no channel for batch confirmation."""
    def confirm(self, summary: BatchSummary) -> bool: ...


class GroupChooser(Protocol):
    """
    Blocking per-group question for interactive mode.
    position is 1-based; total is the number of groups in the run.
    """
    def choose(self, group: DuplicateGroup, position: int, total: int) -> GroupChoice: ...


class DecisionExecutor(Protocol):
    """Carries out decisions; every failure ends up in the returned GroupResult."""
    def execute(self, decisions: List[ResolutionDecision]) -> List[GroupResult]: ...
    def execute_decision(self, decision: ResolutionDecision) -> GroupResult: ...


class Deduplicator(Protocol):
    """
    Interface for the detection engine: size buckets → quick check → full hash.
    """
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
        Run the detection pipeline.

        Returns:
            A tuple containing:
                - Duplicate groups, most valuable first
                - Statistics collected during processing
        """
        ...
