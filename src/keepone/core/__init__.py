"""
Core duplicate detection and resolution engine.

This package contains the foundation of keepone:
- FileScannerImpl: recursive directory traversal with size filters and hard-link collapsing
- HasherImpl + Sha256AlgorithmImpl: streamed SHA-256 fingerprints, xxHash64 quick check
- FileGrouperImpl: size buckets and (size, fingerprint) groups
- DeduplicatorImpl: multi-stage pipeline (size → quick check → full hash)
- ResolutionEngine: dry-run, batch-confirm and interactive resolution
- Models: FileCandidate, DuplicateGroup, ResolutionDecision, RunReport

No terminal or GUI dependencies; suitable for library use.
"""

from .scanner import FileScannerImpl
from .grouper import FileGrouperImpl
from .hasher import HasherImpl, Sha256AlgorithmImpl, XXHashAlgorithmImpl
from .deduplicator import DeduplicatorImpl
from .resolver import ResolutionEngine
from .sorter import Sorter
from .errors import KeepOneError, InvalidRootError, ResolutionError
from .models import (
    FileCandidate, SizeBucket, DuplicateGroup, ResolutionDecision, ResolutionMode,
    KeeperPolicy, GroupChoice, BatchSummary, TraversalWarning, HashError,
    DeletionOutcome, FailureKind, HashProgress, GroupResult, GroupStatus, RunReport,
    DeduplicationParams, DeduplicationStats)

__all__ = [
    "FileScannerImpl",
    "FileGrouperImpl",
    "HasherImpl",
    "Sha256AlgorithmImpl",
    "XXHashAlgorithmImpl",
    "DeduplicatorImpl",
    "ResolutionEngine",
    "Sorter",
    "KeepOneError",
    "InvalidRootError",
    "ResolutionError",
    "FileCandidate",
    "SizeBucket",
    "DuplicateGroup",
    "ResolutionDecision",
    "ResolutionMode",
    "KeeperPolicy",
    "GroupChoice",
    "BatchSummary",
    "TraversalWarning",
    "HashError",
    "DeletionOutcome",
    "FailureKind",
    "HashProgress",
    "GroupResult",
    "GroupStatus",
    "RunReport",
    "DeduplicationParams",
    "DeduplicationStats",
]
