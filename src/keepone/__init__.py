"""
keepone: duplicate file finder that keeps exactly one copy.

Core features:
- Size buckets, xxHash64 quick check, then streamed SHA-256 fingerprints on a thread pool
- Three resolution modes: dry run, batch confirm, interactive per-group choice
- Optional deletion to system trash (via send2trash)
- Deterministic keeper choice, JSON run reports
"""

from importlib.metadata import version as _version, PackageNotFoundError

try:
    __version__ = _version("keepone")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API: only what users should import directly
from keepone.commands import DeduplicationCommand, run
from keepone.core import (
    DeduplicationParams, ResolutionMode, KeeperPolicy, FileCandidate, DuplicateGroup,
    ResolutionDecision, RunReport, InvalidRootError
)
from keepone.utils.convert_utils import ConvertUtils
from keepone.services import DeletionExecutor, FileService

__all__ = [
    "DeduplicationCommand",
    "run",
    "DeduplicationParams",
    "ResolutionMode",
    "KeeperPolicy",
    "FileCandidate",
    "DuplicateGroup",
    "ResolutionDecision",
    "RunReport",
    "InvalidRootError",
    "ConvertUtils",
    "DeletionExecutor",
    "FileService",
    "__version__",
]
