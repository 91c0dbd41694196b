"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for indexing, duplicate grouping, resolution and run reporting.
"""

from dataclasses import dataclass, field, replace
from typing import List, Dict, Optional, Union, FrozenSet, Tuple, Any
import os
from enum import Enum

from keepone.core.errors import ResolutionError
from keepone.utils.convert_utils import ConvertUtils

FINGERPRINT_SIZE = 32  # SHA-256 digest length in bytes


# =============================
# Enums
# =============================

class ResolutionMode(Enum):
    """
    How duplicate groups are resolved once they are found.
    """
    DRY_RUN = "dry-run"
    BATCH_CONFIRM = "confirm"
    INTERACTIVE = "interactive"

    @property
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        mapping = {
            ResolutionMode.DRY_RUN: "Dry run",
            ResolutionMode.BATCH_CONFIRM: "Batch confirm",
            ResolutionMode.INTERACTIVE: "Interactive",
        }
        return mapping.get(self, self.value)

    @property
    def mutates_filesystem(self) -> bool:
        return self is not ResolutionMode.DRY_RUN

    def __repr__(self) -> str:
        return self.value


class KeeperPolicy(Enum):
    """
    Default keeper selection inside a group. Every policy falls back to the
    lexicographically smallest path, so repeated runs pick the same keeper.
    """
    LEXICOGRAPHIC = "lexicographic"
    SHORTEST_PATH = "shortest-path"
    SHORTEST_FILENAME = "shortest-filename"

    @property
    def display_name(self) -> str:
        mapping = {
            KeeperPolicy.LEXICOGRAPHIC: "Lexicographic path",
            KeeperPolicy.SHORTEST_PATH: "Shortest Path",
            KeeperPolicy.SHORTEST_FILENAME: "Shortest Filename",
        }
        return mapping.get(self, self.value)


class Stage(str, Enum):
    INDEX = "Indexing"
    SIZE = "Size grouping"
    QUICK = "Quick check"
    FULL = "Full Hash"

    @classmethod
    def get_all(cls):
        return [cls.INDEX, cls.SIZE, cls.QUICK, cls.FULL]


class FailureKind(Enum):
    PERMISSION_DENIED = "permission-denied"
    NOT_FOUND = "not-found"
    IS_A_DIRECTORY = "is-a-directory"
    KEEPER_MISSING = "keeper-missing"
    OTHER = "other"


class ChoiceAction(Enum):
    KEEP = "keep"
    SKIP = "skip"
    ABORT = "abort"


class GroupStatus(Enum):
    WOULD_DELETE = "would-delete"   # decided, nothing removed (dry run or refused confirmation)
    EXECUTED = "executed"           # decision handed to the deletion executor
    SKIPPED = "skipped"             # user kept every copy
    NOT_REACHED = "not-reached"     # run aborted before this group


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class FileCandidate:
    """
    A regular file found by traversal.
    The fingerprint is filled in exactly once by the hashing stage, which
    returns a new candidate instead of mutating the indexed one.
    """
    path: str
    size: int  # in bytes
    fingerprint: Optional[bytes] = None

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"Negative size for {self.path}")
        if self.fingerprint is not None:
            if not isinstance(self.fingerprint, bytes):
                raise ValueError("Fingerprint must be bytes or None")
            if len(self.fingerprint) != FINGERPRINT_SIZE:
                raise ValueError(
                    f"Fingerprint must be {FINGERPRINT_SIZE} bytes, got {len(self.fingerprint)}"
                )

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def path_depth(self) -> int:
        return self.path.rstrip(os.sep).count(os.sep)

    @property
    def fingerprint_hex(self) -> Optional[str]:
        return self.fingerprint.hex() if self.fingerprint is not None else None

    def with_fingerprint(self, fingerprint: bytes) -> 'FileCandidate':
        if self.fingerprint is not None:
            raise ValueError(f"Fingerprint already set for {self.path}")
        return replace(self, fingerprint=fingerprint)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'path': self.path,
            'size': self.size,
            'fingerprint': self.fingerprint_hex,
        }
        return {k: v for k, v in data.items() if v is not None}

    def __repr__(self):
        return f"<FileCandidate path={self.path}, size={self.size}>"


@dataclass
class SizeBucket:
    """Candidates sharing one exact byte size, in traversal order."""
    size: int
    files: List[FileCandidate]

    @property
    def potential_savings(self) -> int:
        """Bytes freed if every member but one turned out to be a duplicate."""
        return self.size * max(0, len(self.files) - 1)

    def __len__(self):
        return len(self.files)

    def __repr__(self):
        return f"<SizeBucket size={self.size}, count={len(self.files)}>"


@dataclass
class DuplicateGroup:
    """
    Two or more files with the same size and the same full-content fingerprint.
    keeper_index points at the default survivor chosen by the keeper policy.
    """
    fingerprint: bytes
    size: int
    files: List[FileCandidate]
    keeper_index: int = 0

    def __post_init__(self):
        if len(self.files) < 2:
            raise ValueError("A duplicate group needs at least two files")
        for file in self.files:
            if file.size != self.size:
                raise ValueError(f"Size mismatch in group: {file.path}")
            if file.fingerprint != self.fingerprint:
                raise ValueError(f"Fingerprint mismatch in group: {file.path}")
        if not 0 <= self.keeper_index < len(self.files):
            raise ValueError(f"Keeper index {self.keeper_index} out of range")

    @property
    def duplicate_count(self) -> int:
        """How many files are in this group."""
        return len(self.files)

    @property
    def keeper(self) -> FileCandidate:
        return self.files[self.keeper_index]

    @property
    def reclaimable_bytes(self) -> int:
        return self.size * (len(self.files) - 1)

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fingerprint": self.fingerprint.hex(),
            "size": self.size,
            "files": self.paths,
            "keeper": self.keeper.path,
            "reclaimable_bytes": self.reclaimable_bytes,
        }

    def __repr__(self):
        return f"<DuplicateGroup size={self.size}, count={len(self.files)}>"


@dataclass(frozen=True)
class ResolutionDecision:
    """
    Final verdict for one group: one keeper, everything else deleted.
    Construction fails if the keeper is in the delete set or any member is unaccounted for.
    """
    group: DuplicateGroup
    keeper_index: int
    delete_indices: FrozenSet[int]

    def __post_init__(self):
        all_indices = frozenset(range(len(self.group.files)))
        if self.keeper_index not in all_indices:
            raise ResolutionError(f"Keeper index {self.keeper_index} out of range")
        if self.keeper_index in self.delete_indices:
            raise ResolutionError("Keeper cannot be marked for deletion")
        if self.delete_indices | {self.keeper_index} != all_indices:
            raise ResolutionError("Decision must cover every group member")

    @classmethod
    def for_keeper(cls, group: DuplicateGroup, keeper_index: int) -> 'ResolutionDecision':
        delete = frozenset(i for i in range(len(group.files)) if i != keeper_index)
        return cls(group=group, keeper_index=keeper_index, delete_indices=delete)

    @property
    def keeper(self) -> FileCandidate:
        return self.group.files[self.keeper_index]

    @property
    def files_to_delete(self) -> List[FileCandidate]:
        return [self.group.files[i] for i in sorted(self.delete_indices)]

    @property
    def bytes_to_free(self) -> int:
        return self.group.size * len(self.delete_indices)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keeper": self.keeper.path,
            "delete": [f.path for f in self.files_to_delete],
        }


@dataclass(frozen=True)
class GroupChoice:
    """Answer to an interactive per-group question: Keep(index) | Skip | Abort."""
    action: ChoiceAction
    index: Optional[int] = None

    @classmethod
    def keep(cls, index: int) -> 'GroupChoice':
        return cls(ChoiceAction.KEEP, index)

    @classmethod
    def skip(cls) -> 'GroupChoice':
        return cls(ChoiceAction.SKIP)

    @classmethod
    def abort(cls) -> 'GroupChoice':
        return cls(ChoiceAction.ABORT)


@dataclass(frozen=True)
class BatchSummary:
    """
    What a batch confirmation asks the user to approve.
    decisions is carried along so a front end can render a preview.
    """
    group_count: int
    file_count: int
    reclaimable_bytes: int
    decisions: Tuple['ResolutionDecision', ...] = field(default=(), compare=False, repr=False)


# ======================
#  Non-fatal problems
# ======================

@dataclass(frozen=True)
class TraversalWarning:
    path: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "reason": self.reason}


@dataclass(frozen=True)
class HashError:
    path: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "reason": self.reason}


@dataclass(frozen=True)
class DeletionOutcome:
    path: str
    size: int
    success: bool
    failure: Optional[FailureKind] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "path": self.path,
            "size": self.size,
            "success": self.success,
        }
        if not self.success:
            data["failure"] = self.failure.value if self.failure else FailureKind.OTHER.value
            data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class HashProgress:
    bytes_done: int
    bytes_total: int
    files_done: int
    files_total: int
    current_path: str = ""

    @property
    def percent(self) -> float:
        if self.bytes_total <= 0:
            return 100.0
        return self.bytes_done * 100.0 / self.bytes_total


# ======================
#  Run Report
# ======================

@dataclass
class GroupResult:
    group: DuplicateGroup
    status: GroupStatus
    decision: Optional[ResolutionDecision] = None
    outcomes: List[DeletionOutcome] = field(default_factory=list)

    @property
    def files_deleted(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def bytes_freed(self) -> int:
        return sum(o.size for o in self.outcomes if o.success)

    @property
    def bytes_would_free(self) -> int:
        if self.decision is None:
            return 0
        return self.decision.bytes_to_free

    @property
    def failures(self) -> List[DeletionOutcome]:
        return [o for o in self.outcomes if not o.success]

    def to_dict(self) -> Dict[str, Any]:
        data = self.group.to_dict()
        data["status"] = self.status.value
        if self.decision is not None:
            # an interactive choice may override the group default
            data["keeper"] = self.decision.keeper.path
            data["decision"] = self.decision.to_dict()
        if self.outcomes:
            data["outcomes"] = [o.to_dict() for o in self.outcomes]
        return data


@dataclass
class RunReport:
    """
    Everything the caller needs to render a preview, a confirmation summary
    or a final result. Built during the run, read-only after finalize().
    """
    mode: ResolutionMode
    roots: List[str]
    files_examined: int = 0
    groups: List[GroupResult] = field(default_factory=list)
    traversal_warnings: List[TraversalWarning] = field(default_factory=list)
    hash_errors: List[HashError] = field(default_factory=list)
    confirmed: Optional[bool] = None
    aborted: bool = False
    finalized: bool = False

    def _check_open(self) -> None:
        if self.finalized:
            raise RuntimeError("RunReport is finalized and read-only")

    def add_group_result(self, result: GroupResult) -> None:
        self._check_open()
        self.groups.append(result)

    def finalize(self) -> 'RunReport':
        self._check_open()
        self.hash_errors.sort(key=lambda e: e.path)
        self.finalized = True
        return self

    @property
    def groups_scanned(self) -> int:
        return len(self.groups)

    @property
    def groups_processed(self) -> int:
        return sum(1 for g in self.groups if g.status is GroupStatus.EXECUTED)

    @property
    def removable_count(self) -> int:
        return sum(len(g.decision.delete_indices) for g in self.groups if g.decision is not None)

    @property
    def bytes_would_free(self) -> int:
        return sum(g.bytes_would_free for g in self.groups)

    @property
    def files_deleted(self) -> int:
        return sum(g.files_deleted for g in self.groups)

    @property
    def bytes_freed(self) -> int:
        return sum(g.bytes_freed for g in self.groups)

    @property
    def outcomes(self) -> List[DeletionOutcome]:
        return [o for g in self.groups for o in g.outcomes]

    @property
    def failures(self) -> List[DeletionOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def has_warnings(self) -> bool:
        return bool(self.traversal_warnings or self.hash_errors)

    @property
    def succeeded(self) -> bool:
        """No warnings, no failed deletions, and the user did not abort."""
        return not (self.has_warnings or self.failures or self.aborted)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roots": list(self.roots),
            "mode": self.mode.value,
            "dry_run": not self.mode.mutates_filesystem,
            "files_examined": self.files_examined,
            "duplicate_groups": [g.to_dict() for g in self.groups],
            "removable_count": self.removable_count,
            "savings_bytes": self.bytes_would_free,
            "files_deleted": self.files_deleted,
            "bytes_freed": self.bytes_freed,
            "confirmed": self.confirmed,
            "aborted": self.aborted,
            "traversal_warnings": [w.to_dict() for w in self.traversal_warnings],
            "hash_errors": [e.to_dict() for e in self.hash_errors],
        }


STAGE_LABELS = {
    "index": "Indexed files",
    "size": "Size buckets",
    "quick": "Quick-check buckets",
    "full": "Full-hash groups",
}


class DeduplicationStats:
    """Per-stage group/file counts and timings, kept in the order the stages ran."""

    def __init__(self):
        self.total_time: float = 0.0
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}

    def update_stage(
            self,
            stage_name: str,
            groups_found: int,
            files_processed: int,
            duration: float
    ) -> None:
        entry = self.stage_stats.setdefault(stage_name, {"groups": 0, "files": 0, "time": 0.0})
        entry["groups"] += groups_found
        entry["files"] += files_processed
        entry["time"] += duration

    def prepend_stage(self, stage_name: str, groups_found: int, files_processed: int, duration: float) -> None:
        """Record a stage that ran before these stats were created (indexing)."""
        earlier = {stage_name: {"groups": groups_found, "files": files_processed, "time": duration}}
        self.stage_stats = {**earlier, **self.stage_stats}
        self.total_time += duration

    def print_summary(self) -> str:
        rows = [f"{STAGE_LABELS.get(name, name.title())}: "
                f"{data['groups']} / {data['files']} / {data['time']:.3f}s"
                for name, data in self.stage_stats.items()]
        header = [
            "Deduplication Statistics:",
            f"Total time: {self.total_time:.3f}s",
            "",
            "Stage: GROUPS / FILES / TIME",
        ]
        return "\n".join(header + rows)


# =============================
# Run parameters: interface-agnostic DTO used by the CLI and by library callers
# =============================


def _default_workers() -> int:
    return max(1, min(8, os.cpu_count() or 1))


@dataclass
class DeduplicationParams:
    """Parameters for one run, validated on creation."""
    roots: List[str]
    mode: ResolutionMode = ResolutionMode.DRY_RUN
    min_size_bytes: int = 0
    max_size_bytes: Optional[int] = None
    keeper_policy: KeeperPolicy = KeeperPolicy.LEXICOGRAPHIC
    priority_dirs: List[str] = field(default_factory=list)
    excluded_dirs: List[str] = field(default_factory=list)
    workers: int = field(default_factory=_default_workers)
    quick_check: bool = True
    use_trash: bool = False
    chunk_size: int = 64 * 1024

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if isinstance(self.roots, str):
            self.roots = [self.roots]
        self.roots = [str(r) for r in self.roots if str(r).strip()]
        if not self.roots:
            raise ValueError("At least one root directory is required")

        if self.min_size_bytes < 0:
            raise ValueError("Minimum size cannot be negative")

        if self.max_size_bytes is not None and self.max_size_bytes < self.min_size_bytes:
            raise ValueError("Maximum size cannot be less than minimum size")

        if self.workers < 1:
            raise ValueError("Worker count must be at least 1")

        if self.chunk_size < 1:
            raise ValueError("Chunk size must be positive")

        self.priority_dirs = [str(d) for d in self.priority_dirs]
        self.excluded_dirs = [str(d) for d in self.excluded_dirs]

    @staticmethod
    def from_human_readable(
            roots: List[str],
            mode: ResolutionMode = ResolutionMode.DRY_RUN,
            min_size_str: str = "0",
            max_size_str: str = "",
            keeper_policy: KeeperPolicy = KeeperPolicy.LEXICOGRAPHIC,
            priority_dirs: Optional[List[str]] = None,
            excluded_dirs: Optional[List[str]] = None,
            **kwargs
    ) -> 'DeduplicationParams':
        """
        Factory method to create params from human-readable inputs.
        Useful for CLI argument parsing.
        """
        min_size = ConvertUtils.human_to_bytes(min_size_str) if min_size_str else 0
        max_size = ConvertUtils.human_to_bytes(max_size_str) if max_size_str else None

        return DeduplicationParams(
            roots=list(roots),
            mode=mode,
            min_size_bytes=min_size,
            max_size_bytes=max_size,
            keeper_policy=keeper_policy,
            priority_dirs=priority_dirs or [],
            excluded_dirs=excluded_dirs or [],
            **kwargs
        )
