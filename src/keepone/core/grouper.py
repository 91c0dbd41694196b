"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Size bucketing and fingerprint grouping over FileCandidate objects.
"""

import logging
from typing import List, Dict, Tuple, Any, Callable, Optional, Sequence, Iterable
from collections import defaultdict
from keepone.core.interfaces import FileGrouper
from keepone.core.models import FileCandidate, SizeBucket, DuplicateGroup, KeeperPolicy
from keepone.core.sorter import Sorter

logger = logging.getLogger(__name__)


class FileGrouperImpl(FileGrouper):
    """
    Partitions candidates by exact size, then by (size, fingerprint).
    Keeper choice is delegated to Sorter so every run picks the same survivor.
    """

    def __init__(
            self,
            keeper_policy: KeeperPolicy = KeeperPolicy.LEXICOGRAPHIC,
            priority_dirs: Optional[Sequence[str]] = None
    ):
        self.keeper_policy = keeper_policy
        self.priority_dirs = list(priority_dirs or [])

    def group_by_size(self, files: Iterable[FileCandidate]) -> Dict[int, List[FileCandidate]]:
        """
        Groups files by their size. Zero-length files never take part:
        removing one frees nothing.
        """
        return self._group_by(files, lambda f: f.size if f.size > 0 else None)

    def group_by_fingerprint(
            self, files: Iterable[FileCandidate]
    ) -> Dict[Tuple[int, bytes], List[FileCandidate]]:
        """
        Groups fingerprinted files by (size, fingerprint).
        Size is part of the key, so equal digests of different lengths never merge.
        """
        return self._group_by(
            files,
            lambda f: (f.size, f.fingerprint) if f.fingerprint is not None else None
        )

    def bucket_by_size(self, files: Iterable[FileCandidate]) -> List[SizeBucket]:
        """
        Size buckets with 2+ members, most potential savings first.
        Ties are broken by larger size so the order is fully deterministic.
        """
        buckets = [SizeBucket(size=size, files=members)
                   for size, members in self.group_by_size(files).items()]
        return self.order_buckets(buckets)

    @staticmethod
    def order_buckets(buckets: List[SizeBucket]) -> List[SizeBucket]:
        return sorted(buckets, key=lambda b: (-b.potential_savings, -b.size))

    def build_groups(self, files: Iterable[FileCandidate]) -> List[DuplicateGroup]:
        """
        Turn fingerprinted candidates into DuplicateGroups.
        Sub-partitions of one file (same size, different content) are dropped silently.
        """
        groups = []
        for (size, fingerprint), members in self.group_by_fingerprint(files).items():
            ordered = Sorter.sort_members(members)
            keeper_index = Sorter.select_keeper(ordered, self.keeper_policy, self.priority_dirs)
            groups.append(DuplicateGroup(
                fingerprint=fingerprint,
                size=size,
                files=ordered,
                keeper_index=keeper_index,
            ))
        groups.sort(key=lambda g: g.files[0].path)
        return groups

    @staticmethod
    def _group_by(
            files: Iterable[FileCandidate],
            key_func: Callable[[FileCandidate], Any]
    ) -> Dict[Any, List[FileCandidate]]:
        """
        Helper method to group files by any computed key.
        Files whose key is None are left out; only groups of 2+ are returned.
        Insertion order inside a group follows the input order.
        """
        groups = defaultdict(list)
        skipped_files = 0
        for file in files:
            try:
                key = key_func(file)
            except Exception as e:
                logger.warning(f"Error processing {file.path}: {e}")
                skipped_files += 1
                continue
            if key is not None:
                groups[key].append(file)

        if skipped_files > 0:
            logger.warning(f"Skipped {skipped_files} files due to key computation errors")

        return {key: group for key, group in groups.items() if len(group) >= 2}
