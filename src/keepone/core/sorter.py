"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/sorter.py
Pure ordering logic for duplicate groups, no dependencies outside core.
Members are ordered by path; the keeper is picked by policy with an explicit
lexicographic tie-break, never by filesystem iteration order.
"""
import os
from typing import List, Optional, Sequence, Callable, Any
from keepone.core.models import FileCandidate, KeeperPolicy


class Sorter:
    """
    Keeper selection priority (applied lexicographically):
    1. Files from priority directories first
    2. Policy criterion (path depth or filename length; none for LEXICOGRAPHIC)
    3. Full path, so ties always resolve the same way
    """

    @staticmethod
    def is_under_any(path: str, dirs: Sequence[str]) -> bool:
        """True if path is one of dirs or lies below one of them. Plain prefixes do not count."""
        normalized_path = os.path.normpath(path)
        return any(
            normalized_path == base or normalized_path.startswith(base + os.sep)
            for base in map(os.path.normpath, dirs)
        )

    @staticmethod
    def keeper_key(
            policy: KeeperPolicy = KeeperPolicy.LEXICOGRAPHIC,
            priority_dirs: Optional[Sequence[str]] = None
    ) -> Callable[[FileCandidate], Any]:
        priority_dirs = [os.path.abspath(d) for d in (priority_dirs or [])]

        def key(f: FileCandidate):
            not_priority = not Sorter.is_under_any(f.path, priority_dirs) if priority_dirs else False
            if policy == KeeperPolicy.SHORTEST_PATH:
                return not_priority, f.path_depth, f.path
            if policy == KeeperPolicy.SHORTEST_FILENAME:
                return not_priority, len(f.name), f.path
            return not_priority, f.path

        return key

    @staticmethod
    def sort_members(files: List[FileCandidate]) -> List[FileCandidate]:
        """Stable presentation order for group members."""
        return sorted(files, key=lambda f: f.path)

    @staticmethod
    def select_keeper(
            files: Sequence[FileCandidate],
            policy: KeeperPolicy = KeeperPolicy.LEXICOGRAPHIC,
            priority_dirs: Optional[Sequence[str]] = None
    ) -> int:
        """Index of the file that survives by default."""
        if not files:
            raise ValueError("Cannot select a keeper from an empty group")
        key = Sorter.keeper_key(policy, priority_dirs)
        return min(range(len(files)), key=lambda i: key(files[i]))
