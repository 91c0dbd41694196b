"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Implements file indexing over one or more root directories.
Features:
- Recursively walks every root with os.walk (symlinked directories are never entered)
- Follows a symlink only when its target is a regular file
- Collapses hard links and overlapping roots: one candidate per (device, inode)
- Records unreadable entries as TraversalWarning instead of aborting
- Reads metadata only, never file content
"""

import os
import sys
import stat
from typing import List, Optional, Callable, Iterator, Sequence, Set, Tuple
from pathlib import Path
import time
import logging

from keepone.core.models import FileCandidate, TraversalWarning, Stage
from keepone.core.interfaces import FileScanner
from keepone.core.errors import InvalidRootError
from keepone.core.sorter import Sorter

logger = logging.getLogger(__name__)

TRASH_MARKERS = {
    "win32": ("$Recycle.Bin", "\\Recycler\\"),
    "darwin": ("/.Trash/",),
}
FREEDESKTOP_TRASH_MARKERS = (".local/share/Trash", "/.trash/")


class FileScannerImpl(FileScanner):
    """
    Walks root directories and yields a FileCandidate for every regular file.

    Attributes:
        roots: Root directories to scan
        min_size: Minimum file size in bytes (optional)
        max_size: Maximum file size in bytes (optional)
        excluded_dirs: Directories that are never entered
        warnings: Non-fatal problems met during the last scan
    """

    def __init__(
        self,
        roots: Sequence[str],
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
        excluded_dirs: Optional[List[str]] = None
    ):
        if isinstance(roots, (str, Path)):
            roots = [roots]
        self.roots = [str(r) for r in roots]
        self.min_size = min_size
        self.max_size = max_size
        self.excluded_dirs = [str(Path(d).resolve()) for d in excluded_dirs] if excluded_dirs else []
        self.warnings: List[TraversalWarning] = []
        self.files_seen = 0
        self._seen: Set[Tuple[int, int]] = set()

    def validate_roots(self) -> List[Path]:
        """
        Resolve every root and make sure it is an existing directory.
        Raises InvalidRootError on the first bad root.
        """
        resolved = []
        for root in self.roots:
            root_path = Path(root).expanduser()
            if not root_path.exists():
                logger.error(f"Directory does not exist: {root}")
                raise InvalidRootError(root, "Directory does not exist")
            if not root_path.is_dir():
                logger.error(f"Not a directory: {root}")
                raise InvalidRootError(root, "Not a directory")
            resolved.append(root_path.resolve())
        return resolved

    def scan(self,
             stopped_flag: Optional[Callable[[], bool]] = None,
             progress_callback: Optional[Callable[[str, int, object], None]] = None) -> List[FileCandidate]:
        """Eager variant of iter_files()."""
        return list(self.iter_files(stopped_flag=stopped_flag, progress_callback=progress_callback))

    def iter_files(self,
                   stopped_flag: Optional[Callable[[], bool]] = None,
                   progress_callback: Optional[Callable[[str, int, object], None]] = None
                   ) -> Iterator[FileCandidate]:
        """
        Yield candidates in traversal order (directories and names sorted per level).
        Validates roots before the first entry is produced.
        """
        roots = self.validate_roots()
        self.warnings = []
        self.files_seen = 0
        self._seen = set()

        logger.debug(f"Starting scan of {len(roots)} root(s)")
        logger.debug(f"Filters: min_size={self.min_size}, max_size={self.max_size}")

        progress_interval = 5000
        progress_counter = 0
        start_time = time.time()

        for root_path in roots:
            if stopped_flag and stopped_flag():
                logger.debug("Scan cancelled")
                return

            for root, dirs, files in os.walk(str(root_path), onerror=self._on_walk_error):
                if stopped_flag and stopped_flag():
                    logger.debug("Scan interrupted by user")
                    return

                # Pre-filter subdirectories BEFORE os.walk enters them
                dirs[:] = sorted(d for d in dirs if self._prefilter_dirs(Path(root) / d))

                for filename in sorted(files):
                    candidate = self._process_file(Path(root) / filename)
                    self.files_seen += 1
                    progress_counter += 1

                    if progress_callback and progress_counter >= progress_interval:
                        self._notify(progress_callback)
                        progress_counter = 0

                    if candidate is not None:
                        yield candidate

        if progress_callback and progress_counter > 0:
            self._notify(progress_callback)

        logger.debug(f"Scan completed in {time.time() - start_time:.2f}s: "
                     f"{len(self._seen)} unique files, {len(self.warnings)} warnings")

    def _notify(self, progress_callback: Callable[[str, int, object], None]) -> None:
        try:
            progress_callback(Stage.INDEX.value, self.files_seen, None)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")

    def _warn(self, path: str, reason: str) -> None:
        logger.warning(f"Skipping {path}: {reason}")
        self.warnings.append(TraversalWarning(path=path, reason=reason))

    def _on_walk_error(self, error: OSError) -> None:
        self._warn(error.filename or "<unknown>", error.strerror or str(error))

    @staticmethod
    def _is_system_trash(path: Path) -> bool:
        """Recycle bin / Trash folders of the current platform."""
        try:
            path_str = str(path.resolve(strict=False))
        except (OSError, ValueError):
            return False
        if sys.platform == "darwin" and path_str.endswith("/.Trash"):
            return True
        markers = TRASH_MARKERS.get(sys.platform, FREEDESKTOP_TRASH_MARKERS)
        return any(marker in path_str for marker in markers)

    @staticmethod
    def _is_excluded_directory(path: Path, excluded_dirs: List[str]) -> bool:
        try:
            path_str = str(path.resolve(strict=False))
        except (OSError, ValueError):
            return False
        return Sorter.is_under_any(path_str, excluded_dirs)

    def _prefilter_dirs(self, path: Path) -> bool:
        """Decide whether os.walk may descend into path."""
        if path.is_symlink():
            logger.debug(f"Not following directory symlink: {path}")
            return False

        if FileScannerImpl._is_system_trash(path):
            logger.debug(f"Skipping system trash directory: {path}")
            return False

        if self.excluded_dirs and self._is_excluded_directory(path, self.excluded_dirs):
            logger.debug(f"Skipping excluded directory: {path}")
            return False

        try:
            accessible = os.access(path, os.R_OK | os.X_OK)
        except OSError as e:
            self._warn(str(path), str(e))
            return False
        if not accessible:
            self._warn(str(path), "Permission denied")
            return False
        return True

    def _process_file(self, path: Path) -> Optional[FileCandidate]:
        """
        Turn one directory entry into a candidate, or None if it is skipped.
        Unreadable entries are recorded as warnings; filtered ones are only logged.
        """
        try:
            is_link = path.is_symlink()
            st = path.stat()  # follows symlinks
        except FileNotFoundError:
            reason = "Broken symbolic link" if path.is_symlink() else "File vanished during scan"
            self._warn(str(path), reason)
            return None
        except OSError as e:
            self._warn(str(path), e.strerror or str(e))
            return None

        if not stat.S_ISREG(st.st_mode):
            logger.debug(f"Skipping non-regular entry: {path}")
            return None

        identity = (st.st_dev, st.st_ino)
        if identity in self._seen:
            logger.debug(f"Skipping {path}: same inode already indexed (hard link or symlink)")
            return None

        if not os.access(path, os.R_OK):
            self._warn(str(path), "Permission denied")
            return None

        self._seen.add(identity)

        size = st.st_size
        if not self._size_passes(size):
            logger.debug(f"Skipping {path} (size {size} bytes outside range)")
            return None

        try:
            resolved = path.resolve(strict=True) if is_link else path.absolute()
        except OSError as e:
            self._warn(str(path), e.strerror or str(e))
            return None

        logger.debug(f"Accepted file: {resolved} ({size} bytes)")
        return FileCandidate(path=str(resolved), size=size)

    def _size_passes(self, size: int) -> bool:
        """
        Check if file size is within configured limits.
        """
        if self.min_size is not None and size < self.min_size:
            return False
        if self.max_size is not None and size > self.max_size:
            return False
        return True
