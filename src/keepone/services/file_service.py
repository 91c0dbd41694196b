"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Filesystem removal primitives: permanent unlink or system trash.
"""
import os
from pathlib import Path
from send2trash import send2trash


class FileService:
    """
    Thin wrapper over os.remove / send2trash.
    Raises the underlying OSError so callers can classify the failure.
    """

    @staticmethod
    def remove_file(file_path: str, use_trash: bool = False):
        """Removes a single regular file, either permanently or to the trash."""
        path = Path(file_path)

        if path.is_dir() and not path.is_symlink():
            raise IsADirectoryError(21, "Is a directory", str(path))
        if not path.exists() and not path.is_symlink():
            raise FileNotFoundError(2, "No such file or directory", str(path))

        if use_trash:
            send2trash(str(path))
        else:
            os.remove(path)

    @staticmethod
    def exists(file_path: str) -> bool:
        return os.path.isfile(file_path)
