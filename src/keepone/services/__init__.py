from .file_service import FileService
from .deletion_service import DeletionExecutor

__all__ = ["FileService", "DeletionExecutor"]
