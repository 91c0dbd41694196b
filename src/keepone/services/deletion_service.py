"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/deletion_service.py
Applies finalized ResolutionDecisions to the filesystem.
"""
import logging
from typing import List

from keepone.core.models import (
    ResolutionDecision,
    GroupResult,
    GroupStatus,
    DeletionOutcome,
    FailureKind,
    FileCandidate,
)
from keepone.services.file_service import FileService

logger = logging.getLogger(__name__)


class DeletionExecutor:
    """
    Deletes every file in each decision's delete set.
    A failed removal is recorded and the executor moves on; nothing here
    aborts the rest of the batch.
    """

    def __init__(self, use_trash: bool = False):
        self.use_trash = use_trash

    def execute(self, decisions: List[ResolutionDecision]) -> List[GroupResult]:
        return [self.execute_decision(decision) for decision in decisions]

    def execute_decision(self, decision: ResolutionDecision) -> GroupResult:
        keeper = decision.keeper
        if not FileService.exists(keeper.path):
            # without a verified survivor nothing in the group is touched
            logger.warning(f"Keeper is gone, leaving group untouched: {keeper.path}")
            outcomes = [
                DeletionOutcome(
                    path=f.path,
                    size=f.size,
                    success=False,
                    failure=FailureKind.KEEPER_MISSING,
                    reason=f"Keeper no longer exists: {keeper.path}",
                )
                for f in decision.files_to_delete
            ]
        else:
            outcomes = [self._delete(f) for f in decision.files_to_delete]

        return GroupResult(
            group=decision.group,
            status=GroupStatus.EXECUTED,
            decision=decision,
            outcomes=outcomes,
        )

    def _delete(self, file: FileCandidate) -> DeletionOutcome:
        try:
            FileService.remove_file(file.path, use_trash=self.use_trash)
        except OSError as e:
            kind = self.classify(e)
            reason = e.strerror or str(e)
            logger.warning(f"Failed to delete {file.path}: {reason}")
            return DeletionOutcome(path=file.path, size=file.size, success=False, failure=kind, reason=reason)

        logger.debug(f"Deleted {file.path} ({file.size} bytes)")
        return DeletionOutcome(path=file.path, size=file.size, success=True)

    @staticmethod
    def classify(error: OSError) -> FailureKind:
        if isinstance(error, PermissionError):
            return FailureKind.PERMISSION_DENIED
        if isinstance(error, FileNotFoundError):
            return FailureKind.NOT_FOUND
        if isinstance(error, IsADirectoryError):
            return FailureKind.IS_A_DIRECTORY
        return FailureKind.OTHER
