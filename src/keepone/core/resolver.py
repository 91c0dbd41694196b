"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/resolver.py
ResolutionEngine: one entry point for dry-run, batch-confirm and interactive runs.

Every decision goes through ResolutionDecision.for_keeper(), so the keeper is
excluded from the delete set in all three modes. User input arrives through
the Confirmer / GroupChooser channels; no prompting happens here.
"""

import logging
from typing import List, Optional

from keepone.core.models import (
    DuplicateGroup,
    ResolutionDecision,
    ResolutionMode,
    RunReport,
    GroupResult,
    GroupStatus,
    ChoiceAction,
    BatchSummary,
)
from keepone.core.interfaces import Confirmer, GroupChooser, DecisionExecutor

logger = logging.getLogger(__name__)


class ResolutionEngine:
    """
    Walks the groups in detection order and records one GroupResult per group
    in the supplied RunReport, which is finalized before resolve() returns.
    """

    def __init__(
            self,
            executor: DecisionExecutor,
            confirmer: Optional[Confirmer] = None,
            chooser: Optional[GroupChooser] = None
    ):
        self.executor = executor
        self.confirmer = confirmer
        self.chooser = chooser

    @staticmethod
    def default_decision(group: DuplicateGroup) -> ResolutionDecision:
        return ResolutionDecision.for_keeper(group, group.keeper_index)

    @staticmethod
    def summarize(decisions: List[ResolutionDecision]) -> BatchSummary:
        return BatchSummary(
            group_count=len(decisions),
            file_count=sum(len(d.delete_indices) for d in decisions),
            reclaimable_bytes=sum(d.bytes_to_free for d in decisions),
            decisions=tuple(decisions),
        )

    def resolve(self, groups: List[DuplicateGroup], mode: ResolutionMode, report: RunReport) -> RunReport:
        if mode == ResolutionMode.DRY_RUN:
            self._resolve_dry_run(groups, report)
        elif mode == ResolutionMode.BATCH_CONFIRM:
            self._resolve_batch(groups, report)
        elif mode == ResolutionMode.INTERACTIVE:
            self._resolve_interactive(groups, report)
        else:
            raise ValueError(f"Unknown resolution mode: {mode}")
        return report.finalize()

    # ----- modes -----

    def _resolve_dry_run(self, groups: List[DuplicateGroup], report: RunReport) -> None:
        for group in groups:
            report.add_group_result(GroupResult(
                group=group,
                status=GroupStatus.WOULD_DELETE,
                decision=self.default_decision(group),
            ))

    def _resolve_batch(self, groups: List[DuplicateGroup], report: RunReport) -> None:
        if self.confirmer is None:
            raise ValueError("Batch confirmation requires a confirmer")

        decisions = [self.default_decision(g) for g in groups]
        if not decisions:
            report.confirmed = None
            return

        summary = self.summarize(decisions)
        report.confirmed = bool(self.confirmer.confirm(summary))

        if not report.confirmed:
            logger.info("Batch deletion declined, nothing removed")
            for decision in decisions:
                report.add_group_result(GroupResult(
                    group=decision.group,
                    status=GroupStatus.WOULD_DELETE,
                    decision=decision,
                ))
            return

        for result in self.executor.execute(decisions):
            report.add_group_result(result)

    def _resolve_interactive(self, groups: List[DuplicateGroup], report: RunReport) -> None:
        if self.chooser is None:
            raise ValueError("Interactive mode requires a group chooser")

        total = len(groups)
        for position, group in enumerate(groups, start=1):
            if report.aborted:
                report.add_group_result(GroupResult(group=group, status=GroupStatus.NOT_REACHED))
                continue

            choice = self._ask(group, position, total)

            if choice.action == ChoiceAction.ABORT:
                logger.info(f"Run aborted by user at group {position}/{total}")
                report.aborted = True
                report.add_group_result(GroupResult(group=group, status=GroupStatus.NOT_REACHED))
            elif choice.action == ChoiceAction.SKIP:
                report.add_group_result(GroupResult(group=group, status=GroupStatus.SKIPPED))
            else:
                decision = ResolutionDecision.for_keeper(group, choice.index)
                # applied right away; a later abort does not roll this back
                report.add_group_result(self.executor.execute_decision(decision))

    def _ask(self, group: DuplicateGroup, position: int, total: int):
        """Block until the chooser returns a usable answer."""
        while True:
            choice = self.chooser.choose(group, position, total)
            if choice.action != ChoiceAction.KEEP:
                return choice
            if choice.index is not None and 0 <= choice.index < len(group.files):
                return choice
            logger.warning(f"Invalid keeper index {choice.index} for a group of {len(group.files)}")
