"""
Console implementations of the Confirmer and GroupChooser channels.
Input and output are injectable so the prompts can be driven without a terminal.
"""
import sys
from typing import Callable, TextIO, Optional

from keepone.core.models import BatchSummary, DuplicateGroup, GroupChoice
from keepone.utils.convert_utils import ConvertUtils

SKIP_ANSWERS = ("s", "skip", "a", "all")
ABORT_ANSWERS = ("q", "quit", "abort")
YES_ANSWERS = ("y", "yes")


class ConsoleConfirmer:
    """
    Shows the batch preview and asks a single [y/N] question.
    With assume_yes nobody is asked; with quiet the preview is left out.
    """

    def __init__(
            self,
            assume_yes: bool = False,
            quiet: bool = False,
            input_func: Optional[Callable[[str], str]] = None,
            stream: Optional[TextIO] = None
    ):
        self.assume_yes = assume_yes
        self.quiet = quiet
        self.input_func = input_func or input
        self.stream = stream or sys.stdout

    def confirm(self, summary: BatchSummary) -> bool:
        if not self.quiet:
            self._print_preview(summary)

        reclaim = ConvertUtils.bytes_to_human(summary.reclaimable_bytes)
        if self.assume_yes:
            if not self.quiet:
                print(f"Deleting {summary.file_count} files without confirmation (--yes).", file=self.stream)
            return True

        question = (f"Delete {summary.file_count} files from {summary.group_count} groups "
                    f"and free {reclaim}? [y/N]: ")
        try:
            answer = self.input_func(question)
        except EOFError:
            return False
        return answer.strip().lower() in YES_ANSWERS

    def _print_preview(self, summary: BatchSummary) -> None:
        for idx, decision in enumerate(summary.decisions, 1):
            size_str = ConvertUtils.bytes_to_human(decision.group.size)
            print(f"Group {idx} | Size: {size_str} | Files: {len(decision.group.files)}", file=self.stream)
            print(f"   [KEEP] {decision.keeper.path}", file=self.stream)
            for file in decision.files_to_delete:
                print(f"   [DEL]  {file.path}", file=self.stream)
        if summary.decisions:
            print(file=self.stream)


class ConsolePrompter:
    """
    Per-group question for interactive mode.

    Answers:
        <number>  keep that file, delete the others
        <Enter>   keep the default file
        s / a     skip the group, keep every copy
        q         stop; groups already handled stay handled
    End of input counts as q. Anything else is asked again.
    """

    def __init__(
            self,
            input_func: Optional[Callable[[str], str]] = None,
            stream: Optional[TextIO] = None
    ):
        self.input_func = input_func or input
        self.stream = stream or sys.stdout

    def choose(self, group: DuplicateGroup, position: int, total: int) -> GroupChoice:
        size_str = ConvertUtils.bytes_to_human(group.size)
        print(f"\nGroup {position}/{total} | Size: {size_str} | "
              f"Fingerprint: {ConvertUtils.short_digest(group.fingerprint)}", file=self.stream)
        for idx, file in enumerate(group.files, 1):
            marker = "  (default)" if idx - 1 == group.keeper_index else ""
            print(f"   [{idx}] {file.path}{marker}", file=self.stream)

        question = (f"Keep which file? [1-{len(group.files)}, "
                    f"Enter={group.keeper_index + 1}, s=skip, q=quit]: ")
        while True:
            try:
                answer = self.input_func(question).strip().lower()
            except EOFError:
                return GroupChoice.abort()

            choice = self.parse_answer(answer, group)
            if choice is not None:
                return choice
            print(f"Invalid choice: '{answer}'", file=self.stream)

    @staticmethod
    def parse_answer(answer: str, group: DuplicateGroup) -> Optional[GroupChoice]:
        """Map one line of input to a GroupChoice, or None if it is not valid."""
        if answer == "":
            return GroupChoice.keep(group.keeper_index)
        if answer in SKIP_ANSWERS:
            return GroupChoice.skip()
        if answer in ABORT_ANSWERS:
            return GroupChoice.abort()
        if answer.isdecimal():
            number = int(answer)
            if 1 <= number <= len(group.files):
                return GroupChoice.keep(number - 1)
        return None
