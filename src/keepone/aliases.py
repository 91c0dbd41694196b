from keepone.core.models import ResolutionMode, KeeperPolicy

MODE_ALIASES = {
    "dry-run": ResolutionMode.DRY_RUN,
    "confirm": ResolutionMode.BATCH_CONFIRM,
    "interactive": ResolutionMode.INTERACTIVE,
}

MODE_CHOICES = list(MODE_ALIASES.keys())

MODE_HELP_TEXT = (
    "How duplicates are resolved:\n"
    "  dry-run     : List what would be deleted, touch nothing (default)\n"
    "  confirm     : Show a summary, delete everything after one yes/no prompt\n"
    "  interactive : Pick the file to keep for every group, one at a time\n"
    "Example:\n"
    "  %(prog)s ~/Downloads --mode confirm -m 1M"
)

KEEP_ALIASES = {
    "lexicographic": KeeperPolicy.LEXICOGRAPHIC,
    "shortest-path": KeeperPolicy.SHORTEST_PATH,
    "shortest-filename": KeeperPolicy.SHORTEST_FILENAME,
}

KEEP_CHOICES = list(KEEP_ALIASES.keys())

KEEP_HELP_TEXT = (
    "Which file survives by default in each group:\n"
    "  lexicographic     : Smallest full path (default)\n"
    "  shortest-path     : File closest to the root, then smallest path\n"
    "  shortest-filename : Shortest file name, then smallest path\n"
    "Files inside --priority-dirs always win.\n"
)

EPILOG_TEXT = """
Examples:
  Preview duplicates in Downloads (nothing is deleted)
  %(prog)s ~/Downloads

  Scan two folders, ignore files under 500KB, keep copies from ~/Photos
  %(prog)s ~/Photos ~/Backup -m 500KB -p ~/Photos

  Delete duplicates after one confirmation, moving them to the trash
  %(prog)s ~/Downloads --mode confirm --trash

  Same as above without the prompt (for scripts)
  %(prog)s ~/Downloads --mode confirm --yes

  Choose the survivor of every group yourself
  %(prog)s ~/Downloads --mode interactive

  Write a machine-readable report (never deletes)
  %(prog)s ~/Downloads --json-output ~/report.json

Note: a symlink to a file is treated as its target, even when the target
lies outside the scanned directories. Review the preview before deleting.
"""
