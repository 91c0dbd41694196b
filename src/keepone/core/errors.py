"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Fatal error types. Per-file problems are never raised past their stage:
they are recorded as TraversalWarning / HashError / DeletionOutcome entries.
"""


class KeepOneError(RuntimeError):
    """Base class for errors that stop a run."""


class InvalidRootError(KeepOneError):
    """A supplied root does not exist or is not a directory."""

    def __init__(self, root: str, reason: str):
        self.root = root
        self.reason = reason
        super().__init__(f"{reason}: {root}")


class FileChangedError(OSError):
    """File content length differs from the size recorded at indexing time."""


class ResolutionError(KeepOneError):
    """A decision would break the keeper invariant. Indicates a bug, never user input."""
