"""
errors.py - Error Types Module

Exceptions raised by the rename pipeline:
- InputError: malformed or duplicate input, rejected before scoring
- FilesystemError: I/O failure while executing a plan
- PlanPreconditionError: the disk no longer matches the plan
- RollbackError: a rollback step failed and manual cleanup is needed
"""

from typing import Iterable, List, Union


class RenameToolError(Exception):
    """Base error for the project."""


class InputError(RenameToolError):
    """Malformed or duplicate input, rejected before scoring."""

    def __init__(self, problems: Union[str, Iterable[str]]):
        if isinstance(problems, str):
            problems = [problems]
        self.problems: List[str] = list(problems)
        super().__init__("; ".join(self.problems))


class FilesystemError(RenameToolError):
    """I/O failure while executing a plan."""


class PlanPreconditionError(FilesystemError):
    """The filesystem does not match the plan; nothing was touched."""

    def __init__(self, problems: Iterable[str]):
        self.problems: List[str] = list(problems)
        super().__init__("Plan cannot be executed: " + "; ".join(self.problems))


class RollbackError(FilesystemError):
    """Reversing completed operations failed; files need manual attention."""
