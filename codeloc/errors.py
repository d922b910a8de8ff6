"""Exception types raised while resolving and classifying files.

None of these abort a batch: the analyzer records them on the affected
:class:`~codeloc.models.FileRecord` and moves on to the next file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

__all__ = [
    "CodelocError",
    "FileUnreadableError",
    "LineTooLongError",
    "UnresolvedLanguageError",
]


class CodelocError(Exception):
    """Base class for all codeloc errors."""


class FileUnreadableError(CodelocError):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot read {self.path}: {reason}")


class LineTooLongError(CodelocError):
    """A physical line exceeded the configured maximum length."""

    def __init__(self, line_number: int, max_length: int):
        self.line_number = line_number
        self.max_length = max_length
        super().__init__(
            f"line {line_number} exceeds the maximum length of {max_length} bytes"
        )


class UnresolvedLanguageError(CodelocError):
    def __init__(self, path: Union[str, Path]):
        self.path = str(path)
        super().__init__(f"cannot determine the language of {self.path}")
